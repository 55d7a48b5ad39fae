"""
ModDepUpdater - build.gradle 模组依赖版本更新工具

支持 Modrinth 与 CurseForge，单项目或批量选择目标版本后写入 build.gradle。
"""

__version__ = "0.1.0"

from moddepupdater.exceptions import ModDepError
from moddepupdater.models import OptionsGraph, CandidateChoice, BatchItem

__all__ = [
    "__version__",
    "ModDepError",
    "OptionsGraph",
    "CandidateChoice",
    "BatchItem",
]
