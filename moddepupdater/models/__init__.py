"""
ModDepUpdater 数据模型包

包含配置模型、表单状态模型和选项/候选模型定义。
"""

from moddepupdater.models.config import (
    AppConfig,
    BackendConfig,
    StorageConfig,
    LoggingConfig,
)
from moddepupdater.models.state import Source, Mode, PersistedFormState
from moddepupdater.models.options import OptionsGraph, CandidateChoice, BatchItem

__all__ = [
    # 配置模型
    "AppConfig",
    "BackendConfig",
    "StorageConfig",
    "LoggingConfig",
    # 表单状态
    "Source",
    "Mode",
    "PersistedFormState",
    # 选项模型
    "OptionsGraph",
    "CandidateChoice",
    "BatchItem",
]
