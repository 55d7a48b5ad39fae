"""
ModDepUpdater 服务层

包含业务逻辑服务：选项获取、选择联动、批量会话、应用提交。
"""

from moddepupdater.services.options import OptionsResolver
from moddepupdater.services.reconciler import Selector, SelectorReconciler
from moddepupdater.services.batch import BatchSession, parse_batch_input
from moddepupdater.services.apply import ApplyOrchestrator, Control

__all__ = [
    "OptionsResolver",
    "Selector",
    "SelectorReconciler",
    "BatchSession",
    "parse_batch_input",
    "ApplyOrchestrator",
    "Control",
]
