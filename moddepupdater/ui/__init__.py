"""
ModDepUpdater 界面层

包含表单控制器、版本选择弹窗状态机和视图实现。
"""

from moddepupdater.ui.view import ModalView
from moddepupdater.ui.modal import ApplyTarget, ModalState, SelectionModal
from moddepupdater.ui.form import FormController
from moddepupdater.ui.terminal import TerminalModalView

__all__ = [
    "ModalView",
    "ApplyTarget",
    "ModalState",
    "SelectionModal",
    "FormController",
    "TerminalModalView",
]
