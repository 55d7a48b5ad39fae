"""
弹窗视图接口

SelectionModal 只通过这些方法操作界面，具体渲染由实现类决定。
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from moddepupdater.models import BatchItem, CandidateChoice, Mode
from moddepupdater.services import Control


class ModalView(ABC):
    @abstractmethod
    def show(self, mode: Mode) -> None:
        pass

    @abstractmethod
    def hide(self) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        """清空候选列表和项目卡片"""
        pass

    @abstractmethod
    def render_tiles(self, items: List[BatchItem], active_key: Optional[str]) -> None:
        pass

    @abstractmethod
    def set_active_tile(self, key: str) -> None:
        pass

    @abstractmethod
    def show_loading(self, key: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def render_candidates(
        self,
        choices: List[CandidateChoice],
        checked_id: Optional[str],
        key: Optional[str] = None,
    ) -> None:
        pass

    def set_checked(self, choice_id: str) -> None:
        """单选框勾选变化，默认无需处理"""
        pass

    def set_buttons(self, apply: Control, apply_all: Control) -> None:
        """应用按钮可见性变化，默认无需处理"""
        pass
