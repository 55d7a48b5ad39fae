"""
表单状态存储

以 JSON 文件保存表单字段，读写均为尽力而为。
"""

import json
import os
from typing import Optional

from loguru import logger

from moddepupdater.models import PersistedFormState


class JsonStateStore:
    """表单状态的 JSON 文件存储"""

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def load(self) -> Optional[PersistedFormState]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"读取表单状态失败: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"表单状态文件格式无效: {self.path}")
            return None
        return PersistedFormState.from_dict(data)

    def save(self, state: PersistedFormState) -> None:
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"保存表单状态失败: {e}")
