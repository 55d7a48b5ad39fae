"""
界面文本翻译

从包内的 locales/*.json 读取词典，找不到时回退到调用方给出的默认文本。
"""

import json
import os
from typing import Any, Dict, Mapping, Optional

from loguru import logger

LOCALES_DIR = os.path.join(os.path.dirname(__file__), "locales")
SUPPORTED_LANGUAGES = ("en", "zh-CN")


def normalize_language(lang: Optional[str]) -> str:
    return "zh-CN" if lang == "zh-CN" else "en"


class Translator:
    """翻译器"""

    def __init__(self, lang: str = "en", locales_dir: str = LOCALES_DIR):
        self.locales_dir = locales_dir
        self.lang = "en"
        self._dict: Dict[str, str] = {}
        self.set_language(lang)

    def set_language(self, lang: str) -> None:
        self.lang = normalize_language(lang)
        self._dict = self._load(self.lang)

    def _load(self, lang: str) -> Dict[str, str]:
        path = os.path.join(self.locales_dir, f"{lang}.json")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"加载语言文件 {path} 失败: {e}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def lookup(
        self,
        key: str,
        fallback: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        raw = self._dict.get(key) or fallback
        if not params:
            return raw
        for name, value in params.items():
            raw = raw.replace("{" + name + "}", str(value))
        return raw

    __call__ = lookup
