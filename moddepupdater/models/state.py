"""
表单状态模型

定义来源、模式以及需要持久化的表单字段。
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict


class Source(Enum):
    """模组平台"""

    MODRINTH = "modrinth"
    CURSEFORGE = "curseforge"

    @classmethod
    def parse(cls, value: Any) -> "Source":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.MODRINTH


class Mode(Enum):
    """更新模式"""

    SINGLE = "single"
    BATCH = "batch"

    @classmethod
    def parse(cls, value: Any) -> "Mode":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.SINGLE


# 持久化时使用的键名
_KEYS = {
    "gradle_path": "gradlePath",
    "source": "source",
    "project_id": "projectId",
    "mc_version": "mcVersion",
    "loader": "loader",
    "cf_api_key": "cfApiKey",
    "lang": "lang",
    "mode": "mode",
    "cache_versions": "cacheVersions",
}


@dataclass
class PersistedFormState:
    """表单字段快照"""

    gradle_path: str = ""
    source: Source = Source.MODRINTH
    project_id: str = ""
    mc_version: str = ""
    loader: str = ""
    cf_api_key: str = ""
    lang: str = "en"
    mode: Mode = Mode.SINGLE
    cache_versions: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        data["mode"] = self.mode.value
        return {_KEYS[k]: v for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedFormState":
        state = cls()
        for attr, key in _KEYS.items():
            if key not in data or data[key] is None:
                continue
            value = data[key]
            if attr == "source":
                value = Source.parse(value)
            elif attr == "mode":
                value = Mode.parse(value)
            elif attr == "cache_versions":
                value = bool(value)
            else:
                value = str(value)
            setattr(state, attr, value)
        return state
