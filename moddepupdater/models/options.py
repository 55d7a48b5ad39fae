"""
选项与候选数据模型

定义项目选项图、候选版本和批量项目等数据类。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _as_str_list(values: Any) -> List[str]:
    if not values or not isinstance(values, (list, tuple)):
        return []
    return [str(v) for v in values]


def _as_str_map(data: Any) -> Dict[str, List[str]]:
    if not data or not isinstance(data, dict):
        return {}
    return {str(k): _as_str_list(v) for k, v in data.items()}


@dataclass
class OptionsGraph:
    """
    单个项目的版本/加载器选项图。

    两个映射互为反向；任一映射缺失或为空表示“没有已知限制”，
    此时调用方应回退到完整的 versions / loaders 列表。
    """

    versions: List[str] = field(default_factory=list)
    loaders: List[str] = field(default_factory=list)
    version_to_loaders: Dict[str, List[str]] = field(default_factory=dict)
    loader_to_versions: Dict[str, List[str]] = field(default_factory=dict)
    slug: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "OptionsGraph":
        """
        将后端 get_project_options 的返回值转换为 OptionsGraph。
        """
        return cls(
            versions=_as_str_list(data.get("versions")),
            loaders=_as_str_list(data.get("loaders")),
            version_to_loaders=_as_str_map(data.get("version_to_loaders")),
            loader_to_versions=_as_str_map(data.get("loader_to_versions")),
            slug=data.get("slug"),
            id=data.get("id"),
        )

    @classmethod
    def empty(cls) -> "OptionsGraph":
        return cls()

    def loaders_for(self, version: str) -> List[str]:
        """与版本兼容的加载器；未知时回退到完整列表"""
        loaders = self.version_to_loaders.get(version) or []
        return list(loaders) if loaders else list(self.loaders)

    def versions_for(self, loader: str) -> List[str]:
        """与加载器兼容的版本；未知时回退到完整列表"""
        versions = self.loader_to_versions.get(loader) or []
        return list(versions) if versions else list(self.versions)

    def is_consistent(self) -> bool:
        """检查 version_to_loaders 中的每条边在 loader_to_versions 中都存在"""
        for version, loaders in self.version_to_loaders.items():
            for loader in loaders:
                inverse = self.loader_to_versions.get(loader)
                if inverse is not None and version not in inverse:
                    return False
        return True

    @property
    def is_empty(self) -> bool:
        return not self.versions and not self.loaders


@dataclass(frozen=True)
class CandidateChoice:
    """一个可选的目标版本，id 在应用时原样传回后端"""

    id: str
    label: str
    kind: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CandidateChoice":
        return cls(
            id=str(data.get("id", "")),
            label=str(data.get("label", "")),
            kind=str(data.get("kind", "")),
        )


@dataclass(frozen=True)
class BatchItem:
    """批量模式下的一个项目"""

    key: str
    display_name: str = ""
    icon_reference: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "BatchItem":
        # icon_data (data URL) 优先于本地缓存路径
        icon = data.get("icon_data") or data.get("icon") or ""
        key = str(data.get("key", ""))
        return cls(
            key=key,
            display_name=str(data.get("name") or key),
            icon_reference=str(icon),
        )
