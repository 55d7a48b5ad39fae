"""
版本/加载器选择联动

两个下拉框各自从项目级映射独立计算可选项，而不是互相过滤对方的当前列表，
因此反复切换不会把可选集合越缩越小。
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from moddepupdater.models import OptionsGraph


@dataclass
class Selector:
    """下拉框：选项列表 + 当前值"""

    options: List[str] = field(default_factory=list)
    value: str = ""

    def replace(self, options: List[str], preferred: Optional[str] = None) -> str:
        """
        整体替换选项列表

        preferred 仍在新列表中则保留，否则取第一项（列表为空时为空串）。
        """
        self.options = list(options)
        if preferred is not None and preferred in self.options:
            self.value = preferred
        else:
            self.value = self.options[0] if self.options else ""
        return self.value

    def clear(self) -> None:
        self.options = []
        self.value = ""


class SelectorReconciler:
    """单项目模式下的版本/加载器联动"""

    def __init__(
        self,
        graph: Optional[OptionsGraph] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.graph = graph or OptionsGraph.empty()
        self.version = Selector()
        self.loader = Selector()
        self._on_change = on_change

    @property
    def selected_version(self) -> str:
        return self.version.value

    @property
    def selected_loader(self) -> str:
        return self.loader.value

    def load(
        self,
        graph: OptionsGraph,
        version: Optional[str] = None,
        loader: Optional[str] = None,
    ) -> None:
        """用新的选项图整体替换两个下拉框（不与旧数据合并）"""
        self.graph = graph
        self.version.replace(graph.versions, version)
        self.loader.replace(graph.loaders, loader)

    def reset(self) -> None:
        self.graph = OptionsGraph.empty()
        self.version.clear()
        self.loader.clear()

    def version_changed(self, version: str) -> None:
        loaders = self.graph.loaders_for(version)
        self.loader.replace(loaders, self.loader.value)

        versions = self.graph.versions_for(self.loader.value)
        self.version.replace(versions, version)
        self._changed()

    def loader_changed(self, loader: str) -> None:
        versions = self.graph.versions_for(loader)
        self.version.replace(versions, self.version.value)

        loaders = self.graph.loaders_for(self.version.value)
        self.loader.replace(loaders, loader)
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
