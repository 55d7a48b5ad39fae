"""
后端命令接口抽象

依赖解析与 build.gradle 改写由后端完成，这里只定义命令名与返回类型。
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from moddepupdater.models import BatchItem, CandidateChoice, OptionsGraph


class Backend(ABC):
    @abstractmethod
    async def get_project_options(
        self,
        source: str,
        project_id: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = True,
    ) -> OptionsGraph:
        """
        获取项目的版本/加载器选项图。失败时抛出 OptionsLookupError。
        """
        pass

    @abstractmethod
    async def list_versions(
        self,
        source: str,
        project_id: str,
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = False,
    ) -> List[CandidateChoice]:
        """
        列出与目标版本/加载器匹配的候选版本。失败时抛出 CandidateListError。
        """
        pass

    @abstractmethod
    async def get_batch_mod_briefs(
        self,
        source: str,
        items: Sequence[str],
        cf_api_key: Optional[str] = None,
    ) -> List[BatchItem]:
        """
        批量查询项目简介（名称、图标）。失败时抛出 BatchLookupError。
        """
        pass

    @abstractmethod
    async def apply_selected_version(
        self,
        gradle_path: str,
        source: str,
        project_id: str,
        loader: str,
        selected_id: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        """
        将选中的版本写入 build.gradle。失败时抛出 ApplyError。
        """
        pass

    @abstractmethod
    async def apply_selected_versions_batch(
        self,
        gradle_path: str,
        source: str,
        selections: Sequence[Tuple[str, str]],
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        """
        一次写入多个 (项目, 版本) 选择。失败时抛出 ApplyError。
        """
        pass

    @abstractmethod
    async def update_dependency(
        self,
        gradle_path: str,
        project_id: str,
        mc_version: str,
        loader: str,
        source: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        """直接写入最新匹配版本"""
        pass

    @abstractmethod
    async def update_dependencies_batch(
        self,
        gradle_path: str,
        source: str,
        items: Sequence[str],
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        """批量写入最新匹配版本"""
        pass

    @abstractmethod
    async def clear_all_caches(self) -> None:
        pass

    @abstractmethod
    async def refresh_mojang_cache(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
