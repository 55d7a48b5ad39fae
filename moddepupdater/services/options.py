"""
项目选项服务

获取单个项目的版本/加载器选项图。
"""

from typing import Optional

from loguru import logger

from moddepupdater.backend import Backend
from moddepupdater.exceptions import BackendError, OptionsLookupError
from moddepupdater.models import OptionsGraph


class OptionsResolver:
    """选项图获取器"""

    def __init__(self, backend: Backend):
        self.backend = backend

    async def fetch(
        self,
        source: str,
        project_id: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = True,
    ) -> OptionsGraph:
        """
        获取项目选项图

        Args:
            source: 平台 (modrinth / curseforge)
            project_id: 项目 slug 或数字 ID
            cf_api_key: CurseForge API Key
            use_cache: 是否允许后端使用缓存

        Returns:
            OptionsGraph

        Raises:
            OptionsLookupError: 项目 ID 为空或后端调用失败
        """
        project_id = (project_id or "").strip()
        if not project_id:
            raise OptionsLookupError("项目 ID 不能为空")

        try:
            graph = await self.backend.get_project_options(
                source, project_id, cf_api_key, use_cache
            )
        except OptionsLookupError:
            raise
        except BackendError as e:
            raise OptionsLookupError(e.message, context=dict(e.context))

        if not graph.is_consistent():
            logger.debug(f"项目 {project_id} 的版本/加载器映射不一致，按各自映射处理")

        logger.debug(
            f"项目 {project_id} 选项: {len(graph.versions)} 个版本, "
            f"{len(graph.loaders)} 个加载器"
        )
        return graph
