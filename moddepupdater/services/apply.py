"""
应用服务

把确认后的选择提交给后端，调用期间禁用触发按钮以防重复提交。
"""

from contextlib import asynccontextmanager
from typing import Optional, Sequence, Tuple

from loguru import logger

from moddepupdater.backend import Backend
from moddepupdater.exceptions import ApplyError, BackendError


class Control:
    """可禁用的触发控件（按钮）"""

    def __init__(self, name: str, visible: bool = True):
        self.name = name
        self.enabled = True
        self.visible = visible

    @asynccontextmanager
    async def disabled(self):
        self.enabled = False
        try:
            yield self
        finally:
            self.enabled = True

    def __repr__(self) -> str:
        return f"Control({self.name!r}, enabled={self.enabled}, visible={self.visible})"


class ApplyOrchestrator:
    """应用协调器"""

    def __init__(self, backend: Backend):
        self.backend = backend

    async def _call(self, control: Control, coro) -> str:
        async with control.disabled():
            try:
                return await coro
            except ApplyError:
                raise
            except BackendError as e:
                raise ApplyError(e.message, context=dict(e.context))

    async def apply_one(
        self,
        control: Control,
        gradle_path: str,
        source: str,
        project_id: str,
        loader: str,
        choice_id: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        logger.debug(f"应用 {project_id} -> {choice_id}")
        return await self._call(
            control,
            self.backend.apply_selected_version(
                gradle_path, source, project_id, loader, choice_id, cf_api_key
            ),
        )

    async def apply_batch(
        self,
        control: Control,
        gradle_path: str,
        source: str,
        pairs: Sequence[Tuple[str, str]],
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        """整体提交；部分失败如何处理由后端决定"""
        logger.debug(f"批量应用 {len(pairs)} 个选择")
        return await self._call(
            control,
            self.backend.apply_selected_versions_batch(
                gradle_path, source, list(pairs), loader, cf_api_key
            ),
        )

    async def update_latest(
        self,
        control: Control,
        gradle_path: str,
        source: str,
        project_id: str,
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        return await self._call(
            control,
            self.backend.update_dependency(
                gradle_path, project_id, mc_version, loader, source, cf_api_key
            ),
        )

    async def update_latest_batch(
        self,
        control: Control,
        gradle_path: str,
        source: str,
        items: Sequence[str],
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        return await self._call(
            control,
            self.backend.update_dependencies_batch(
                gradle_path, source, list(items), mc_version, loader, cf_api_key
            ),
        )
