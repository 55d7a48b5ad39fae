"""
HTTP 后端客户端

通过 aiohttp 以 JSON 调用后端命令: POST {base_url}/invoke/{command}
"""

import asyncio
from typing import Any, List, Optional, Sequence, Tuple, Type

import aiohttp
from loguru import logger

from moddepupdater.backend.base import Backend
from moddepupdater.exceptions import (
    ApplyError,
    BackendError,
    BatchLookupError,
    CandidateListError,
    OptionsLookupError,
)
from moddepupdater.models import BatchItem, CandidateChoice, OptionsGraph
from moddepupdater.models.config import DEFAULT_BASE_URL


class HttpBackend(Backend):
    """后端命令客户端"""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owned_session = True
        return self._session

    async def _invoke(
        self,
        command: str,
        payload: Optional[dict] = None,
        error_cls: Type[BackendError] = BackendError,
    ) -> Any:
        """调用后端命令"""
        url = f"{self.base_url}/invoke/{command}"
        logger.debug(f"[后端] 调用 {command}")
        try:
            async with self.session.post(url, json=payload or {}) as response:
                if response.status == 200:
                    if response.content_type != "application/json":
                        return await response.text()
                    try:
                        return await response.json()
                    except ValueError as e:
                        raise error_cls(
                            f"后端命令 {command} 返回了无效的 JSON: {e}",
                            context={"command": command},
                        )
                body = (await response.text()).strip()
                raise error_cls(
                    body or f"后端命令 {command} 失败 (状态码: {response.status})",
                    context={"command": command},
                    status=response.status,
                )
        except asyncio.TimeoutError:
            raise error_cls(
                f"后端命令 {command} 超时 ({self.timeout}s)",
                context={"command": command},
            )
        except aiohttp.ClientError as e:
            raise error_cls(
                f"无法连接后端: {e}",
                context={"command": command, "url": url},
            )

    @staticmethod
    def _records(
        result: Any, field: str, error_cls: Type[BackendError], context: dict
    ) -> List[dict]:
        """取出结果中的记录列表，形状不对时抛出该命令的异常"""
        records = result.get(field) if isinstance(result, dict) else None
        if records is None and isinstance(result, dict):
            records = []
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise error_cls(f"后端返回了无效的 {field} 列表", context=context)
        return records

    @staticmethod
    def _message(result: Any) -> str:
        if isinstance(result, dict):
            return str(result.get("message", ""))
        return "" if result is None else str(result)

    async def get_project_options(
        self,
        source: str,
        project_id: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = True,
    ) -> OptionsGraph:
        result = await self._invoke(
            "get_project_options",
            {
                "source": source,
                "project_id": project_id,
                "cf_api_key": cf_api_key,
                "use_cache": use_cache,
            },
            OptionsLookupError,
        )
        if not isinstance(result, dict):
            raise OptionsLookupError(
                "后端返回了无效的项目选项", context={"project_id": project_id}
            )
        return OptionsGraph.from_dict(result)

    async def list_versions(
        self,
        source: str,
        project_id: str,
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = False,
    ) -> List[CandidateChoice]:
        result = await self._invoke(
            "list_versions",
            {
                "source": source,
                "project_id": project_id,
                "mc_version": mc_version,
                "loader": loader,
                "cf_api_key": cf_api_key,
                "use_cache": use_cache,
            },
            CandidateListError,
        )
        records = self._records(
            result, "choices", CandidateListError, {"project_id": project_id}
        )
        return [CandidateChoice.from_dict(c) for c in records]

    async def get_batch_mod_briefs(
        self,
        source: str,
        items: Sequence[str],
        cf_api_key: Optional[str] = None,
    ) -> List[BatchItem]:
        result = await self._invoke(
            "get_batch_mod_briefs",
            {"source": source, "items": list(items), "cf_api_key": cf_api_key},
            BatchLookupError,
        )
        records = self._records(result, "mods", BatchLookupError, {"items": list(items)})
        return [BatchItem.from_dict(m) for m in records]

    async def apply_selected_version(
        self,
        gradle_path: str,
        source: str,
        project_id: str,
        loader: str,
        selected_id: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        result = await self._invoke(
            "apply_selected_version",
            {
                "gradle_path": gradle_path,
                "source": source,
                "project_id": project_id,
                "loader": loader,
                "selected_id": selected_id,
                "cf_api_key": cf_api_key,
            },
            ApplyError,
        )
        return self._message(result)

    async def apply_selected_versions_batch(
        self,
        gradle_path: str,
        source: str,
        selections: Sequence[Tuple[str, str]],
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        result = await self._invoke(
            "apply_selected_versions_batch",
            {
                "gradle_path": gradle_path,
                "source": source,
                "selections": [list(pair) for pair in selections],
                "loader": loader,
                "cf_api_key": cf_api_key,
            },
            ApplyError,
        )
        return self._message(result)

    async def update_dependency(
        self,
        gradle_path: str,
        project_id: str,
        mc_version: str,
        loader: str,
        source: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        result = await self._invoke(
            "update_dependency",
            {
                "gradle_path": gradle_path,
                "project_id": project_id,
                "mc_version": mc_version,
                "loader": loader,
                "source": source,
                "cf_api_key": cf_api_key,
            },
            ApplyError,
        )
        return self._message(result)

    async def update_dependencies_batch(
        self,
        gradle_path: str,
        source: str,
        items: Sequence[str],
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
    ) -> str:
        result = await self._invoke(
            "update_dependencies_batch",
            {
                "gradle_path": gradle_path,
                "source": source,
                "items": list(items),
                "mc_version": mc_version,
                "loader": loader,
                "cf_api_key": cf_api_key,
            },
            ApplyError,
        )
        return self._message(result)

    async def clear_all_caches(self) -> None:
        await self._invoke("clear_all_caches")

    async def refresh_mojang_cache(self) -> None:
        await self._invoke("refresh_mojang_cache")

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()
