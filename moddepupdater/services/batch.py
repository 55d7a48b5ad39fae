"""
批量会话

一次批量弹窗交互内的项目列表、候选版本缓存和每个项目暂存的选择。
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from moddepupdater.backend import Backend
from moddepupdater.exceptions import (
    BackendError,
    BatchLookupError,
    CandidateListError,
    NoSelectionError,
)
from moddepupdater.models import BatchItem, CandidateChoice


def parse_batch_input(raw: Union[str, Iterable[str]]) -> List[str]:
    """按行拆分、去除首尾空白并过滤空行"""
    if isinstance(raw, str):
        lines = re.split(r"\r?\n", raw)
    else:
        lines = list(raw)
    return [line.strip() for line in lines if line and line.strip()]


class BatchSession:
    """批量会话"""

    def __init__(
        self,
        backend: Backend,
        source: str,
        items: List[BatchItem],
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = False,
    ):
        self.backend = backend
        self.source = source
        self.items = list(items)
        self.mc_version = mc_version
        self.loader = loader
        self.cf_api_key = cf_api_key
        self.use_cache = use_cache
        self.current_key: Optional[str] = self.items[0].key if self.items else None

        self._cache: Dict[str, List[CandidateChoice]] = {}
        self._staged: Dict[str, str] = {}

    @classmethod
    async def start(
        cls,
        backend: Backend,
        source: str,
        raw_items: Union[str, Iterable[str]],
        mc_version: str,
        loader: str,
        cf_api_key: Optional[str] = None,
        use_cache: bool = False,
    ) -> "BatchSession":
        """
        解析输入并批量查询项目，创建会话

        Raises:
            BatchLookupError: 输入为空（不会调用后端）或批量查询失败
        """
        tokens = parse_batch_input(raw_items)
        if not tokens:
            raise BatchLookupError("批量模式下请输入项目列表")

        try:
            items = await backend.get_batch_mod_briefs(source, tokens, cf_api_key)
        except BatchLookupError:
            raise
        except BackendError as e:
            raise BatchLookupError(e.message, context=dict(e.context))

        logger.debug(f"批量查询完成: {len(tokens)} 个输入, {len(items)} 个项目")
        return cls(backend, source, items, mc_version, loader, cf_api_key, use_cache)

    @property
    def keys(self) -> List[str]:
        return [item.key for item in self.items]

    def item(self, key: str) -> Optional[BatchItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None

    def cached(self, key: str) -> Optional[List[CandidateChoice]]:
        return self._cache.get(key)

    async def candidates(self, key: str) -> List[CandidateChoice]:
        """
        获取项目的候选版本

        同一会话内每个项目只请求一次，之后直接返回缓存。
        并发去重由调用方负责。
        """
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            choices = await self.backend.list_versions(
                self.source,
                key,
                self.mc_version,
                self.loader,
                self.cf_api_key,
                self.use_cache,
            )
        except CandidateListError:
            raise
        except BackendError as e:
            raise CandidateListError(e.message, context=dict(e.context))

        choices = list(choices)
        self._cache[key] = choices
        if key not in self._staged and choices:
            self._staged[key] = choices[0].id
        return choices

    def stage(self, key: str, choice_id: str) -> None:
        """暂存选择（不校验 choice_id 是否属于该项目的候选列表）"""
        self._staged[key] = choice_id

    def staged(self, key: str) -> Optional[str]:
        return self._staged.get(key)

    def selections(self) -> List[Tuple[str, str]]:
        """
        收集所有已暂存的 (项目, 版本) 对，按项目顺序

        Raises:
            NoSelectionError: 没有任何暂存选择
        """
        order = {key: idx for idx, key in enumerate(self.keys)}
        pairs = [(k, v) for k, v in self._staged.items() if v]
        pairs.sort(key=lambda pair: order.get(pair[0], len(order)))
        if not pairs:
            raise NoSelectionError("请选择一个版本")
        return pairs
