"""
版本选择弹窗控制器

状态机: closed -> open -> applying -> closed，open 状态下取消直接回到 closed。
applying 失败时回到 open 并重新挂载处理器；处理器只在 open 状态下挂载，
触发时立即卸载，因此同一次打开最多提交一次。
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from loguru import logger

from moddepupdater.backend import Backend
from moddepupdater.exceptions import (
    BackendError,
    CandidateListError,
    NoMatchError,
    NoSelectionError,
)
from moddepupdater.i18n import Translator
from moddepupdater.models import CandidateChoice, Mode
from moddepupdater.services import ApplyOrchestrator, BatchSession, Control
from moddepupdater.ui.view import ModalView

Handler = Callable[[], Awaitable[Optional[str]]]


class ModalState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    APPLYING = "applying"


@dataclass
class ApplyTarget:
    """一次弹窗交互所需的表单字段快照"""

    gradle_path: str
    source: str
    mc_version: str
    loader: str
    project_id: str = ""
    cf_api_key: Optional[str] = None
    use_cache: bool = False


class SelectionModal:
    """版本选择弹窗"""

    def __init__(
        self,
        view: ModalView,
        backend: Backend,
        orchestrator: ApplyOrchestrator,
        translator: Translator,
    ):
        self.view = view
        self.backend = backend
        self.orchestrator = orchestrator
        self.t = translator

        self.state = ModalState.CLOSED
        self.mode: Optional[Mode] = None
        self.target: Optional[ApplyTarget] = None
        self.session: Optional[BatchSession] = None
        self.apply_control = Control("apply")
        self.apply_all_control = Control("apply_all", visible=False)

        self._choices: List[CandidateChoice] = []
        self._checked: Optional[str] = None
        self._handlers: Dict[str, Handler] = {}
        self._inflight: Dict[str, "asyncio.Future[List[CandidateChoice]]"] = {}

    @property
    def is_open(self) -> bool:
        return self.state is not ModalState.CLOSED

    @property
    def choices(self) -> List[CandidateChoice]:
        return list(self._choices)

    @property
    def checked(self) -> Optional[str]:
        return self._checked

    @property
    def armed(self) -> List[str]:
        return sorted(self._handlers)

    # ------------------------------------------------------------------
    # 打开
    # ------------------------------------------------------------------

    async def open_single(self, target: ApplyTarget) -> None:
        """
        单项目模式：列出候选版本并打开弹窗

        Raises:
            NoMatchError: 没有匹配的版本（弹窗不会打开）
            CandidateListError: 后端调用失败
        """
        try:
            choices = await self.backend.list_versions(
                target.source,
                target.project_id,
                target.mc_version,
                target.loader,
                target.cf_api_key,
                target.use_cache,
            )
        except CandidateListError:
            raise
        except BackendError as e:
            raise CandidateListError(e.message, context=dict(e.context))

        if not choices:
            raise NoMatchError(
                "没有找到匹配的版本",
                context={
                    "project_id": target.project_id,
                    "mc_version": target.mc_version,
                    "loader": target.loader,
                },
            )

        self.force_close()
        self.mode = Mode.SINGLE
        self.target = target
        self._set_buttons(apply=True, apply_all=False)
        self._render(list(choices), None)
        self.state = ModalState.OPEN
        self.view.show(Mode.SINGLE)
        self._arm({"apply": self._apply_single, "cancel": self._noop})

    async def open_batch(self, session: BatchSession, target: ApplyTarget) -> None:
        """
        批量模式：渲染项目卡片并激活第一个

        第一个项目的候选加载失败时弹窗保持打开，异常继续抛出。
        """
        self.force_close()
        self.mode = Mode.BATCH
        self.target = target
        self.session = session
        self._set_buttons(apply=False, apply_all=False)
        self.view.render_tiles(session.items, session.current_key)
        self.state = ModalState.OPEN
        self.view.show(Mode.BATCH)
        self._set_buttons(apply=False, apply_all=True)
        self._arm(
            {
                "apply": self._apply_current,
                "apply_all": self._apply_all,
                "cancel": self._noop,
            }
        )
        logger.info(
            self.t(
                "log_batch_modal_show",
                "Showing batch modal: {n} mods",
                {"n": len(session.items)},
            )
        )
        if session.current_key is not None:
            await self.activate(session.current_key)

    # ------------------------------------------------------------------
    # 批量模式：项目切换
    # ------------------------------------------------------------------

    async def activate(self, key: str) -> List[CandidateChoice]:
        """
        激活项目卡片并显示其候选版本

        同一项目同时最多只有一个请求；切换到其他项目不会取消已发出的请求，
        其结果仍写入缓存，但只有在该项目仍处于激活状态时才渲染。
        """
        session = self.session
        if session is None or not self.is_open:
            raise NoSelectionError("批量弹窗未打开")
        if session.item(key) is None:
            raise NoSelectionError(f"未知项目: {key}", context={"key": key})

        session.current_key = key
        self.view.set_active_tile(key)

        choices = session.cached(key)
        if choices is None:
            self._choices = []
            self._checked = None
            self.view.show_loading(key)
            future = self._inflight.get(key)
            if future is None:
                future = asyncio.ensure_future(self._load(session, key))
                self._inflight[key] = future
            try:
                choices = await future
            finally:
                if self._inflight.get(key) is future:
                    del self._inflight[key]

        if self.session is session and session.current_key == key and self.is_open:
            self._render(choices, session.staged(key))
        else:
            logger.debug(f"项目 {key} 已不是当前项目，候选版本仅写入缓存")
        return choices

    async def _load(self, session: BatchSession, key: str) -> List[CandidateChoice]:
        started = time.perf_counter()
        choices = await session.candidates(key)
        logger.info(
            self.t(
                "log_versions_loaded",
                "Versions for {key} loaded in {ms}ms (count {n})",
                {
                    "key": key,
                    "ms": round((time.perf_counter() - started) * 1000),
                    "n": len(choices),
                },
            )
        )
        return choices

    # ------------------------------------------------------------------
    # 选择
    # ------------------------------------------------------------------

    def select(self, choice_id: str) -> None:
        """
        勾选一个候选版本；批量模式下立即暂存到当前项目

        Raises:
            NoSelectionError: 弹窗未打开或 choice_id 不在当前候选列表中
        """
        if self.state is not ModalState.OPEN:
            raise NoSelectionError("弹窗未打开")
        if choice_id not in {c.id for c in self._choices}:
            raise NoSelectionError(
                f"无效的版本选择: {choice_id}", context={"choice_id": choice_id}
            )
        self._checked = choice_id
        if self.mode is Mode.BATCH and self.session and self.session.current_key:
            self.session.stage(self.session.current_key, choice_id)
        self.view.set_checked(choice_id)

    # ------------------------------------------------------------------
    # 应用 / 取消
    # ------------------------------------------------------------------

    async def apply(self) -> Optional[str]:
        """应用当前（单项目模式或批量模式下的当前项目）"""
        return await self._fire("apply")

    async def apply_all(self) -> Optional[str]:
        """应用所有已暂存的批量选择"""
        return await self._fire("apply_all")

    def cancel(self) -> None:
        if self._handlers.get("cancel") is None:
            return
        self.force_close()

    def force_close(self) -> None:
        """关闭弹窗并清空渲染内容，丢弃批量会话"""
        self._disarm()
        self.state = ModalState.CLOSED
        self.mode = None
        self.target = None
        self.session = None
        self._choices = []
        self._checked = None
        self._inflight = {}
        self.view.clear()
        self.view.hide()

    async def _fire(self, name: str) -> Optional[str]:
        handler = self._handlers.get(name)
        if handler is None or self.state is not ModalState.OPEN:
            logger.debug(f"忽略 {name}: 弹窗状态 {self.state.value}")
            return None

        handlers = self._disarm()
        self.state = ModalState.APPLYING
        try:
            result = await handler()
        except Exception:
            if self.state is ModalState.APPLYING:
                self.state = ModalState.OPEN
                self._arm(handlers)
            raise

        if result:
            logger.info(result)
        if self.state is ModalState.APPLYING:
            self.force_close()
        return result

    def _arm(self, handlers: Dict[str, Handler]) -> None:
        self._handlers = dict(handlers)

    def _disarm(self) -> Dict[str, Handler]:
        handlers, self._handlers = self._handlers, {}
        return handlers

    async def _noop(self) -> Optional[str]:
        return None

    async def _apply_single(self) -> str:
        target = self.target
        if target is None or not self._checked:
            raise NoSelectionError("请选择一个版本")
        return await self.orchestrator.apply_one(
            self.apply_control,
            target.gradle_path,
            target.source,
            target.project_id,
            target.loader,
            self._checked,
            target.cf_api_key,
        )

    async def _apply_current(self) -> str:
        target, session = self.target, self.session
        key = session.current_key if session else None
        choice_id = session.staged(key) if session and key else None
        if target is None or not key or not choice_id:
            raise NoSelectionError("请选择一个版本")
        return await self.orchestrator.apply_one(
            self.apply_control,
            target.gradle_path,
            target.source,
            key,
            target.loader,
            choice_id,
            target.cf_api_key,
        )

    async def _apply_all(self) -> str:
        target, session = self.target, self.session
        if target is None or session is None:
            raise NoSelectionError("请选择一个版本")
        pairs = session.selections()
        return await self.orchestrator.apply_batch(
            self.apply_all_control,
            target.gradle_path,
            target.source,
            pairs,
            target.loader,
            target.cf_api_key,
        )

    # ------------------------------------------------------------------
    # 渲染
    # ------------------------------------------------------------------

    def _render(self, choices: List[CandidateChoice], staged: Optional[str]) -> None:
        ids = [c.id for c in choices]
        if staged and staged in ids:
            checked: Optional[str] = staged
        else:
            checked = ids[0] if ids else None
        self._choices = list(choices)
        self._checked = checked
        key = self.session.current_key if self.session else None
        self.view.render_candidates(self._choices, checked, key)

    def _set_buttons(self, apply: bool, apply_all: bool) -> None:
        self.apply_control.visible = apply
        self.apply_all_control.visible = apply_all
        self.view.set_buttons(self.apply_control, self.apply_all_control)
