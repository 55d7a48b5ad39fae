"""
表单控制器

持有表单字段、选项图、联动逻辑和版本选择弹窗；
所有用户操作在这里把错误转换成一条翻译后的日志。
"""

import time
from typing import Any, Mapping, Optional

from loguru import logger

from moddepupdater.backend import Backend
from moddepupdater.exceptions import (
    ModDepError,
    NoMatchError,
    NoSelectionError,
)
from moddepupdater.i18n import Translator
from moddepupdater.models import Mode, OptionsGraph, PersistedFormState, Source
from moddepupdater.services import (
    ApplyOrchestrator,
    BatchSession,
    Control,
    OptionsResolver,
    SelectorReconciler,
    parse_batch_input,
)
from moddepupdater.storage import JsonStateStore
from moddepupdater.ui.modal import ApplyTarget, SelectionModal
from moddepupdater.ui.view import ModalView


class FormController:
    """主表单"""

    def __init__(
        self,
        backend: Backend,
        store: JsonStateStore,
        translator: Translator,
        view: ModalView,
        defaults: Optional[PersistedFormState] = None,
    ):
        self.backend = backend
        self.store = store
        self.translator = translator

        self.state = store.load() or defaults or PersistedFormState()
        self.translator.set_language(self.state.lang)

        self.options = OptionsResolver(backend)
        self.reconciler = SelectorReconciler(on_change=self._selectors_changed)
        self.orchestrator = ApplyOrchestrator(backend)
        self.modal = SelectionModal(view, backend, self.orchestrator, translator)
        self.update_control = Control("update")

        # 批量模式字段（不持久化）
        self.batch_items = ""
        self.batch_version = ""
        self.batch_loader = ""

        self.last_error: Optional[ModDepError] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # 工具
    # ------------------------------------------------------------------

    def t(self, key: str, fallback: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return self.translator.lookup(key, fallback, params)

    def _error(self, key: str, fallback: str, err: Optional[ModDepError] = None) -> None:
        if err is not None:
            self.last_error = err
        params = {"err": err.message} if err is not None else None
        logger.error(self.t(key, fallback, params))

    def _reject(self, key: str, fallback: str) -> None:
        """本地校验失败：记录 NoSelectionError，不调用后端"""
        err = NoSelectionError(self.t(key, fallback), context={"check": key})
        self.last_error = err
        logger.error(err.message)

    def _surface(self, err: ModDepError, key: str, fallback: str) -> None:
        """把异常转成一条日志"""
        if isinstance(err, NoSelectionError):
            self.last_error = err
            logger.error(self.t("log_please_select_version", "Please select a version"))
        elif isinstance(err, NoMatchError):
            self.last_error = err
            logger.error(self.t("log_no_versions_found", "No matching versions found"))
        else:
            self._error(key, fallback, err)

    @property
    def is_batch(self) -> bool:
        return self.state.mode is Mode.BATCH

    @property
    def cf_api_key(self) -> Optional[str]:
        """只有 CurseForge 需要 API Key"""
        if self.state.source is Source.CURSEFORGE:
            return self.state.cf_api_key.strip() or None
        return None

    @property
    def graph(self) -> OptionsGraph:
        return self.reconciler.graph

    def save(self) -> None:
        # 选项图未加载时保留持久化的版本/加载器
        if not self.reconciler.graph.is_empty:
            self.state.mc_version = self.reconciler.selected_version
            self.state.loader = self.reconciler.selected_loader
        self.store.save(self.state)

    def _selectors_changed(self) -> None:
        self.save()

    def clear_options(self) -> None:
        """清空两个下拉框和映射，并使尚未返回的选项请求失效"""
        self._generation += 1
        self.reconciler.reset()

    # ------------------------------------------------------------------
    # 字段修改
    # ------------------------------------------------------------------

    def set_gradle_path(self, path: str) -> None:
        self.state.gradle_path = path
        self.save()
        self.clear_options()

    def set_source(self, source: Any) -> None:
        self.state.source = Source.parse(source)
        self.clear_options()
        self.modal.force_close()
        self.save()

    def set_project_id(self, project_id: str) -> None:
        self.state.project_id = project_id
        self.clear_options()
        self.modal.force_close()
        self.save()

    def set_mode(self, mode: Any) -> None:
        self.state.mode = Mode.parse(mode)
        self.modal.force_close()
        self.save()

    def set_language(self, lang: str) -> None:
        self.translator.set_language(lang)
        self.state.lang = self.translator.lang
        self.save()

    def set_api_key(self, key: str) -> None:
        self.state.cf_api_key = key
        self.save()

    def set_cache_versions(self, enabled: bool) -> None:
        self.state.cache_versions = bool(enabled)
        self.save()

    def set_batch_target(self, mc_version: str, loader: str) -> None:
        """批量模式的目标版本/加载器，非空时同时保存为下次的默认值"""
        self.batch_version = mc_version
        self.batch_loader = loader
        if mc_version:
            self.state.mc_version = mc_version
        if loader:
            self.state.loader = loader
        self.save()

    # ------------------------------------------------------------------
    # 选项与联动
    # ------------------------------------------------------------------

    async def fetch_options(self) -> Optional[OptionsGraph]:
        if self.is_batch:
            return None
        self.last_error = None
        project_id = self.state.project_id.strip()
        if not project_id:
            self._reject("log_missing_project_id", "Please enter a Project ID.")
            return None

        generation = self._generation
        try:
            graph = await self.options.fetch(
                self.state.source.value,
                project_id,
                self.cf_api_key,
                self.state.cache_versions,
            )
        except ModDepError as e:
            self._error("log_parse_failed", "Parse failed: {err}", e)
            return None

        if generation != self._generation:
            logger.debug(f"项目已变更，丢弃 {project_id} 的过期选项")
            return None

        self.reconciler.load(graph, self.state.mc_version, self.state.loader)
        version = self.reconciler.selected_version
        if version and self.reconciler.selected_loader not in graph.loaders_for(version):
            self.reconciler.version_changed(version)
        self.save()
        logger.info(
            self.t(
                "log_parsed_options",
                "Parsed options: versions {v}, loaders {l}",
                {"v": len(graph.versions), "l": len(graph.loaders)},
            )
        )
        return graph

    def select_version(self, version: str) -> bool:
        if version not in self.reconciler.version.options:
            self._error("log_unknown_version", "Unknown version: {err}", NoSelectionError(version))
            return False
        self.reconciler.version_changed(version)
        logger.info(
            self.t(
                "log_version_change",
                "Version: {ver} → loaders {lc}, versions {vc}",
                {
                    "ver": version,
                    "lc": len(self.reconciler.loader.options),
                    "vc": len(self.reconciler.version.options),
                },
            )
        )
        return True

    def select_loader(self, loader: str) -> bool:
        if loader not in self.reconciler.loader.options:
            self._error("log_unknown_loader", "Unknown loader: {err}", NoSelectionError(loader))
            return False
        self.reconciler.loader_changed(loader)
        logger.info(self.t("log_loader_change", "Loader changed: {loader}", {"loader": loader}))
        return True

    # ------------------------------------------------------------------
    # 更新流程
    # ------------------------------------------------------------------

    def _target(self) -> Optional[ApplyTarget]:
        """校验表单并生成 ApplyTarget；校验失败时记录错误并返回 None"""
        gradle_path = self.state.gradle_path.strip()
        project_id = self.state.project_id.strip()
        if self.is_batch:
            mc_version = self.batch_version.strip()
            loader = self.batch_loader.strip()
        else:
            mc_version = self.reconciler.selected_version
            loader = self.reconciler.selected_loader

        if not gradle_path:
            self._reject("log_select_gradle", "Please select a build.gradle file.")
            return None
        if not self.is_batch and not project_id:
            self._reject("log_enter_project_id", "Please enter a Project ID.")
            return None
        if self.is_batch and (not mc_version or not loader):
            self._reject(
                "log_batch_need_fields", "In batch mode, please fill version and loader"
            )
            return None
        if self.state.source is Source.CURSEFORGE and not self.cf_api_key:
            logger.warning(
                self.t(
                    "log_no_api_key_warning",
                    "Warning: No API Key provided. If not set in environment variables, this will fail.",
                )
            )

        return ApplyTarget(
            gradle_path=gradle_path,
            source=self.state.source.value,
            mc_version=mc_version,
            loader=loader,
            project_id=project_id,
            cf_api_key=self.cf_api_key,
            use_cache=self.state.cache_versions,
        )

    async def start_update(self) -> bool:
        """
        打开版本选择弹窗（单项目或批量）

        Returns:
            弹窗是否已打开
        """
        logger.info(self.t("log_running_update", "Running update..."))
        self.last_error = None
        target = self._target()
        if target is None:
            return False
        self.save()

        if not self.is_batch:
            try:
                await self.modal.open_single(target)
            except ModDepError as e:
                self._surface(e, "log_error", "Error: {err}")
                return False
            return True

        tokens = parse_batch_input(self.batch_items)
        if not tokens:
            self._reject("log_batch_enter_projects", "Enter project list in batch mode")
            return False

        started = time.perf_counter()
        try:
            session = await BatchSession.start(
                self.backend,
                target.source,
                tokens,
                target.mc_version,
                target.loader,
                target.cf_api_key,
                target.use_cache,
            )
        except ModDepError as e:
            self._error("log_error", "Error: {err}", e)
            return False

        try:
            await self.modal.open_batch(session, target)
        except ModDepError as e:
            self._surface(e, "log_parse_failed", "Parse failed: {err}")
        logger.info(
            self.t(
                "log_batch_modal_ready",
                "Batch modal ready in {ms}ms",
                {"ms": round((time.perf_counter() - started) * 1000)},
            )
        )
        return self.modal.is_open

    async def quick_update(self) -> Optional[str]:
        """不打开弹窗，直接写入最新匹配版本"""
        logger.info(self.t("log_running_update", "Running update..."))
        self.last_error = None
        target = self._target()
        if target is None:
            return None
        self.save()

        try:
            if self.is_batch:
                tokens = parse_batch_input(self.batch_items)
                if not tokens:
                    self._reject("log_batch_enter_projects", "Enter project list in batch mode")
                    return None
                result = await self.orchestrator.update_latest_batch(
                    self.update_control,
                    target.gradle_path,
                    target.source,
                    tokens,
                    target.mc_version,
                    target.loader,
                    target.cf_api_key,
                )
            else:
                result = await self.orchestrator.update_latest(
                    self.update_control,
                    target.gradle_path,
                    target.source,
                    target.project_id,
                    target.mc_version,
                    target.loader,
                    target.cf_api_key,
                )
        except ModDepError as e:
            self._error("log_error", "Error: {err}", e)
            return None
        logger.info(result)
        return result

    # ------------------------------------------------------------------
    # 弹窗操作
    # ------------------------------------------------------------------

    async def activate(self, key: str) -> bool:
        try:
            await self.modal.activate(key)
        except ModDepError as e:
            self._surface(e, "log_parse_failed", "Parse failed: {err}")
            return False
        return True

    def select(self, choice_id: str) -> bool:
        try:
            self.modal.select(choice_id)
        except ModDepError as e:
            self._surface(e, "log_error", "Error: {err}")
            return False
        return True

    async def apply(self) -> Optional[str]:
        try:
            return await self.modal.apply()
        except ModDepError as e:
            self._surface(e, "log_apply_failed", "Apply failed: {err}")
            return None

    async def apply_all(self) -> Optional[str]:
        try:
            return await self.modal.apply_all()
        except ModDepError as e:
            self._surface(e, "log_apply_failed", "Apply failed: {err}")
            return None

    def cancel(self) -> None:
        self.modal.cancel()

    # ------------------------------------------------------------------
    # 缓存维护
    # ------------------------------------------------------------------

    async def clear_cache(self) -> bool:
        try:
            await self.backend.clear_all_caches()
        except ModDepError as e:
            self._error("log_cache_clear_failed", "Clear cache failed: {err}", e)
            return False
        logger.info(self.t("log_cache_cleared", "Cache cleared."))
        return True

    async def refresh_cache(self) -> bool:
        try:
            await self.backend.refresh_mojang_cache()
        except ModDepError as e:
            self._error("log_cache_refresh_failed", "Cache refresh failed: {err}", e)
            return False
        logger.info(self.t("log_cache_refreshed", "Cache refresh triggered."))
        return True
