"""
Shared fixtures: a recording fake backend, an in-memory state store and a
recording modal view.
"""

import asyncio
from typing import Dict, List, Optional

import pytest
from loguru import logger

from moddepupdater.backend import Backend
from moddepupdater.i18n import Translator
from moddepupdater.models import (
    BatchItem,
    CandidateChoice,
    Mode,
    OptionsGraph,
    PersistedFormState,
)
from moddepupdater.ui.view import ModalView


class FakeBackend(Backend):
    """Backend double that records every command it receives."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.options: Dict[str, OptionsGraph] = {}
        self.versions: Dict[str, List[CandidateChoice]] = {}
        self.names: Dict[str, str] = {}
        self.errors: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.apply_result = "applied"

    def _record(self, name: str, **kwargs):
        self.calls.append((name, kwargs))
        if name in self.errors:
            raise self.errors[name]

    def calls_to(self, name: str) -> List[dict]:
        return [kwargs for call, kwargs in self.calls if call == name]

    async def get_project_options(self, source, project_id, cf_api_key=None, use_cache=True):
        self._record(
            "get_project_options",
            source=source,
            project_id=project_id,
            cf_api_key=cf_api_key,
            use_cache=use_cache,
        )
        gate = self.gates.get(project_id)
        if gate is not None:
            await gate.wait()
        return self.options.get(project_id, OptionsGraph.empty())

    async def list_versions(
        self, source, project_id, mc_version, loader, cf_api_key=None, use_cache=False
    ):
        self._record(
            "list_versions",
            source=source,
            project_id=project_id,
            mc_version=mc_version,
            loader=loader,
            cf_api_key=cf_api_key,
        )
        gate = self.gates.get(project_id)
        if gate is not None:
            await gate.wait()
        return list(self.versions.get(project_id, []))

    async def get_batch_mod_briefs(self, source, items, cf_api_key=None):
        self._record("get_batch_mod_briefs", source=source, items=list(items))
        return [BatchItem(key=i, display_name=self.names.get(i, i)) for i in items]

    async def apply_selected_version(
        self, gradle_path, source, project_id, loader, selected_id, cf_api_key=None
    ):
        self._record(
            "apply_selected_version",
            gradle_path=gradle_path,
            source=source,
            project_id=project_id,
            loader=loader,
            selected_id=selected_id,
            cf_api_key=cf_api_key,
        )
        return self.apply_result

    async def apply_selected_versions_batch(
        self, gradle_path, source, selections, loader, cf_api_key=None
    ):
        self._record(
            "apply_selected_versions_batch",
            gradle_path=gradle_path,
            source=source,
            selections=list(selections),
            loader=loader,
        )
        return self.apply_result

    async def update_dependency(
        self, gradle_path, project_id, mc_version, loader, source, cf_api_key=None
    ):
        self._record(
            "update_dependency",
            gradle_path=gradle_path,
            project_id=project_id,
            mc_version=mc_version,
            loader=loader,
        )
        return self.apply_result

    async def update_dependencies_batch(
        self, gradle_path, source, items, mc_version, loader, cf_api_key=None
    ):
        self._record(
            "update_dependencies_batch",
            items=list(items),
            mc_version=mc_version,
            loader=loader,
        )
        return self.apply_result

    async def clear_all_caches(self):
        self._record("clear_all_caches")

    async def refresh_mojang_cache(self):
        self._record("refresh_mojang_cache")


class MemoryStore:
    def __init__(self, state: Optional[PersistedFormState] = None):
        self.state = state
        self.saves = 0

    def load(self):
        return self.state

    def save(self, state):
        self.state = PersistedFormState.from_dict(state.to_dict())
        self.saves += 1


class RecordingView(ModalView):
    def __init__(self):
        self.events: List[tuple] = []
        self.visible = False
        self.mode: Optional[Mode] = None
        self.tiles: List[BatchItem] = []
        self.active_key: Optional[str] = None
        self.candidates: List[CandidateChoice] = []
        self.checked: Optional[str] = None
        self.loading: List[Optional[str]] = []

    def show(self, mode):
        self.events.append(("show", mode))
        self.visible = True
        self.mode = mode

    def hide(self):
        self.events.append(("hide",))
        self.visible = False

    def clear(self):
        self.events.append(("clear",))
        self.tiles = []
        self.active_key = None
        self.candidates = []
        self.checked = None

    def render_tiles(self, items, active_key):
        self.events.append(("tiles", [i.key for i in items], active_key))
        self.tiles = list(items)
        self.active_key = active_key

    def set_active_tile(self, key):
        self.events.append(("active", key))
        self.active_key = key

    def show_loading(self, key=None):
        self.events.append(("loading", key))
        self.loading.append(key)

    def render_candidates(self, choices, checked_id, key=None):
        self.events.append(("candidates", key, [c.id for c in choices], checked_id))
        self.candidates = list(choices)
        self.checked = checked_id

    def set_checked(self, choice_id):
        self.events.append(("checked", choice_id))
        self.checked = choice_id


def choice(id: str, label: str, kind: str = "release") -> CandidateChoice:
    return CandidateChoice(id=id, label=label, kind=kind)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def translator():
    return Translator("en")


@pytest.fixture
def logs():
    """收集 loguru 输出的消息"""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def graph():
    """A consistent graph: fabric supports 1.20.1/1.19.2, forge supports 1.20.1/1.18.2."""
    return OptionsGraph(
        versions=["1.20.1", "1.19.2", "1.18.2"],
        loaders=["Fabric", "Forge"],
        version_to_loaders={
            "1.20.1": ["Fabric", "Forge"],
            "1.19.2": ["Fabric"],
            "1.18.2": ["Forge"],
        },
        loader_to_versions={
            "Fabric": ["1.20.1", "1.19.2"],
            "Forge": ["1.20.1", "1.18.2"],
        },
    )
