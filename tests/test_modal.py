import asyncio

import pytest

from moddepupdater.exceptions import (
    ApplyError,
    BackendError,
    CandidateListError,
    NoMatchError,
    NoSelectionError,
)
from moddepupdater.models import Mode
from moddepupdater.services import ApplyOrchestrator, BatchSession
from moddepupdater.ui import ApplyTarget, ModalState, SelectionModal

from conftest import choice


async def settle(rounds: int = 5):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def modal(backend, view, translator):
    return SelectionModal(view, backend, ApplyOrchestrator(backend), translator)


@pytest.fixture
def target():
    return ApplyTarget(
        gradle_path="/p/build.gradle",
        source="modrinth",
        mc_version="1.20.1",
        loader="fabric",
        project_id="examplemod",
    )


@pytest.fixture
def batch_backend(backend):
    backend.versions = {
        "modA": [choice("a2", "A 2.0"), choice("a1", "A 1.0")],
        "modB": [choice("b2", "B 2.0"), choice("b1", "B 1.0")],
        "modC": [choice("c1", "C 1.0")],
    }
    return backend


def start_session(backend, raw="modA\nmodB\n\n modC "):
    return asyncio.run(BatchSession.start(backend, "modrinth", raw, "1.20.1", "fabric"))


class TestSingleMode:
    def test_select_and_apply(self, backend, view, modal, target):
        backend.versions["examplemod"] = [choice("v2", "2.0.0"), choice("v1", "1.9.0")]

        async def go():
            await modal.open_single(target)
            assert backend.calls_to("list_versions")[0] == {
                "source": "modrinth",
                "project_id": "examplemod",
                "mc_version": "1.20.1",
                "loader": "fabric",
                "cf_api_key": None,
            }
            assert modal.state is ModalState.OPEN
            assert view.visible and view.mode is Mode.SINGLE
            assert [c.id for c in view.candidates] == ["v2", "v1"]
            assert view.checked == "v2"
            assert modal.apply_control.visible
            assert not modal.apply_all_control.visible

            modal.select("v1")
            assert view.checked == "v1"
            return await modal.apply()

        result = asyncio.run(go())
        assert result == "applied"
        call = backend.calls_to("apply_selected_version")[0]
        assert call["project_id"] == "examplemod"
        assert call["selected_id"] == "v1"
        assert call["loader"] == "fabric"
        assert modal.state is ModalState.CLOSED
        assert not view.visible
        assert view.candidates == []

    def test_no_match_keeps_modal_closed(self, backend, view, modal, target):
        with pytest.raises(NoMatchError):
            asyncio.run(modal.open_single(target))
        assert not modal.is_open
        assert ("show", Mode.SINGLE) not in view.events

    def test_list_failure(self, backend, modal, target):
        backend.errors["list_versions"] = BackendError("offline")
        with pytest.raises(CandidateListError):
            asyncio.run(modal.open_single(target))
        assert not modal.is_open

    def test_select_unknown_choice(self, backend, modal, target):
        backend.versions["examplemod"] = [choice("v1", "v1")]
        asyncio.run(modal.open_single(target))
        with pytest.raises(NoSelectionError):
            modal.select("v9")
        assert modal.checked == "v1"

    def test_select_when_closed(self, modal):
        with pytest.raises(NoSelectionError):
            modal.select("v1")

    def test_cancel(self, backend, view, modal, target):
        backend.versions["examplemod"] = [choice("v1", "v1")]
        asyncio.run(modal.open_single(target))
        modal.cancel()
        assert not modal.is_open
        assert modal.armed == []
        assert not view.visible
        assert backend.calls_to("apply_selected_version") == []

    def test_failed_apply_rearms(self, backend, modal, target):
        backend.versions["examplemod"] = [choice("v1", "v1")]
        backend.errors["apply_selected_version"] = BackendError("locked")

        async def go():
            await modal.open_single(target)
            with pytest.raises(ApplyError):
                await modal.apply()
            assert modal.state is ModalState.OPEN
            assert modal.armed == ["apply", "cancel"]
            assert modal.apply_control.enabled

            del backend.errors["apply_selected_version"]
            return await modal.apply()

        assert asyncio.run(go()) == "applied"
        assert len(backend.calls_to("apply_selected_version")) == 2
        assert not modal.is_open

    def test_at_most_one_submission(self, backend, modal, target):
        backend.versions["examplemod"] = [choice("v1", "v1")]
        submitted = []

        async def go():
            release = asyncio.Event()

            async def slow_apply(*args):
                submitted.append(args)
                await release.wait()
                return "done"

            backend.apply_selected_version = slow_apply
            await modal.open_single(target)
            first = asyncio.ensure_future(modal.apply())
            await settle()
            assert modal.state is ModalState.APPLYING
            assert not modal.apply_control.enabled
            assert await modal.apply() is None
            modal.cancel()
            assert modal.state is ModalState.APPLYING
            release.set()
            return await first

        assert asyncio.run(go()) == "done"
        assert len(submitted) == 1
        assert modal.state is ModalState.CLOSED

    def test_reopen_replaces_content(self, backend, view, modal, target):
        backend.versions["examplemod"] = [choice("v1", "v1")]
        backend.versions["other"] = [choice("o1", "o1")]

        async def go():
            await modal.open_single(target)
            target.project_id = "other"
            await modal.open_single(target)

        asyncio.run(go())
        assert [c.id for c in modal.choices] == ["o1"]
        assert modal.armed == ["apply", "cancel"]


class TestBatchMode:
    def test_open_fetches_first_only(self, batch_backend, view, modal, target):
        session = start_session(batch_backend)
        asyncio.run(modal.open_batch(session, target))

        assert batch_backend.calls_to("get_batch_mod_briefs")[0]["items"] == ["modA", "modB", "modC"]
        assert [c["project_id"] for c in batch_backend.calls_to("list_versions")] == ["modA"]
        assert view.mode is Mode.BATCH
        assert [i.key for i in view.tiles] == ["modA", "modB", "modC"]
        assert view.active_key == "modA"
        assert view.checked == "a2"
        assert not modal.apply_control.visible
        assert modal.apply_all_control.visible
        assert modal.armed == ["apply", "apply_all", "cancel"]

    def test_switching_fetches_once_per_item(self, batch_backend, view, modal, target):
        session = start_session(batch_backend)

        async def go():
            await modal.open_batch(session, target)
            await modal.activate("modB")
            await modal.activate("modA")
            await modal.activate("modB")

        asyncio.run(go())
        assert [c["project_id"] for c in batch_backend.calls_to("list_versions")] == ["modA", "modB"]
        assert view.active_key == "modB"
        assert [c.id for c in view.candidates] == ["b2", "b1"]

    def test_staged_choice_restored(self, batch_backend, view, modal, target):
        session = start_session(batch_backend)

        async def go():
            await modal.open_batch(session, target)
            modal.select("a1")
            await modal.activate("modB")
            await modal.activate("modA")

        asyncio.run(go())
        assert session.staged("modA") == "a1"
        assert view.checked == "a1"

    def test_apply_all_excludes_unvisited(self, batch_backend, modal, target):
        session = start_session(batch_backend)

        async def go():
            await modal.open_batch(session, target)
            modal.select("a1")
            await modal.activate("modB")
            return await modal.apply_all()

        assert asyncio.run(go()) == "applied"
        call = batch_backend.calls_to("apply_selected_versions_batch")[0]
        assert call["selections"] == [("modA", "a1"), ("modB", "b2")]
        assert call["gradle_path"] == "/p/build.gradle"
        assert call["loader"] == "fabric"
        assert not modal.is_open

    def test_apply_current_item(self, batch_backend, modal, target):
        session = start_session(batch_backend)

        async def go():
            await modal.open_batch(session, target)
            await modal.activate("modB")
            modal.select("b1")
            return await modal.apply()

        asyncio.run(go())
        call = batch_backend.calls_to("apply_selected_version")[0]
        assert call["project_id"] == "modB"
        assert call["selected_id"] == "b1"

    def test_stale_fetch_not_rendered(self, batch_backend, view, modal, target):
        session = start_session(batch_backend)

        async def go():
            gate = asyncio.Event()
            batch_backend.gates["modA"] = gate
            opening = asyncio.ensure_future(modal.open_batch(session, target))
            await settle()
            assert view.loading == ["modA"]

            await modal.activate("modB")
            gate.set()
            await opening

        asyncio.run(go())
        assert view.active_key == "modB"
        assert [c.id for c in view.candidates] == ["b2", "b1"]
        assert [c.id for c in session.cached("modA")] == ["a2", "a1"]

        asyncio.run(modal.activate("modA"))
        assert [c["project_id"] for c in batch_backend.calls_to("list_versions")] == ["modA", "modB"]
        assert [c.id for c in view.candidates] == ["a2", "a1"]

    def test_concurrent_activation_single_request(self, batch_backend, modal, target):
        session = start_session(batch_backend)

        async def go():
            gate = asyncio.Event()
            batch_backend.gates["modA"] = gate
            opening = asyncio.ensure_future(modal.open_batch(session, target))
            await settle()
            again = asyncio.ensure_future(modal.activate("modA"))
            await settle()
            gate.set()
            await opening
            return await again

        choices = asyncio.run(go())
        assert [c.id for c in choices] == ["a2", "a1"]
        assert len(batch_backend.calls_to("list_versions")) == 1

    def test_first_item_failure_keeps_modal_open(self, batch_backend, modal, target):
        session = start_session(batch_backend)
        batch_backend.errors["list_versions"] = BackendError("timeout")
        with pytest.raises(CandidateListError):
            asyncio.run(modal.open_batch(session, target))
        assert modal.is_open
        assert modal.choices == []

    def test_apply_all_without_selection(self, batch_backend, modal, target):
        session = start_session(batch_backend)
        batch_backend.versions["modA"] = []

        async def go():
            await modal.open_batch(session, target)
            with pytest.raises(NoSelectionError):
                await modal.apply_all()

        asyncio.run(go())
        assert modal.state is ModalState.OPEN
        assert batch_backend.calls_to("apply_selected_versions_batch") == []

    def test_activate_unknown_item(self, batch_backend, modal, target):
        session = start_session(batch_backend)

        async def go():
            await modal.open_batch(session, target)
            await modal.activate("modZ")

        with pytest.raises(NoSelectionError):
            asyncio.run(go())

    def test_force_close_discards_session(self, batch_backend, view, modal, target):
        session = start_session(batch_backend)
        asyncio.run(modal.open_batch(session, target))
        modal.force_close()
        assert modal.session is None
        assert not modal.is_open
        assert view.tiles == []
        assert not view.visible
