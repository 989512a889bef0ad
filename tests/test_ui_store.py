from __future__ import annotations

import asyncio
import json

import pytest
from conftest import FakeScheduler

from pyfleet.state.models import (
    ClosedModal,
    FormKind,
    FormState,
    ModalKind,
    OpenModal,
    SortColumn,
    SortDirection,
    ToastSeverity,
    UiState,
    VehicleTab,
)
from pyfleet.state.persistence import MemoryStorage
from pyfleet.state.store import UiStateStore


def _store(scheduler: FakeScheduler | None = None, storage: MemoryStorage | None = None) -> UiStateStore:
    return UiStateStore(storage=storage or MemoryStorage(), scheduler=scheduler or FakeScheduler())


def test_defaults() -> None:
    store = _store()
    assert store.filter_state.search_query == ""
    assert store.filter_state.sort_by is None
    assert store.filter_state.sort_direction is SortDirection.ASC
    assert store.active_tab is VehicleTab.INFO
    assert store.last_viewed_vehicle_id is None
    assert store.modal == ClosedModal()
    assert store.toast.visible is False


def test_toggle_sort_flips_direction_on_same_column() -> None:
    store = _store()
    store.toggle_sort(SortColumn.MODEL)
    assert (store.filter_state.sort_by, store.filter_state.sort_direction) == (SortColumn.MODEL, SortDirection.ASC)

    store.toggle_sort("model")
    assert store.filter_state.sort_direction is SortDirection.DESC

    store.toggle_sort(SortColumn.TYPE)
    assert (store.filter_state.sort_by, store.filter_state.sort_direction) == (SortColumn.TYPE, SortDirection.ASC)


def test_toggle_sort_rejects_unknown_column() -> None:
    with pytest.raises(ValueError):
        _store().toggle_sort("registration")


def test_listeners_get_each_new_snapshot_and_can_unsubscribe() -> None:
    store = _store()
    seen: list[UiState] = []
    unsubscribe = store.subscribe(seen.append)

    store.set_search_query("van")
    store.set_search_query("van")  # no change, no notification
    unsubscribe()
    store.set_search_query("truck")

    assert [s.filter_state.search_query for s in seen] == ["van"]


def test_failing_listener_does_not_block_others() -> None:
    store = _store()
    seen: list[str] = []

    def _broken(_state: UiState) -> None:
        raise RuntimeError("boom")

    store.subscribe(_broken)
    store.subscribe(lambda s: seen.append(s.filter_state.search_query))
    store.set_search_query("sedan")

    assert seen == ["sedan"]
    assert store.filter_state.search_query == "sedan"


def test_only_one_modal_open_at_a_time() -> None:
    store = _store()
    store.open_edit_modal(7)
    store.open_delete_dialog(9)

    assert store.modal == OpenModal(kind=ModalKind.DELETE, target_id=9)
    assert not store.state.is_modal_open(ModalKind.EDIT)


def test_close_only_closes_matching_modal() -> None:
    store = _store()
    store.open_add_modal()
    store.close_edit_modal()
    assert store.state.is_modal_open(ModalKind.ADD)

    store.close_add_modal()
    assert store.modal == ClosedModal()
    assert store.modal.target_id is None


def test_reopening_a_modal_resets_its_form() -> None:
    store = _store()
    store.open_edit_modal(1)
    store.fail_submit(FormKind.EDIT, "Validation failed", {"model": "Model is required"})
    store.close_edit_modal()
    store.open_edit_modal(1)

    assert store.form_state(FormKind.EDIT) == FormState()


def test_begin_submit_gates_double_submission() -> None:
    store = _store()
    store.open_add_modal()

    assert store.begin_submit(FormKind.ADD) is True
    assert store.form_state(FormKind.ADD) == FormState(submitting=True)
    assert store.begin_submit(FormKind.ADD) is False

    store.end_submit(FormKind.ADD)
    assert store.begin_submit(FormKind.ADD) is True


def test_fail_submit_records_errors_and_clears_submitting() -> None:
    store = _store()
    store.begin_submit(FormKind.MAINTENANCE)
    store.fail_submit(FormKind.MAINTENANCE, "Validation failed", {"cost": "Cost cannot be negative"})

    form = store.maintenance_form
    assert form.submitting is False
    assert form.error == "Validation failed"
    assert form.field_errors == {"cost": "Cost cannot be negative"}


def test_form_of_closed_modal_is_not_tracked() -> None:
    store = _store()
    assert store.form_state(FormKind.DELETE) is None
    assert store.begin_submit(FormKind.DELETE) is True
    assert store.modal == ClosedModal()


def test_toast_auto_dismisses_and_keeps_message() -> None:
    scheduler = FakeScheduler()
    store = _store(scheduler)

    store.show_toast("Vehicle registered successfully!", ToastSeverity.SUCCESS)
    assert store.toast.visible is True
    assert [t.delay for t in scheduler.pending] == [4.0]

    scheduler.fire_all()
    assert store.toast.visible is False
    assert store.toast.message == "Vehicle registered successfully!"
    assert store.toast.severity is ToastSeverity.SUCCESS


def test_new_toast_restarts_timer() -> None:
    scheduler = FakeScheduler()
    store = _store(scheduler)

    store.show_toast("first")
    first_timer = scheduler.pending[0]
    store.show_toast("second", "error")

    assert first_timer.cancelled is True
    assert len(scheduler.pending) == 1
    assert store.toast.message == "second"
    assert store.toast.severity is ToastSeverity.ERROR


def test_hide_toast_cancels_timer() -> None:
    scheduler = FakeScheduler()
    store = _store(scheduler)
    store.show_toast("hello")
    store.hide_toast()

    assert scheduler.pending == []
    assert store.toast.visible is False


@pytest.mark.asyncio
async def test_default_scheduler_uses_running_loop() -> None:
    store = UiStateStore(toast_duration=0.01)
    store.show_toast("bye")
    await asyncio.sleep(0.05)
    assert store.toast.visible is False


def test_default_scheduler_without_loop_leaves_toast_visible() -> None:
    store = UiStateStore()
    store.show_toast("no loop")
    assert store.toast.visible is True


def test_changes_are_persisted_before_listeners_run() -> None:
    storage = MemoryStorage()
    store = _store(storage=storage)
    persisted: list[str | None] = []
    store.subscribe(lambda _s: persisted.append(storage.read("fleet-ui-storage")))

    store.set_active_tab(VehicleTab.MAINTENANCE)

    snapshot = json.loads(persisted[0] or "")
    assert snapshot["state"]["activeTab"] == "maintenance"


def test_store_rehydrates_durable_state_only() -> None:
    storage = MemoryStorage()
    store = _store(storage=storage)
    store.set_search_query("truck")
    store.toggle_sort(SortColumn.STATUS)
    store.set_active_tab("location")
    store.set_last_viewed_vehicle(3)
    store.open_edit_modal(3)
    store.show_toast("transient")

    restored = _store(storage=storage)
    assert restored.filter_state == store.filter_state
    assert restored.active_tab is VehicleTab.LOCATION
    assert restored.last_viewed_vehicle_id == 3
    assert restored.modal == ClosedModal()
    assert restored.toast.visible is False


def test_storage_write_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    class _ReadOnlyStorage(MemoryStorage):
        def write(self, namespace: str, payload: str) -> None:
            raise OSError("read-only")

    store = _store(storage=_ReadOnlyStorage())
    with caplog.at_level("WARNING", logger="pyfleet.state.store"):
        store.set_search_query("van")

    assert store.filter_state.search_query == "van"
    assert "Could not persist UI snapshot" in caplog.text
