"""Reactive UI state store.

This is the only component allowed to change :class:`UiState`. Every
change replaces the whole snapshot, persists the durable part and then
notifies subscribers synchronously.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pyfleet._constants import DEFAULT_TOAST_DURATION, UI_SNAPSHOT_VERSION, UI_STORAGE_NAMESPACE
from pyfleet.state.models import (
    ClosedModal,
    FilterState,
    FormKind,
    FormState,
    ModalKind,
    OpenModal,
    SortColumn,
    SortDirection,
    ToastSeverity,
    ToastState,
    UiState,
    VehicleTab,
)
from pyfleet.state.persistence import MemoryStorage, SnapshotStorage, deserialize_snapshot, serialize_snapshot

_logger = logging.getLogger(__name__)

UiListener = Callable[[UiState], None]


class Cancellable(Protocol):
    def cancel(self) -> Any:
        ...


Scheduler = Callable[[float, Callable[[], None]], "Cancellable | None"]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle | None:
    """Schedule *callback* on the running event loop, if there is one."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        _logger.debug("No running event loop; toast will not auto-dismiss")
        return None
    return loop.call_later(delay, callback)


class UiStateStore:
    """Holds filters, sort, tab, modal, form and toast state.

    Create one per application (or per test); nothing here is global.
    On construction the store hydrates from *storage* when a snapshot with
    a matching *version* exists.
    """

    def __init__(
        self,
        *,
        storage: SnapshotStorage | None = None,
        namespace: str = UI_STORAGE_NAMESPACE,
        version: int = UI_SNAPSHOT_VERSION,
        toast_duration: float = DEFAULT_TOAST_DURATION,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._storage: SnapshotStorage = storage if storage is not None else MemoryStorage()
        self._namespace = namespace
        self._version = version
        self._toast_duration = toast_duration
        self._scheduler: Scheduler = scheduler or loop_scheduler
        self._listeners: list[UiListener] = []
        self._toast_timer: Cancellable | None = None
        self._state = self._hydrate()

    def _hydrate(self) -> UiState:
        try:
            payload = self._storage.read(self._namespace)
        except Exception:
            _logger.warning("Could not read UI snapshot %r", self._namespace, exc_info=True)
            return UiState()
        return deserialize_snapshot(payload, version=self._version)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> UiState:
        return self._state

    @property
    def filter_state(self) -> FilterState:
        return self._state.filter_state

    @property
    def active_tab(self) -> VehicleTab:
        return self._state.active_tab

    @property
    def last_viewed_vehicle_id(self) -> int | None:
        return self._state.last_viewed_vehicle_id

    @property
    def modal(self) -> ClosedModal | OpenModal:
        return self._state.modal

    @property
    def toast(self) -> ToastState:
        return self._state.toast

    @property
    def maintenance_form(self) -> FormState:
        return self._state.maintenance_form

    def form_state(self, form: FormKind) -> FormState | None:
        return self._state.form(form)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, listener: UiListener) -> Callable[[], None]:
        """Call *listener* with the new state after every change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set(self, **changes: Any) -> None:
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return
        self._state = new_state
        self._persist()
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                _logger.warning("UI state listener failed", exc_info=True)

    def _persist(self) -> None:
        payload = serialize_snapshot(self._state, version=self._version)
        try:
            self._storage.write(self._namespace, payload)
        except Exception:
            _logger.warning("Could not persist UI snapshot %r", self._namespace, exc_info=True)

    # ------------------------------------------------------------------
    # Filters and navigation
    # ------------------------------------------------------------------

    def set_search_query(self, query: str) -> None:
        self._set(filter_state=self.filter_state.model_copy(update={"search_query": query}))

    def toggle_sort(self, column: SortColumn | str) -> None:
        """Sort by *column*; a repeated column flips the direction."""
        column = SortColumn(column)
        filters = self.filter_state
        if filters.sort_by is column:
            update: dict[str, Any] = {"sort_direction": filters.sort_direction.flipped()}
        else:
            update = {"sort_by": column, "sort_direction": SortDirection.ASC}
        self._set(filter_state=filters.model_copy(update=update))

    def set_active_tab(self, tab: VehicleTab | str) -> None:
        self._set(active_tab=VehicleTab(tab))

    def set_last_viewed_vehicle(self, vehicle_id: int | None) -> None:
        self._set(last_viewed_vehicle_id=vehicle_id)

    # ------------------------------------------------------------------
    # Modals
    # ------------------------------------------------------------------

    def open_add_modal(self) -> None:
        self._set(modal=OpenModal(kind=ModalKind.ADD))

    def close_add_modal(self) -> None:
        self._close_modal(ModalKind.ADD)

    def open_edit_modal(self, vehicle_id: int) -> None:
        self._set(modal=OpenModal(kind=ModalKind.EDIT, target_id=vehicle_id))

    def close_edit_modal(self) -> None:
        self._close_modal(ModalKind.EDIT)

    def open_delete_dialog(self, vehicle_id: int) -> None:
        self._set(modal=OpenModal(kind=ModalKind.DELETE, target_id=vehicle_id))

    def close_delete_dialog(self) -> None:
        self._close_modal(ModalKind.DELETE)

    def _close_modal(self, kind: ModalKind) -> None:
        if self._state.is_modal_open(kind):
            self._set(modal=ClosedModal())

    # ------------------------------------------------------------------
    # Form submission
    # ------------------------------------------------------------------

    def _set_form(self, form: FormKind, form_state: FormState) -> None:
        if form is FormKind.MAINTENANCE:
            self._set(maintenance_form=form_state)
            return
        modal = self._state.modal
        if isinstance(modal, OpenModal) and modal.kind is form.modal_kind:
            self._set(modal=modal.model_copy(update={"form": form_state}))

    def begin_submit(self, form: FormKind) -> bool:
        """Mark *form* as submitting.

        Returns ``False`` if it already is, in which case the caller must
        not submit again. A modal form whose modal is closed has nothing to
        gate and always returns ``True``.
        """
        current = self._state.form(form)
        if current is None:
            return True
        if current.submitting:
            return False
        self._set_form(form, FormState(submitting=True))
        return True

    def fail_submit(
        self,
        form: FormKind,
        error: str,
        field_errors: Mapping[str, str] | None = None,
    ) -> None:
        self._set_form(form, FormState(error=error, field_errors=dict(field_errors or {})))

    def end_submit(self, form: FormKind) -> None:
        if self._state.form(form) is not None:
            self._set_form(form, FormState())

    # ------------------------------------------------------------------
    # Toast
    # ------------------------------------------------------------------

    def show_toast(self, message: str, severity: ToastSeverity | str = ToastSeverity.INFO) -> None:
        """Show a toast that hides itself after the configured duration.

        Showing a new toast restarts the timer.
        """
        self._cancel_toast_timer()
        self._set(toast=ToastState(message=message, severity=ToastSeverity(severity), visible=True))
        self._toast_timer = self._scheduler(self._toast_duration, self._expire_toast)

    def hide_toast(self) -> None:
        """Hide the toast but keep its message for the exit animation."""
        self._cancel_toast_timer()
        toast = self._state.toast
        if toast.visible:
            self._set(toast=toast.model_copy(update={"visible": False}))

    def _expire_toast(self) -> None:
        self._toast_timer = None
        self.hide_toast()

    def _cancel_toast_timer(self) -> None:
        timer = self._toast_timer
        self._toast_timer = None
        if timer is None:
            return
        try:
            timer.cancel()
        except Exception:
            _logger.debug("Cancelling toast timer failed", exc_info=True)
