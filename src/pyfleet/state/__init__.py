"""UI state layer.

This package holds everything the client remembers about the user's
intent (filters, sort, tab, open modal, toast), independent of server data.
"""

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
from pyfleet.state.persistence import JsonFileStorage, MemoryStorage, SnapshotStorage
from pyfleet.state.store import UiStateStore

__all__ = [
    "ClosedModal",
    "FilterState",
    "FormKind",
    "FormState",
    "JsonFileStorage",
    "MemoryStorage",
    "ModalKind",
    "OpenModal",
    "SnapshotStorage",
    "SortColumn",
    "SortDirection",
    "ToastSeverity",
    "ToastState",
    "UiState",
    "UiStateStore",
    "VehicleTab",
]
