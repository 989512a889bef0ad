"""Versioned UI snapshot persistence.

Only the durable part of :class:`UiState` is written: filter state, active
tab and last viewed vehicle. Modal, form and toast state are transient and
always start from their defaults.

Snapshot format (JSON)::

    {"version": 1,
     "state": {"filterState": {"searchQuery": "", "sortBy": null, "sortDirection": "asc"},
               "activeTab": "info",
               "lastViewedVehicleId": null}}
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pyfleet.state.models import FilterState, SortColumn, SortDirection, UiState, VehicleTab

_logger = logging.getLogger(__name__)

TEnum = TypeVar("TEnum", bound=StrEnum)


class SnapshotStorage(Protocol):
    """Durable key/value medium for UI snapshots."""

    def read(self, namespace: str) -> str | None:
        ...

    def write(self, namespace: str, payload: str) -> None:
        ...


class MemoryStorage:
    """Keeps snapshots in a dict; survives store re-creation, not the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def read(self, namespace: str) -> str | None:
        return self._data.get(namespace)

    def write(self, namespace: str, payload: str) -> None:
        self._data[namespace] = payload


class JsonFileStorage:
    """One ``<namespace>.json`` file per namespace inside *directory*."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    def path_for(self, namespace: str) -> Path:
        return self._directory / f"{namespace}.json"

    def read(self, namespace: str) -> str | None:
        path = self.path_for(namespace)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, namespace: str, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(namespace)
        # Write to a sibling temp file first so readers never see a partial snapshot.
        fd, tmp_name = tempfile.mkstemp(prefix=f".{namespace}.", suffix=".tmp", dir=self._directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def serialize_snapshot(state: UiState, *, version: int) -> str:
    filters = state.filter_state
    payload = {
        "version": version,
        "state": {
            "filterState": {
                "searchQuery": filters.search_query,
                "sortBy": filters.sort_by.value if filters.sort_by is not None else None,
                "sortDirection": filters.sort_direction.value,
            },
            "activeTab": state.active_tab.value,
            "lastViewedVehicleId": state.last_viewed_vehicle_id,
        },
    }
    return json.dumps(payload, separators=(",", ":"))


def _to_enum(enum_cls: type[TEnum], value: Any, default: TEnum) -> TEnum:
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _to_vehicle_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _parse_filter_state(raw: Any) -> FilterState:
    defaults = FilterState()
    if not isinstance(raw, dict):
        return defaults
    query = raw.get("searchQuery")
    sort_by = raw.get("sortBy")
    return FilterState(
        search_query=query if isinstance(query, str) else defaults.search_query,
        sort_by=_to_enum(SortColumn, sort_by, None) if sort_by is not None else None,  # type: ignore[arg-type]
        sort_direction=_to_enum(SortDirection, raw.get("sortDirection"), defaults.sort_direction),
    )


def deserialize_snapshot(payload: str | None, *, version: int) -> UiState:
    """Rebuild a :class:`UiState` from a snapshot.

    Never raises: a missing, corrupt or differently-versioned snapshot
    yields defaults, and each unreadable field falls back individually.
    """
    defaults = UiState()
    if not payload:
        return defaults

    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        _logger.warning("Ignoring corrupt UI snapshot")
        return defaults

    if not isinstance(data, dict):
        _logger.warning("Ignoring UI snapshot that is not a JSON object")
        return defaults
    if data.get("version") != version:
        _logger.info("Ignoring UI snapshot version %r (expected %d)", data.get("version"), version)
        return defaults

    state = data.get("state")
    if not isinstance(state, dict):
        return defaults

    return UiState(
        filter_state=_parse_filter_state(state.get("filterState")),
        active_tab=_to_enum(VehicleTab, state.get("activeTab"), defaults.active_tab),
        last_viewed_vehicle_id=_to_vehicle_id(state.get("lastViewedVehicleId")),
    )
