from __future__ import annotations

from pathlib import Path

import pytest

from pyfleet.client import FleetClient
from pyfleet.config import FleetConfig, default_state_dir
from pyfleet.exceptions import FleetConfigError, FleetError
from pyfleet.state.persistence import JsonFileStorage, MemoryStorage


def test_defaults() -> None:
    config = FleetConfig()
    assert config.base_url == "http://localhost:5001/api"
    assert config.stale_after == 300
    assert config.toast_duration == 4.0
    assert config.storage_namespace == "fleet-ui-storage"
    assert config.state_dir is None


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLEET_BASE_URL", "https://fleet.example.com/api/")
    monkeypatch.setenv("FLEET_STALE_AFTER", "60")
    monkeypatch.setenv("FLEET_TOAST_DURATION", "2.5")
    monkeypatch.setenv("FLEET_STATE_DIR", "/tmp/fleet")
    monkeypatch.setenv("FLEET_PERSIST_UI_STATE", "off")

    config = FleetConfig.from_env()

    assert config.base_url == "https://fleet.example.com/api"
    assert config.stale_after == 60.0
    assert config.toast_duration == 2.5
    assert config.state_dir == "/tmp/fleet"
    assert config.persist_ui_state is False


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLEET_STALE_AFTER", "not-a-number")
    monkeypatch.setenv("FLEET_PERSIST_UI_STATE", "no")

    config = FleetConfig.from_env(stale_after=10, persist_ui_state=True)

    assert config.stale_after == 10
    assert config.persist_ui_state is True


def test_invalid_env_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLEET_TOAST_DURATION", "soon")
    with pytest.raises(FleetConfigError, match="FLEET_TOAST_DURATION"):
        FleetConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [{"base_url": ""}, {"stale_after": -1}, {"toast_duration": 0}],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(FleetConfigError):
        FleetConfig(**kwargs)  # type: ignore[arg-type]


def test_client_picks_file_storage_when_state_dir_set(tmp_path: Path) -> None:
    client = FleetClient(FleetConfig(state_dir=str(tmp_path)))
    client.store.set_search_query("truck")

    assert JsonFileStorage(tmp_path).read("fleet-ui-storage") is not None


def test_client_persists_to_default_state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Path, "home", lambda: tmp_path)

    FleetClient().store.set_search_query("truck")

    restarted = FleetClient()
    assert restarted.store.filter_state.search_query == "truck"
    assert JsonFileStorage(default_state_dir()).read("fleet-ui-storage") is not None
    assert default_state_dir().is_relative_to(tmp_path)


def test_client_keeps_snapshot_in_memory_when_persistence_disabled(tmp_path: Path) -> None:
    client = FleetClient(FleetConfig(state_dir=str(tmp_path), persist_ui_state=False))
    client.store.set_search_query("truck")

    assert list(tmp_path.iterdir()) == []


def test_client_uses_given_storage() -> None:
    storage = MemoryStorage()
    client = FleetClient(storage=storage)
    client.store.set_active_tab("analytics")
    assert storage.read("fleet-ui-storage") is not None


@pytest.mark.asyncio
async def test_client_requires_context_without_transport() -> None:
    client = FleetClient(storage=MemoryStorage())
    with pytest.raises(FleetError, match="Client not initialized"):
        await client.get_vehicles()
