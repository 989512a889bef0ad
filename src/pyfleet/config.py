"""Client configuration for pyfleet."""

from __future__ import annotations

import dataclasses
import os
import platform
from pathlib import Path
from typing import Any

from pyfleet._constants import (
    BASE_URL,
    DEFAULT_STALE_AFTER,
    DEFAULT_TOAST_DURATION,
    UI_STORAGE_NAMESPACE,
    USER_AGENT,
)
from pyfleet.exceptions import FleetConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise FleetConfigError(f"{env_key} must be a number, got {value!r}") from exc


def default_state_dir() -> Path:
    """Directory used for the UI snapshot when ``state_dir`` is not set."""
    if platform.system() == "Windows":
        return Path.home() / ".pyfleet"
    return Path.home() / ".local" / "state" / "pyfleet"


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        REST API root, without trailing slash. Defaults to a local server.
    stale_after : float
        Seconds a fetched entity stays fresh in the entity cache.
    toast_duration : float
        Seconds before a visible toast is dismissed automatically.
    storage_namespace : str
        Key under which the UI snapshot is persisted.
    state_dir : str or None
        Directory for the persisted UI snapshot. ``None`` uses
        :func:`default_state_dir`.
    persist_ui_state : bool
        Write the UI snapshot to disk so it survives restarts. When
        ``False`` the snapshot is kept in memory for the lifetime of the
        client.
    user_agent : str
        User agent sent with every request.
    """

    base_url: str = BASE_URL
    stale_after: float = DEFAULT_STALE_AFTER
    toast_duration: float = DEFAULT_TOAST_DURATION
    storage_namespace: str = UI_STORAGE_NAMESPACE
    state_dir: str | None = None
    persist_ui_state: bool = True
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if not self.base_url:
            raise FleetConfigError("base_url must be non-empty")
        if self.stale_after < 0:
            raise FleetConfigError("stale_after must be >= 0")
        if self.toast_duration <= 0:
            raise FleetConfigError("toast_duration must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetConfig:
        """Create configuration from environment variables.

        Reads ``FLEET_BASE_URL``, ``FLEET_STALE_AFTER``,
        ``FLEET_TOAST_DURATION``, ``FLEET_STATE_DIR`` and
        ``FLEET_PERSIST_UI_STATE``. Explicit keyword arguments override
        environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("FLEET_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        state_dir = env.get("FLEET_STATE_DIR")
        if state_dir:
            config_kwargs["state_dir"] = state_dir

        for env_key, field_name in (
            ("FLEET_STALE_AFTER", "stale_after"),
            ("FLEET_TOAST_DURATION", "toast_duration"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        if "persist_ui_state" not in overrides:
            config_kwargs["persist_ui_state"] = _env_bool(env.get("FLEET_PERSIST_UI_STATE"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
