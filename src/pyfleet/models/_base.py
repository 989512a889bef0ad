"""Base model for fleet API payloads.

Every wire model inherits from :class:`FleetBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* ``populate_by_name`` so models can also be built from Python names.
* :meth:`FleetBaseModel.to_wire` for camelCase JSON-ready dicts.

Timestamps use :data:`FleetTimestamp`, which accepts ISO-8601 strings,
epoch seconds or milliseconds, and always yields an aware UTC datetime.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_fleet_timestamp(value: Any) -> Any:
    """Convert epoch seconds or milliseconds to a UTC datetime.

    Strings and datetimes are passed through for pydantic to parse.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


FleetTimestamp = Annotated[datetime, BeforeValidator(parse_fleet_timestamp), AfterValidator(_ensure_utc)]
"""Annotated datetime that always ends up timezone-aware in UTC."""


class FleetBaseModel(BaseModel):
    """Base for fleet API models (responses and request bodies)."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self, *, exclude_unset: bool = False) -> dict[str, Any]:
        """Dump to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=exclude_unset)
