"""Error body returned by the fleet API."""

from __future__ import annotations

from pydantic import Field

from pyfleet.models._base import FleetBaseModel


class FieldError(FleetBaseModel):
    """A validation message attached to one request field."""

    field: str
    """Wire (camelCase) name of the offending field."""
    message: str


class ErrorBody(FleetBaseModel):
    """``{"message": ..., "errors": [{"field": ..., "message": ...}]}``"""

    message: str = ""
    errors: list[FieldError] = Field(default_factory=list)
