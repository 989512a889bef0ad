"""Custom exception hierarchy for pyfleet."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyfleet.models.errors import FieldError


class FleetError(Exception):
    """Base exception for all pyfleet errors."""


class FleetConfigError(FleetError):
    """Invalid or missing configuration."""


class FleetTransportError(FleetError):
    """Network failure, server error (5xx) or unreadable response body.

    ``server_message`` holds the message from the error body when the
    server sent one, so callers can show it instead of a generic text.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        server_message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.server_message = server_message
        super().__init__(message)


class FleetApiError(FleetError):
    """API rejected the request (non-2xx status below 500)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        field_errors: Sequence[FieldError] = (),
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.field_errors: tuple[FieldError, ...] = tuple(field_errors)
        super().__init__(message)

    @property
    def field_error_map(self) -> dict[str, str]:
        """First message per field, keyed by wire field name."""
        mapped: dict[str, str] = {}
        for error in self.field_errors:
            mapped.setdefault(error.field, error.message)
        return mapped


class FleetValidationError(FleetApiError):
    """Request failed validation (HTTP 400 or client-side check)."""


class FleetConflictError(FleetValidationError):
    """Uniqueness violation, e.g. a registration number already in use.

    Always carries a field error for the conflicting field so forms can
    show it inline.
    """


class FleetNotFoundError(FleetApiError):
    """Requested entity does not exist (HTTP 404)."""
