"""Shared helpers for fleet API endpoint modules.

This module centralizes the most repeated patterns:
- validating request bodies before they are sent
- sending a request and decoding the JSON body
- mapping HTTP statuses and error bodies to the exception hierarchy

It is internal to pyfleet and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NoReturn, TypeVar

from pydantic import ValidationError

from pyfleet._transport import Transport
from pyfleet.exceptions import (
    FleetApiError,
    FleetConflictError,
    FleetNotFoundError,
    FleetTransportError,
    FleetValidationError,
)
from pyfleet.models._base import FleetBaseModel
from pyfleet.models.errors import ErrorBody, FieldError
from pyfleet.models.requests import collect_field_errors

TRequest = TypeVar("TRequest", bound=FleetBaseModel)
TModel = TypeVar("TModel", bound=FleetBaseModel)

DUPLICATE_REGISTRATION_MESSAGE = "Registration number already exists"
REGISTRATION_FIELD = "registrationNumber"


def validate_request(model_cls: type[TRequest], value: TRequest | Mapping[str, Any]) -> TRequest:
    """Return *value* as a validated *model_cls* instance.

    Raises
    ------
    FleetValidationError
        With one field error per failing field.
    """
    if isinstance(value, model_cls):
        return value
    try:
        return model_cls.model_validate(value)
    except ValidationError as exc:
        raise FleetValidationError(
            "Validation failed",
            status_code=400,
            field_errors=collect_field_errors(exc, model_cls),
        ) from exc


def _parse_error_body(body: Any) -> ErrorBody:
    if not isinstance(body, dict):
        return ErrorBody()
    try:
        return ErrorBody.model_validate(body)
    except ValidationError:
        return ErrorBody(message=str(body.get("message", "")))


def _is_duplicate_registration(error: ErrorBody) -> bool:
    if error.message == DUPLICATE_REGISTRATION_MESSAGE:
        return True
    return any(
        fe.field == REGISTRATION_FIELD and "already exists" in fe.message.lower() for fe in error.errors
    )


def raise_for_status(*, endpoint: str, status: int, body: Any) -> NoReturn:
    """Map a non-2xx response to the matching :class:`FleetError`."""
    error = _parse_error_body(body)
    message = error.message or f"HTTP {status} from {endpoint}"

    if status == 404:
        raise FleetNotFoundError(message, status_code=status, endpoint=endpoint)
    if status == 400 and _is_duplicate_registration(error):
        field_errors = error.errors or [FieldError(field=REGISTRATION_FIELD, message=message)]
        raise FleetConflictError(message, status_code=status, endpoint=endpoint, field_errors=field_errors)
    if status in (400, 422):
        raise FleetValidationError(message, status_code=status, endpoint=endpoint, field_errors=error.errors)
    if status >= 500:
        raise FleetTransportError(
            f"HTTP {status} from {endpoint}: {message}",
            status_code=status,
            endpoint=endpoint,
            server_message=error.message or None,
        )
    raise FleetApiError(message, status_code=status, endpoint=endpoint, field_errors=error.errors)


async def request_json(
    *,
    transport: Transport,
    method: str,
    endpoint: str,
    body: Any = None,
) -> Any:
    """Send a request and return the decoded body of a 2xx response.

    This is a thin helper for endpoint modules; it intentionally returns `Any`
    since endpoints may return objects or lists.
    """
    response = await transport.request(method, endpoint, json_body=body)
    if not response.ok:
        raise_for_status(endpoint=endpoint, status=response.status, body=response.body)
    return response.body


def expect_object(endpoint: str, decoded: Any) -> dict[str, Any]:
    if not isinstance(decoded, dict):
        raise FleetTransportError(f"Expected a JSON object from {endpoint}", endpoint=endpoint)
    return decoded


def expect_list(endpoint: str, decoded: Any) -> list[Any]:
    if not isinstance(decoded, list):
        raise FleetTransportError(f"Expected a JSON array from {endpoint}", endpoint=endpoint)
    return decoded


def parse_model(endpoint: str, model_cls: type[TModel], data: Any) -> TModel:
    """Validate a response payload, reporting malformed bodies as transport errors."""
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise FleetTransportError(
            f"Unexpected {model_cls.__name__} payload from {endpoint}: {exc.error_count()} error(s)",
            endpoint=endpoint,
        ) from exc
