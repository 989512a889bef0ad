"""Pydantic request models for write endpoints.

These models provide a consistent "validate → normalize → execute" flow.
They are used by :class:`pyfleet.orchestrators.VehicleMutations` before a
request leaves the client, and by the reference server when a request
arrives, so both sides report the same field messages.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, ValidationError
from pydantic_core import PydanticCustomError

from pyfleet.models._base import FleetBaseModel, FleetTimestamp
from pyfleet.models.errors import FieldError
from pyfleet.models.vehicle import VehicleStatus


def _bounded_text(label: str, max_length: int) -> Callable[[Any], Any]:
    def _check(value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, str):
            raise PydanticCustomError("text_type", f"{label} must be a string")
        text = value.strip()
        if not text:
            raise PydanticCustomError("text_required", f"{label} is required")
        if len(text) > max_length:
            raise PydanticCustomError("text_too_long", f"{label} must be less than {max_length} characters")
        return text

    return _check


def _non_negative_cost(value: float) -> float:
    if value < 0:
        raise PydanticCustomError("cost_negative", "Cost cannot be negative")
    return value


ModelText = Annotated[str, BeforeValidator(_bounded_text("Model", 100))]
TypeText = Annotated[str, BeforeValidator(_bounded_text("Type", 50))]
RegistrationText = Annotated[str, BeforeValidator(_bounded_text("Registration number", 20))]
LocationText = Annotated[str, BeforeValidator(_bounded_text("Location", 200))]
DescriptionText = Annotated[str, BeforeValidator(_bounded_text("Description", 500))]
Cost = Annotated[float, AfterValidator(_non_negative_cost)]


class CreateVehicleRequest(FleetBaseModel):
    """Body of ``POST /vehicles``."""

    model: ModelText
    type: TypeText
    status: VehicleStatus = VehicleStatus.ACTIVE
    registration_number: RegistrationText
    location: LocationText
    last_maintenance: FleetTimestamp | None = None


class UpdateVehicleRequest(FleetBaseModel):
    """Body of ``PUT /vehicles/{id}``; only supplied fields are changed."""

    model: ModelText | None = None
    type: TypeText | None = None
    status: VehicleStatus | None = None
    registration_number: RegistrationText | None = None
    location: LocationText | None = None

    def changes(self) -> dict[str, Any]:
        """Fields explicitly supplied with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def to_wire(self, *, exclude_unset: bool = True) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=exclude_unset, exclude_none=True)


class CreateMaintenanceRequest(FleetBaseModel):
    """Body of ``POST /vehicles/{id}/maintenance``."""

    description: DescriptionText
    cost: Cost | None = None


def collect_field_errors(exc: ValidationError, model_cls: type[FleetBaseModel]) -> list[FieldError]:
    """Flatten a pydantic ``ValidationError`` into wire-named field errors."""
    aliases = {name: (info.alias or name) for name, info in model_cls.model_fields.items()}
    errors: list[FieldError] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc:
            loc[0] = aliases.get(loc[0], loc[0])
        message = "Required" if err.get("type") == "missing" else str(err.get("msg", "Invalid value"))
        errors.append(FieldError(field=".".join(loc), message=message))
    return errors
