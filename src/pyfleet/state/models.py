"""UI state models.

Everything here is client-only. The store replaces these frozen models
wholesale on every change, so a listener always receives a consistent
snapshot.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class SortColumn(StrEnum):
    MODEL = "model"
    TYPE = "type"
    STATUS = "status"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class VehicleTab(StrEnum):
    INFO = "info"
    MAINTENANCE = "maintenance"
    LOCATION = "location"
    ANALYTICS = "analytics"


class ToastSeverity(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class ModalKind(StrEnum):
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class FormKind(StrEnum):
    """Forms whose submission is gated. Modal forms share their modal's name."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    MAINTENANCE = "maintenance"

    @property
    def modal_kind(self) -> ModalKind | None:
        if self is FormKind.MAINTENANCE:
            return None
        return ModalKind(self.value)


class _UiModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FilterState(_UiModel):
    search_query: str = ""
    sort_by: SortColumn | None = None
    sort_direction: SortDirection = SortDirection.ASC


class FormState(_UiModel):
    """Submission state of one form.

    ``idle → submitting → idle`` on success, ``submitting → error`` on
    failure. While ``submitting`` is set the form's submit control is
    disabled and further submits are ignored.
    """

    submitting: bool = False
    error: str | None = None
    field_errors: dict[str, str] = Field(default_factory=dict)


class ClosedModal(_UiModel):
    status: Literal["closed"] = "closed"

    @property
    def is_open(self) -> bool:
        return False

    @property
    def kind(self) -> None:
        return None

    @property
    def target_id(self) -> None:
        return None


class OpenModal(_UiModel):
    status: Literal["open"] = "open"
    kind: ModalKind
    target_id: int | None = None
    form: FormState = Field(default_factory=FormState)

    @property
    def is_open(self) -> bool:
        return True


ModalState = Annotated[ClosedModal | OpenModal, Field(discriminator="status")]
"""Exactly one modal is open, or none is."""


class ToastState(_UiModel):
    message: str = ""
    severity: ToastSeverity = ToastSeverity.INFO
    visible: bool = False


class UiState(_UiModel):
    filter_state: FilterState = Field(default_factory=FilterState)
    active_tab: VehicleTab = VehicleTab.INFO
    last_viewed_vehicle_id: int | None = None
    modal: ModalState = Field(default_factory=ClosedModal)
    maintenance_form: FormState = Field(default_factory=FormState)
    toast: ToastState = Field(default_factory=ToastState)

    def is_modal_open(self, kind: ModalKind) -> bool:
        return isinstance(self.modal, OpenModal) and self.modal.kind is kind

    def form(self, kind: FormKind) -> FormState | None:
        """Form state for *kind*, or ``None`` when its modal is not open."""
        if kind is FormKind.MAINTENANCE:
            return self.maintenance_form
        modal = self.modal
        if isinstance(modal, OpenModal) and modal.kind is kind.modal_kind:
            return modal.form
        return None
