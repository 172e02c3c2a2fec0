"""
Custom exceptions for the application.

Every error the core raises carries a stable ``code`` and the HTTP status
the API boundary answers with. Services raise these; controllers never
build error payloads by hand (see ``api_utils.register_error_handlers``).
"""

from typing import Any, Dict, Optional


class ClinicError(Exception):
    """Base class for all domain and infrastructure errors."""

    code = "clinic_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_context(self) -> Dict[str, Any]:
        """Structured fields for logging and the error response payload."""
        return {"code": self.code}


class InvalidInputError(ClinicError):
    """Malformed or missing input, rejected before any store access."""

    code = "invalid_input"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_context(self) -> Dict[str, Any]:
        context = super().to_context()
        if self.field:
            context["field"] = self.field
        return context


class InvalidAmountError(InvalidInputError):
    """A money amount that is not strictly positive."""

    code = "invalid_amount"


class NotFoundError(ClinicError):
    """A referenced entity does not exist."""

    code = "not_found"
    status_code = 404
    kind = "entity"

    def __init__(self, entity_id: Any, kind: Optional[str] = None):
        if kind is not None:
            self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{self.kind.capitalize()} with id {entity_id} not found")

    def to_context(self) -> Dict[str, Any]:
        context = super().to_context()
        context.update({"kind": self.kind, "id": self.entity_id})
        return context


class CompanyNotFoundError(NotFoundError):
    code = "company_not_found"
    kind = "company"


class DepartmentNotFoundError(NotFoundError):
    code = "department_not_found"
    kind = "department"


class DoctorNotFoundError(NotFoundError):
    code = "doctor_not_found"
    kind = "doctor"


class PatientNotFoundError(NotFoundError):
    code = "patient_not_found"
    kind = "patient"


class AppointmentNotFoundError(NotFoundError):
    code = "appointment_not_found"
    kind = "appointment"


class CaseStudyNotFoundError(NotFoundError):
    code = "case_study_not_found"
    kind = "case study"


class InvoiceNotFoundError(NotFoundError):
    code = "invoice_not_found"
    kind = "invoice"


class CampaignNotFoundError(NotFoundError):
    code = "campaign_not_found"
    kind = "campaign"


class OwnershipMismatchError(ClinicError):
    """An entity exists but belongs to a different owner than expected."""

    code = "ownership_mismatch"
    status_code = 409

    def __init__(self, kind: str, entity_id: Any, expected_owner_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        self.expected_owner_id = expected_owner_id
        super().__init__(self._describe())

    def _describe(self) -> str:
        return (
            f"{self.kind.capitalize()} with id {self.entity_id} "
            f"does not belong to {self.expected_owner_id}"
        )

    def to_context(self) -> Dict[str, Any]:
        context = super().to_context()
        context.update(
            {
                "kind": self.kind,
                "id": self.entity_id,
                "expected_owner_id": self.expected_owner_id,
            }
        )
        return context


class TenantMismatchError(OwnershipMismatchError):
    """An entity belongs to a different company (tenant)."""

    code = "tenant_mismatch"

    def _describe(self) -> str:
        return (
            f"{self.kind.capitalize()} with id {self.entity_id} not found "
            f"or does not belong to company {self.expected_owner_id}"
        )


class InactivePractitionerError(ClinicError):
    """Booking against a practitioner whose is_active flag is false."""

    code = "inactive_practitioner"
    status_code = 409

    def __init__(self, doctor_id: int):
        self.doctor_id = doctor_id
        super().__init__(f"Doctor with ID {doctor_id} is not active")

    def to_context(self) -> Dict[str, Any]:
        context = super().to_context()
        context["doctor_id"] = self.doctor_id
        return context


class SchedulingConflictError(ClinicError):
    """The practitioner already has a live appointment in the same slot."""

    code = "scheduling_conflict"
    status_code = 409

    def __init__(self, doctor_id: int, slot: str):
        self.doctor_id = doctor_id
        self.slot = slot
        super().__init__(f"Doctor with ID {doctor_id} is already booked at {slot}")


class InvalidStatusTransitionError(ClinicError):
    code = "invalid_status_transition"
    status_code = 409

    def __init__(self, kind: str, current: str, requested: str):
        self.kind = kind
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change {kind} status from '{current}' to '{requested}'"
        )

    def to_context(self) -> Dict[str, Any]:
        context = super().to_context()
        context.update({"from": self.current, "to": self.requested})
        return context


class StoreError(ClinicError):
    """Opaque persistence failure. The original driver error is chained."""

    code = "store_unavailable"
    status_code = 503

    def __init__(self, message: str = "Storage temporarily unavailable"):
        super().__init__(message)
