"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs are built with ``from_dict`` from a raw JSON payload; parsing
and validation happen there so malformed input is rejected before any
database access. ``to_json_dict`` turns domain entities into JSON-ready
dictionaries for the API layer.
"""

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from ..core.validation import BaseValidator, ValidationResult
from ..domain.entities import (
    APPOINTMENT_STATUSES,
    CAMPAIGN_TYPES,
    CASE_STUDY_STATUSES,
    INVOICE_STATUSES,
    LAB_REPORT_STATUSES,
    PAYMENT_METHODS,
    Invoice,
)

v = BaseValidator


# ===========================
# Registry
# ===========================


@dataclass
class CompanyCreateRequest:
    """DTO for company creation requests."""

    name: str
    address: str
    phone: str
    email: str
    license_number: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompanyCreateRequest":
        result = ValidationResult()
        parsed = cls(
            name=v.validate_string(data.get("name"), "name", result, max_length=255),
            address=v.validate_string(data.get("address"), "address", result),
            phone=v.validate_string(data.get("phone"), "phone", result, max_length=20),
            email=v.validate_email(data.get("email"), "email", result),
            license_number=v.validate_string(
                data.get("license_number"), "license_number", result, max_length=100
            ),
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class DepartmentCreateRequest:
    company_id: int
    name: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DepartmentCreateRequest":
        result = ValidationResult()
        parsed = cls(
            company_id=v.validate_integer(data.get("company_id"), "company_id", result),
            name=v.validate_string(data.get("name"), "name", result, max_length=255),
            description=v.validate_string(
                data.get("description"), "description", result, required=False
            ),
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class DoctorCreateRequest:
    """DTO for practitioner creation requests."""

    company_id: int
    department_id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    specialization: str
    license_number: str
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DoctorCreateRequest":
        result = ValidationResult()
        is_active = True
        if data.get("is_active") is not None:
            is_active = v.validate_boolean(data.get("is_active"), "is_active", result)
        parsed = cls(
            company_id=v.validate_integer(data.get("company_id"), "company_id", result),
            department_id=v.validate_integer(
                data.get("department_id"), "department_id", result
            ),
            first_name=v.validate_string(
                data.get("first_name"), "first_name", result, max_length=100
            ),
            last_name=v.validate_string(
                data.get("last_name"), "last_name", result, max_length=100
            ),
            email=v.validate_email(data.get("email"), "email", result),
            phone=v.validate_string(data.get("phone"), "phone", result, max_length=20),
            specialization=v.validate_string(
                data.get("specialization"), "specialization", result, max_length=255
            ),
            license_number=v.validate_string(
                data.get("license_number"), "license_number", result, max_length=100
            ),
            is_active=is_active,
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class DoctorActiveRequest:
    is_active: bool

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DoctorActiveRequest":
        result = ValidationResult()
        parsed = cls(is_active=v.validate_boolean(data.get("is_active"), "is_active", result))
        result.raise_if_invalid()
        return parsed


@dataclass
class DoctorScheduleCreateRequest:
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DoctorScheduleCreateRequest":
        result = ValidationResult()
        is_available = True
        if data.get("is_available") is not None:
            is_available = v.validate_boolean(
                data.get("is_available"), "is_available", result
            )
        parsed = cls(
            doctor_id=v.validate_integer(data.get("doctor_id"), "doctor_id", result),
            day_of_week=v.validate_integer(
                data.get("day_of_week"), "day_of_week", result, min_value=0, max_value=6
            ),
            start_time=v.validate_time_of_day(data.get("start_time"), "start_time", result),
            end_time=v.validate_time_of_day(data.get("end_time"), "end_time", result),
            is_available=is_available,
        )
        # Zero-padded HH:MM strings compare chronologically
        if parsed.start_time and parsed.end_time and parsed.end_time <= parsed.start_time:
            result.add_error("must be after start_time", "end_time")
        result.raise_if_invalid()
        return parsed


@dataclass
class PatientCreateRequest:
    """DTO for patient registration requests."""

    company_id: int
    first_name: str
    last_name: str
    phone: str
    date_of_birth: date
    address: str
    email: Optional[str] = None
    insurance_number: Optional[str] = None
    emergency_contact: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PatientCreateRequest":
        result = ValidationResult()
        parsed = cls(
            company_id=v.validate_integer(data.get("company_id"), "company_id", result),
            first_name=v.validate_string(
                data.get("first_name"), "first_name", result, max_length=100
            ),
            last_name=v.validate_string(
                data.get("last_name"), "last_name", result, max_length=100
            ),
            phone=v.validate_string(data.get("phone"), "phone", result, max_length=20),
            date_of_birth=v.validate_date(
                data.get("date_of_birth"), "date_of_birth", result
            ),
            address=v.validate_string(data.get("address"), "address", result),
            email=v.validate_email(data.get("email"), "email", result, required=False),
            insurance_number=v.validate_string(
                data.get("insurance_number"), "insurance_number", result, required=False
            ),
            emergency_contact=v.validate_string(
                data.get("emergency_contact"), "emergency_contact", result, required=False
            ),
        )
        result.raise_if_invalid()
        return parsed


# ===========================
# Booking
# ===========================


@dataclass
class AppointmentCreateRequest:
    """DTO for appointment creation requests."""

    patient_id: int
    doctor_id: int
    appointment_date: date
    appointment_time: str
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppointmentCreateRequest":
        result = ValidationResult()
        parsed = cls(
            patient_id=v.validate_integer(data.get("patient_id"), "patient_id", result),
            doctor_id=v.validate_integer(data.get("doctor_id"), "doctor_id", result),
            appointment_date=v.validate_date(
                data.get("appointment_date"), "appointment_date", result
            ),
            appointment_time=v.validate_time_of_day(
                data.get("appointment_time"), "appointment_time", result
            ),
            notes=v.validate_string(data.get("notes"), "notes", result, required=False),
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class StatusChangeRequest:
    """DTO for appointment and invoice status changes."""

    status: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], allowed) -> "StatusChangeRequest":
        result = ValidationResult()
        parsed = cls(status=v.validate_choice(data.get("status"), "status", result, allowed))
        result.raise_if_invalid()
        return parsed

    @classmethod
    def for_appointment(cls, data: Mapping[str, Any]) -> "StatusChangeRequest":
        return cls.from_dict(data, APPOINTMENT_STATUSES)

    @classmethod
    def for_invoice(cls, data: Mapping[str, Any]) -> "StatusChangeRequest":
        return cls.from_dict(data, INVOICE_STATUSES)


# ===========================
# Clinical records
# ===========================


@dataclass
class CaseStudyCreateRequest:
    patient_id: int
    doctor_id: int
    title: str
    diagnosis: str
    treatment_plan: str
    notes: Optional[str] = None
    status: str = "active"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CaseStudyCreateRequest":
        result = ValidationResult()
        parsed = cls(
            patient_id=v.validate_integer(data.get("patient_id"), "patient_id", result),
            doctor_id=v.validate_integer(data.get("doctor_id"), "doctor_id", result),
            title=v.validate_string(data.get("title"), "title", result, max_length=255),
            diagnosis=v.validate_string(data.get("diagnosis"), "diagnosis", result),
            treatment_plan=v.validate_string(
                data.get("treatment_plan"), "treatment_plan", result
            ),
            notes=v.validate_string(data.get("notes"), "notes", result, required=False),
            status=v.validate_choice(
                data.get("status"), "status", result, CASE_STUDY_STATUSES, required=False
            )
            or "active",
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class PrescriptionCreateRequest:
    patient_id: int
    doctor_id: int
    medication_name: str
    dosage: str
    frequency: str
    duration: str
    case_study_id: Optional[int] = None
    instructions: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PrescriptionCreateRequest":
        result = ValidationResult()
        parsed = cls(
            patient_id=v.validate_integer(data.get("patient_id"), "patient_id", result),
            doctor_id=v.validate_integer(data.get("doctor_id"), "doctor_id", result),
            medication_name=v.validate_string(
                data.get("medication_name"), "medication_name", result, max_length=255
            ),
            dosage=v.validate_string(data.get("dosage"), "dosage", result, max_length=100),
            frequency=v.validate_string(
                data.get("frequency"), "frequency", result, max_length=100
            ),
            duration=v.validate_string(
                data.get("duration"), "duration", result, max_length=100
            ),
            case_study_id=v.validate_integer(
                data.get("case_study_id"), "case_study_id", result, required=False
            ),
            instructions=v.validate_string(
                data.get("instructions"), "instructions", result, required=False
            ),
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class LabReportCreateRequest:
    patient_id: int
    doctor_id: int
    test_name: str
    test_date: date
    results: str
    case_study_id: Optional[int] = None
    notes: Optional[str] = None
    file_path: Optional[str] = None
    status: str = "pending"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LabReportCreateRequest":
        result = ValidationResult()
        parsed = cls(
            patient_id=v.validate_integer(data.get("patient_id"), "patient_id", result),
            doctor_id=v.validate_integer(data.get("doctor_id"), "doctor_id", result),
            test_name=v.validate_string(
                data.get("test_name"), "test_name", result, max_length=255
            ),
            test_date=v.validate_date(data.get("test_date"), "test_date", result),
            results=v.validate_string(data.get("results"), "results", result),
            case_study_id=v.validate_integer(
                data.get("case_study_id"), "case_study_id", result, required=False
            ),
            notes=v.validate_string(data.get("notes"), "notes", result, required=False),
            file_path=v.validate_string(
                data.get("file_path"), "file_path", result, required=False, max_length=500
            ),
            status=v.validate_choice(
                data.get("status"), "status", result, LAB_REPORT_STATUSES, required=False
            )
            or "pending",
        )
        result.raise_if_invalid()
        return parsed


# ===========================
# Ledger
# ===========================


@dataclass
class InvoiceCreateRequest:
    """DTO for invoice creation requests."""

    patient_id: int
    company_id: int
    total_amount: Decimal
    due_date: date
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InvoiceCreateRequest":
        result = ValidationResult()
        # Amount first so an invalid amount is reported as InvalidAmountError
        total_amount = v.validate_money(data.get("total_amount"), "total_amount", result)
        parsed = cls(
            patient_id=v.validate_integer(data.get("patient_id"), "patient_id", result),
            company_id=v.validate_integer(data.get("company_id"), "company_id", result),
            total_amount=total_amount,
            due_date=v.validate_date(data.get("due_date"), "due_date", result),
            notes=v.validate_string(data.get("notes"), "notes", result, required=False),
        )
        result.raise_if_invalid()
        return parsed


@dataclass
class PaymentCreateRequest:
    """DTO for payment recording requests."""

    invoice_id: int
    amount: Decimal
    payment_method: str
    payment_date: date
    reference_number: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaymentCreateRequest":
        result = ValidationResult()
        amount = v.validate_money(data.get("amount"), "amount", result)
        parsed = cls(
            invoice_id=v.validate_integer(data.get("invoice_id"), "invoice_id", result),
            amount=amount,
            payment_method=v.validate_choice(
                data.get("payment_method"), "payment_method", result, PAYMENT_METHODS
            ),
            payment_date=v.validate_date(data.get("payment_date"), "payment_date", result),
            reference_number=v.validate_string(
                data.get("reference_number"),
                "reference_number",
                result,
                required=False,
                max_length=255,
            ),
            notes=v.validate_string(data.get("notes"), "notes", result, required=False),
        )
        result.raise_if_invalid()
        return parsed


# ===========================
# Outreach
# ===========================


@dataclass
class CampaignCreateRequest:
    company_id: int
    name: str
    type: str
    message: str
    subject: Optional[str] = None
    scheduled_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CampaignCreateRequest":
        result = ValidationResult()
        parsed = cls(
            company_id=v.validate_integer(data.get("company_id"), "company_id", result),
            name=v.validate_string(data.get("name"), "name", result, max_length=255),
            type=v.validate_choice(data.get("type"), "type", result, CAMPAIGN_TYPES),
            message=v.validate_string(data.get("message"), "message", result),
            subject=v.validate_string(
                data.get("subject"), "subject", result, required=False, max_length=255
            ),
            scheduled_date=v.validate_datetime(
                data.get("scheduled_date"), "scheduled_date", result, required=False
            ),
        )
        result.raise_if_invalid()
        return parsed


# ===========================
# Query filters
# ===========================


def parse_filters(
    args: Mapping[str, Any], *names: str, required: tuple = ()
) -> Dict[str, Optional[int]]:
    """Parse optional integer id filters from query-string arguments.

    Absent or empty filters come back as None and are ignored by the list
    operations; names in ``required`` must be present.
    """
    result = ValidationResult()
    filters = {
        name: v.validate_integer(args.get(name), name, result, required=name in required)
        for name in names
    }
    result.raise_if_invalid()
    return filters


# ===========================
# Response serialization
# ===========================


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def to_json_dict(entity: Any) -> Dict[str, Any]:
    """Convert a domain dataclass into a JSON-serializable dict."""
    data = {f.name: _json_value(getattr(entity, f.name)) for f in fields(entity)}
    if isinstance(entity, Invoice):
        data["balance_due"] = _json_value(entity.balance_due)
    return data
