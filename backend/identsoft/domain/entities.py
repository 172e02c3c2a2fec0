"""
Domain entities - Pure business logic, no framework dependencies.

Entities are what repositories return and services hand back to callers:
plain dataclasses with normalized types (Decimal money, ``date`` calendar
days, "HH:MM" times), independent of SQLAlchemy and Flask.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

# ===========================
# Enumerations
# ===========================

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "in_progress", "completed", "cancelled")
CASE_STUDY_STATUSES = ("active", "completed", "on_hold")
LAB_REPORT_STATUSES = ("pending", "completed", "reviewed")
INVOICE_STATUSES = ("draft", "sent", "paid", "overdue", "cancelled")
PAYMENT_METHODS = ("cash", "card", "bank_transfer", "insurance")
CAMPAIGN_TYPES = ("email", "sms")
CAMPAIGN_STATUSES = ("draft", "scheduled", "sent", "failed")

# Allowed status changes; statuses missing as keys are terminal
APPOINTMENT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "scheduled": frozenset({"confirmed", "in_progress", "cancelled"}),
    "confirmed": frozenset({"in_progress", "cancelled"}),
    "in_progress": frozenset({"completed", "cancelled"}),
}

INVOICE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "draft": frozenset({"sent", "paid", "cancelled"}),
    "sent": frozenset({"paid", "overdue", "cancelled"}),
    "overdue": frozenset({"paid", "cancelled"}),
}


def can_transition(table: Dict[str, FrozenSet[str]], current: str, requested: str) -> bool:
    """Return True when ``current -> requested`` is listed in ``table``."""
    return requested in table.get(current, frozenset())


# ===========================
# Tenant and staff
# ===========================


@dataclass
class Company:
    """A clinic: the tenant that owns every other record."""

    id: Optional[int] = None
    name: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    license_number: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate domain rules."""
        if not self.name:
            raise ValueError("Company name is required")


@dataclass
class Department:
    id: Optional[int] = None
    company_id: int = 0
    name: str = ""
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Doctor:
    """Domain entity for a practitioner."""

    id: Optional[int] = None
    company_id: int = 0
    department_id: int = 0
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    specialization: str = ""
    license_number: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class DoctorSchedule:
    id: Optional[int] = None
    doctor_id: int = 0
    day_of_week: int = 0  # 0=Sunday .. 6=Saturday
    start_time: str = ""
    end_time: str = ""
    is_available: bool = True
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate business rules."""
        if not 0 <= self.day_of_week <= 6:
            raise ValueError("day_of_week must be between 0 and 6")


@dataclass
class Patient:
    id: Optional[int] = None
    company_id: int = 0
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    phone: str = ""
    date_of_birth: Optional[date] = None
    address: str = ""
    insurance_number: Optional[str] = None
    emergency_contact: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ===========================
# Booking and clinical records
# ===========================


@dataclass
class Appointment:
    """Domain entity for Appointment business logic."""

    id: Optional[int] = None
    patient_id: int = 0
    doctor_id: int = 0
    appointment_date: Optional[date] = None
    appointment_time: str = ""  # HH:MM
    status: str = "scheduled"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate business rules."""
        if self.status not in APPOINTMENT_STATUSES:
            raise ValueError(f"Invalid appointment status: {self.status}")


@dataclass
class CaseStudy:
    id: Optional[int] = None
    patient_id: int = 0
    doctor_id: int = 0
    title: str = ""
    diagnosis: str = ""
    treatment_plan: str = ""
    notes: Optional[str] = None
    status: str = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Prescription:
    id: Optional[int] = None
    patient_id: int = 0
    doctor_id: int = 0
    case_study_id: Optional[int] = None
    medication_name: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    instructions: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class LabReport:
    id: Optional[int] = None
    patient_id: int = 0
    doctor_id: int = 0
    case_study_id: Optional[int] = None
    test_name: str = ""
    test_date: Optional[date] = None
    results: str = ""
    notes: Optional[str] = None
    file_path: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None


# ===========================
# Ledger
# ===========================


@dataclass
class Invoice:
    """Domain entity for an invoice.

    ``paid_amount`` is maintained by the ledger and always equals the sum of
    the invoice's payments. Over-payment is allowed; ``balance_due`` then
    goes negative.
    """

    id: Optional[int] = None
    patient_id: int = 0
    company_id: int = 0
    invoice_number: str = ""
    total_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    status: str = "draft"
    due_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate business rules."""
        if self.status not in INVOICE_STATUSES:
            raise ValueError(f"Invalid invoice status: {self.status}")

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.paid_amount


@dataclass
class Payment:
    id: Optional[int] = None
    invoice_id: int = 0
    amount: Decimal = Decimal("0.00")
    payment_method: str = "cash"
    payment_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate business rules."""
        if self.payment_method not in PAYMENT_METHODS:
            raise ValueError(f"Invalid payment method: {self.payment_method}")


# ===========================
# Outreach
# ===========================


@dataclass
class Campaign:
    id: Optional[int] = None
    company_id: int = 0
    name: str = ""
    type: str = "email"
    subject: Optional[str] = None
    message: str = ""
    status: str = "draft"
    scheduled_date: Optional[datetime] = None
    sent_date: Optional[datetime] = None
    recipient_count: int = 0
    created_at: Optional[datetime] = None
