"""
Abstract interfaces for repositories following Interface Segregation Principle.

These interfaces define contracts without implementation details,
enabling dependency injection and easier testing. Writers add and flush
rows but never commit: the calling service owns the transaction.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .entities import (
    Appointment,
    Campaign,
    CaseStudy,
    Company,
    Department,
    Doctor,
    DoctorSchedule,
    Invoice,
    LabReport,
    Patient,
    Payment,
    Prescription,
)


class ICompanyRepository(ABC):
    @abstractmethod
    def get_by_id(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        pass

    @abstractmethod
    def list(self) -> List[Company]:
        pass

    @abstractmethod
    def create(self, company: Company) -> Company:
        pass


class IDepartmentRepository(ABC):
    @abstractmethod
    def get_by_id(self, department_id: int) -> Optional[Department]:
        pass

    @abstractmethod
    def list(self, company_id: Optional[int] = None) -> List[Department]:
        pass

    @abstractmethod
    def create(self, department: Department) -> Department:
        pass


class IDoctorRepository(ABC):
    """Interface for practitioner persistence."""

    @abstractmethod
    def get_by_id(self, doctor_id: int) -> Optional[Doctor]:
        pass

    @abstractmethod
    def list(
        self, company_id: Optional[int] = None, department_id: Optional[int] = None
    ) -> List[Doctor]:
        pass

    @abstractmethod
    def create(self, doctor: Doctor) -> Doctor:
        pass

    @abstractmethod
    def set_active(self, doctor_id: int, is_active: bool) -> Optional[Doctor]:
        """Update the is_active flag. Returns None when the doctor is missing."""
        pass


class IDoctorScheduleRepository(ABC):
    @abstractmethod
    def list(self, doctor_id: int) -> List[DoctorSchedule]:
        pass

    @abstractmethod
    def create(self, schedule: DoctorSchedule) -> DoctorSchedule:
        pass


class IPatientRepository(ABC):
    @abstractmethod
    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        """Get patient by ID."""
        pass

    @abstractmethod
    def list(self, company_id: Optional[int] = None) -> List[Patient]:
        pass

    @abstractmethod
    def create(self, patient: Patient) -> Patient:
        pass


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        pass

    @abstractmethod
    def list(
        self, doctor_id: Optional[int] = None, patient_id: Optional[int] = None
    ) -> List[Appointment]:
        pass

    @abstractmethod
    def find_active_in_slot(
        self, doctor_id: int, appointment_date: date, appointment_time: str
    ) -> List[Appointment]:
        """Non-cancelled appointments of a doctor at an exact date and time."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        pass

    @abstractmethod
    def get_for_update(self, appointment_id: int) -> Optional[Appointment]:
        """Read an appointment, locking its row where the database supports it."""
        pass

    @abstractmethod
    def update_status(
        self, appointment_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Appointment]:
        """Set the status; None when missing or no longer ``expected_status``."""
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface combining read/write operations."""

    pass


class ICaseStudyRepository(ABC):
    @abstractmethod
    def get_by_id(self, case_study_id: int) -> Optional[CaseStudy]:
        pass

    @abstractmethod
    def list(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[CaseStudy]:
        pass

    @abstractmethod
    def create(self, case_study: CaseStudy) -> CaseStudy:
        pass


class IPrescriptionRepository(ABC):
    @abstractmethod
    def list(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[Prescription]:
        pass

    @abstractmethod
    def create(self, prescription: Prescription) -> Prescription:
        pass


class ILabReportRepository(ABC):
    @abstractmethod
    def list(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[LabReport]:
        pass

    @abstractmethod
    def create(self, lab_report: LabReport) -> LabReport:
        pass


class IInvoiceReader(ABC):
    """Interface for invoice read operations."""

    @abstractmethod
    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        pass

    @abstractmethod
    def list(
        self, patient_id: Optional[int] = None, company_id: Optional[int] = None
    ) -> List[Invoice]:
        pass

    @abstractmethod
    def count_for_company(self, company_id: int) -> int:
        pass


class IInvoiceWriter(ABC):
    """Interface for invoice write operations."""

    @abstractmethod
    def create(self, invoice: Invoice) -> Invoice:
        pass

    @abstractmethod
    def add_to_paid_amount(self, invoice_id: int, amount: Decimal) -> bool:
        """Atomically increment paid_amount.

        False when the invoice is missing or the total would exceed MAX_AMOUNT.
        """
        pass

    @abstractmethod
    def get_for_update(self, invoice_id: int) -> Optional[Invoice]:
        """Read an invoice, locking its row where the database supports it."""
        pass

    @abstractmethod
    def update_status(
        self, invoice_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Invoice]:
        """Set the status; None when missing or no longer ``expected_status``."""
        pass


class IInvoiceRepository(IInvoiceReader, IInvoiceWriter):
    """Complete invoice repository interface combining read/write operations."""

    pass


class IPaymentRepository(ABC):
    @abstractmethod
    def list(self, invoice_id: Optional[int] = None) -> List[Payment]:
        pass

    @abstractmethod
    def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    def sum_for_invoice(self, invoice_id: int) -> Decimal:
        pass


class IInvoiceSequenceRepository(ABC):
    """Per-company invoice counters."""

    @abstractmethod
    def increment(self, company_id: int) -> Optional[int]:
        """Reserve the next value. None when the company has no counter row."""
        pass

    @abstractmethod
    def create_counter(self, company_id: int, start: int = 0) -> bool:
        """Create the counter row. False when another writer created it first."""
        pass


class ICampaignRepository(ABC):
    @abstractmethod
    def get_by_id(self, campaign_id: int) -> Optional[Campaign]:
        pass

    @abstractmethod
    def list(self, company_id: Optional[int] = None) -> List[Campaign]:
        pass

    @abstractmethod
    def create(self, campaign: Campaign) -> Campaign:
        pass
