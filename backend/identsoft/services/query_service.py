"""
Query service: read-only listings for every entity.

Optional filters combine with AND; a filter left as None is ignored. Results
come back ordered by id, and an empty list means nothing matched.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import InvalidInputError, InvoiceNotFoundError
from ..domain.entities import (
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
from ..repositories.appointment_repo import AppointmentRepository
from ..repositories.campaign_repo import CampaignRepository
from ..repositories.clinical_repo import (
    CaseStudyRepository,
    LabReportRepository,
    PrescriptionRepository,
)
from ..repositories.company_repo import CompanyRepository, DepartmentRepository
from ..repositories.invoice_repo import InvoiceRepository, PaymentRepository
from ..repositories.patient_repo import PatientRepository
from ..repositories.practitioner_repo import DoctorRepository, DoctorScheduleRepository


class QueryService:
    """Filtered read access over the repositories."""

    def __init__(self, db: Session) -> None:
        self.companies = CompanyRepository(db)
        self.departments = DepartmentRepository(db)
        self.doctors = DoctorRepository(db)
        self.schedules = DoctorScheduleRepository(db)
        self.patients = PatientRepository(db)
        self.appointments = AppointmentRepository(db)
        self.case_studies = CaseStudyRepository(db)
        self.prescriptions = PrescriptionRepository(db)
        self.lab_reports = LabReportRepository(db)
        self.invoices = InvoiceRepository(db)
        self.payments = PaymentRepository(db)
        self.campaigns = CampaignRepository(db)

    def list_companies(self) -> List[Company]:
        return self.companies.list()

    def list_departments(self, company_id: Optional[int] = None) -> List[Department]:
        return self.departments.list(company_id=company_id)

    def list_doctors(
        self, company_id: Optional[int] = None, department_id: Optional[int] = None
    ) -> List[Doctor]:
        return self.doctors.list(company_id=company_id, department_id=department_id)

    def list_doctor_schedules(self, doctor_id: Optional[int]) -> List[DoctorSchedule]:
        if doctor_id is None:
            raise InvalidInputError("doctor_id: is required", "doctor_id")
        return self.schedules.list(doctor_id=doctor_id)

    def list_patients(self, company_id: Optional[int] = None) -> List[Patient]:
        return self.patients.list(company_id=company_id)

    def list_appointments(
        self, doctor_id: Optional[int] = None, patient_id: Optional[int] = None
    ) -> List[Appointment]:
        return self.appointments.list(doctor_id=doctor_id, patient_id=patient_id)

    def list_case_studies(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[CaseStudy]:
        return self.case_studies.list(patient_id=patient_id, doctor_id=doctor_id)

    def list_prescriptions(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[Prescription]:
        return self.prescriptions.list(patient_id=patient_id, doctor_id=doctor_id)

    def list_lab_reports(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[LabReport]:
        return self.lab_reports.list(patient_id=patient_id, doctor_id=doctor_id)

    def list_invoices(
        self, patient_id: Optional[int] = None, company_id: Optional[int] = None
    ) -> List[Invoice]:
        return self.invoices.list(patient_id=patient_id, company_id=company_id)

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.invoices.get_by_id(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def list_payments(self, invoice_id: Optional[int] = None) -> List[Payment]:
        return self.payments.list(invoice_id=invoice_id)

    def list_campaigns(self, company_id: Optional[int] = None) -> List[Campaign]:
        return self.campaigns.list(company_id=company_id)
