"""
Registry service: companies, departments, doctors, schedules and patients.

Every record below the company is created only after the scope check
confirms the company exists and that any other referenced record belongs
to it.
"""

import logging

from sqlalchemy.orm import Session

from ..core.exceptions import DoctorNotFoundError
from ..db.session import unit_of_work
from ..domain.entities import Company, Department, Doctor, DoctorSchedule, Patient
from ..domain.interfaces import (
    ICompanyRepository,
    IDepartmentRepository,
    IDoctorRepository,
    IDoctorScheduleRepository,
    IPatientRepository,
)
from ..repositories.company_repo import CompanyRepository, DepartmentRepository
from ..repositories.patient_repo import PatientRepository
from ..repositories.practitioner_repo import DoctorRepository, DoctorScheduleRepository
from ..schemas.dtos import (
    CompanyCreateRequest,
    DepartmentCreateRequest,
    DoctorActiveRequest,
    DoctorCreateRequest,
    DoctorScheduleCreateRequest,
    PatientCreateRequest,
)
from .reference_validator import Reference, ReferenceValidator
from .sequence_allocator import SequenceAllocator

logger = logging.getLogger(__name__)


class RegistryService:
    """Application service for tenant and staff registration."""

    def __init__(
        self,
        db: Session,
        company_repo: ICompanyRepository,
        department_repo: IDepartmentRepository,
        doctor_repo: IDoctorRepository,
        schedule_repo: IDoctorScheduleRepository,
        patient_repo: IPatientRepository,
        reference_validator: ReferenceValidator,
        sequence_allocator: SequenceAllocator,
    ) -> None:
        self.db = db
        self.company_repo = company_repo
        self.department_repo = department_repo
        self.doctor_repo = doctor_repo
        self.schedule_repo = schedule_repo
        self.patient_repo = patient_repo
        self.reference_validator = reference_validator
        self.sequence_allocator = sequence_allocator

    @classmethod
    def from_session(cls, db: Session) -> "RegistryService":
        return cls(
            db,
            CompanyRepository(db),
            DepartmentRepository(db),
            DoctorRepository(db),
            DoctorScheduleRepository(db),
            PatientRepository(db),
            ReferenceValidator.from_session(db),
            SequenceAllocator.from_session(db),
        )

    def create_company(self, request: CompanyCreateRequest) -> Company:
        """Register a clinic together with its invoice counter."""
        with unit_of_work(self.db):
            company = self.company_repo.create(
                Company(
                    name=request.name,
                    address=request.address,
                    phone=request.phone,
                    email=request.email,
                    license_number=request.license_number,
                )
            )
            self.sequence_allocator.ensure_counter(company.id)

        logger.info(
            "Company created",
            extra={"context": {"company_id": company.id}},
        )
        return company

    def create_department(self, request: DepartmentCreateRequest) -> Department:
        with unit_of_work(self.db):
            self.reference_validator.require_tenant(request.company_id)
            department = self.department_repo.create(
                Department(
                    company_id=request.company_id,
                    name=request.name,
                    description=request.description,
                )
            )
        logger.info(
            "Department created",
            extra={
                "context": {
                    "department_id": department.id,
                    "company_id": department.company_id,
                }
            },
        )
        return department

    def create_doctor(self, request: DoctorCreateRequest) -> Doctor:
        """Register a practitioner in a department of the same company."""
        with unit_of_work(self.db):
            self.reference_validator.require_tenant(
                request.company_id, department_id=request.department_id
            )
            doctor = self.doctor_repo.create(
                Doctor(
                    company_id=request.company_id,
                    department_id=request.department_id,
                    first_name=request.first_name,
                    last_name=request.last_name,
                    email=request.email,
                    phone=request.phone,
                    specialization=request.specialization,
                    license_number=request.license_number,
                    is_active=request.is_active,
                )
            )
        logger.info(
            "Doctor created",
            extra={
                "context": {
                    "doctor_id": doctor.id,
                    "company_id": doctor.company_id,
                    "is_active": doctor.is_active,
                }
            },
        )
        return doctor

    def set_doctor_active(self, doctor_id: int, request: DoctorActiveRequest) -> Doctor:
        """Activate or deactivate a practitioner."""
        with unit_of_work(self.db):
            doctor = self.doctor_repo.set_active(doctor_id, request.is_active)
            if doctor is None:
                raise DoctorNotFoundError(doctor_id)
        logger.info(
            "Doctor activation changed",
            extra={"context": {"doctor_id": doctor_id, "is_active": doctor.is_active}},
        )
        return doctor

    def create_doctor_schedule(self, request: DoctorScheduleCreateRequest) -> DoctorSchedule:
        with unit_of_work(self.db):
            self.reference_validator.validate([Reference("doctor", request.doctor_id)])
            schedule = self.schedule_repo.create(
                DoctorSchedule(
                    doctor_id=request.doctor_id,
                    day_of_week=request.day_of_week,
                    start_time=request.start_time,
                    end_time=request.end_time,
                    is_available=request.is_available,
                )
            )
        return schedule

    def create_patient(self, request: PatientCreateRequest) -> Patient:
        with unit_of_work(self.db):
            self.reference_validator.require_tenant(request.company_id)
            patient = self.patient_repo.create(
                Patient(
                    company_id=request.company_id,
                    first_name=request.first_name,
                    last_name=request.last_name,
                    email=request.email,
                    phone=request.phone,
                    date_of_birth=request.date_of_birth,
                    address=request.address,
                    insurance_number=request.insurance_number,
                    emergency_contact=request.emergency_contact,
                )
            )
        logger.info(
            "Patient registered",
            extra={
                "context": {"patient_id": patient.id, "company_id": patient.company_id}
            },
        )
        return patient
