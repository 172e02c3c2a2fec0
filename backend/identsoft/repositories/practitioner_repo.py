"""Doctor (practitioner) and schedule repositories."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..db.base import Doctor as DbDoctor
from ..db.base import DoctorSchedule as DbDoctorSchedule
from ..domain.entities import Doctor, DoctorSchedule
from ..domain.interfaces import IDoctorRepository, IDoctorScheduleRepository
from .filters import filtered_query


class DoctorRepository(IDoctorRepository):
    """Repository for Doctor persistence operations."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, doctor_id: int) -> Optional[Doctor]:
        db_doctor = self.db.get(DbDoctor, doctor_id)
        return self._to_domain(db_doctor) if db_doctor else None

    def list(
        self, company_id: Optional[int] = None, department_id: Optional[int] = None
    ) -> List[Doctor]:
        query = filtered_query(
            self.db, DbDoctor, company_id=company_id, department_id=department_id
        )
        return [self._to_domain(d) for d in query.all()]

    def create(self, doctor: Doctor) -> Doctor:
        db_doctor = DbDoctor(
            company_id=doctor.company_id,
            department_id=doctor.department_id,
            first_name=doctor.first_name,
            last_name=doctor.last_name,
            email=doctor.email,
            phone=doctor.phone,
            specialization=doctor.specialization,
            license_number=doctor.license_number,
            is_active=doctor.is_active,
        )
        self.db.add(db_doctor)
        self.db.flush()
        self.db.refresh(db_doctor)
        return self._to_domain(db_doctor)

    def set_active(self, doctor_id: int, is_active: bool) -> Optional[Doctor]:
        db_doctor = self.db.get(DbDoctor, doctor_id)
        if not db_doctor:
            return None
        db_doctor.is_active = is_active
        self.db.flush()
        return self._to_domain(db_doctor)

    def _to_domain(self, db_doctor: DbDoctor) -> Doctor:
        return Doctor(
            id=db_doctor.id,
            company_id=db_doctor.company_id,
            department_id=db_doctor.department_id,
            first_name=db_doctor.first_name,
            last_name=db_doctor.last_name,
            email=db_doctor.email,
            phone=db_doctor.phone,
            specialization=db_doctor.specialization,
            license_number=db_doctor.license_number,
            is_active=bool(db_doctor.is_active),
            created_at=db_doctor.created_at,
        )


class DoctorScheduleRepository(IDoctorScheduleRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list(self, doctor_id: int) -> List[DoctorSchedule]:
        query = filtered_query(self.db, DbDoctorSchedule, doctor_id=doctor_id)
        return [self._to_domain(s) for s in query.all()]

    def create(self, schedule: DoctorSchedule) -> DoctorSchedule:
        db_schedule = DbDoctorSchedule(
            doctor_id=schedule.doctor_id,
            day_of_week=schedule.day_of_week,
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            is_available=schedule.is_available,
        )
        self.db.add(db_schedule)
        self.db.flush()
        self.db.refresh(db_schedule)
        return self._to_domain(db_schedule)

    def _to_domain(self, db_schedule: DbDoctorSchedule) -> DoctorSchedule:
        return DoctorSchedule(
            id=db_schedule.id,
            doctor_id=db_schedule.doctor_id,
            day_of_week=db_schedule.day_of_week,
            start_time=db_schedule.start_time,
            end_time=db_schedule.end_time,
            is_available=bool(db_schedule.is_available),
            created_at=db_schedule.created_at,
        )
