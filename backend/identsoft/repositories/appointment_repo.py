"""Appointment repository implementation."""

from datetime import date
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..db.base import Appointment as DbAppointment
from ..domain.entities import Appointment
from ..domain.interfaces import IAppointmentRepository
from .filters import filtered_query


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        db_appointment = self.db.get(DbAppointment, appointment_id, populate_existing=True)
        return self._to_domain(db_appointment) if db_appointment else None

    def list(
        self, doctor_id: Optional[int] = None, patient_id: Optional[int] = None
    ) -> List[Appointment]:
        query = filtered_query(
            self.db, DbAppointment, doctor_id=doctor_id, patient_id=patient_id
        )
        return [self._to_domain(a) for a in query.all()]

    def find_active_in_slot(
        self, doctor_id: int, appointment_date: date, appointment_time: str
    ) -> List[Appointment]:
        query = filtered_query(
            self.db,
            DbAppointment,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
        ).filter(DbAppointment.status != "cancelled")
        return [self._to_domain(a) for a in query.all()]

    def create(self, appointment: Appointment) -> Appointment:
        db_appointment = DbAppointment(
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.appointment_time,
            status=appointment.status,
            notes=appointment.notes,
        )
        self.db.add(db_appointment)
        self.db.flush()
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def get_for_update(self, appointment_id: int) -> Optional[Appointment]:
        db_appointment = self.db.get(
            DbAppointment, appointment_id, populate_existing=True, with_for_update=True
        )
        return self._to_domain(db_appointment) if db_appointment else None

    def update_status(
        self, appointment_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Appointment]:
        stmt = update(DbAppointment).where(DbAppointment.id == appointment_id)
        if expected_status is not None:
            stmt = stmt.where(DbAppointment.status == expected_status)
        result = self.db.execute(
            stmt.values(status=status).execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        db_appointment = self.db.get(DbAppointment, appointment_id, populate_existing=True)
        return self._to_domain(db_appointment)

    def _to_domain(self, db_appointment: DbAppointment) -> Appointment:
        """Convert DB model to domain entity."""
        return Appointment(
            id=db_appointment.id,
            patient_id=db_appointment.patient_id,
            doctor_id=db_appointment.doctor_id,
            appointment_date=db_appointment.appointment_date,
            appointment_time=db_appointment.appointment_time,
            status=db_appointment.status,
            notes=db_appointment.notes,
            created_at=db_appointment.created_at,
        )
