"""
Booking service: appointment creation and status changes.

Business Rules:
- Patient and doctor must exist (checked in that order)
- The patient must belong to the doctor's company
- Inactive doctors cannot be booked
- With BOOKING_CONFLICT_POLICY=reject, a doctor cannot hold two
  non-cancelled appointments at the same date and time
- New appointments start as 'scheduled'
- Nothing is written when any rule fails
"""

import logging

from sqlalchemy.orm import Session

from ..core.config import (
    BOOKING_POLICY_REJECT,
    get_booking_conflict_policy,
    get_enforce_status_transitions,
)
from ..core.exceptions import (
    AppointmentNotFoundError,
    InactivePractitionerError,
    InvalidStatusTransitionError,
    SchedulingConflictError,
)
from ..db.session import unit_of_work
from ..domain.entities import APPOINTMENT_TRANSITIONS, Appointment, can_transition
from ..domain.interfaces import IAppointmentRepository
from ..repositories.appointment_repo import AppointmentRepository
from ..schemas.dtos import AppointmentCreateRequest, StatusChangeRequest
from .reference_validator import Reference, ReferenceValidator

logger = logging.getLogger(__name__)


class BookingService:
    """Application service for appointment use-cases."""

    def __init__(
        self,
        db: Session,
        appointment_repo: IAppointmentRepository,
        reference_validator: ReferenceValidator,
    ) -> None:
        self.db = db
        self.appointment_repo = appointment_repo
        self.reference_validator = reference_validator

    @classmethod
    def from_session(cls, db: Session) -> "BookingService":
        return cls(db, AppointmentRepository(db), ReferenceValidator.from_session(db))

    def create_appointment(self, request: AppointmentCreateRequest) -> Appointment:
        """Book a patient with a doctor.

        Raises:
            PatientNotFoundError / DoctorNotFoundError: missing reference
            TenantMismatchError: patient and doctor belong to different companies
            InactivePractitionerError: the doctor is not active
            SchedulingConflictError: slot taken and the policy rejects double booking
        """
        with unit_of_work(self.db):
            resolved = self.reference_validator.validate(
                [
                    Reference("patient", request.patient_id),
                    Reference("doctor", request.doctor_id),
                ]
            )
            patient, doctor = resolved["patient"], resolved["doctor"]
            self.reference_validator.check_owner("patient", patient, doctor.company_id)

            if not doctor.is_active:
                logger.info(
                    "Booking refused for inactive doctor",
                    extra={
                        "context": {
                            "doctor_id": doctor.id,
                            "patient_id": patient.id,
                        }
                    },
                )
                raise InactivePractitionerError(doctor.id)

            if get_booking_conflict_policy() == BOOKING_POLICY_REJECT:
                taken = self.appointment_repo.find_active_in_slot(
                    doctor.id, request.appointment_date, request.appointment_time
                )
                if taken:
                    raise SchedulingConflictError(
                        doctor.id,
                        f"{request.appointment_date.isoformat()} {request.appointment_time}",
                    )

            appointment = self.appointment_repo.create(
                Appointment(
                    patient_id=patient.id,
                    doctor_id=doctor.id,
                    appointment_date=request.appointment_date,
                    appointment_time=request.appointment_time,
                    status="scheduled",
                    notes=request.notes,
                )
            )

        logger.info(
            "Appointment created",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "doctor_id": appointment.doctor_id,
                    "patient_id": appointment.patient_id,
                    "date": appointment.appointment_date.isoformat(),
                    "time": appointment.appointment_time,
                }
            },
        )
        return appointment

    def change_appointment_status(
        self, appointment_id: int, request: StatusChangeRequest
    ) -> Appointment:
        """Move an appointment along its lifecycle.

        Raises:
            AppointmentNotFoundError: the appointment does not exist
            InvalidStatusTransitionError: the change is not allowed
        """
        with unit_of_work(self.db):
            current = self.appointment_repo.get_for_update(appointment_id)
            if current is None:
                raise AppointmentNotFoundError(appointment_id)
            enforce = get_enforce_status_transitions()
            if (
                enforce
                and current.status != request.status
                and not can_transition(APPOINTMENT_TRANSITIONS, current.status, request.status)
            ):
                raise InvalidStatusTransitionError(
                    "appointment", current.status, request.status
                )
            # Compare-and-set: a concurrent change since the read matches no row
            updated = self.appointment_repo.update_status(
                appointment_id,
                request.status,
                expected_status=current.status if enforce else None,
            )
            if updated is None:
                fresh = self.appointment_repo.get_by_id(appointment_id)
                if fresh is None:
                    raise AppointmentNotFoundError(appointment_id)
                raise InvalidStatusTransitionError(
                    "appointment", fresh.status, request.status
                )

        logger.info(
            "Appointment status changed",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "from": current.status,
                    "to": updated.status,
                }
            },
        )
        return updated
