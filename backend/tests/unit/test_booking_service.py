"""
Unit tests for BookingService.

This module tests appointment booking rules:
- Successful booking starts in 'scheduled'
- Missing patient/doctor, in that order
- Patient and doctor from different companies
- Inactive doctor refusal
- Double-booking policy
- Status transitions
"""

from dataclasses import replace
from datetime import date
from unittest.mock import Mock

import pytest

from identsoft.core.exceptions import (
    AppointmentNotFoundError,
    InactivePractitionerError,
    InvalidStatusTransitionError,
    PatientNotFoundError,
    SchedulingConflictError,
    TenantMismatchError,
)
from identsoft.domain.entities import Appointment, Doctor, Patient
from identsoft.schemas.dtos import AppointmentCreateRequest, StatusChangeRequest
from identsoft.services.booking_service import BookingService
from identsoft.services.reference_validator import ReferenceValidator
from tests.factories.repository_factories import (
    AppointmentRepositoryFactory,
    create_mock_session,
)

PATIENT = Patient(id=10, company_id=1, first_name="Ana")
DOCTOR = Doctor(id=5, company_id=1, first_name="Meredith", is_active=True)


@pytest.fixture
def session():
    return create_mock_session()


@pytest.fixture
def appointment_repo():
    repo = AppointmentRepositoryFactory.create_mock_full()
    repo.create.side_effect = lambda appointment: replace(appointment, id=77)
    return repo


@pytest.fixture
def lookups():
    return {
        "patient": Mock(return_value=PATIENT),
        "doctor": Mock(return_value=DOCTOR),
    }


@pytest.fixture
def service(session, appointment_repo, lookups):
    return BookingService(session, appointment_repo, ReferenceValidator(lookups))


def booking_request(**overrides):
    data = dict(
        patient_id=10,
        doctor_id=5,
        appointment_date=date(2024, 3, 4),
        appointment_time="09:30",
    )
    data.update(overrides)
    return AppointmentCreateRequest(**data)


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.booking
class TestCreateAppointment:
    def test_create_appointment_success(self, service, session, appointment_repo):
        appointment = service.create_appointment(booking_request(notes="check-up"))

        assert appointment.id == 77
        assert appointment.status == "scheduled"
        assert appointment.appointment_time == "09:30"
        assert appointment.notes == "check-up"
        session.commit.assert_called_once()

    def test_patient_checked_before_doctor(self, service, lookups, appointment_repo):
        lookups["patient"].return_value = None
        lookups["doctor"].return_value = None

        with pytest.raises(PatientNotFoundError):
            service.create_appointment(booking_request())

        lookups["doctor"].assert_not_called()
        appointment_repo.create.assert_not_called()

    def test_patient_from_other_company_rejected(self, service, lookups, appointment_repo):
        lookups["patient"].return_value = replace(PATIENT, company_id=2)

        with pytest.raises(TenantMismatchError):
            service.create_appointment(booking_request())

        appointment_repo.create.assert_not_called()

    def test_inactive_doctor_rejected(self, service, session, lookups, appointment_repo):
        lookups["doctor"].return_value = replace(DOCTOR, is_active=False)

        with pytest.raises(InactivePractitionerError) as exc_info:
            service.create_appointment(booking_request())

        assert str(exc_info.value) == "Doctor with ID 5 is not active"
        assert exc_info.value.status_code == 409
        appointment_repo.create.assert_not_called()
        session.rollback.assert_called_once()

    def test_double_booking_allowed_by_default(self, service, appointment_repo):
        appointment_repo.find_active_in_slot.return_value = [
            Appointment(id=1, patient_id=11, doctor_id=5)
        ]

        service.create_appointment(booking_request())

        appointment_repo.find_active_in_slot.assert_not_called()
        appointment_repo.create.assert_called_once()

    def test_double_booking_rejected_under_reject_policy(
        self, service, appointment_repo, monkeypatch
    ):
        monkeypatch.setenv("BOOKING_CONFLICT_POLICY", "reject")
        appointment_repo.find_active_in_slot.return_value = [
            Appointment(id=1, patient_id=11, doctor_id=5)
        ]

        with pytest.raises(SchedulingConflictError):
            service.create_appointment(booking_request())

        appointment_repo.find_active_in_slot.assert_called_once_with(
            5, date(2024, 3, 4), "09:30"
        )
        appointment_repo.create.assert_not_called()

    def test_free_slot_under_reject_policy(self, service, appointment_repo, monkeypatch):
        monkeypatch.setenv("BOOKING_CONFLICT_POLICY", "reject")

        assert service.create_appointment(booking_request()).id == 77


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.booking
class TestAppointmentStatus:
    @pytest.fixture
    def existing(self, appointment_repo):
        def _set(status):
            current = Appointment(id=77, patient_id=10, doctor_id=5, status=status)
            appointment_repo.get_for_update.return_value = current
            appointment_repo.update_status.side_effect = (
                lambda appointment_id, new, expected_status=None: replace(
                    current, status=new
                )
            )

        return _set

    @pytest.mark.parametrize(
        "current,requested",
        [
            ("scheduled", "confirmed"),
            ("confirmed", "in_progress"),
            ("in_progress", "completed"),
            ("scheduled", "cancelled"),
        ],
    )
    def test_allowed_transitions(
        self, service, existing, appointment_repo, current, requested
    ):
        existing(current)

        updated = service.change_appointment_status(77, StatusChangeRequest(requested))

        assert updated.status == requested
        appointment_repo.update_status.assert_called_once_with(
            77, requested, expected_status=current
        )

    @pytest.mark.parametrize(
        "current,requested",
        [("completed", "scheduled"), ("cancelled", "confirmed"), ("scheduled", "completed")],
    )
    def test_forbidden_transitions(
        self, service, existing, appointment_repo, current, requested
    ):
        existing(current)

        with pytest.raises(InvalidStatusTransitionError):
            service.change_appointment_status(77, StatusChangeRequest(requested))

        appointment_repo.update_status.assert_not_called()

    def test_missing_appointment(self, service):
        with pytest.raises(AppointmentNotFoundError):
            service.change_appointment_status(404, StatusChangeRequest("confirmed"))

    def test_concurrent_change_is_rejected(self, service, existing, appointment_repo):
        existing("scheduled")
        appointment_repo.update_status.side_effect = None
        appointment_repo.update_status.return_value = None
        appointment_repo.get_by_id.return_value = Appointment(
            id=77, patient_id=10, doctor_id=5, status="cancelled"
        )

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            service.change_appointment_status(77, StatusChangeRequest("confirmed"))

        assert exc_info.value.current == "cancelled"
