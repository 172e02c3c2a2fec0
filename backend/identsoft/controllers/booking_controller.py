"""Booking controller: appointment endpoints."""

from flask import Blueprint, request

from ..core.api_utils import api_response, get_json_body
from ..core.limiter_config import limiter
from ..db.session import SessionLocal
from ..schemas.dtos import (
    AppointmentCreateRequest,
    StatusChangeRequest,
    parse_filters,
    to_json_dict,
)
from ..services.booking_service import BookingService
from ..services.query_service import QueryService

booking_bp = Blueprint("booking", __name__, url_prefix="/api")


@booking_bp.route("/appointments", methods=["POST"])
@limiter.limit("60 per minute")
def create_appointment():
    """Book an appointment with an active doctor of the patient's company."""
    appointment_request = AppointmentCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        appointment = BookingService.from_session(db).create_appointment(
            appointment_request
        )
        return api_response(True, "Appointment created", to_json_dict(appointment), 201)
    finally:
        db.close()


@booking_bp.route("/appointments", methods=["GET"])
def list_appointments():
    filters = parse_filters(request.args, "doctor_id", "patient_id")
    db = SessionLocal()
    try:
        appointments = QueryService(db).list_appointments(**filters)
        return api_response(
            True,
            "Appointments retrieved",
            [to_json_dict(a) for a in appointments],
            200,
        )
    finally:
        db.close()


@booking_bp.route("/appointments/<int:appointment_id>/status", methods=["PATCH"])
@limiter.limit("60 per minute")
def change_appointment_status(appointment_id: int):
    status_request = StatusChangeRequest.for_appointment(get_json_body())
    db = SessionLocal()
    try:
        appointment = BookingService.from_session(db).change_appointment_status(
            appointment_id, status_request
        )
        return api_response(
            True, "Appointment status updated", to_json_dict(appointment), 200
        )
    finally:
        db.close()
