"""Registry controller: companies, departments, doctors, schedules, patients."""

from flask import Blueprint, request

from ..core.api_utils import api_response, get_json_body
from ..core.limiter_config import limiter
from ..db.session import SessionLocal
from ..schemas.dtos import (
    CompanyCreateRequest,
    DepartmentCreateRequest,
    DoctorActiveRequest,
    DoctorCreateRequest,
    DoctorScheduleCreateRequest,
    PatientCreateRequest,
    parse_filters,
    to_json_dict,
)
from ..services.query_service import QueryService
from ..services.registry_service import RegistryService

registry_bp = Blueprint("registry", __name__, url_prefix="/api")


@registry_bp.route("/companies", methods=["POST"])
@limiter.limit("30 per minute")
def create_company():
    company_request = CompanyCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        company = RegistryService.from_session(db).create_company(company_request)
        return api_response(True, "Company created", to_json_dict(company), 201)
    finally:
        db.close()


@registry_bp.route("/companies", methods=["GET"])
def list_companies():
    db = SessionLocal()
    try:
        companies = QueryService(db).list_companies()
        return api_response(
            True, "Companies retrieved", [to_json_dict(c) for c in companies], 200
        )
    finally:
        db.close()


@registry_bp.route("/departments", methods=["POST"])
@limiter.limit("30 per minute")
def create_department():
    department_request = DepartmentCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        department = RegistryService.from_session(db).create_department(
            department_request
        )
        return api_response(True, "Department created", to_json_dict(department), 201)
    finally:
        db.close()


@registry_bp.route("/departments", methods=["GET"])
def list_departments():
    filters = parse_filters(request.args, "company_id")
    db = SessionLocal()
    try:
        departments = QueryService(db).list_departments(**filters)
        return api_response(
            True, "Departments retrieved", [to_json_dict(d) for d in departments], 200
        )
    finally:
        db.close()


@registry_bp.route("/doctors", methods=["POST"])
@limiter.limit("30 per minute")
def create_doctor():
    doctor_request = DoctorCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        doctor = RegistryService.from_session(db).create_doctor(doctor_request)
        return api_response(True, "Doctor created", to_json_dict(doctor), 201)
    finally:
        db.close()


@registry_bp.route("/doctors", methods=["GET"])
def list_doctors():
    filters = parse_filters(request.args, "company_id", "department_id")
    db = SessionLocal()
    try:
        doctors = QueryService(db).list_doctors(**filters)
        return api_response(
            True, "Doctors retrieved", [to_json_dict(d) for d in doctors], 200
        )
    finally:
        db.close()


@registry_bp.route("/doctors/<int:doctor_id>/active", methods=["PATCH"])
@limiter.limit("30 per minute")
def set_doctor_active(doctor_id: int):
    """Activate or deactivate a doctor. Body: {"is_active": bool}."""
    active_request = DoctorActiveRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        doctor = RegistryService.from_session(db).set_doctor_active(
            doctor_id, active_request
        )
        return api_response(True, "Doctor updated", to_json_dict(doctor), 200)
    finally:
        db.close()


@registry_bp.route("/doctor-schedules", methods=["POST"])
@limiter.limit("30 per minute")
def create_doctor_schedule():
    schedule_request = DoctorScheduleCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        schedule = RegistryService.from_session(db).create_doctor_schedule(
            schedule_request
        )
        return api_response(True, "Schedule created", to_json_dict(schedule), 201)
    finally:
        db.close()


@registry_bp.route("/doctor-schedules", methods=["GET"])
def list_doctor_schedules():
    """List a doctor's weekly schedule. doctor_id is required."""
    filters = parse_filters(request.args, "doctor_id", required=("doctor_id",))
    db = SessionLocal()
    try:
        schedules = QueryService(db).list_doctor_schedules(**filters)
        return api_response(
            True, "Schedules retrieved", [to_json_dict(s) for s in schedules], 200
        )
    finally:
        db.close()


@registry_bp.route("/patients", methods=["POST"])
@limiter.limit("60 per minute")
def create_patient():
    patient_request = PatientCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        patient = RegistryService.from_session(db).create_patient(patient_request)
        return api_response(True, "Patient registered", to_json_dict(patient), 201)
    finally:
        db.close()


@registry_bp.route("/patients", methods=["GET"])
def list_patients():
    filters = parse_filters(request.args, "company_id")
    db = SessionLocal()
    try:
        patients = QueryService(db).list_patients(**filters)
        return api_response(
            True, "Patients retrieved", [to_json_dict(p) for p in patients], 200
        )
    finally:
        db.close()
