"""Clinical records controller: case studies, prescriptions and lab reports."""

from flask import Blueprint, request

from ..core.api_utils import api_response, get_json_body
from ..core.limiter_config import limiter
from ..db.session import SessionLocal
from ..schemas.dtos import (
    CaseStudyCreateRequest,
    LabReportCreateRequest,
    PrescriptionCreateRequest,
    parse_filters,
    to_json_dict,
)
from ..services.clinical_service import ClinicalService
from ..services.query_service import QueryService

clinical_bp = Blueprint("clinical", __name__, url_prefix="/api")


@clinical_bp.route("/case-studies", methods=["POST"])
@limiter.limit("60 per minute")
def create_case_study():
    case_request = CaseStudyCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        case_study = ClinicalService.from_session(db).create_case_study(case_request)
        return api_response(True, "Case study created", to_json_dict(case_study), 201)
    finally:
        db.close()


@clinical_bp.route("/case-studies", methods=["GET"])
def list_case_studies():
    filters = parse_filters(request.args, "patient_id", "doctor_id")
    db = SessionLocal()
    try:
        case_studies = QueryService(db).list_case_studies(**filters)
        return api_response(
            True, "Case studies retrieved", [to_json_dict(c) for c in case_studies], 200
        )
    finally:
        db.close()


@clinical_bp.route("/prescriptions", methods=["POST"])
@limiter.limit("60 per minute")
def create_prescription():
    prescription_request = PrescriptionCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        prescription = ClinicalService.from_session(db).create_prescription(
            prescription_request
        )
        return api_response(
            True, "Prescription created", to_json_dict(prescription), 201
        )
    finally:
        db.close()


@clinical_bp.route("/prescriptions", methods=["GET"])
def list_prescriptions():
    filters = parse_filters(request.args, "patient_id", "doctor_id")
    db = SessionLocal()
    try:
        prescriptions = QueryService(db).list_prescriptions(**filters)
        return api_response(
            True,
            "Prescriptions retrieved",
            [to_json_dict(p) for p in prescriptions],
            200,
        )
    finally:
        db.close()


@clinical_bp.route("/lab-reports", methods=["POST"])
@limiter.limit("60 per minute")
def create_lab_report():
    report_request = LabReportCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        lab_report = ClinicalService.from_session(db).create_lab_report(report_request)
        return api_response(True, "Lab report created", to_json_dict(lab_report), 201)
    finally:
        db.close()


@clinical_bp.route("/lab-reports", methods=["GET"])
def list_lab_reports():
    filters = parse_filters(request.args, "patient_id", "doctor_id")
    db = SessionLocal()
    try:
        lab_reports = QueryService(db).list_lab_reports(**filters)
        return api_response(
            True, "Lab reports retrieved", [to_json_dict(r) for r in lab_reports], 200
        )
    finally:
        db.close()
