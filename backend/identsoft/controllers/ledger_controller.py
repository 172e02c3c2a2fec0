"""
Ledger controller: invoices and payments over JSON.

Controllers handle HTTP concerns only: parse the request into a DTO, call
the service, wrap the result with ``api_response``. Domain errors propagate
to the handlers registered in ``core.api_utils``.
"""

from flask import Blueprint, request

from ..core.api_utils import api_response, get_json_body
from ..core.limiter_config import limiter
from ..db.session import SessionLocal
from ..schemas.dtos import (
    InvoiceCreateRequest,
    PaymentCreateRequest,
    StatusChangeRequest,
    parse_filters,
    to_json_dict,
)
from ..services.ledger_service import LedgerService
from ..services.query_service import QueryService

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api")


@ledger_bp.route("/invoices", methods=["POST"])
@limiter.limit("60 per minute")
def create_invoice():
    """Create an invoice numbered from the company's sequence."""
    invoice_request = InvoiceCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        invoice = LedgerService.from_session(db).create_invoice(invoice_request)
        return api_response(True, "Invoice created", to_json_dict(invoice), 201)
    finally:
        db.close()


@ledger_bp.route("/invoices", methods=["GET"])
def list_invoices():
    """List invoices, optionally filtered by patient_id and/or company_id."""
    filters = parse_filters(request.args, "patient_id", "company_id")
    db = SessionLocal()
    try:
        invoices = QueryService(db).list_invoices(**filters)
        return api_response(
            True, "Invoices retrieved", [to_json_dict(i) for i in invoices], 200
        )
    finally:
        db.close()


@ledger_bp.route("/invoices/<int:invoice_id>", methods=["GET"])
def get_invoice(invoice_id: int):
    db = SessionLocal()
    try:
        invoice = QueryService(db).get_invoice(invoice_id)
        return api_response(True, "Invoice found", to_json_dict(invoice), 200)
    finally:
        db.close()


@ledger_bp.route("/invoices/<int:invoice_id>/status", methods=["PATCH"])
@limiter.limit("60 per minute")
def change_invoice_status(invoice_id: int):
    status_request = StatusChangeRequest.for_invoice(get_json_body())
    db = SessionLocal()
    try:
        invoice = LedgerService.from_session(db).change_invoice_status(
            invoice_id, status_request
        )
        return api_response(True, "Invoice status updated", to_json_dict(invoice), 200)
    finally:
        db.close()


@ledger_bp.route("/payments", methods=["POST"])
@limiter.limit("60 per minute")
def record_payment():
    """Record a payment and increase the invoice's paid amount atomically."""
    payment_request = PaymentCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        payment = LedgerService.from_session(db).record_payment(payment_request)
        return api_response(True, "Payment recorded", to_json_dict(payment), 201)
    finally:
        db.close()


@ledger_bp.route("/payments", methods=["GET"])
def list_payments():
    filters = parse_filters(request.args, "invoice_id")
    db = SessionLocal()
    try:
        payments = QueryService(db).list_payments(**filters)
        return api_response(
            True, "Payments retrieved", [to_json_dict(p) for p in payments], 200
        )
    finally:
        db.close()
