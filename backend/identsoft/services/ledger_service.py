"""
Ledger service: invoices and payments.

Business rules:
- An invoice gets the next number of its company's sequence, starts with
  paid_amount 0 and status 'draft'.
- The invoice's patient must belong to the invoicing company.
- Recording a payment inserts the payment and increments the invoice's
  paid_amount in one transaction: both persist or neither does. The
  increment is evaluated by the database, so concurrent payments on the
  same invoice serialize instead of losing updates.
- Payments never change the invoice status and are not capped by the
  invoice total; an over-payment is accepted and logged. paid_amount itself
  can never exceed MAX_AMOUNT, the largest value its column holds.
- After a payment, paid_amount must equal the sum of the invoice's
  payments; a mismatch is logged as an error.
- Status changes are compare-and-set against the status that was read, so
  two concurrent changes cannot both pass the transition guard.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import get_enforce_status_transitions
from ..core.exceptions import (
    InvalidAmountError,
    InvalidInputError,
    InvalidStatusTransitionError,
    InvoiceNotFoundError,
)
from ..core.validation import MAX_AMOUNT
from ..db.session import unit_of_work
from ..domain.entities import (
    INVOICE_TRANSITIONS,
    PAYMENT_METHODS,
    Invoice,
    Payment,
    can_transition,
)
from ..domain.interfaces import IInvoiceRepository, IPaymentRepository
from ..repositories.invoice_repo import InvoiceRepository, PaymentRepository
from ..schemas.dtos import (
    InvoiceCreateRequest,
    PaymentCreateRequest,
    StatusChangeRequest,
)
from .reference_validator import Reference, ReferenceValidator
from .sequence_allocator import SequenceAllocator

logger = logging.getLogger(__name__)


def _require_valid_amount(amount: Optional[Decimal], field: str) -> None:
    if amount is None or amount <= 0:
        raise InvalidAmountError(f"{field}: must be greater than 0", field)
    if amount > MAX_AMOUNT:
        raise InvalidAmountError(f"{field}: must be at most {MAX_AMOUNT}", field)


class LedgerService:
    """Application service for invoice and payment use-cases."""

    def __init__(
        self,
        db: Session,
        invoice_repo: IInvoiceRepository,
        payment_repo: IPaymentRepository,
        reference_validator: ReferenceValidator,
        sequence_allocator: SequenceAllocator,
    ) -> None:
        self.db = db
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.reference_validator = reference_validator
        self.sequence_allocator = sequence_allocator

    @classmethod
    def from_session(cls, db: Session) -> "LedgerService":
        return cls(
            db,
            InvoiceRepository(db),
            PaymentRepository(db),
            ReferenceValidator.from_session(db),
            SequenceAllocator.from_session(db),
        )

    def create_invoice(self, request: InvoiceCreateRequest) -> Invoice:
        """Bill a patient of a company.

        Raises:
            InvalidAmountError: total_amount is not > 0 (before any store access)
            CompanyNotFoundError / PatientNotFoundError: missing reference
            TenantMismatchError: the patient belongs to another company
        """
        _require_valid_amount(request.total_amount, "total_amount")

        with unit_of_work(self.db):
            self.reference_validator.require_tenant(
                request.company_id, patient_id=request.patient_id
            )
            invoice_number = self.sequence_allocator.next_invoice_number(
                request.company_id
            )
            invoice = self.invoice_repo.create(
                Invoice(
                    patient_id=request.patient_id,
                    company_id=request.company_id,
                    invoice_number=invoice_number,
                    total_amount=request.total_amount,
                    paid_amount=Decimal("0.00"),
                    status="draft",
                    due_date=request.due_date,
                    notes=request.notes,
                )
            )

        logger.info(
            "Invoice created",
            extra={
                "context": {
                    "invoice_id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                    "company_id": invoice.company_id,
                    "patient_id": invoice.patient_id,
                    "total_amount": str(invoice.total_amount),
                }
            },
        )
        return invoice

    def record_payment(self, request: PaymentCreateRequest) -> Payment:
        """Apply a payment to an invoice.

        Not idempotent: recording the same request twice applies it twice.

        Raises:
            InvalidAmountError: amount is not > 0 or above MAX_AMOUNT (before any
                store access), or paid_amount would exceed MAX_AMOUNT
            InvalidInputError: unknown payment method
            InvoiceNotFoundError: the invoice does not exist
            StoreError: the transaction failed; nothing was written
        """
        _require_valid_amount(request.amount, "amount")
        if request.payment_method not in PAYMENT_METHODS:
            raise InvalidInputError(
                f"payment_method: must be one of {', '.join(PAYMENT_METHODS)}",
                "payment_method",
            )

        with unit_of_work(self.db):
            self.reference_validator.validate([Reference("invoice", request.invoice_id)])
            if not self.invoice_repo.add_to_paid_amount(
                request.invoice_id, request.amount
            ):
                if self.invoice_repo.get_by_id(request.invoice_id) is None:
                    raise InvoiceNotFoundError(request.invoice_id)
                raise InvalidAmountError(
                    f"amount: paid amount would exceed {MAX_AMOUNT}", "amount"
                )
            payment = self.payment_repo.create(
                Payment(
                    invoice_id=request.invoice_id,
                    amount=request.amount,
                    payment_method=request.payment_method,
                    payment_date=request.payment_date,
                    reference_number=request.reference_number,
                    notes=request.notes,
                )
            )
            # Read back under the same lock the increment took
            invoice = self.invoice_repo.get_by_id(request.invoice_id)
            payments_total = self.payment_repo.sum_for_invoice(request.invoice_id)

        context = {
            "invoice_id": request.invoice_id,
            "payment_id": payment.id,
            "amount": str(payment.amount),
            "method": payment.payment_method,
        }
        if invoice is not None:
            context["paid_amount"] = str(invoice.paid_amount)
            context["payments_total"] = str(payments_total)
            if invoice.paid_amount != payments_total:
                logger.error("Ledger balance mismatch", extra={"context": context})
            if invoice.paid_amount > invoice.total_amount:
                logger.warning(
                    "Invoice over-paid",
                    extra={
                        "context": {
                            **context,
                            "total_amount": str(invoice.total_amount),
                        }
                    },
                )
        logger.info("Payment recorded", extra={"context": context})
        return payment

    def change_invoice_status(
        self, invoice_id: int, request: StatusChangeRequest
    ) -> Invoice:
        """Move an invoice to a new status.

        Raises:
            InvoiceNotFoundError: the invoice does not exist
            InvalidStatusTransitionError: the change is not allowed
        """
        with unit_of_work(self.db):
            invoice = self.invoice_repo.get_for_update(invoice_id)
            if invoice is None:
                raise InvoiceNotFoundError(invoice_id)
            enforce = get_enforce_status_transitions()
            if (
                enforce
                and invoice.status != request.status
                and not can_transition(INVOICE_TRANSITIONS, invoice.status, request.status)
            ):
                raise InvalidStatusTransitionError("invoice", invoice.status, request.status)
            # Compare-and-set: a concurrent change since the read matches no row
            updated = self.invoice_repo.update_status(
                invoice_id,
                request.status,
                expected_status=invoice.status if enforce else None,
            )
            if updated is None:
                fresh = self.invoice_repo.get_by_id(invoice_id)
                if fresh is None:
                    raise InvoiceNotFoundError(invoice_id)
                raise InvalidStatusTransitionError("invoice", fresh.status, request.status)

        logger.info(
            "Invoice status changed",
            extra={
                "context": {
                    "invoice_id": invoice_id,
                    "from": invoice.status,
                    "to": updated.status,
                }
            },
        )
        return updated
