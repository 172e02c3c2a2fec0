"""Invoice and payment repositories.

``paid_amount`` is only ever changed through ``add_to_paid_amount``, a single
UPDATE evaluated by the database, so concurrent payments never overwrite
each other's increments.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..core.validation import MAX_AMOUNT
from ..db.base import Invoice as DbInvoice
from ..db.base import Payment as DbPayment
from ..domain.entities import Invoice, Payment
from ..domain.interfaces import IInvoiceRepository, IPaymentRepository
from .filters import filtered_query, to_money


class InvoiceRepository(IInvoiceRepository):
    """Repository for Invoice persistence operations."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        # populate_existing: paid_amount may have changed through SQL updates
        db_invoice = self.db.get(DbInvoice, invoice_id, populate_existing=True)
        return self._to_domain(db_invoice) if db_invoice else None

    def list(
        self, patient_id: Optional[int] = None, company_id: Optional[int] = None
    ) -> List[Invoice]:
        query = filtered_query(
            self.db, DbInvoice, patient_id=patient_id, company_id=company_id
        ).populate_existing()
        return [self._to_domain(i) for i in query.all()]

    def count_for_company(self, company_id: int) -> int:
        return self.db.execute(
            select(func.count(DbInvoice.id)).where(DbInvoice.company_id == company_id)
        ).scalar_one()

    def create(self, invoice: Invoice) -> Invoice:
        db_invoice = DbInvoice(
            patient_id=invoice.patient_id,
            company_id=invoice.company_id,
            invoice_number=invoice.invoice_number,
            total_amount=invoice.total_amount,
            paid_amount=invoice.paid_amount,
            status=invoice.status,
            due_date=invoice.due_date,
            notes=invoice.notes,
        )
        self.db.add(db_invoice)
        self.db.flush()
        self.db.refresh(db_invoice)
        return self._to_domain(db_invoice)

    def get_for_update(self, invoice_id: int) -> Optional[Invoice]:
        db_invoice = self.db.get(
            DbInvoice, invoice_id, populate_existing=True, with_for_update=True
        )
        return self._to_domain(db_invoice) if db_invoice else None

    def add_to_paid_amount(self, invoice_id: int, amount: Decimal) -> bool:
        """Add ``amount`` to ``paid_amount`` unless the sum would not fit the column.

        Returns False when no row was updated: the invoice is missing or the
        new total would exceed MAX_AMOUNT.
        """
        result = self.db.execute(
            update(DbInvoice)
            .where(DbInvoice.id == invoice_id)
            .where(DbInvoice.paid_amount + amount <= MAX_AMOUNT)
            .values(paid_amount=DbInvoice.paid_amount + amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def update_status(
        self, invoice_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Invoice]:
        """Set the status, only if it still equals ``expected_status`` when given.

        Returns None when no row matched.
        """
        stmt = update(DbInvoice).where(DbInvoice.id == invoice_id)
        if expected_status is not None:
            stmt = stmt.where(DbInvoice.status == expected_status)
        result = self.db.execute(
            stmt.values(status=status).execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return self.get_by_id(invoice_id)

    def _to_domain(self, db_invoice: DbInvoice) -> Invoice:
        """Convert DB model to domain entity with normalized money values."""
        return Invoice(
            id=db_invoice.id,
            patient_id=db_invoice.patient_id,
            company_id=db_invoice.company_id,
            invoice_number=db_invoice.invoice_number,
            total_amount=to_money(db_invoice.total_amount),
            paid_amount=to_money(db_invoice.paid_amount),
            status=db_invoice.status,
            due_date=db_invoice.due_date,
            notes=db_invoice.notes,
            created_at=db_invoice.created_at,
        )


class PaymentRepository(IPaymentRepository):
    """Repository for Payment persistence operations."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list(self, invoice_id: Optional[int] = None) -> List[Payment]:
        query = filtered_query(self.db, DbPayment, invoice_id=invoice_id)
        return [self._to_domain(p) for p in query.all()]

    def create(self, payment: Payment) -> Payment:
        db_payment = DbPayment(
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            payment_method=payment.payment_method,
            payment_date=payment.payment_date,
            reference_number=payment.reference_number,
            notes=payment.notes,
        )
        self.db.add(db_payment)
        self.db.flush()
        self.db.refresh(db_payment)
        return self._to_domain(db_payment)

    def sum_for_invoice(self, invoice_id: int) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(DbPayment.amount), 0)).where(
                DbPayment.invoice_id == invoice_id
            )
        ).scalar_one()
        return to_money(total)

    def _to_domain(self, db_payment: DbPayment) -> Payment:
        return Payment(
            id=db_payment.id,
            invoice_id=db_payment.invoice_id,
            amount=to_money(db_payment.amount),
            payment_method=db_payment.payment_method,
            payment_date=db_payment.payment_date,
            reference_number=db_payment.reference_number,
            notes=db_payment.notes,
            created_at=db_payment.created_at,
        )
