"""
Per-company invoice numbering.

Numbers look like ``INV-{company_id}-{sequence}`` with the sequence
zero-padded to four digits (longer sequences are kept whole). Values come
from the company's counter row and are reserved inside the caller's
transaction, so a rolled-back invoice also releases its number.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import get_invoice_number_padding
from ..core.exceptions import StoreError
from ..domain.interfaces import IInvoiceReader, IInvoiceSequenceRepository
from ..repositories.invoice_repo import InvoiceRepository
from ..repositories.sequence_repo import InvoiceSequenceRepository

logger = logging.getLogger(__name__)


def format_invoice_number(company_id: int, sequence: int, padding: int = 4) -> str:
    return f"INV-{company_id}-{sequence:0{padding}d}"


class SequenceAllocator:
    """Hands out unique, increasing invoice numbers per company."""

    def __init__(
        self,
        sequence_repo: IInvoiceSequenceRepository,
        invoice_repo: IInvoiceReader,
        padding: Optional[int] = None,
    ) -> None:
        self.sequence_repo = sequence_repo
        self.invoice_repo = invoice_repo
        self.padding = padding

    @classmethod
    def from_session(cls, db: Session) -> "SequenceAllocator":
        return cls(InvoiceSequenceRepository(db), InvoiceRepository(db))

    def ensure_counter(self, company_id: int) -> None:
        """Create the company's counter starting at zero (called with the
        company's own insert)."""
        self.sequence_repo.create_counter(company_id, start=0)

    def next_value(self, company_id: int) -> int:
        value = self.sequence_repo.increment(company_id)
        if value is not None:
            return value

        # Company without a counter row: seed it from the invoices it
        # already has. A concurrent creator may win; either way the retry
        # below increments the single surviving row.
        existing = self.invoice_repo.count_for_company(company_id)
        created = self.sequence_repo.create_counter(company_id, start=existing)
        logger.warning(
            "Invoice counter initialized lazily",
            extra={
                "context": {
                    "company_id": company_id,
                    "seed": existing,
                    "created": created,
                }
            },
        )
        value = self.sequence_repo.increment(company_id)
        if value is None:
            raise StoreError(f"Invoice counter unavailable for company {company_id}")
        return value

    def next_invoice_number(self, company_id: int) -> str:
        """Reserve and format the company's next invoice number.

        Must run inside the transaction that inserts the invoice.
        """
        padding = self.padding or get_invoice_number_padding()
        return format_invoice_number(company_id, self.next_value(company_id), padding)
