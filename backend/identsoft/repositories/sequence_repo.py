"""Per-company invoice counter storage.

``increment`` is one UPDATE evaluated by the database. On PostgreSQL it
takes a row lock on the company's counter; on SQLite it takes the database
write lock. Either way the lock is held until the caller's transaction ends,
so two transactions can never reserve the same value.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.base import InvoiceSequence
from ..domain.interfaces import IInvoiceSequenceRepository

logger = logging.getLogger(__name__)


class InvoiceSequenceRepository(IInvoiceSequenceRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def increment(self, company_id: int) -> Optional[int]:
        result = self.db.execute(
            update(InvoiceSequence)
            .where(InvoiceSequence.company_id == company_id)
            .values(last_value=InvoiceSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.db.execute(
            select(InvoiceSequence.last_value).where(
                InvoiceSequence.company_id == company_id
            )
        ).scalar_one()

    def create_counter(self, company_id: int, start: int = 0) -> bool:
        try:
            with self.db.begin_nested():
                self.db.add(InvoiceSequence(company_id=company_id, last_value=start))
        except IntegrityError:
            logger.info(
                "Invoice counter already created by a concurrent writer",
                extra={"context": {"company_id": company_id}},
            )
            return False
        return True
