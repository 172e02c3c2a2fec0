"""
Reference validation shared by every mutating use-case.

Before a booking, a bill or any other tenant-scoped record is written, each
foreign key it carries is resolved: the referenced row must exist and, when
an expected owner is given, must belong to that owner. Lookups are read-only
and uncached, so validation can be repeated safely.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple, Type

from sqlalchemy.orm import Session

from ..core.exceptions import (
    CampaignNotFoundError,
    CaseStudyNotFoundError,
    CompanyNotFoundError,
    DepartmentNotFoundError,
    DoctorNotFoundError,
    InvoiceNotFoundError,
    NotFoundError,
    OwnershipMismatchError,
    PatientNotFoundError,
    TenantMismatchError,
)
from ..repositories.campaign_repo import CampaignRepository
from ..repositories.clinical_repo import CaseStudyRepository
from ..repositories.company_repo import CompanyRepository, DepartmentRepository
from ..repositories.invoice_repo import InvoiceRepository
from ..repositories.patient_repo import PatientRepository
from ..repositories.practitioner_repo import DoctorRepository

logger = logging.getLogger(__name__)

# kind -> attribute holding the owner's id
OWNER_ATTRIBUTES: Dict[str, str] = {
    "department": "company_id",
    "doctor": "company_id",
    "patient": "company_id",
    "invoice": "company_id",
    "campaign": "company_id",
    "case_study": "patient_id",
}

NOT_FOUND_ERRORS: Dict[str, Type[NotFoundError]] = {
    "company": CompanyNotFoundError,
    "department": DepartmentNotFoundError,
    "doctor": DoctorNotFoundError,
    "patient": PatientNotFoundError,
    "invoice": InvoiceNotFoundError,
    "campaign": CampaignNotFoundError,
    "case_study": CaseStudyNotFoundError,
}


@dataclass(frozen=True)
class Reference:
    """A foreign key to check: ``kind`` and ``id``, plus the optional owner
    the referenced entity must belong to."""

    kind: str
    id: int
    expected_owner_id: Optional[int] = None


class ReferenceValidator:
    """Resolve references against the store, in order, failing fast."""

    def __init__(self, lookups: Dict[str, Callable[[int], Optional[Any]]]) -> None:
        self.lookups = lookups

    @classmethod
    def from_session(cls, db: Session) -> "ReferenceValidator":
        return cls(
            {
                "company": CompanyRepository(db).get_by_id,
                "department": DepartmentRepository(db).get_by_id,
                "doctor": DoctorRepository(db).get_by_id,
                "patient": PatientRepository(db).get_by_id,
                "invoice": InvoiceRepository(db).get_by_id,
                "campaign": CampaignRepository(db).get_by_id,
                "case_study": CaseStudyRepository(db).get_by_id,
            }
        )

    def validate(self, references: Iterable[Reference]) -> Dict[str, Any]:
        """Check each reference in the given order.

        Returns the resolved entities keyed by kind.

        Raises:
            NotFoundError subclass: the first reference that does not exist
            OwnershipMismatchError / TenantMismatchError: the first entity
                whose owner differs from ``expected_owner_id``
        """
        resolved: Dict[str, Any] = {}
        for reference in references:
            entity = self._lookup(reference.kind, reference.id)
            if reference.expected_owner_id is not None:
                self.check_owner(reference.kind, entity, reference.expected_owner_id)
            resolved[reference.kind] = entity
        return resolved

    def check_owner(self, kind: str, entity: Any, expected_owner_id: int) -> None:
        """Raise when ``entity`` does not belong to ``expected_owner_id``."""
        owner_attribute = OWNER_ATTRIBUTES.get(kind)
        if owner_attribute is None:
            raise ValueError(f"Entities of kind '{kind}' have no owner")
        if getattr(entity, owner_attribute) == expected_owner_id:
            return
        error_cls = (
            TenantMismatchError
            if owner_attribute == "company_id"
            else OwnershipMismatchError
        )
        logger.warning(
            "Reference ownership mismatch",
            extra={
                "context": {
                    "kind": kind,
                    "id": entity.id,
                    "owner_id": getattr(entity, owner_attribute),
                    "expected_owner_id": expected_owner_id,
                }
            },
        )
        raise error_cls(kind.replace("_", " "), entity.id, expected_owner_id)

    def require_tenant(
        self,
        company_id: int,
        patient_id: Optional[int] = None,
        doctor_id: Optional[int] = None,
        department_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Scope check: the company exists and every given child belongs to it."""
        references = [Reference("company", company_id)]
        for kind, entity_id in self._children(
            patient=patient_id, doctor=doctor_id, department=department_id
        ):
            references.append(Reference(kind, entity_id, expected_owner_id=company_id))
        return self.validate(references)

    @staticmethod
    def _children(**ids: Optional[int]) -> Iterable[Tuple[str, int]]:
        return [(kind, entity_id) for kind, entity_id in ids.items() if entity_id is not None]

    def _lookup(self, kind: str, entity_id: int) -> Any:
        lookup = self.lookups.get(kind)
        if lookup is None:
            raise ValueError(f"No lookup registered for kind '{kind}'")
        entity = lookup(entity_id)
        if entity is None:
            raise NOT_FOUND_ERRORS.get(kind, NotFoundError)(entity_id, kind=kind.replace("_", " "))
        return entity
