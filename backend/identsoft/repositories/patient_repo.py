from typing import List, Optional

from sqlalchemy.orm import Session

from ..db.base import Patient as DbPatient
from ..domain.entities import Patient
from ..domain.interfaces import IPatientRepository
from .filters import filtered_query


class PatientRepository(IPatientRepository):
    """Repository for Patient persistence operations."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        db_patient = self.db.get(DbPatient, patient_id)
        return self._to_domain(db_patient) if db_patient else None

    def list(self, company_id: Optional[int] = None) -> List[Patient]:
        query = filtered_query(self.db, DbPatient, company_id=company_id)
        return [self._to_domain(p) for p in query.all()]

    def create(self, patient: Patient) -> Patient:
        db_patient = DbPatient(
            company_id=patient.company_id,
            first_name=patient.first_name,
            last_name=patient.last_name,
            email=patient.email,
            phone=patient.phone,
            date_of_birth=patient.date_of_birth,
            address=patient.address,
            insurance_number=patient.insurance_number,
            emergency_contact=patient.emergency_contact,
        )
        self.db.add(db_patient)
        self.db.flush()
        self.db.refresh(db_patient)
        return self._to_domain(db_patient)

    def _to_domain(self, db_patient: DbPatient) -> Patient:
        return Patient(
            id=db_patient.id,
            company_id=db_patient.company_id,
            first_name=db_patient.first_name,
            last_name=db_patient.last_name,
            email=db_patient.email,
            phone=db_patient.phone,
            date_of_birth=db_patient.date_of_birth,
            address=db_patient.address,
            insurance_number=db_patient.insurance_number,
            emergency_contact=db_patient.emergency_contact,
            created_at=db_patient.created_at,
        )
