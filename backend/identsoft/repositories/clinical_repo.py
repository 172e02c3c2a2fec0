"""Repositories for clinical records: case studies, prescriptions, lab reports."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..db.base import CaseStudy as DbCaseStudy
from ..db.base import LabReport as DbLabReport
from ..db.base import Prescription as DbPrescription
from ..domain.entities import CaseStudy, LabReport, Prescription
from ..domain.interfaces import (
    ICaseStudyRepository,
    ILabReportRepository,
    IPrescriptionRepository,
)
from .filters import filtered_query


class CaseStudyRepository(ICaseStudyRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, case_study_id: int) -> Optional[CaseStudy]:
        db_case = self.db.get(DbCaseStudy, case_study_id)
        return self._to_domain(db_case) if db_case else None

    def list(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[CaseStudy]:
        query = filtered_query(
            self.db, DbCaseStudy, patient_id=patient_id, doctor_id=doctor_id
        )
        return [self._to_domain(c) for c in query.all()]

    def create(self, case_study: CaseStudy) -> CaseStudy:
        db_case = DbCaseStudy(
            patient_id=case_study.patient_id,
            doctor_id=case_study.doctor_id,
            title=case_study.title,
            diagnosis=case_study.diagnosis,
            treatment_plan=case_study.treatment_plan,
            notes=case_study.notes,
            status=case_study.status,
        )
        self.db.add(db_case)
        self.db.flush()
        self.db.refresh(db_case)
        return self._to_domain(db_case)

    def _to_domain(self, db_case: DbCaseStudy) -> CaseStudy:
        return CaseStudy(
            id=db_case.id,
            patient_id=db_case.patient_id,
            doctor_id=db_case.doctor_id,
            title=db_case.title,
            diagnosis=db_case.diagnosis,
            treatment_plan=db_case.treatment_plan,
            notes=db_case.notes,
            status=db_case.status,
            created_at=db_case.created_at,
            updated_at=db_case.updated_at,
        )


class PrescriptionRepository(IPrescriptionRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[Prescription]:
        query = filtered_query(
            self.db, DbPrescription, patient_id=patient_id, doctor_id=doctor_id
        )
        return [self._to_domain(p) for p in query.all()]

    def create(self, prescription: Prescription) -> Prescription:
        db_prescription = DbPrescription(
            patient_id=prescription.patient_id,
            doctor_id=prescription.doctor_id,
            case_study_id=prescription.case_study_id,
            medication_name=prescription.medication_name,
            dosage=prescription.dosage,
            frequency=prescription.frequency,
            duration=prescription.duration,
            instructions=prescription.instructions,
        )
        self.db.add(db_prescription)
        self.db.flush()
        self.db.refresh(db_prescription)
        return self._to_domain(db_prescription)

    def _to_domain(self, db_prescription: DbPrescription) -> Prescription:
        return Prescription(
            id=db_prescription.id,
            patient_id=db_prescription.patient_id,
            doctor_id=db_prescription.doctor_id,
            case_study_id=db_prescription.case_study_id,
            medication_name=db_prescription.medication_name,
            dosage=db_prescription.dosage,
            frequency=db_prescription.frequency,
            duration=db_prescription.duration,
            instructions=db_prescription.instructions,
            created_at=db_prescription.created_at,
        )


class LabReportRepository(ILabReportRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list(
        self, patient_id: Optional[int] = None, doctor_id: Optional[int] = None
    ) -> List[LabReport]:
        query = filtered_query(
            self.db, DbLabReport, patient_id=patient_id, doctor_id=doctor_id
        )
        return [self._to_domain(r) for r in query.all()]

    def create(self, lab_report: LabReport) -> LabReport:
        db_report = DbLabReport(
            patient_id=lab_report.patient_id,
            doctor_id=lab_report.doctor_id,
            case_study_id=lab_report.case_study_id,
            test_name=lab_report.test_name,
            test_date=lab_report.test_date,
            results=lab_report.results,
            notes=lab_report.notes,
            file_path=lab_report.file_path,
            status=lab_report.status,
        )
        self.db.add(db_report)
        self.db.flush()
        self.db.refresh(db_report)
        return self._to_domain(db_report)

    def _to_domain(self, db_report: DbLabReport) -> LabReport:
        return LabReport(
            id=db_report.id,
            patient_id=db_report.patient_id,
            doctor_id=db_report.doctor_id,
            case_study_id=db_report.case_study_id,
            test_name=db_report.test_name,
            test_date=db_report.test_date,
            results=db_report.results,
            notes=db_report.notes,
            file_path=db_report.file_path,
            status=db_report.status,
            created_at=db_report.created_at,
        )
