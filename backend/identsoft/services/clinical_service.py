"""
Clinical records service: case studies, prescriptions and lab reports.

Each record links a patient and a doctor of the same company. Prescriptions
and lab reports may also point at a case study, which must be the same
patient's.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..db.session import unit_of_work
from ..domain.entities import CaseStudy, LabReport, Prescription
from ..domain.interfaces import (
    ICaseStudyRepository,
    ILabReportRepository,
    IPrescriptionRepository,
)
from ..repositories.clinical_repo import (
    CaseStudyRepository,
    LabReportRepository,
    PrescriptionRepository,
)
from ..schemas.dtos import (
    CaseStudyCreateRequest,
    LabReportCreateRequest,
    PrescriptionCreateRequest,
)
from .reference_validator import Reference, ReferenceValidator

logger = logging.getLogger(__name__)


class ClinicalService:
    def __init__(
        self,
        db: Session,
        case_study_repo: ICaseStudyRepository,
        prescription_repo: IPrescriptionRepository,
        lab_report_repo: ILabReportRepository,
        reference_validator: ReferenceValidator,
    ) -> None:
        self.db = db
        self.case_study_repo = case_study_repo
        self.prescription_repo = prescription_repo
        self.lab_report_repo = lab_report_repo
        self.reference_validator = reference_validator

    @classmethod
    def from_session(cls, db: Session) -> "ClinicalService":
        return cls(
            db,
            CaseStudyRepository(db),
            PrescriptionRepository(db),
            LabReportRepository(db),
            ReferenceValidator.from_session(db),
        )

    def _check_care_relationship(
        self, patient_id: int, doctor_id: int, case_study_id: Optional[int] = None
    ) -> Dict[str, Any]:
        resolved = self.reference_validator.validate(
            [Reference("patient", patient_id), Reference("doctor", doctor_id)]
        )
        self.reference_validator.check_owner(
            "patient", resolved["patient"], resolved["doctor"].company_id
        )
        if case_study_id is not None:
            resolved.update(
                self.reference_validator.validate(
                    [Reference("case_study", case_study_id, expected_owner_id=patient_id)]
                )
            )
        return resolved

    def create_case_study(self, request: CaseStudyCreateRequest) -> CaseStudy:
        with unit_of_work(self.db):
            self._check_care_relationship(request.patient_id, request.doctor_id)
            case_study = self.case_study_repo.create(
                CaseStudy(
                    patient_id=request.patient_id,
                    doctor_id=request.doctor_id,
                    title=request.title,
                    diagnosis=request.diagnosis,
                    treatment_plan=request.treatment_plan,
                    notes=request.notes,
                    status=request.status,
                )
            )
        logger.info(
            "Case study created",
            extra={
                "context": {
                    "case_study_id": case_study.id,
                    "patient_id": case_study.patient_id,
                }
            },
        )
        return case_study

    def create_prescription(self, request: PrescriptionCreateRequest) -> Prescription:
        with unit_of_work(self.db):
            self._check_care_relationship(
                request.patient_id, request.doctor_id, request.case_study_id
            )
            prescription = self.prescription_repo.create(
                Prescription(
                    patient_id=request.patient_id,
                    doctor_id=request.doctor_id,
                    case_study_id=request.case_study_id,
                    medication_name=request.medication_name,
                    dosage=request.dosage,
                    frequency=request.frequency,
                    duration=request.duration,
                    instructions=request.instructions,
                )
            )
        logger.info(
            "Prescription created",
            extra={
                "context": {
                    "prescription_id": prescription.id,
                    "patient_id": prescription.patient_id,
                }
            },
        )
        return prescription

    def create_lab_report(self, request: LabReportCreateRequest) -> LabReport:
        with unit_of_work(self.db):
            self._check_care_relationship(
                request.patient_id, request.doctor_id, request.case_study_id
            )
            lab_report = self.lab_report_repo.create(
                LabReport(
                    patient_id=request.patient_id,
                    doctor_id=request.doctor_id,
                    case_study_id=request.case_study_id,
                    test_name=request.test_name,
                    test_date=request.test_date,
                    results=request.results,
                    notes=request.notes,
                    file_path=request.file_path,
                    status=request.status,
                )
            )
        logger.info(
            "Lab report created",
            extra={
                "context": {
                    "lab_report_id": lab_report.id,
                    "patient_id": lab_report.patient_id,
                }
            },
        )
        return lab_report
