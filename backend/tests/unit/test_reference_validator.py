"""
Unit tests for ReferenceValidator.

Lookups are plain callables, so the validator is exercised here without a
database:
- existence checks fail fast, in the order references are given
- owner checks raise TenantMismatchError for company-owned kinds
- case studies are owned by a patient, not a company
"""

from unittest.mock import Mock

import pytest

from identsoft.core.exceptions import (
    CompanyNotFoundError,
    DoctorNotFoundError,
    NotFoundError,
    OwnershipMismatchError,
    PatientNotFoundError,
    TenantMismatchError,
)
from identsoft.domain.entities import CaseStudy, Company, Doctor, Patient
from identsoft.services.reference_validator import Reference, ReferenceValidator


@pytest.fixture
def entities():
    return {
        "company": {1: Company(id=1, name="Bright Smiles"), 2: Company(id=2, name="Other")},
        "patient": {10: Patient(id=10, company_id=1), 20: Patient(id=20, company_id=2)},
        "doctor": {5: Doctor(id=5, company_id=1)},
        "case_study": {7: CaseStudy(id=7, patient_id=10, doctor_id=5)},
    }


@pytest.fixture
def lookups(entities):
    return {
        kind: Mock(side_effect=lambda entity_id, rows=rows: rows.get(entity_id))
        for kind, rows in entities.items()
    }


@pytest.fixture
def validator(lookups):
    return ReferenceValidator(lookups)


@pytest.mark.unit
@pytest.mark.services
class TestReferenceValidation:
    def test_resolves_entities_by_kind(self, validator):
        resolved = validator.validate(
            [Reference("company", 1), Reference("patient", 10, expected_owner_id=1)]
        )

        assert resolved["company"].id == 1
        assert resolved["patient"].id == 10

    def test_missing_reference_raises_kind_specific_error(self, validator):
        with pytest.raises(PatientNotFoundError) as exc_info:
            validator.validate([Reference("patient", 99)])

        assert exc_info.value.entity_id == 99
        assert exc_info.value.code == "patient_not_found"
        assert "Patient with id 99 not found" in str(exc_info.value)

    def test_stops_at_first_failure(self, validator, lookups):
        with pytest.raises(CompanyNotFoundError):
            validator.validate([Reference("company", 42), Reference("doctor", 999)])

        lookups["doctor"].assert_not_called()

    def test_order_of_references_decides_reported_error(self, validator):
        with pytest.raises(DoctorNotFoundError):
            validator.validate([Reference("doctor", 999), Reference("company", 42)])

    def test_empty_reference_list_is_valid(self, validator):
        assert validator.validate([]) == {}

    def test_repeated_validation_gives_same_result(self, validator):
        references = [Reference("company", 1), Reference("doctor", 5)]

        assert validator.validate(references) == validator.validate(references)

    def test_unknown_kind_is_a_programming_error(self, validator):
        with pytest.raises(ValueError):
            validator.validate([Reference("spaceship", 1)])


@pytest.mark.unit
@pytest.mark.services
class TestOwnershipChecks:
    def test_patient_of_other_company_is_tenant_mismatch(self, validator):
        with pytest.raises(TenantMismatchError) as exc_info:
            validator.validate([Reference("patient", 20, expected_owner_id=1)])

        error = exc_info.value
        assert error.status_code == 409
        assert error.code == "tenant_mismatch"
        assert "does not belong to company 1" in error.message

    def test_case_study_of_other_patient_is_ownership_mismatch(self, validator):
        with pytest.raises(OwnershipMismatchError) as exc_info:
            validator.validate([Reference("case_study", 7, expected_owner_id=20)])

        assert not isinstance(exc_info.value, TenantMismatchError)
        assert exc_info.value.code == "ownership_mismatch"

    def test_case_study_of_same_patient_passes(self, validator):
        resolved = validator.validate(
            [Reference("case_study", 7, expected_owner_id=10)]
        )

        assert resolved["case_study"].patient_id == 10

    def test_company_has_no_owner(self, validator):
        with pytest.raises(ValueError):
            validator.check_owner("company", Company(id=1, name="x"), 3)


@pytest.mark.unit
@pytest.mark.services
class TestRequireTenant:
    def test_checks_company_then_children(self, validator):
        resolved = validator.require_tenant(1, patient_id=10, doctor_id=5)

        assert set(resolved) == {"company", "patient", "doctor"}

    def test_missing_company_reported_before_children(self, validator):
        with pytest.raises(CompanyNotFoundError):
            validator.require_tenant(42, patient_id=999)

    def test_child_from_other_tenant_rejected(self, validator):
        with pytest.raises(TenantMismatchError):
            validator.require_tenant(2, patient_id=10)

    def test_missing_child_is_not_found_not_mismatch(self, validator):
        with pytest.raises(NotFoundError) as exc_info:
            validator.require_tenant(1, doctor_id=404)

        assert isinstance(exc_info.value, DoctorNotFoundError)

    def test_company_only(self, validator, lookups):
        validator.require_tenant(1)

        lookups["patient"].assert_not_called()
        lookups["doctor"].assert_not_called()
