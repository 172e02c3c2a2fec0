"""
Pytest configuration and shared fixtures for identsoft tests.

The environment is pinned before any identsoft import: every test runs
against one shared in-memory SQLite database that is rebuilt per test,
with rate limiting and metrics switched off.
"""

import os
from datetime import date

import pytest

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["FLASK_ENV"] = "testing"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ.pop("SENTRY_DSN", None)
os.environ.pop("BOOKING_CONFLICT_POLICY", None)
os.environ.pop("ENFORCE_STATUS_TRANSITIONS", None)
os.environ.pop("INVOICE_NUMBER_PADDING", None)

from identsoft.db.session import SessionLocal, create_tables, drop_tables  # noqa: E402
from identsoft.schemas.dtos import (  # noqa: E402
    CompanyCreateRequest,
    DepartmentCreateRequest,
    DoctorCreateRequest,
    PatientCreateRequest,
)
from identsoft.services.registry_service import RegistryService  # noqa: E402

from tests.config.markers import *  # noqa: E402,F401,F403


@pytest.fixture(autouse=True)
def fresh_database():
    """Recreate every table so each test starts from an empty store."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app():
    from identsoft.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


# ===========================
# Seed data
# ===========================


def make_company(session, name="Bright Smiles"):
    return RegistryService.from_session(session).create_company(
        CompanyCreateRequest(
            name=name,
            address="1 Main Street",
            phone="555-0100",
            email=f"{name.lower().replace(' ', '.')}@example.com",
            license_number=f"LIC-{name[:3].upper()}",
        )
    )


def make_department(session, company_id, name="General Dentistry"):
    return RegistryService.from_session(session).create_department(
        DepartmentCreateRequest(company_id=company_id, name=name)
    )


def make_doctor(session, company_id, department_id, is_active=True, last_name="Grey"):
    return RegistryService.from_session(session).create_doctor(
        DoctorCreateRequest(
            company_id=company_id,
            department_id=department_id,
            first_name="Meredith",
            last_name=last_name,
            email=f"{last_name.lower()}@example.com",
            phone="555-0101",
            specialization="Orthodontics",
            license_number=f"DR-{last_name.upper()}",
            is_active=is_active,
        )
    )


def make_patient(session, company_id, first_name="Ana"):
    return RegistryService.from_session(session).create_patient(
        PatientCreateRequest(
            company_id=company_id,
            first_name=first_name,
            last_name="Silva",
            phone="555-0199",
            date_of_birth=date(1990, 4, 12),
            address="22 Side Road",
        )
    )


@pytest.fixture
def clinic(db_session):
    """One company with a department, an active doctor and a patient."""
    company = make_company(db_session)
    department = make_department(db_session, company.id)
    doctor = make_doctor(db_session, company.id, department.id)
    patient = make_patient(db_session, company.id)
    return {
        "company": company,
        "department": department,
        "doctor": doctor,
        "patient": patient,
    }


@pytest.fixture
def second_clinic(db_session):
    """A second, unrelated tenant."""
    company = make_company(db_session, name="Other Clinic")
    department = make_department(db_session, company.id, name="Surgery")
    doctor = make_doctor(db_session, company.id, department.id, last_name="Shepherd")
    patient = make_patient(db_session, company.id, first_name="Bruno")
    return {
        "company": company,
        "department": department,
        "doctor": doctor,
        "patient": patient,
    }
