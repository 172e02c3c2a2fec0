"""Company and department repositories."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..db.base import Company as DbCompany
from ..db.base import Department as DbDepartment
from ..domain.entities import Company, Department
from ..domain.interfaces import ICompanyRepository, IDepartmentRepository
from .filters import filtered_query


class CompanyRepository(ICompanyRepository):
    """Repository for Company persistence operations."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, company_id: int) -> Optional[Company]:
        db_company = self.db.get(DbCompany, company_id)
        return self._to_domain(db_company) if db_company else None

    def list(self) -> List[Company]:
        return [self._to_domain(c) for c in filtered_query(self.db, DbCompany).all()]

    def create(self, company: Company) -> Company:
        db_company = DbCompany(
            name=company.name,
            address=company.address,
            phone=company.phone,
            email=company.email,
            license_number=company.license_number,
        )
        self.db.add(db_company)
        self.db.flush()
        self.db.refresh(db_company)
        return self._to_domain(db_company)

    def _to_domain(self, db_company: DbCompany) -> Company:
        return Company(
            id=db_company.id,
            name=db_company.name,
            address=db_company.address,
            phone=db_company.phone,
            email=db_company.email,
            license_number=db_company.license_number,
            created_at=db_company.created_at,
            updated_at=db_company.updated_at,
        )


class DepartmentRepository(IDepartmentRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, department_id: int) -> Optional[Department]:
        db_department = self.db.get(DbDepartment, department_id)
        return self._to_domain(db_department) if db_department else None

    def list(self, company_id: Optional[int] = None) -> List[Department]:
        query = filtered_query(self.db, DbDepartment, company_id=company_id)
        return [self._to_domain(d) for d in query.all()]

    def create(self, department: Department) -> Department:
        db_department = DbDepartment(
            company_id=department.company_id,
            name=department.name,
            description=department.description,
        )
        self.db.add(db_department)
        self.db.flush()
        self.db.refresh(db_department)
        return self._to_domain(db_department)

    def _to_domain(self, db_department: DbDepartment) -> Department:
        return Department(
            id=db_department.id,
            company_id=db_department.company_id,
            name=db_department.name,
            description=db_department.description,
            created_at=db_department.created_at,
        )
