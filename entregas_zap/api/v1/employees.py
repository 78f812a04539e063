"""Employees API - Front-desk staff"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, http_error
from entregas_zap.domain.entities import Employee
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.infrastructure.database import get_session
from entregas_zap.workflows import directory
from entregas_zap.workflows.dashboard import Dashboard

router = APIRouter()


class EmployeeCreate(BaseModel):
    name: str
    cpf: str
    condo: Optional[str] = None  # Defaults to the manager's building
    role: str = "Porteiro"
    password: Optional[str] = None
    password_confirm: Optional[str] = None
    active: bool = True


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    cpf: Optional[str] = None
    condo: Optional[str] = None
    role: Optional[str] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = None
    active: Optional[bool] = None


@router.get("/", response_model=List[Employee])
async def list_employees(dashboard: Dashboard = Depends(get_dashboard), active: Optional[bool] = None):
    employees = dashboard.employees
    if active is not None:
        employees = [e for e in employees if e.active == active]
    return employees


@router.post("/", response_model=Employee, status_code=201)
async def create_employee(
    employee: EmployeeCreate,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await directory.add_employee(session, dashboard, **employee.model_dump())
    except DomainError as e:
        raise http_error(e)


@router.patch("/{employee_id}", response_model=Employee)
async def update_employee(
    employee_id: int,
    employee_update: EmployeeUpdate,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await directory.edit_employee(
            session, dashboard, employee_id, **employee_update.model_dump(exclude_unset=True)
        )
    except DomainError as e:
        raise http_error(e)
