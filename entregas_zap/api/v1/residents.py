"""Residents API - Resident management and CSV import/export"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, http_error
from entregas_zap.domain.csv_io import example_residents_csv, export_residents
from entregas_zap.domain.entities import Resident
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.domain.reports import group_residents
from entregas_zap.infrastructure.database import get_session
from entregas_zap.workflows import directory
from entregas_zap.workflows.dashboard import Dashboard

router = APIRouter()

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


class ResidentWrite(BaseModel):
    name: str
    apt: str
    block: str = ""
    phone: str
    condo: str
    active: bool = True


class ResidentPatch(BaseModel):
    name: Optional[str] = None
    apt: Optional[str] = None
    block: Optional[str] = None
    phone: Optional[str] = None
    condo: Optional[str] = None
    active: Optional[bool] = None


class ImportRequest(BaseModel):
    content: str  # CSV text


class ImportResponse(BaseModel):
    created: List[Resident]
    skipped_lines: List[int]
    errors: List[str]


def _csv_response(content: str, filename: str) -> PlainTextResponse:
    return PlainTextResponse(
        content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/", response_model=List[Resident])
async def list_residents(
    dashboard: Dashboard = Depends(get_dashboard),
    condo: Optional[str] = None,
    search: Optional[str] = None,
):
    """Residents visible to the user, optionally for one building or matching a name/apartment"""
    residents = dashboard.residents
    if condo:
        residents = [r for r in residents if r.condo.lower() == condo.strip().lower()]
    if search:
        needle = search.strip().lower()
        residents = [r for r in residents if needle in r.name.lower() or needle in r.apt.lower()]
    return residents


@router.get("/grouped", response_model=Dict[str, Dict[str, List[Resident]]])
async def list_residents_grouped(dashboard: Dashboard = Depends(get_dashboard), condo: Optional[str] = None):
    """block -> apartment -> residents"""
    residents = dashboard.residents
    if condo:
        residents = [r for r in residents if r.condo.lower() == condo.strip().lower()]
    return group_residents(residents)


@router.get("/export.csv", response_class=PlainTextResponse)
async def export_residents_csv(dashboard: Dashboard = Depends(get_dashboard)):
    return _csv_response(export_residents(dashboard.residents), "moradores.csv")


@router.get("/example.csv", response_class=PlainTextResponse)
async def example_csv():
    return _csv_response(example_residents_csv(), "exemplo_moradores.csv")


@router.post("/import", response_model=ImportResponse)
async def import_residents(
    csv_file: ImportRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    """Create residents from a semicolon CSV (name;apartment;block;phone;building)"""
    try:
        report = await directory.import_residents(session, dashboard, csv_file.content.lstrip("\ufeff"))
    except DomainError as e:
        raise http_error(e)
    return ImportResponse(created=report.created, skipped_lines=report.skipped_lines, errors=report.errors)


@router.post("/", response_model=Resident, status_code=201)
async def create_resident(
    resident: ResidentWrite,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await directory.save_resident(
            session,
            dashboard,
            resident.name,
            resident.apt,
            resident.block,
            resident.phone,
            resident.condo,
            active=resident.active,
        )
    except DomainError as e:
        raise http_error(e)


@router.patch("/{resident_id}", response_model=Resident)
async def update_resident(
    resident_id: int,
    resident_update: ResidentPatch,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    try:
        current = dashboard.get_resident(resident_id)
        merged = current.model_copy(update=resident_update.model_dump(exclude_unset=True))
        return await directory.save_resident(
            session,
            dashboard,
            merged.name,
            merged.apt,
            merged.block,
            merged.phone,
            merged.condo,
            active=merged.active,
            resident_id=resident_id,
        )
    except DomainError as e:
        raise http_error(e)


@router.delete("/{resident_id}", status_code=204)
async def delete_resident(
    resident_id: int,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    """Deactivate a resident"""
    try:
        await directory.remove_resident(session, dashboard, resident_id)
    except DomainError as e:
        raise http_error(e)
    return None
