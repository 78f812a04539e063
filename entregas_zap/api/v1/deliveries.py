"""Deliveries API - New-delivery form, registration, reports and stats"""
import base64
import binascii
from datetime import date, timedelta
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, get_send_queue, get_storage, get_webhook, http_error
from entregas_zap.domain.clock import day_start_utc, local_now
from entregas_zap.domain.csv_io import export_delivery_report
from entregas_zap.domain.entities import Delivery, DeliveryStatus, Resident
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.domain.messages import SERVICES
from entregas_zap.domain.reports import DashboardStats, dashboard_stats, filter_deliveries
from entregas_zap.infrastructure.database import get_session
from entregas_zap.infrastructure.database.deliveries import fetch_delivery_stats
from entregas_zap.infrastructure.storage import SupabaseStorageClient
from entregas_zap.infrastructure.webhook import WebhookClient
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.delivery import DeliveryRegistration, PhotoUpload
from entregas_zap.workflows.queue import SendQueue
from entregas_zap.workflows.retrieval import cancel_pending

router = APIRouter()


class FormState(BaseModel):
    services: List[str]
    service: Optional[str] = None
    code: Optional[str] = None
    is_sending: bool = False
    condos: List[str]
    blocks: List[str] = []
    apartments: List[str] = []
    residents: List[Resident] = []


class ServiceSelection(BaseModel):
    service: str


class PhotoPayload(BaseModel):
    content_base64: str
    filename: str = "foto.jpg"
    content_type: str = "image/jpeg"


class RegisterRequest(BaseModel):
    resident_ids: List[int]
    observation: Optional[str] = None
    photo: Optional[PhotoPayload] = None


class RegisterResponse(BaseModel):
    service: str
    code: Optional[str] = None
    attempted: int
    succeeded: int
    failed_resident_ids: List[int]
    deliveries: List[Delivery]
    photo_url: Optional[str] = None
    warnings: List[str]


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class StatsResponse(BaseModel):
    dashboard: DashboardStats
    backend: Dict[str, int]


def _form_state(
    dashboard: Dashboard,
    condo: Optional[str] = None,
    block: Optional[str] = None,
    apt: Optional[str] = None,
) -> FormState:
    return FormState(
        services=list(SERVICES),
        service=dashboard.form.service,
        code=dashboard.form.code,
        is_sending=dashboard.is_sending,
        condos=[c.name for c in dashboard.condos],
        blocks=dashboard.blocks_for(condo) if condo else [],
        apartments=dashboard.apartments_for(condo, block) if condo else [],
        residents=dashboard.residents_at(condo, block, apt) if condo and apt else [],
    )


def _decode_photo(photo: PhotoPayload) -> PhotoUpload:
    try:
        content = base64.b64decode(photo.content_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Photo is not valid base64")
    return PhotoUpload(content=content, filename=photo.filename, content_type=photo.content_type)


def _local_day_bounds(start_date: Optional[date], end_date: Optional[date]):
    start = day_start_utc(start_date) if start_date else None
    end = day_start_utc(end_date + timedelta(days=1)) if end_date else None
    return start, end


@router.get("/", response_model=List[Delivery])
async def list_deliveries(
    dashboard: Dashboard = Depends(get_dashboard),
    search: Optional[str] = None,
    status: Optional[DeliveryStatus] = None,
    employee_id: Optional[int] = None,
    resident_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Delivery report, newest first"""
    return filter_deliveries(
        dashboard.deliveries,
        dashboard.residents,
        dashboard.employees,
        search=search,
        status=status,
        employee_id=employee_id,
        resident_id=resident_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/export.csv", response_class=PlainTextResponse)
async def export_deliveries_csv(
    dashboard: Dashboard = Depends(get_dashboard),
    search: Optional[str] = None,
    status: Optional[DeliveryStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    deliveries = filter_deliveries(
        dashboard.deliveries,
        dashboard.residents,
        dashboard.employees,
        search=search,
        status=status,
        start_date=start_date,
        end_date=end_date,
    )
    return PlainTextResponse(
        export_delivery_report(deliveries, dashboard.residents, dashboard.employees),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="relatorio_entregas.csv"'},
    )


@router.get("/stats", response_model=StatsResponse)
async def delivery_stats(
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Dashboard figures plus database counts per status"""
    start, end = _local_day_bounds(start_date, end_date)
    backend = await fetch_delivery_stats(session, dashboard.scope, start, end)
    return StatsResponse(
        dashboard=dashboard_stats(dashboard.deliveries, dashboard.residents, dashboard.employees, local_now()),
        backend=backend,
    )


@router.get("/form", response_model=FormState)
async def get_form(
    dashboard: Dashboard = Depends(get_dashboard),
    condo: Optional[str] = None,
    block: Optional[str] = None,
    apt: Optional[str] = None,
):
    """Form state and the options for the building -> block -> apartment cascade"""
    return _form_state(dashboard, condo, block, apt)


@router.put("/form/service", response_model=FormState)
async def select_service(selection: ServiceSelection, dashboard: Dashboard = Depends(get_dashboard)):
    try:
        dashboard.form.select_service(selection.service)
    except DomainError as e:
        raise http_error(e)
    return _form_state(dashboard)


@router.post("/form/reset", response_model=FormState)
async def reset_form(dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.form.reset()
    return _form_state(dashboard)


@router.post("/register", response_model=RegisterResponse)
async def register_delivery(
    request: RegisterRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    webhook: WebhookClient = Depends(get_webhook),
    storage: Optional[SupabaseStorageClient] = Depends(get_storage),
    queue: SendQueue = Depends(get_send_queue),
):
    """Notify the selected residents and record package deliveries"""
    photo = _decode_photo(request.photo) if request.photo else None
    registration = DeliveryRegistration(session, dashboard, webhook, storage=storage, queue=queue)

    try:
        result = await registration.submit(request.resident_ids, request.observation, photo)
    except DomainError as e:
        raise http_error(e)

    return RegisterResponse(
        service=result.service,
        code=result.code,
        attempted=result.attempted,
        succeeded=result.succeeded,
        failed_resident_ids=result.failed_resident_ids,
        deliveries=result.deliveries,
        photo_url=result.photo_url,
        warnings=result.warnings,
    )


@router.post("/{delivery_id}/cancel", response_model=Delivery)
async def cancel_delivery(
    delivery_id: int,
    request: CancelRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    storage: Optional[SupabaseStorageClient] = Depends(get_storage),
):
    try:
        return await cancel_pending(session, dashboard, delivery_id, request.reason, storage=storage)
    except DomainError as e:
        raise http_error(e)


@router.delete("/", status_code=204)
async def remove_deliveries(
    ids: List[int] = Query(...),
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Hide deliveries from this session's lists (the database keeps them)"""
    dashboard.hide_deliveries(ids)
    return None
