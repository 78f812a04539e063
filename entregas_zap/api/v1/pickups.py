"""Pickups API - Retrieval code lookup and pickup confirmation"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, get_webhook, http_error
from entregas_zap.domain.entities import Delivery, DeliveryStatus, Resident
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.domain.messages import DEFAULT_PICKUP_PERSON, PICKUP_OPTIONS
from entregas_zap.infrastructure.database import get_session
from entregas_zap.infrastructure.webhook import WebhookClient
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.retrieval import MIN_CODE_LENGTH, confirm_pickup, find_pending_by_code

router = APIRouter()


class LookupResponse(BaseModel):
    delivery: Delivery
    resident: Optional[Resident] = None
    pickup_options: List[str] = list(PICKUP_OPTIONS)


class ConfirmRequest(BaseModel):
    picked_up_by: str = DEFAULT_PICKUP_PERSON


class ConfirmResponse(BaseModel):
    delivery: Delivery
    notified: bool


@router.get("/", response_model=List[Delivery])
async def list_pickups(dashboard: Dashboard = Depends(get_dashboard)):
    """Deliveries already picked up, most recent pickup first"""
    picked_up = [d for d in dashboard.deliveries if d.status == DeliveryStatus.PICKED_UP]
    return sorted(picked_up, key=lambda d: d.picked_up_at or d.received_at, reverse=True)


@router.get("/lookup/{code}", response_model=LookupResponse)
async def lookup_code(code: str, dashboard: Dashboard = Depends(get_dashboard)):
    """Find the pending delivery for a retrieval code"""
    if len(code.strip()) < MIN_CODE_LENGTH:
        raise HTTPException(status_code=400, detail=f"Code must have {MIN_CODE_LENGTH} digits")

    delivery = find_pending_by_code(dashboard, code)
    if delivery is None:
        raise HTTPException(status_code=404, detail="Nenhuma entrega pendente encontrada com este código")

    return LookupResponse(delivery=delivery, resident=dashboard.find_resident(delivery.resident_id))


@router.post("/{delivery_id}/confirm", response_model=ConfirmResponse)
async def confirm(
    delivery_id: int,
    request: ConfirmRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    webhook: WebhookClient = Depends(get_webhook),
):
    try:
        result = await confirm_pickup(session, dashboard, webhook, delivery_id, request.picked_up_by)
    except DomainError as e:
        raise http_error(e)
    return ConfirmResponse(delivery=result.delivery, notified=result.notified)
