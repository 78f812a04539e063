"""Condominiums API - Buildings and their notification webhook"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, get_webhook, http_error
from entregas_zap.domain.entities import Address, Condo
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.infrastructure.database import get_session
from entregas_zap.infrastructure.webhook import WebhookClient
from entregas_zap.workflows import directory
from entregas_zap.workflows.dashboard import Dashboard

router = APIRouter()


class CondoCreate(BaseModel):
    name: str
    address: Address = Address()
    webhook_url: Optional[str] = None


class CondoUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[Address] = None


class WebhookUpdate(BaseModel):
    webhook_url: Optional[str] = None


class WebhookRead(BaseModel):
    condo: Condo
    effective_url: str


@router.get("/", response_model=List[Condo])
async def list_condominiums(dashboard: Dashboard = Depends(get_dashboard)):
    """Buildings visible to the logged-in user"""
    return dashboard.condos


@router.post("/", response_model=Condo, status_code=201)
async def create_condominium(
    condo: CondoCreate,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await directory.add_condo(session, dashboard, condo.name, condo.address, condo.webhook_url)
    except DomainError as e:
        raise http_error(e)


@router.patch("/{condo_id}", response_model=Condo)
async def update_condominium(
    condo_id: int,
    condo_update: CondoUpdate,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await directory.edit_condo(
            session, dashboard, condo_id, name=condo_update.name, address=condo_update.address
        )
    except DomainError as e:
        raise http_error(e)


@router.delete("/{condo_id}", status_code=204)
async def hide_condominium(condo_id: int, dashboard: Dashboard = Depends(get_dashboard)):
    """Remove the building from this session only (the database keeps it)"""
    try:
        directory.hide_condo(dashboard, condo_id)
    except DomainError as e:
        raise http_error(e)
    return None


@router.put("/{condo_id}/webhook", response_model=WebhookRead)
async def update_condominium_webhook(
    condo_id: int,
    webhook_update: WebhookUpdate,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    webhook: WebhookClient = Depends(get_webhook),
):
    """Set the building webhook; send an empty value to use the default again"""
    try:
        condo = await directory.set_condo_webhook(session, dashboard, condo_id, webhook_update.webhook_url)
    except DomainError as e:
        raise http_error(e)
    return WebhookRead(condo=condo, effective_url=webhook.resolve_url(condo.webhook_url))
