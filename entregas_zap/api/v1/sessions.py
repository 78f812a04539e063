"""Sessions API - Refresh the dashboard cache from the database"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard
from entregas_zap.infrastructure.database import get_session
from entregas_zap.workflows.dashboard import Dashboard

router = APIRouter()


class ReloadResponse(BaseModel):
    condos: int
    residents: int
    employees: int
    deliveries: int
    loaded_at: Optional[datetime] = None


@router.post("/reload", response_model=ReloadResponse)
async def reload(
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
):
    """Reload every list; local ids already handed out stay the same"""
    await dashboard.load(session)
    return ReloadResponse(
        condos=len(dashboard.condos),
        residents=len(dashboard.residents),
        employees=len(dashboard.employees),
        deliveries=len(dashboard.deliveries),
        loaded_at=dashboard.loaded_at,
    )
