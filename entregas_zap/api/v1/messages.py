"""Messages API - Building manager broadcasts"""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from entregas_zap.api.deps import get_broadcast_queue, get_dashboard, get_webhook, http_error
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.infrastructure.webhook import WebhookClient
from entregas_zap.workflows.broadcast import broadcast
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.queue import SendQueue

router = APIRouter()


class BroadcastRequest(BaseModel):
    resident_ids: List[int]
    text: str


class BroadcastResponse(BaseModel):
    attempted: int
    succeeded: List[int]
    failed: List[int]


@router.post("/broadcast", response_model=BroadcastResponse)
async def send_broadcast(
    request: BroadcastRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    webhook: WebhookClient = Depends(get_webhook),
    queue: SendQueue = Depends(get_broadcast_queue),
):
    try:
        report = await broadcast(dashboard, webhook, request.resident_ids, request.text, queue=queue)
    except DomainError as e:
        raise http_error(e)
    return BroadcastResponse(attempted=report.attempted, succeeded=report.succeeded, failed=report.failed)
