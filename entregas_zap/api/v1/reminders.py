"""Reminders API - Re-notify residents about waiting packages"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, get_reminder_queue, get_webhook, http_error
from entregas_zap.domain.entities import Delivery, Resident
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.infrastructure.database import get_session
from entregas_zap.infrastructure.webhook import WebhookClient
from entregas_zap.workflows import reminder
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.queue import SendQueue

router = APIRouter()


class ReminderRead(BaseModel):
    delivery: Delivery
    resident: Resident


class RemindersResponse(BaseModel):
    pending: List[ReminderRead]
    sent: List[ReminderRead]


class SelectionRequest(BaseModel):
    delivery_ids: List[int]


class SendResponse(BaseModel):
    attempted: int
    succeeded: List[int]
    failed: List[int]
    skipped: List[int]


def _read(items: List[reminder.ReminderItem]) -> List[ReminderRead]:
    return [ReminderRead(delivery=item.delivery, resident=item.resident) for item in items]


def _send_response(report: reminder.ReminderReport) -> SendResponse:
    return SendResponse(
        attempted=report.attempted,
        succeeded=report.succeeded,
        failed=report.failed,
        skipped=report.skipped,
    )


@router.get("/", response_model=RemindersResponse)
async def list_reminders(
    dashboard: Dashboard = Depends(get_dashboard),
    search: Optional[str] = None,
    day: Optional[str] = None,
):
    """Both buckets; `day` is one of today, yesterday, 3days, 7days"""
    try:
        return RemindersResponse(
            pending=_read(reminder.candidates(dashboard, search, day)),
            sent=_read(reminder.sent(dashboard, search, day)),
        )
    except DomainError as e:
        raise http_error(e)


@router.get("/overdue", response_model=List[ReminderRead])
async def list_overdue(
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    hours: int = 24,
):
    """Candidates waiting longer than `hours` with no recent reminder"""
    return _read(await reminder.overdue(session, dashboard, hours))


@router.post("/send", response_model=SendResponse)
async def send_reminders(
    selection: SelectionRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    webhook: WebhookClient = Depends(get_webhook),
    queue: SendQueue = Depends(get_reminder_queue),
):
    sender = reminder.ReminderSender(dashboard, webhook, session=session, queue=queue)
    try:
        return _send_response(await sender.send(selection.delivery_ids))
    except DomainError as e:
        raise http_error(e)


@router.post("/resend", response_model=SendResponse)
async def resend_reminders(
    selection: SelectionRequest,
    dashboard: Dashboard = Depends(get_dashboard),
    session: AsyncSession = Depends(get_session),
    webhook: WebhookClient = Depends(get_webhook),
    queue: SendQueue = Depends(get_reminder_queue),
):
    sender = reminder.ReminderSender(dashboard, webhook, session=session, queue=queue)
    try:
        return _send_response(await sender.resend(selection.delivery_ids))
    except DomainError as e:
        raise http_error(e)


@router.post("/exclude", status_code=204)
async def exclude_reminders(selection: SelectionRequest, dashboard: Dashboard = Depends(get_dashboard)):
    """Hide deliveries from both buckets for this session"""
    reminder.exclude(dashboard, selection.delivery_ids)
    return None
