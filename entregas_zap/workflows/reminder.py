"""Reminders for packages still waiting at the front desk

Two buckets per dashboard: candidates (pending, not yet reminded in this
session) and sent. A successful reminder moves the delivery to "sent";
failures stay candidates. Excluding hides deliveries from both buckets for
the rest of the session without touching the database.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.config import settings
from entregas_zap.domain.clock import local_now, to_local
from entregas_zap.domain.entities import Delivery, DeliveryStatus, Resident
from entregas_zap.domain.exceptions import BusyError, DomainError, ValidationError
from entregas_zap.domain.messages import reminder_message
from entregas_zap.infrastructure.database.deliveries import (
    fetch_deliveries_needing_reminder,
    update_last_reminder,
)
from entregas_zap.infrastructure.webhook import WebhookClient, normalize_phone
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.queue import SendQueue

logger = structlog.get_logger()

DAY_FILTERS = ("today", "yesterday", "3days", "7days")


@dataclass
class ReminderItem:
    delivery: Delivery
    resident: Resident


@dataclass
class ReminderReport:
    succeeded: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)  # ids outside the bucket

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


def _pending_with_resident(dashboard: Dashboard) -> List[ReminderItem]:
    items = []
    for delivery in dashboard.deliveries:
        if delivery.status != DeliveryStatus.PENDING or delivery.id in dashboard.excluded_reminders:
            continue
        resident = dashboard.find_resident(delivery.resident_id)
        if resident is not None:
            items.append(ReminderItem(delivery=delivery, resident=resident))
    return items


def matches_day_filter(received_day: date, day_filter: Optional[str], today: date) -> bool:
    if not day_filter:
        return True
    if day_filter not in DAY_FILTERS:
        raise ValidationError(f"Unknown day filter: {day_filter}")

    days = abs((today - received_day).days)
    if day_filter == "today":
        return days == 0
    if day_filter == "yesterday":
        return days == 1
    if day_filter == "3days":
        return days >= 3
    return days >= 7


def _matches_search(item: ReminderItem, search: Optional[str]) -> bool:
    needle = (search or "").strip().lower()
    if not needle:
        return True
    fields = (item.resident.name, item.resident.apt, item.resident.block, item.delivery.code)
    return any(needle in value.lower() for value in fields)


def _filter(
    items: Iterable[ReminderItem],
    search: Optional[str],
    day_filter: Optional[str],
    today: Optional[date],
) -> List[ReminderItem]:
    today = today or local_now().date()
    return [
        item for item in items
        if _matches_search(item, search)
        and matches_day_filter(to_local(item.delivery.received_at).date(), day_filter, today)
    ]


def candidates(
    dashboard: Dashboard,
    search: Optional[str] = None,
    day_filter: Optional[str] = None,
    today: Optional[date] = None,
) -> List[ReminderItem]:
    items = [i for i in _pending_with_resident(dashboard) if i.delivery.id not in dashboard.sent_reminders]
    return _filter(items, search, day_filter, today)


def sent(
    dashboard: Dashboard,
    search: Optional[str] = None,
    day_filter: Optional[str] = None,
    today: Optional[date] = None,
) -> List[ReminderItem]:
    items = [i for i in _pending_with_resident(dashboard) if i.delivery.id in dashboard.sent_reminders]
    return _filter(items, search, day_filter, today)


async def overdue(session: AsyncSession, dashboard: Dashboard, hours: int = 24) -> List[ReminderItem]:
    """Candidates the database reports as waiting longer than `hours` without a reminder"""
    joins = await fetch_deliveries_needing_reminder(session, hours, dashboard.scope)
    wanted = {dashboard.ids.to_local_id(join.entrega.id) for join in joins}
    return [item for item in candidates(dashboard) if item.delivery.id in wanted]


def exclude(dashboard: Dashboard, delivery_ids: Iterable[int]) -> None:
    ids = set(delivery_ids)
    dashboard.excluded_reminders.update(ids)
    dashboard.sent_reminders.difference_update(ids)


class ReminderSender:
    def __init__(
        self,
        dashboard: Dashboard,
        webhook: WebhookClient,
        session: Optional[AsyncSession] = None,
        queue: Optional[SendQueue] = None,
    ):
        self.dashboard = dashboard
        self.webhook = webhook
        self.session = session
        self.queue = queue or SendQueue(settings.reminder_delay_seconds)

    async def send(self, delivery_ids: Iterable[int]) -> ReminderReport:
        """Remind candidates; successes move to the sent bucket"""
        report = await self._run(delivery_ids, candidates(self.dashboard))
        self.dashboard.sent_reminders.update(report.succeeded)
        return report

    async def resend(self, delivery_ids: Iterable[int]) -> ReminderReport:
        """Remind again deliveries already in the sent bucket"""
        return await self._run(delivery_ids, sent(self.dashboard))

    async def _run(self, delivery_ids: Iterable[int], bucket: List[ReminderItem]) -> ReminderReport:
        if self.dashboard.is_sending:
            raise BusyError("A send is already in progress")

        by_id: Dict[int, ReminderItem] = {item.delivery.id: item for item in bucket}
        report = ReminderReport()
        items = []
        for delivery_id in delivery_ids:
            if delivery_id in by_id:
                items.append(by_id[delivery_id])
            else:
                report.skipped.append(delivery_id)

        self.dashboard.is_sending = True
        try:
            batch = await self.queue.run(items, self._remind)
        finally:
            self.dashboard.is_sending = False

        report.succeeded = [item.delivery.id for item in batch.succeeded]
        report.failed = [item.delivery.id for item in batch.failed]
        logger.info(
            "reminders_finished",
            succeeded=len(report.succeeded),
            failed=len(report.failed),
            skipped=len(report.skipped),
        )
        return report

    async def _remind(self, item: ReminderItem) -> bool:
        resident = item.resident
        delivery = item.delivery
        condo = self.dashboard.find_condo(resident.condo)

        payload = {
            "condominio": resident.condo,
            "morador": resident.name,
            "mensagem": reminder_message(
                resident.condo, resident.name, delivery.code, to_local(delivery.received_at)
            ),
            "telefone": normalize_phone(resident.phone),
        }

        ok = await self.webhook.post(self.webhook.resolve_url(condo.webhook_url if condo else None), payload)
        if ok:
            await self._stamp(delivery)
        return ok

    async def _stamp(self, delivery: Delivery) -> None:
        """Record the reminder time on the backend row; a failure only logs"""
        if self.session is None or delivery.native_id is None:
            return
        try:
            await update_last_reminder(self.session, delivery.native_id)
        except (SQLAlchemyError, DomainError) as e:
            await self.session.rollback()
            logger.warning("reminder_stamp_failed", code=delivery.code, error=str(e))
