"""Free-text messages from the building manager to residents"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

import structlog

from entregas_zap.config import settings
from entregas_zap.domain.clock import local_now
from entregas_zap.domain.entities import Resident, UserType
from entregas_zap.domain.exceptions import AuthorizationError, BusyError, ValidationError
from entregas_zap.domain.messages import manager_message
from entregas_zap.infrastructure.webhook import WebhookClient, normalize_phone
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.queue import SendQueue

logger = structlog.get_logger()

BROADCAST_ROLES = (UserType.SINDICO, UserType.SUPERADMIN)


@dataclass
class BroadcastReport:
    succeeded: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


async def broadcast(
    dashboard: Dashboard,
    webhook: WebhookClient,
    resident_ids: Iterable[int],
    text: str,
    queue: Optional[SendQueue] = None,
    now: Optional[datetime] = None,
) -> BroadcastReport:
    if dashboard.user.tipo not in BROADCAST_ROLES:
        raise AuthorizationError("Only building managers can send messages to residents")
    if not text or not text.strip():
        raise ValidationError("Message text is required")
    if dashboard.is_sending:
        raise BusyError("A send is already in progress")

    residents = [dashboard.get_resident(resident_id) for resident_id in resident_ids]
    if not residents:
        raise ValidationError("Select at least one resident")

    queue = queue or SendQueue(settings.broadcast_delay_seconds)
    now = now or local_now()
    sindico = dashboard.user.nome

    async def send(resident: Resident) -> bool:
        condo = dashboard.find_condo(resident.condo)
        payload = {
            "condominio": resident.condo,
            "morador": resident.name,
            "nome": resident.name,
            "mensagem": manager_message(resident.condo, resident.name, sindico, text, now),
            "telefone": normalize_phone(resident.phone),
            "tipo": "mensagem_sindico",
            "sindico": sindico,
            "data_envio": now.isoformat(),
        }
        return await webhook.post(webhook.resolve_url(condo.webhook_url if condo else None), payload)

    dashboard.is_sending = True
    try:
        batch = await queue.run(residents, send)
    finally:
        dashboard.is_sending = False

    report = BroadcastReport(
        succeeded=[r.id for r in batch.succeeded],
        failed=[r.id for r in batch.failed],
    )
    logger.info("broadcast_finished", sindico=sindico, attempted=report.attempted, succeeded=len(report.succeeded))
    return report
