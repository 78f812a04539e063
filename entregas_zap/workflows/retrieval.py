"""Code lookup and pickup confirmation"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.clock import local_now
from entregas_zap.domain.entities import Delivery, DeliveryStatus
from entregas_zap.domain.exceptions import MissingIdentifierError, PersistenceError, ValidationError
from entregas_zap.domain.messages import PICKUP_OPTIONS, pickup_message
from entregas_zap.infrastructure.database.deliveries import cancel_delivery, mark_as_picked_up
from entregas_zap.infrastructure.storage import SupabaseStorageClient
from entregas_zap.infrastructure.webhook import WebhookClient, normalize_phone
from entregas_zap.workflows.dashboard import Dashboard

logger = structlog.get_logger()

MIN_CODE_LENGTH = 5


@dataclass
class PickupResult:
    delivery: Delivery
    notified: bool


def find_pending_by_code(dashboard: Dashboard, code: str) -> Optional[Delivery]:
    """Pending delivery with exactly this code; None for shorter input

    Residents registered together share a code. The newest pending one comes
    back first.
    """
    code = code.strip()
    if len(code) < MIN_CODE_LENGTH:
        return None

    for delivery in dashboard.deliveries:
        if delivery.code == code and delivery.status == DeliveryStatus.PENDING:
            return delivery
    return None


def _pending_native_id(delivery: Delivery) -> UUID:
    if delivery.status != DeliveryStatus.PENDING:
        raise ValidationError(f"Delivery {delivery.code} is already {delivery.status.value}")
    native_id = delivery.native_id
    if native_id is None:
        raise MissingIdentifierError(f"Delivery {delivery.code} was never saved to the database")
    return native_id


async def confirm_pickup(
    session: AsyncSession,
    dashboard: Dashboard,
    webhook: WebhookClient,
    delivery_id: int,
    picked_up_by: str,
    now: Optional[datetime] = None,
) -> PickupResult:
    """
    Mark a delivery as picked up, then tell the resident

    The local record changes only after the database accepted the update. The
    confirmation message is best effort: if it fails the pickup stands.
    """
    if picked_up_by not in PICKUP_OPTIONS:
        raise ValidationError(f"Unknown pickup person: {picked_up_by}")

    delivery = dashboard.get_delivery(delivery_id)
    native_id = _pending_native_id(delivery)

    try:
        row = await mark_as_picked_up(session, native_id, picked_up_by)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("pickup_persist_failed", code=delivery.code, error=str(e))
        raise PersistenceError("Could not save the pickup") from e

    delivery = delivery.model_copy(
        update={
            "status": DeliveryStatus.PICKED_UP,
            "picked_up_at": row.data_retirada,
            "picked_up_by": picked_up_by,
        }
    )
    dashboard.replace_delivery(delivery)
    logger.info("delivery_picked_up", code=delivery.code, picked_up_by=picked_up_by)

    notified = await _send_confirmation(dashboard, webhook, delivery, now or local_now())
    return PickupResult(delivery=delivery, notified=notified)


async def _send_confirmation(
    dashboard: Dashboard,
    webhook: WebhookClient,
    delivery: Delivery,
    now: datetime,
) -> bool:
    resident = dashboard.find_resident(delivery.resident_id)
    if resident is None:
        logger.warning("pickup_confirmation_skipped", code=delivery.code, reason="resident_not_loaded")
        return False

    condo = dashboard.find_condo(resident.condo)
    payload = {
        "condominio": resident.condo,
        "morador": resident.name,
        "mensagem": pickup_message(resident.condo, resident.name, delivery.code, delivery.picked_up_by, now),
        "telefone": normalize_phone(resident.phone),
        "codigo_retirada": delivery.code,
        "tipo": "confirmacao_retirada",
        "retirado_por": delivery.picked_up_by,
    }

    sent = await webhook.post(webhook.resolve_url(condo.webhook_url if condo else None), payload)
    if not sent:
        logger.warning("pickup_confirmation_not_sent", code=delivery.code)
    return sent


async def cancel_pending(
    session: AsyncSession,
    dashboard: Dashboard,
    delivery_id: int,
    reason: Optional[str] = None,
    storage: Optional[SupabaseStorageClient] = None,
) -> Delivery:
    """Cancel a pending delivery. Its photo is removed from storage when one is configured."""
    delivery = dashboard.get_delivery(delivery_id)
    native_id = _pending_native_id(delivery)
    photo_url = delivery.photo_url if storage is not None else None

    try:
        await cancel_delivery(session, native_id, reason, clear_photo=photo_url is not None)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("cancel_persist_failed", code=delivery.code, error=str(e))
        raise PersistenceError("Could not cancel the delivery") from e

    changes = {"status": DeliveryStatus.CANCELLED, "observation": reason or delivery.observation}
    if photo_url:
        changes["photo_url"] = None
    delivery = delivery.model_copy(update=changes)
    dashboard.replace_delivery(delivery)
    logger.info("delivery_cancelled", code=delivery.code)

    if photo_url and not await storage.delete_photo(photo_url):
        logger.warning("cancelled_photo_not_deleted", code=delivery.code, url=photo_url)
    return delivery
