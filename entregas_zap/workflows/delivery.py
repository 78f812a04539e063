"""Register arrivals and notify residents

For every selected resident, in order: render the message, POST it to the
building webhook and, for packages, record the delivery once the webhook
accepted it. One resident's failure never stops the batch.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.config import settings
from entregas_zap.domain.adapters import app_to_entrega
from entregas_zap.domain.clock import local_now
from entregas_zap.domain.entities import Delivery, Persisted, Resident
from entregas_zap.domain.exceptions import BusyError, ValidationError
from entregas_zap.domain.messages import package_message, service_message
from entregas_zap.infrastructure.database.deliveries import create_delivery
from entregas_zap.infrastructure.storage import SupabaseStorageClient
from entregas_zap.infrastructure.webhook import WebhookClient, normalize_phone
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.queue import SendQueue

logger = structlog.get_logger()


@dataclass
class PhotoUpload:
    content: bytes
    filename: str
    content_type: str = "image/jpeg"


@dataclass
class RegistrationResult:
    service: str
    code: Optional[str]
    attempted: int = 0
    succeeded: int = 0
    failed_resident_ids: List[int] = field(default_factory=list)
    deliveries: List[Delivery] = field(default_factory=list)
    photo_url: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


class DeliveryRegistration:
    """One submission of the new-delivery form"""

    def __init__(
        self,
        session: AsyncSession,
        dashboard: Dashboard,
        webhook: WebhookClient,
        storage: Optional[SupabaseStorageClient] = None,
        queue: Optional[SendQueue] = None,
    ):
        self.session = session
        self.dashboard = dashboard
        self.webhook = webhook
        self.storage = storage
        self.queue = queue or SendQueue(settings.send_delay_seconds)

    async def submit(
        self,
        resident_ids: Sequence[int],
        observation: Optional[str] = None,
        photo: Optional[PhotoUpload] = None,
        now: Optional[datetime] = None,
    ) -> RegistrationResult:
        dashboard = self.dashboard
        form = dashboard.form

        if dashboard.is_sending:
            raise BusyError("A send is already in progress")
        if form.service is None:
            raise ValidationError("Select a service first")
        if not resident_ids:
            raise ValidationError("Select at least one resident")

        residents = [dashboard.get_resident(resident_id) for resident_id in resident_ids]
        observation = (observation or "").strip() or None
        now = now or local_now()

        result = RegistrationResult(service=form.service, code=form.code)
        dashboard.is_sending = True
        try:
            if photo is not None:
                result.photo_url = await self._upload(photo, result)

            async def send(resident: Resident) -> bool:
                return await self._notify(resident, observation, now, result)

            report = await self.queue.run(residents, send)
        finally:
            dashboard.is_sending = False

        result.attempted = report.attempted
        result.succeeded = len(report.succeeded)
        result.failed_resident_ids = [r.id for r in report.failed]

        if report.succeeded:
            form.reset()

        logger.info(
            "delivery_registration_finished",
            service=result.service,
            code=result.code,
            attempted=result.attempted,
            succeeded=result.succeeded,
            warnings=len(result.warnings),
        )
        return result

    async def _upload(self, photo: PhotoUpload, result: RegistrationResult) -> Optional[str]:
        if self.storage is None:
            result.warnings.append("Photo storage is not configured; sending without photo")
            return None

        url = await self.storage.upload_photo(photo.content, photo.filename, content_type=photo.content_type)
        if url is None:
            result.warnings.append("Photo upload failed; sending without photo")
        return url

    def _payload(
        self,
        resident: Resident,
        observation: Optional[str],
        now: datetime,
        result: RegistrationResult,
    ) -> Dict[str, Any]:
        form = self.dashboard.form
        if form.is_package:
            message = package_message(resident.condo, resident.name, form.code, now)
        else:
            message = service_message(resident.condo, resident.name, form.service, now)

        payload: Dict[str, Any] = {
            "condominio": resident.condo,
            "morador": resident.name,
            "mensagem": message,
            "telefone": normalize_phone(resident.phone),
        }
        if result.photo_url:
            payload["foto_url"] = result.photo_url
        if observation:
            payload["observacao"] = observation
        if form.is_package:
            payload["codigo_retirada"] = form.code
        else:
            payload["servico"] = form.service
        return payload

    async def _notify(
        self,
        resident: Resident,
        observation: Optional[str],
        now: datetime,
        result: RegistrationResult,
    ) -> bool:
        condo = self.dashboard.find_condo(resident.condo)
        url = self.webhook.resolve_url(condo.webhook_url if condo else None)

        sent = await self.webhook.post(url, self._payload(resident, observation, now, result))
        if not sent:
            return False

        if self.dashboard.form.is_package:
            result.deliveries.append(await self._record(resident, observation, result))
        return True

    async def _record(
        self,
        resident: Resident,
        observation: Optional[str],
        result: RegistrationResult,
    ) -> Delivery:
        """Store the delivery after a successful notification.

        Falls back to a local-only record when an identifier is missing or
        the insert fails; the resident has been notified either way.
        """
        dashboard = self.dashboard
        ids = dashboard.ids

        candidates = dashboard.active_employees(resident.condo)
        employee = dashboard.rng.choice(candidates) if candidates else None

        delivery = Delivery(
            id=ids.synthesize(),
            code=dashboard.form.code,
            resident_id=resident.id,
            employee_id=employee.id if employee else 0,
            received_at=datetime.utcnow(),
            photo_url=result.photo_url,
            observation=observation,
        )

        condo = dashboard.find_condo(resident.condo)
        morador_id = ids.to_native_id(resident.id)
        condominio_id = ids.to_native_id(condo.id) if condo else None
        funcionario_id = ids.to_native_id(employee.id) if employee else None

        if morador_id is None or condominio_id is None:
            logger.warning(
                "delivery_saved_locally",
                reason="missing_identifier",
                resident=resident.name,
                condo=resident.condo,
                code=delivery.code,
            )
            result.warnings.append(f"Delivery for {resident.name} saved only in this session (missing identifier)")
        else:
            try:
                row = await create_delivery(
                    self.session,
                    app_to_entrega(delivery, morador_id, funcionario_id, condominio_id),
                )
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error("delivery_persist_failed", resident=resident.name, code=delivery.code, error=str(e))
                result.warnings.append(f"Delivery for {resident.name} saved only in this session (database error)")
            else:
                ids.bind(delivery.id, row.id)
                delivery = delivery.model_copy(
                    update={"persistence": Persisted(native_id=row.id), "received_at": row.data_entrega}
                )

        dashboard.deliveries.insert(0, delivery)
        return delivery
