"""Entregas queries

Delivery reads always join the resident, the handling employee and the
building so one round trip is enough to render a report row.
"""
from datetime import datetime, timedelta
from typing import Dict, List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.exceptions import NotFoundError, ValidationError
from entregas_zap.domain.models import Condominio, Entrega, Funcionario, Morador
from entregas_zap.domain.models.entrega import (
    STATUS_CANCELADA,
    STATUS_PENDENTE,
    STATUS_RETIRADA,
    EntregaCreate,
)


class DeliveryJoin(NamedTuple):
    entrega: Entrega
    morador: Optional[Morador]
    funcionario: Optional[Funcionario]
    condominio: Optional[Condominio]


def _joined_query(condominio_id: Optional[UUID] = None, status: Optional[str] = None):
    query = (
        select(Entrega, Morador, Funcionario, Condominio)
        .outerjoin(Morador, Entrega.morador_id == Morador.id)
        .outerjoin(Funcionario, Entrega.funcionario_id == Funcionario.id)
        .outerjoin(Condominio, Entrega.condominio_id == Condominio.id)
    )

    if status:
        query = query.where(Entrega.status == status)

    if condominio_id:
        query = query.where(Entrega.condominio_id == condominio_id)

    return query.order_by(Entrega.data_entrega.desc())


async def _fetch_joined(session: AsyncSession, query) -> List[DeliveryJoin]:
    result = await session.execute(query)
    return [DeliveryJoin(*row) for row in result.all()]


async def fetch_deliveries(session: AsyncSession, condominio_id: Optional[UUID] = None) -> List[DeliveryJoin]:
    """Every delivery (any status), newest first"""
    return await _fetch_joined(session, _joined_query(condominio_id))


async def fetch_pending_deliveries(
    session: AsyncSession,
    condominio_id: Optional[UUID] = None,
) -> List[DeliveryJoin]:
    return await _fetch_joined(session, _joined_query(condominio_id, STATUS_PENDENTE))


async def fetch_deliveries_by_status(
    session: AsyncSession,
    status: str,
    condominio_id: Optional[UUID] = None,
) -> List[DeliveryJoin]:
    if status not in (STATUS_PENDENTE, STATUS_RETIRADA, STATUS_CANCELADA):
        raise ValidationError(f"Unknown delivery status: {status}")
    return await _fetch_joined(session, _joined_query(condominio_id, status))


async def create_delivery(session: AsyncSession, entrega: EntregaCreate) -> Entrega:
    db_entrega = Entrega.model_validate(entrega)
    session.add(db_entrega)
    await session.commit()
    await session.refresh(db_entrega)
    return db_entrega


async def _transition(session: AsyncSession, entrega_id: UUID, **changes) -> Entrega:
    """Move a pending delivery to a final status. Final statuses never change again."""
    db_entrega = await session.get(Entrega, entrega_id)
    if db_entrega is None:
        raise NotFoundError(f"Entrega {entrega_id} not found")

    if db_entrega.status != STATUS_PENDENTE:
        raise ValidationError(f"Entrega {entrega_id} is already {db_entrega.status}")

    for key, value in changes.items():
        setattr(db_entrega, key, value)
    db_entrega.updated_at = datetime.utcnow()

    session.add(db_entrega)
    await session.commit()
    await session.refresh(db_entrega)
    return db_entrega


async def mark_as_picked_up(
    session: AsyncSession,
    entrega_id: UUID,
    descricao: Optional[str] = None,
) -> Entrega:
    changes = {"status": STATUS_RETIRADA, "data_retirada": datetime.utcnow()}
    if descricao:
        changes["descricao_retirada"] = descricao
    return await _transition(session, entrega_id, **changes)


async def cancel_delivery(
    session: AsyncSession,
    entrega_id: UUID,
    motivo: Optional[str] = None,
    clear_photo: bool = False,
) -> Entrega:
    changes = {"status": STATUS_CANCELADA}
    if motivo:
        changes["observacoes"] = motivo
    if clear_photo:
        changes["foto_url"] = None
    return await _transition(session, entrega_id, **changes)


async def fetch_delivery_stats(
    session: AsyncSession,
    condominio_id: Optional[UUID] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, int]:
    """Counts per backend status for a period"""
    query = select(Entrega.status, func.count()).group_by(Entrega.status)

    if condominio_id:
        query = query.where(Entrega.condominio_id == condominio_id)

    if start_date:
        query = query.where(Entrega.data_entrega >= start_date)

    if end_date:
        query = query.where(Entrega.data_entrega <= end_date)

    result = await session.execute(query)
    counts = {status: count for status, count in result.all()}

    return {
        "total": sum(counts.values()),
        "pendentes": counts.get(STATUS_PENDENTE, 0),
        "retiradas": counts.get(STATUS_RETIRADA, 0),
        "canceladas": counts.get(STATUS_CANCELADA, 0),
    }


async def update_last_reminder(session: AsyncSession, entrega_id: UUID) -> Entrega:
    db_entrega = await session.get(Entrega, entrega_id)
    if db_entrega is None:
        raise NotFoundError(f"Entrega {entrega_id} not found")

    db_entrega.ultimo_lembrete_enviado = datetime.utcnow()
    session.add(db_entrega)
    await session.commit()
    await session.refresh(db_entrega)
    return db_entrega


async def fetch_deliveries_needing_reminder(
    session: AsyncSession,
    hours: int = 24,
    condominio_id: Optional[UUID] = None,
) -> List[DeliveryJoin]:
    """Pending for more than `hours`, never reminded or last reminded before that"""
    cutoff = datetime.utcnow() - timedelta(hours=hours)
    query = _joined_query(condominio_id, STATUS_PENDENTE).where(
        Entrega.data_entrega < cutoff,
        or_(Entrega.ultimo_lembrete_enviado.is_(None), Entrega.ultimo_lembrete_enviado < cutoff),
    )
    return await _fetch_joined(session, query)
