"""Condominios queries"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.exceptions import NotFoundError
from entregas_zap.domain.models import Condominio
from entregas_zap.domain.models.condominio import CondominioCreate, CondominioUpdate


async def fetch_condominiums(session: AsyncSession) -> List[Condominio]:
    """All active buildings, by name"""
    query = select(Condominio).where(Condominio.ativo == True).order_by(Condominio.nome)  # noqa: E712
    result = await session.execute(query)
    return list(result.scalars().all())


async def fetch_condominium_by_id(session: AsyncSession, condominio_id: UUID) -> Optional[Condominio]:
    result = await session.execute(select(Condominio).where(Condominio.id == condominio_id))
    return result.scalar_one_or_none()


async def fetch_condominium_by_sindico_cpf(session: AsyncSession, cpf: str) -> Optional[Condominio]:
    query = select(Condominio).where(
        Condominio.sindico_cpf == cpf,
        Condominio.ativo == True,  # noqa: E712
    )
    result = await session.execute(query)
    return result.scalars().first()


async def create_condominium(session: AsyncSession, condominio: CondominioCreate) -> Condominio:
    db_condo = Condominio.model_validate(condominio)
    session.add(db_condo)
    await session.commit()
    await session.refresh(db_condo)
    return db_condo


async def update_condominium(
    session: AsyncSession,
    condominio_id: UUID,
    updates: CondominioUpdate,
) -> Condominio:
    db_condo = await session.get(Condominio, condominio_id)
    if db_condo is None:
        raise NotFoundError(f"Condominio {condominio_id} not found")

    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_condo, key, value)
    db_condo.updated_at = datetime.utcnow()

    session.add(db_condo)
    await session.commit()
    await session.refresh(db_condo)
    return db_condo


async def update_condominium_webhook(
    session: AsyncSession,
    condominio_id: UUID,
    webhook_url: Optional[str],
) -> Condominio:
    """Set or clear (None) the building's webhook override"""
    return await update_condominium(session, condominio_id, CondominioUpdate(webhook_url=webhook_url))
