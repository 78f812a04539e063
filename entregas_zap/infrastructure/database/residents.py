"""Moradores queries"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.exceptions import NotFoundError
from entregas_zap.domain.models import Morador
from entregas_zap.domain.models.morador import MoradorCreate, MoradorUpdate


async def fetch_residents(session: AsyncSession, condominio_id: Optional[UUID] = None) -> List[Morador]:
    """Active residents, by name, optionally for one building"""
    query = select(Morador).where(Morador.ativo == True)  # noqa: E712

    if condominio_id:
        query = query.where(Morador.condominio_id == condominio_id)

    query = query.order_by(Morador.nome)
    result = await session.execute(query)
    return list(result.scalars().all())


async def fetch_resident_by_id(session: AsyncSession, morador_id: UUID) -> Optional[Morador]:
    result = await session.execute(select(Morador).where(Morador.id == morador_id))
    return result.scalar_one_or_none()


async def create_resident(session: AsyncSession, morador: MoradorCreate) -> Morador:
    db_morador = Morador.model_validate(morador)
    session.add(db_morador)
    await session.commit()
    await session.refresh(db_morador)
    return db_morador


async def update_resident(session: AsyncSession, morador_id: UUID, updates: MoradorUpdate) -> Morador:
    db_morador = await session.get(Morador, morador_id)
    if db_morador is None:
        raise NotFoundError(f"Morador {morador_id} not found")

    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_morador, key, value)
    db_morador.updated_at = datetime.utcnow()

    session.add(db_morador)
    await session.commit()
    await session.refresh(db_morador)
    return db_morador


async def deactivate_resident(session: AsyncSession, morador_id: UUID) -> Morador:
    return await update_resident(session, morador_id, MoradorUpdate(ativo=False))
