"""Login lookups"""
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.models import SuperAdministrador


async def fetch_super_admin_by_cpf(session: AsyncSession, cpf: str) -> Optional[SuperAdministrador]:
    query = select(SuperAdministrador).where(
        SuperAdministrador.cpf == cpf,
        SuperAdministrador.ativo == True,  # noqa: E712
    )
    result = await session.execute(query)
    return result.scalar_one_or_none()
