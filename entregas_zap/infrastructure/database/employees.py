"""Funcionarios queries"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.exceptions import NotFoundError
from entregas_zap.domain.models import Funcionario
from entregas_zap.domain.models.funcionario import FuncionarioCreate, FuncionarioUpdate


async def fetch_employees(session: AsyncSession, condominio_id: Optional[UUID] = None) -> List[Funcionario]:
    """Active staff, by name, optionally for one building"""
    query = select(Funcionario).where(Funcionario.ativo == True)  # noqa: E712

    if condominio_id:
        query = query.where(Funcionario.condominio_id == condominio_id)

    query = query.order_by(Funcionario.nome)
    result = await session.execute(query)
    return list(result.scalars().all())


async def fetch_employee_by_cpf(session: AsyncSession, cpf: str) -> Optional[Funcionario]:
    """Active staff member with this CPF (login)"""
    query = select(Funcionario).where(
        Funcionario.cpf == cpf,
        Funcionario.ativo == True,  # noqa: E712
    )
    result = await session.execute(query)
    return result.scalars().first()


async def create_employee(session: AsyncSession, funcionario: FuncionarioCreate) -> Funcionario:
    db_funcionario = Funcionario.model_validate(funcionario)
    session.add(db_funcionario)
    await session.commit()
    await session.refresh(db_funcionario)
    return db_funcionario


async def update_employee(
    session: AsyncSession,
    funcionario_id: UUID,
    updates: FuncionarioUpdate,
) -> Funcionario:
    db_funcionario = await session.get(Funcionario, funcionario_id)
    if db_funcionario is None:
        raise NotFoundError(f"Funcionario {funcionario_id} not found")

    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_funcionario, key, value)
    db_funcionario.updated_at = datetime.utcnow()

    session.add(db_funcionario)
    await session.commit()
    await session.refresh(db_funcionario)
    return db_funcionario
