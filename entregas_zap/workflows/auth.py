"""Login: one CPF, three kinds of account

Accounts are checked in order: super-administrator, front-desk staff, then
building manager (stored on the building row). The first account found for
the CPF decides; a wrong password there fails the login.
"""
import structlog
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.entities import AuthUser, UserType
from entregas_zap.domain.exceptions import AuthenticationError, ValidationError
from entregas_zap.infrastructure.database.accounts import fetch_super_admin_by_cpf
from entregas_zap.infrastructure.database.condominiums import (
    fetch_condominium_by_id,
    fetch_condominium_by_sindico_cpf,
)
from entregas_zap.infrastructure.database.employees import fetch_employee_by_cpf

logger = structlog.get_logger()


def _check_password(stored: str, given: str, cpf: str, tipo: UserType) -> None:
    if stored != given:
        logger.warning("login_rejected", cpf=cpf, tipo=tipo.value, reason="wrong_password")
        raise AuthenticationError("Senha incorreta")


async def login(session: AsyncSession, cpf: str, senha: str) -> AuthUser:
    cpf = cpf.strip()
    if not cpf or not senha:
        raise ValidationError("CPF and password are required")

    admin = await fetch_super_admin_by_cpf(session, cpf)
    if admin is not None:
        _check_password(admin.senha, senha, cpf, UserType.SUPERADMIN)
        user = AuthUser(id=admin.id, cpf=admin.cpf, nome=admin.nome, tipo=UserType.SUPERADMIN)
        logger.info("login_succeeded", cpf=cpf, tipo=user.tipo.value)
        return user

    funcionario = await fetch_employee_by_cpf(session, cpf)
    if funcionario is not None:
        _check_password(funcionario.senha, senha, cpf, UserType.FUNCIONARIO)
        condominio = await fetch_condominium_by_id(session, funcionario.condominio_id)
        user = AuthUser(
            id=funcionario.id,
            cpf=funcionario.cpf,
            nome=funcionario.nome,
            tipo=UserType.FUNCIONARIO,
            condominio_id=funcionario.condominio_id,
            condominio_nome=condominio.nome if condominio else None,
        )
        logger.info("login_succeeded", cpf=cpf, tipo=user.tipo.value)
        return user

    condominio = await fetch_condominium_by_sindico_cpf(session, cpf)
    if condominio is not None:
        _check_password(condominio.sindico_senha or "", senha, cpf, UserType.SINDICO)
        user = AuthUser(
            id=condominio.sindico_id or condominio.id,
            cpf=condominio.sindico_cpf,
            nome=condominio.sindico_nome or "Síndico",
            tipo=UserType.SINDICO,
            condominio_id=condominio.id,
            condominio_nome=condominio.nome,
        )
        logger.info("login_succeeded", cpf=cpf, tipo=user.tipo.value)
        return user

    logger.warning("login_rejected", cpf=cpf, reason="unknown_cpf")
    raise AuthenticationError("CPF não encontrado ou inativo")
