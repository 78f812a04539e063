"""Buildings, residents and staff management

Writes go to the database first; the dashboard lists change only once the
write returned. Buildings can only be managed by the super-admin; residents
and staff by managers and the super-admin, inside their own scope.
"""
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.adapters import (
    app_to_condominio,
    app_to_funcionario,
    app_to_morador,
    normalize_resident_fields,
)
from entregas_zap.domain.csv_io import parse_residents
from entregas_zap.domain.entities import EMPLOYEE_ROLES, Address, Condo, Employee, Resident, UserType
from entregas_zap.domain.exceptions import (
    AuthorizationError,
    DomainError,
    MissingIdentifierError,
    PersistenceError,
    ValidationError,
)
from entregas_zap.domain.models import Condominio
from entregas_zap.domain.models.condominio import CondominioUpdate
from entregas_zap.domain.models.funcionario import FuncionarioUpdate
from entregas_zap.domain.models.morador import MoradorUpdate
from entregas_zap.infrastructure.database.condominiums import (
    create_condominium,
    update_condominium,
    update_condominium_webhook,
)
from entregas_zap.infrastructure.database.employees import create_employee, update_employee
from entregas_zap.infrastructure.database.residents import (
    create_resident,
    deactivate_resident,
    update_resident,
)
from entregas_zap.workflows.dashboard import Dashboard

logger = structlog.get_logger()

MANAGER_ROLES = (UserType.SUPERADMIN, UserType.SINDICO)


def require_role(dashboard: Dashboard, *roles: UserType) -> None:
    if dashboard.user.tipo not in roles:
        raise AuthorizationError(f"{dashboard.user.tipo.value} cannot do this")


def _match_condominio(dashboard: Dashboard, name: str) -> Condominio:
    wanted = name.strip().lower()
    for condominio in dashboard.condominios:
        if condominio.nome.lower() == wanted:
            return condominio
    raise ValidationError("Condomínio selecionado não foi encontrado.")


def _native(dashboard: Dashboard, local_id: int, what: str) -> UUID:
    native_id = dashboard.ids.to_native_id(local_id)
    if native_id is None:
        raise MissingIdentifierError(f"{what} {local_id} has no database identifier")
    return native_id


async def _rollback(session: AsyncSession, event: str, error: Exception, **context) -> None:
    await session.rollback()
    logger.error(event, error=str(error), **context)


def _replace_condominio(dashboard: Dashboard, row: Condominio) -> None:
    dashboard.condominios = [row if c.id == row.id else c for c in dashboard.condominios]


# Residents

async def save_resident(
    session: AsyncSession,
    dashboard: Dashboard,
    name: str,
    apt: str,
    block: str,
    phone: str,
    condo: str,
    active: bool = True,
    resident_id: Optional[int] = None,
) -> Resident:
    """Create (resident_id None) or update a resident after normalizing it"""
    require_role(dashboard, *MANAGER_ROLES)
    if not name.strip() or not apt.strip() or not phone.strip() or not condo.strip():
        raise ValidationError("Name, apartment, phone and building are required")

    fields = normalize_resident_fields(name, apt, block, condo)
    condominio = _match_condominio(dashboard, fields["condo"])
    phone = phone.strip()

    try:
        if resident_id is None:
            draft = Resident(id=0, phone=phone, active=active, **fields)
            row = await create_resident(session, app_to_morador(draft, condominio.id))
        else:
            dashboard.get_resident(resident_id)
            row = await update_resident(
                session,
                _native(dashboard, resident_id, "Resident"),
                MoradorUpdate(
                    nome=fields["name"],
                    apartamento=fields["apt"],
                    bloco=fields["block"] or None,
                    telefone=phone,
                    ativo=active,
                    condominio_id=condominio.id,
                ),
            )
    except SQLAlchemyError as e:
        await _rollback(session, "resident_save_failed", e, name=fields["name"])
        raise PersistenceError("Não foi possível salvar o morador.") from e

    resident = dashboard.adapter.morador_to_app(row, dashboard.condominios)
    if resident_id is None:
        dashboard.residents.append(resident)
    else:
        dashboard.residents = [resident if r.id == resident.id else r for r in dashboard.residents]

    logger.info("resident_saved", resident_id=resident.id, condo=resident.condo, created=resident_id is None)
    return resident


async def remove_resident(session: AsyncSession, dashboard: Dashboard, resident_id: int) -> None:
    """Deactivate in the database and drop from the dashboard"""
    require_role(dashboard, *MANAGER_ROLES)
    dashboard.get_resident(resident_id)
    native_id = _native(dashboard, resident_id, "Resident")

    try:
        await deactivate_resident(session, native_id)
    except SQLAlchemyError as e:
        await _rollback(session, "resident_deactivate_failed", e, resident_id=resident_id)
        raise PersistenceError("Não foi possível excluir o morador.") from e

    dashboard.residents = [r for r in dashboard.residents if r.id != resident_id]
    logger.info("resident_deactivated", resident_id=resident_id)


@dataclass
class ImportReport:
    created: List[Resident] = field(default_factory=list)
    skipped_lines: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


async def import_residents(session: AsyncSession, dashboard: Dashboard, text: str) -> ImportReport:
    """Save every complete CSV row; one bad row does not stop the others"""
    require_role(dashboard, *MANAGER_ROLES)
    parsed = parse_residents(text)
    report = ImportReport(skipped_lines=parsed.skipped)

    for row in parsed.rows:
        try:
            resident = await save_resident(
                session, dashboard, row.name, row.apt, row.block, row.phone, row.condo
            )
        except DomainError as e:
            report.errors.append(f"{row.name}: {e}")
            continue
        report.created.append(resident)

    logger.info(
        "residents_imported",
        created=len(report.created),
        skipped=len(report.skipped_lines),
        errors=len(report.errors),
    )
    return report


# Staff

def _check_password(password: Optional[str], password_confirm: Optional[str]) -> None:
    if (password or password_confirm) and password != password_confirm:
        raise ValidationError("Passwords do not match")


def _check_role(role: str) -> None:
    if role not in EMPLOYEE_ROLES:
        raise ValidationError(f"Unknown role: {role}")


async def add_employee(
    session: AsyncSession,
    dashboard: Dashboard,
    name: str,
    cpf: str,
    condo: Optional[str] = None,
    role: str = "Porteiro",
    password: Optional[str] = None,
    password_confirm: Optional[str] = None,
    active: bool = True,
) -> Employee:
    require_role(dashboard, *MANAGER_ROLES)
    if not name.strip() or not cpf.strip():
        raise ValidationError("Name and CPF are required")
    _check_role(role)
    _check_password(password, password_confirm)

    condominio = _match_condominio(dashboard, condo or dashboard.user.condominio_nome or "")
    draft = Employee(
        id=0,
        name=name.strip(),
        cpf=cpf.strip(),
        password=password or None,
        role=role,
        condo=condominio.nome,
        active=active,
    )

    try:
        row = await create_employee(session, app_to_funcionario(draft, condominio.id))
    except SQLAlchemyError as e:
        await _rollback(session, "employee_save_failed", e, cpf=draft.cpf)
        raise PersistenceError("Não foi possível salvar o funcionário.") from e

    employee = dashboard.adapter.funcionario_to_app(row, dashboard.condominios)
    dashboard.employees.append(employee)
    logger.info("employee_created", employee_id=employee.id, condo=employee.condo, role=employee.role)
    return employee


async def edit_employee(
    session: AsyncSession,
    dashboard: Dashboard,
    employee_id: int,
    name: Optional[str] = None,
    cpf: Optional[str] = None,
    condo: Optional[str] = None,
    role: Optional[str] = None,
    password: Optional[str] = None,
    password_confirm: Optional[str] = None,
    active: Optional[bool] = None,
) -> Employee:
    require_role(dashboard, *MANAGER_ROLES)
    dashboard.get_employee(employee_id)
    native_id = _native(dashboard, employee_id, "Employee")

    changes = {}
    if name is not None:
        changes["nome"] = name.strip()
    if cpf is not None:
        changes["cpf"] = cpf.strip()
    if role is not None:
        _check_role(role)
        changes["cargo"] = role
    if password is not None or password_confirm is not None:
        _check_password(password, password_confirm)
        if password:
            changes["senha"] = password
    if condo is not None:
        changes["condominio_id"] = _match_condominio(dashboard, condo).id
    if active is not None:
        changes["ativo"] = active

    try:
        row = await update_employee(session, native_id, FuncionarioUpdate(**changes))
    except SQLAlchemyError as e:
        await _rollback(session, "employee_save_failed", e, employee_id=employee_id)
        raise PersistenceError("Não foi possível salvar o funcionário.") from e

    employee = dashboard.adapter.funcionario_to_app(row, dashboard.condominios)
    dashboard.employees = [employee if e.id == employee.id else e for e in dashboard.employees]
    logger.info("employee_updated", employee_id=employee.id)
    return employee


# Buildings

async def add_condo(
    session: AsyncSession,
    dashboard: Dashboard,
    name: str,
    address: Optional[Address] = None,
    webhook_url: Optional[str] = None,
) -> Condo:
    require_role(dashboard, UserType.SUPERADMIN)
    if not name.strip():
        raise ValidationError("Building name is required")

    draft = Condo(
        id=0,
        name=name.strip(),
        address=address or Address(),
        webhook_url=(webhook_url or "").strip() or None,
    )
    try:
        row = await create_condominium(session, app_to_condominio(draft))
    except SQLAlchemyError as e:
        await _rollback(session, "condo_save_failed", e, name=draft.name)
        raise PersistenceError("Não foi possível salvar o condomínio.") from e

    dashboard.condominios.append(row)
    condo = dashboard.adapter.condominio_to_app(row)
    dashboard.condos.append(condo)
    logger.info("condo_created", condo_id=condo.id, name=condo.name)
    return condo


async def edit_condo(
    session: AsyncSession,
    dashboard: Dashboard,
    condo_id: int,
    name: Optional[str] = None,
    address: Optional[Address] = None,
) -> Condo:
    require_role(dashboard, UserType.SUPERADMIN)
    old_name = dashboard.get_condo(condo_id).name
    native_id = _native(dashboard, condo_id, "Condo")

    changes = {}
    if name is not None:
        if not name.strip():
            raise ValidationError("Building name is required")
        changes["nome"] = name.strip()
    if address is not None:
        changes["endereco"] = address.street
        changes["cidade"] = address.city
        changes["estado"] = address.state or None

    try:
        row = await update_condominium(session, native_id, CondominioUpdate(**changes))
    except SQLAlchemyError as e:
        await _rollback(session, "condo_save_failed", e, condo_id=condo_id)
        raise PersistenceError("Não foi possível salvar o condomínio.") from e

    return _refresh_condo(dashboard, row, old_name)


async def set_condo_webhook(
    session: AsyncSession,
    dashboard: Dashboard,
    condo_id: int,
    webhook_url: Optional[str],
) -> Condo:
    """Set the building's webhook; a blank value falls back to the default"""
    require_role(dashboard, *MANAGER_ROLES)
    old_name = dashboard.get_condo(condo_id).name
    native_id = _native(dashboard, condo_id, "Condo")
    url = (webhook_url or "").strip() or None

    try:
        row = await update_condominium_webhook(session, native_id, url)
    except SQLAlchemyError as e:
        await _rollback(session, "webhook_save_failed", e, condo_id=condo_id)
        raise PersistenceError("Erro ao salvar webhook.") from e

    logger.info("condo_webhook_updated", condo_id=condo_id, custom=url is not None)
    return _refresh_condo(dashboard, row, old_name)


def _refresh_condo(dashboard: Dashboard, row: Condominio, old_name: str) -> Condo:
    _replace_condominio(dashboard, row)
    condo = dashboard.adapter.condominio_to_app(row)
    dashboard.condos = [condo if c.id == condo.id else c for c in dashboard.condos]

    if old_name != row.nome:
        # Residents and staff carry the building name
        dashboard.residents = [
            r.model_copy(update={"condo": row.nome}) if r.condo == old_name else r for r in dashboard.residents
        ]
        dashboard.employees = [
            e.model_copy(update={"condo": row.nome}) if e.condo == old_name else e for e in dashboard.employees
        ]
    return condo


def hide_condo(dashboard: Dashboard, condo_id: int) -> None:
    """Remove a building from this session's lists only"""
    require_role(dashboard, UserType.SUPERADMIN)
    condo = dashboard.get_condo(condo_id)
    native_id = dashboard.ids.to_native_id(condo_id)
    dashboard.hidden_condos.add(condo_id)
    dashboard.condos = [c for c in dashboard.condos if c.id != condo_id]
    dashboard.condominios = [c for c in dashboard.condominios if c.id != native_id]
    logger.info("condo_hidden", condo_id=condo_id, name=condo.name)
