"""Reshape Supabase rows into dashboard entities and back"""
from typing import Iterable, Optional
from uuid import UUID

from entregas_zap.domain.entities import (
    Address,
    Condo,
    Delivery,
    DeliveryStatus,
    Employee,
    Persisted,
    Resident,
)
from entregas_zap.domain.identity import IdentityMap
from entregas_zap.domain.models import Condominio, Entrega, Funcionario, Morador
from entregas_zap.domain.models.condominio import CondominioCreate
from entregas_zap.domain.models.entrega import (
    STATUS_CANCELADA,
    STATUS_PENDENTE,
    STATUS_RETIRADA,
    EntregaCreate,
)
from entregas_zap.domain.models.funcionario import FuncionarioCreate
from entregas_zap.domain.models.morador import MoradorCreate

DEFAULT_EMPLOYEE_PASSWORD = "123456"

STATUS_TO_APP = {
    STATUS_PENDENTE: DeliveryStatus.PENDING,
    STATUS_RETIRADA: DeliveryStatus.PICKED_UP,
    STATUS_CANCELADA: DeliveryStatus.CANCELLED,
}


def to_title_case(value: str) -> str:
    """'maria SANTOS' -> 'Maria Santos' (word by word, keeps single spaces)"""
    if not value:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split(" "))


def normalize_resident_fields(name: str, apt: str, block: str, condo: str) -> dict:
    """Normalization applied to every resident write (form save and CSV import)"""
    return {
        "name": to_title_case(name.strip()),
        "apt": apt.strip(),
        "block": block.strip().upper(),
        "condo": to_title_case(condo.strip()),
    }


def _condo_name(condominio_id: Optional[UUID], condominios: Iterable[Condominio]) -> str:
    for condominio in condominios:
        if condominio.id == condominio_id:
            return condominio.nome
    return ""


class RowAdapter:
    """Turns backend rows into entities using one session's identity map."""

    def __init__(self, ids: IdentityMap):
        self.ids = ids

    def condominio_to_app(self, row: Condominio) -> Condo:
        return Condo(
            id=self.ids.to_local_id(row.id),
            name=row.nome,
            address=Address(
                street=row.endereco or "",
                city=row.cidade or "",
                state=row.estado or "",
            ),
            webhook_url=row.webhook_url or None,
        )

    def morador_to_app(self, row: Morador, condominios: Iterable[Condominio]) -> Resident:
        return Resident(
            id=self.ids.to_local_id(row.id),
            name=row.nome,
            apt=row.apartamento,
            block=row.bloco or "",
            phone=row.telefone,
            condo=_condo_name(row.condominio_id, condominios),
            active=row.ativo,
        )

    def funcionario_to_app(self, row: Funcionario, condominios: Iterable[Condominio]) -> Employee:
        return Employee(
            id=self.ids.to_local_id(row.id),
            name=row.nome,
            cpf=row.cpf,
            role=row.cargo,
            condo=_condo_name(row.condominio_id, condominios),
            active=row.ativo,
        )

    def entrega_to_app(self, row: Entrega) -> Delivery:
        return Delivery(
            id=self.ids.to_local_id(row.id),
            persistence=Persisted(native_id=row.id),
            code=row.codigo_retirada,
            resident_id=self.ids.to_local_id(row.morador_id),
            employee_id=self.ids.to_local_id(row.funcionario_id) if row.funcionario_id else 0,
            status=STATUS_TO_APP.get(row.status, DeliveryStatus.PENDING),
            received_at=row.data_entrega,
            picked_up_at=row.data_retirada,
            photo_url=row.foto_url or None,
            picked_up_by=row.descricao_retirada or None,
            observation=row.observacoes or None,
        )


# Reverse: entities -> insert payloads

def app_to_condominio(condo: Condo) -> CondominioCreate:
    return CondominioCreate(
        nome=condo.name,
        endereco=condo.address.street,
        cidade=condo.address.city,
        estado=condo.address.state or None,
        cep="00000-000",
        webhook_url=condo.webhook_url,
        ativo=True,
    )


def app_to_morador(resident: Resident, condominio_id: UUID) -> MoradorCreate:
    return MoradorCreate(
        nome=resident.name,
        apartamento=resident.apt,
        bloco=resident.block or None,
        telefone=resident.phone,
        condominio_id=condominio_id,
        ativo=resident.active,
    )


def app_to_funcionario(employee: Employee, condominio_id: UUID) -> FuncionarioCreate:
    return FuncionarioCreate(
        cpf=employee.cpf,
        nome=employee.name,
        senha=employee.password or DEFAULT_EMPLOYEE_PASSWORD,
        cargo=employee.role,
        condominio_id=condominio_id,
        ativo=employee.active,
    )


def app_to_entrega(
    delivery: Delivery,
    morador_id: UUID,
    funcionario_id: Optional[UUID],
    condominio_id: UUID,
) -> EntregaCreate:
    return EntregaCreate(
        codigo_retirada=delivery.code,
        morador_id=morador_id,
        funcionario_id=funcionario_id,
        condominio_id=condominio_id,
        foto_url=delivery.photo_url,
        observacoes=delivery.observation,
        mensagem_enviada=True,  # Only persisted after the webhook accepted it
        status=STATUS_PENDENTE,
    )
