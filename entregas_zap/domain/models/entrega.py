"""Entrega (package delivery) model"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4


STATUS_PENDENTE = "pendente"
STATUS_RETIRADA = "retirada"
STATUS_CANCELADA = "cancelada"


class EntregaBase(SQLModel):
    condominio_id: Optional[UUID] = Field(foreign_key="condominios.id", default=None, index=True)
    morador_id: UUID = Field(foreign_key="moradores.id", index=True)
    funcionario_id: Optional[UUID] = Field(foreign_key="funcionarios.id", default=None)

    codigo_retirada: str = Field(index=True)  # 5 digits, shown to the resident
    foto_url: Optional[str] = None
    observacoes: Optional[str] = None
    mensagem_enviada: bool = Field(default=False)

    # Status: pendente -> retirada | cancelada
    status: str = Field(default=STATUS_PENDENTE, index=True)
    data_entrega: datetime = Field(default_factory=datetime.utcnow)
    data_retirada: Optional[datetime] = None
    descricao_retirada: Optional[str] = None  # Who picked it up
    ultimo_lembrete_enviado: Optional[datetime] = None


class Entrega(EntregaBase, table=True):
    __tablename__ = "entregas"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class EntregaCreate(EntregaBase):
    pass
