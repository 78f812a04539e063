"""Condominio (building) model - top-level tenant scope"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4


class CondominioBase(SQLModel):
    nome: str = Field(index=True)
    endereco: str = ""
    cidade: str = ""
    cep: str = "00000-000"
    estado: Optional[str] = None
    telefone: Optional[str] = None
    email: Optional[str] = None
    cnpj: Optional[str] = None
    webhook_url: Optional[str] = None  # Overrides the default notification webhook

    # Building manager (síndico) credentials live on the building row
    sindico_id: Optional[UUID] = None
    sindico_nome: Optional[str] = None
    sindico_cpf: Optional[str] = Field(default=None, index=True)
    sindico_senha: Optional[str] = None
    sindico_telefone: Optional[str] = None

    ativo: bool = Field(default=True)


class Condominio(CondominioBase, table=True):
    __tablename__ = "condominios"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CondominioCreate(CondominioBase):
    pass


class CondominioUpdate(SQLModel):
    nome: Optional[str] = None
    endereco: Optional[str] = None
    cidade: Optional[str] = None
    cep: Optional[str] = None
    estado: Optional[str] = None
    telefone: Optional[str] = None
    webhook_url: Optional[str] = None
    ativo: Optional[bool] = None
