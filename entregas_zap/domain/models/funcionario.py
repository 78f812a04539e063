"""Funcionario (front-desk staff) model"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4


class FuncionarioBase(SQLModel):
    condominio_id: UUID = Field(foreign_key="condominios.id", index=True)
    cpf: str = Field(index=True)
    nome: str = Field(index=True)
    senha: str  # Plaintext, compared as-is on login
    cargo: str = Field(default="Porteiro")
    ativo: bool = Field(default=True)


class Funcionario(FuncionarioBase, table=True):
    __tablename__ = "funcionarios"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class FuncionarioCreate(FuncionarioBase):
    pass


class FuncionarioUpdate(SQLModel):
    cpf: Optional[str] = None
    nome: Optional[str] = None
    senha: Optional[str] = None
    cargo: Optional[str] = None
    condominio_id: Optional[UUID] = None
    ativo: Optional[bool] = None
