"""Morador (resident) model"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4


class MoradorBase(SQLModel):
    condominio_id: UUID = Field(foreign_key="condominios.id", index=True)
    nome: str = Field(index=True)
    apartamento: str = Field(index=True)  # "101", "1203"
    bloco: Optional[str] = None  # "A", "B" - some buildings have no blocks
    telefone: str  # Free-form, normalized only when sending
    ativo: bool = Field(default=True)


class Morador(MoradorBase, table=True):
    __tablename__ = "moradores"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MoradorCreate(MoradorBase):
    pass


class MoradorUpdate(SQLModel):
    nome: Optional[str] = None
    apartamento: Optional[str] = None
    bloco: Optional[str] = None
    telefone: Optional[str] = None
    condominio_id: Optional[UUID] = None
    ativo: Optional[bool] = None
