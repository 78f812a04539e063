"""Super administrator model - sees every building"""
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4


class SuperAdministrador(SQLModel, table=True):
    __tablename__ = "super_administradores"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    cpf: str = Field(index=True, unique=True)
    nome: str
    senha: str
    ativo: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
