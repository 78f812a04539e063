"""Dashboard-facing entities.

These are the shapes the API serves: every id is a small session-local integer
assigned by :class:`~entregas_zap.domain.identity.IdentityMap`, and joins are
denormalized (a resident carries its building *name*, not a foreign key).
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    PICKED_UP = "picked-up"
    CANCELLED = "cancelled"


class UserType(str, Enum):
    SUPERADMIN = "superadmin"
    SINDICO = "sindico"
    FUNCIONARIO = "funcionario"


EMPLOYEE_ROLES = ("Porteiro", "Zelador", "Administrador", "Síndico")


class Persisted(BaseModel):
    """The record exists in the backend under ``native_id``."""
    kind: Literal["persisted"] = "persisted"
    native_id: UUID


class LocalOnly(BaseModel):
    """The record only exists in this session (backend write skipped or failed)."""
    kind: Literal["local_only"] = "local_only"


Persistence = Annotated[Union[Persisted, LocalOnly], Field(discriminator="kind")]


class Address(BaseModel):
    street: str = ""
    number: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""


class Condo(BaseModel):
    id: int
    name: str
    address: Address = Field(default_factory=Address)
    webhook_url: Optional[str] = None


class Resident(BaseModel):
    id: int
    name: str
    apt: str
    block: str = ""
    phone: str
    condo: str = ""
    active: bool = True


class Employee(BaseModel):
    id: int
    name: str
    cpf: str
    password: Optional[str] = None
    role: str = "Porteiro"
    condo: str = ""
    active: bool = True


class Delivery(BaseModel):
    id: int
    persistence: Persistence = Field(default_factory=LocalOnly)
    code: str
    resident_id: int
    employee_id: int = 0  # 0 when no handler was assigned
    status: DeliveryStatus = DeliveryStatus.PENDING
    received_at: datetime
    picked_up_at: Optional[datetime] = None
    photo_url: Optional[str] = None
    picked_up_by: Optional[str] = None
    observation: Optional[str] = None

    @property
    def native_id(self) -> Optional[UUID]:
        if isinstance(self.persistence, Persisted):
            return self.persistence.native_id
        return None


class AuthUser(BaseModel):
    id: UUID
    cpf: str
    nome: str
    tipo: UserType
    condominio_id: Optional[UUID] = None
    condominio_nome: Optional[str] = None
