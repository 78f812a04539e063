"""Per-login dashboard state

Each login gets a :class:`Dashboard`: its own identity map, the role-scoped
entity lists it serves, the reminder buckets and the new-delivery form. The
lists are a cache of the backend; :meth:`Dashboard.load` refreshes them while
keeping local ids stable.
"""
import random
import secrets
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

import structlog
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.adapters import RowAdapter
from entregas_zap.domain.delivery_form import DeliveryForm
from entregas_zap.domain.entities import (
    AuthUser,
    Condo,
    Delivery,
    DeliveryStatus,
    Employee,
    Resident,
    UserType,
)
from entregas_zap.domain.exceptions import AuthenticationError, NotFoundError
from entregas_zap.domain.identity import IdentityMap
from entregas_zap.domain.models import Condominio
from entregas_zap.infrastructure.database.condominiums import fetch_condominiums
from entregas_zap.infrastructure.database.deliveries import fetch_deliveries
from entregas_zap.infrastructure.database.employees import fetch_employees
from entregas_zap.infrastructure.database.residents import fetch_residents

logger = structlog.get_logger()


class Dashboard:
    def __init__(self, user: AuthUser, rng: Optional[random.Random] = None):
        self.user = user
        self.ids = IdentityMap()
        self.adapter = RowAdapter(self.ids)
        self.rng = rng or random.Random()

        self.condominios: List[Condominio] = []
        self.condos: List[Condo] = []
        self.residents: List[Resident] = []
        self.employees: List[Employee] = []
        self.deliveries: List[Delivery] = []

        # Reminder buckets live only as long as the login
        self.sent_reminders: Set[int] = set()
        self.excluded_reminders: Set[int] = set()
        # Hidden records stay in the database
        self.hidden_condos: Set[int] = set()
        self.hidden_deliveries: Set[int] = set()

        self.form = DeliveryForm(rng=self.rng, taken_codes=self.pending_codes)
        self.is_sending = False
        self.loaded_at: Optional[datetime] = None

    @property
    def scope(self) -> Optional[UUID]:
        """Building the user is limited to; None for the super-admin"""
        if self.user.tipo == UserType.SUPERADMIN:
            return None
        return self.user.condominio_id

    async def load(self, session: AsyncSession) -> None:
        scope = self.scope
        condominios = await fetch_condominiums(session)
        if scope is not None:
            condominios = [c for c in condominios if c.id == scope]

        if condominios:
            moradores = await fetch_residents(session, scope)
            funcionarios = await fetch_employees(session, scope)
            joins = await fetch_deliveries(session, scope)
        else:
            # Without buildings the joins would all come out empty
            moradores, funcionarios, joins = [], [], []

        condos = [self.adapter.condominio_to_app(c) for c in condominios]
        self.residents = [self.adapter.morador_to_app(m, condominios) for m in moradores]
        self.employees = [self.adapter.funcionario_to_app(f, condominios) for f in funcionarios]
        self.condominios = [c for c, condo in zip(condominios, condos) if condo.id not in self.hidden_condos]
        self.condos = [c for c in condos if c.id not in self.hidden_condos]

        local_only = [d for d in self.deliveries if d.native_id is None]
        deliveries = [self.adapter.entrega_to_app(j.entrega) for j in joins] + local_only
        deliveries = [d for d in deliveries if d.id not in self.hidden_deliveries]
        self.deliveries = sorted(deliveries, key=lambda d: d.received_at, reverse=True)
        self.loaded_at = datetime.utcnow()

        logger.info(
            "dashboard_loaded",
            user=self.user.cpf,
            tipo=self.user.tipo.value,
            condos=len(self.condos),
            residents=len(self.residents),
            employees=len(self.employees),
            deliveries=len(self.deliveries),
            local_only=len(local_only),
        )

    # Lookups

    def find_condo(self, name: str) -> Optional[Condo]:
        wanted = name.strip().lower()
        for condo in self.condos:
            if condo.name.lower() == wanted:
                return condo
        return None

    def get_condo(self, condo_id: int) -> Condo:
        for condo in self.condos:
            if condo.id == condo_id:
                return condo
        raise NotFoundError(f"Condo {condo_id} not found")

    def get_resident(self, resident_id: int) -> Resident:
        for resident in self.residents:
            if resident.id == resident_id:
                return resident
        raise NotFoundError(f"Resident {resident_id} not found")

    def find_resident(self, resident_id: int) -> Optional[Resident]:
        for resident in self.residents:
            if resident.id == resident_id:
                return resident
        return None

    def get_employee(self, employee_id: int) -> Employee:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        raise NotFoundError(f"Employee {employee_id} not found")

    def get_delivery(self, delivery_id: int) -> Delivery:
        for delivery in self.deliveries:
            if delivery.id == delivery_id:
                return delivery
        raise NotFoundError(f"Delivery {delivery_id} not found")

    def replace_delivery(self, delivery: Delivery) -> None:
        self.deliveries = [delivery if d.id == delivery.id else d for d in self.deliveries]

    def hide_deliveries(self, delivery_ids: Iterable[int]) -> None:
        """Drop deliveries from this session's lists, across reloads too"""
        wanted = set(delivery_ids)
        self.hidden_deliveries |= wanted
        self.deliveries = [d for d in self.deliveries if d.id not in wanted]
        logger.info("deliveries_hidden", count=len(wanted))

    def pending_codes(self) -> Set[str]:
        return {d.code for d in self.deliveries if d.status == DeliveryStatus.PENDING}

    def active_employees(self, condo_name: Optional[str] = None) -> List[Employee]:
        return [
            e for e in self.employees
            if e.active and (condo_name is None or e.condo.lower() == condo_name.lower())
        ]

    # Cascading form options: building -> block -> apartment -> residents

    def _residents_of(self, condo_name: str) -> List[Resident]:
        wanted = condo_name.strip().lower()
        return [r for r in self.residents if r.active and r.condo.lower() == wanted]

    def blocks_for(self, condo_name: str) -> List[str]:
        return sorted({r.block for r in self._residents_of(condo_name) if r.block})

    def apartments_for(self, condo_name: str, block: Optional[str] = None) -> List[str]:
        residents = self._residents_of(condo_name)
        if block:
            residents = [r for r in residents if r.block == block.strip().upper()]
        return sorted({r.apt for r in residents})

    def residents_at(self, condo_name: str, block: Optional[str], apt: str) -> List[Resident]:
        residents = [r for r in self._residents_of(condo_name) if r.apt == apt.strip()]
        if block:
            residents = [r for r in residents if r.block == block.strip().upper()]
        return residents


class SessionRegistry:
    """Live dashboards keyed by the token handed out at login"""

    def __init__(self):
        self._dashboards: Dict[str, Dashboard] = {}

    def open(self, dashboard: Dashboard) -> str:
        token = secrets.token_urlsafe(24)
        self._dashboards[token] = dashboard
        return token

    def get(self, token: str) -> Dashboard:
        dashboard = self._dashboards.get(token)
        if dashboard is None:
            raise AuthenticationError("Session expired or unknown")
        return dashboard

    def close(self, token: str) -> None:
        self._dashboards.pop(token, None)

    def __len__(self) -> int:
        return len(self._dashboards)
