"""
Test configuration and fixtures for pytest tests.
Provides an isolated in-memory SQLite database seeded with two buildings,
a fake notification webhook and dashboards for each kind of user.
"""
import json
import random
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain import models  # noqa: F401
from entregas_zap.domain.entities import AuthUser, UserType
from entregas_zap.domain.models import (
    Condominio,
    Entrega,
    Funcionario,
    Morador,
    SuperAdministrador,
)
from entregas_zap.infrastructure.webhook import WebhookClient
from entregas_zap.workflows.dashboard import Dashboard
from entregas_zap.workflows.queue import SendQueue

DEFAULT_WEBHOOK = "https://webhook.test/default"
TESTE_WEBHOOK = "https://webhook.test/residencial-teste"


class WebhookRecorder:
    """Stands in for the automation webhook; fails for phones in `fail_phones`"""

    def __init__(self):
        self.requests = []
        self.fail_phones = set()
        self.down = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("webhook unreachable", request=request)

        payload = json.loads(request.content)
        self.requests.append(SimpleNamespace(url=str(request.url), payload=payload))

        if payload.get("telefone") in self.fail_phones:
            return httpx.Response(500, text="erro")
        return httpx.Response(200, json={"ok": True})

    @property
    def payloads(self):
        return [r.payload for r in self.requests]

    def client(self) -> WebhookClient:
        return WebhookClient(default_url=DEFAULT_WEBHOOK, timeout=5.0, transport=httpx.MockTransport(self.handler))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def seeded(session):
    """Edifício Gran (default webhook) and Residencial Teste (own webhook)"""
    admin = SuperAdministrador(cpf="00000000000", nome="Administrador Geral", senha="admin123")
    gran = Condominio(
        nome="Edifício Gran",
        endereco="Rua das Flores, 100",
        cidade="São Paulo",
        estado="SP",
        sindico_nome="Carla Mendes",
        sindico_cpf="11111111111",
        sindico_senha="sindico123",
    )
    teste = Condominio(
        nome="Residencial Teste",
        cidade="Campinas",
        webhook_url=TESTE_WEBHOOK,
        sindico_nome="Roberto Lima",
        sindico_cpf="22222222222",
        sindico_senha="sindico123",
    )
    session.add_all([admin, gran, teste])
    await session.commit()

    porteiro = Funcionario(condominio_id=gran.id, cpf="33333333333", nome="José Porteiro", senha="123456")
    zelador = Funcionario(
        condominio_id=teste.id, cpf="44444444444", nome="Ana Zeladora", senha="123456", cargo="Zelador"
    )
    joao = Morador(condominio_id=gran.id, nome="João Silva", apartamento="101", bloco="A", telefone="(11) 99999-1111")
    maria = Morador(condominio_id=gran.id, nome="Maria Santos", apartamento="102", bloco="A", telefone="(11) 99999-2222")
    lucas = Morador(condominio_id=gran.id, nome="Lucas Santos", apartamento="102", bloco="A", telefone="(11) 99999-2223")
    pedro = Morador(condominio_id=teste.id, nome="Pedro Oliveira", apartamento="201", bloco="B", telefone="5511999993333")
    session.add_all([porteiro, zelador, joao, maria, lucas, pedro])
    await session.commit()

    pending = Entrega(
        condominio_id=gran.id,
        morador_id=joao.id,
        funcionario_id=porteiro.id,
        codigo_retirada="48213",
        mensagem_enviada=True,
    )
    session.add(pending)
    await session.commit()

    return SimpleNamespace(
        admin=admin,
        gran=gran,
        teste=teste,
        porteiro=porteiro,
        zelador=zelador,
        joao=joao,
        maria=maria,
        lucas=lucas,
        pedro=pedro,
        pending=pending,
    )


@pytest.fixture
def webhook():
    return WebhookRecorder()


@pytest.fixture
def webhook_client(webhook):
    return webhook.client()


@pytest.fixture
def queue():
    return SendQueue(0)


def superadmin_user(seeded) -> AuthUser:
    return AuthUser(id=seeded.admin.id, cpf=seeded.admin.cpf, nome=seeded.admin.nome, tipo=UserType.SUPERADMIN)


def sindico_user(seeded) -> AuthUser:
    return AuthUser(
        id=seeded.gran.id,
        cpf="11111111111",
        nome="Carla Mendes",
        tipo=UserType.SINDICO,
        condominio_id=seeded.gran.id,
        condominio_nome=seeded.gran.nome,
    )


def porteiro_user(seeded) -> AuthUser:
    return AuthUser(
        id=seeded.porteiro.id,
        cpf=seeded.porteiro.cpf,
        nome=seeded.porteiro.nome,
        tipo=UserType.FUNCIONARIO,
        condominio_id=seeded.gran.id,
        condominio_nome=seeded.gran.nome,
    )


@pytest.fixture
async def admin_dashboard(session, seeded):
    dashboard = Dashboard(superadmin_user(seeded), rng=random.Random(7))
    await dashboard.load(session)
    return dashboard


@pytest.fixture
async def sindico_dashboard(session, seeded):
    dashboard = Dashboard(sindico_user(seeded), rng=random.Random(7))
    await dashboard.load(session)
    return dashboard


@pytest.fixture
async def porteiro_dashboard(session, seeded):
    dashboard = Dashboard(porteiro_user(seeded), rng=random.Random(7))
    await dashboard.load(session)
    return dashboard


def resident_named(dashboard: Dashboard, name: str):
    return next(r for r in dashboard.residents if r.name == name)
