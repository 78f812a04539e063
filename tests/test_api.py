"""Tests for the HTTP API, driven through httpx against the ASGI app"""
import httpx
import pytest

from entregas_zap.api.deps import (
    get_broadcast_queue,
    get_reminder_queue,
    get_send_queue,
    get_storage,
    get_webhook,
)
from entregas_zap.infrastructure.database import get_session
from entregas_zap.main import app
from entregas_zap.workflows.queue import SendQueue

GRAN = "Edifício Gran"


@pytest.fixture
async def client(session, seeded, webhook_client):
    async def override_session():
        yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_webhook] = lambda: webhook_client
    app.dependency_overrides[get_storage] = lambda: None
    for dependency in (get_send_queue, get_reminder_queue, get_broadcast_queue):
        app.dependency_overrides[dependency] = lambda: SendQueue(0)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def login(client, cpf, senha):
    response = await client.post("/api/v1/auth/login", json={"cpf": cpf, "senha": senha})
    assert response.status_code == 200, response.text
    return {"X-Session-Id": response.json()["session_id"]}


@pytest.fixture
async def porteiro(client):
    return await login(client, "33333333333", "123456")


@pytest.fixture
async def sindico(client):
    return await login(client, "11111111111", "sindico123")


@pytest.fixture
async def admin(client):
    return await login(client, "00000000000", "admin123")


def by_name(items, name):
    return next(item for item in items if item["name"] == name)


class TestAuth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json() == {"status": "healthy", "service": "entregas-zap-backend"}

    async def test_wrong_password(self, client):
        response = await client.post("/api/v1/auth/login", json={"cpf": "33333333333", "senha": "x"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Senha incorreta"

    async def test_me(self, client, porteiro):
        response = await client.get("/api/v1/auth/me", headers=porteiro)

        assert response.status_code == 200
        assert response.json()["tipo"] == "funcionario"
        assert response.json()["condominio_nome"] == GRAN

    async def test_session_header_required(self, client):
        assert (await client.get("/api/v1/auth/me")).status_code == 422
        assert (await client.get("/api/v1/auth/me", headers={"X-Session-Id": "nope"})).status_code == 401

    async def test_logout(self, client, porteiro):
        assert (await client.post("/api/v1/auth/logout", headers=porteiro)).status_code == 204
        assert (await client.get("/api/v1/auth/me", headers=porteiro)).status_code == 401


class TestDeliveryFlow:
    async def test_register_lookup_and_confirm(self, client, porteiro, webhook):
        form = (
            await client.get(
                "/api/v1/deliveries/form", params={"condo": GRAN, "block": "A", "apt": "102"}, headers=porteiro
            )
        ).json()
        assert form["condos"] == [GRAN]
        assert form["blocks"] == ["A"]
        assert form["apartments"] == ["101", "102"]
        maria = by_name(form["residents"], "Maria Santos")

        selected = await client.put(
            "/api/v1/deliveries/form/service", json={"service": "Encomendas/Produtos"}, headers=porteiro
        )
        code = selected.json()["code"]
        assert len(code) == 5

        registered = await client.post(
            "/api/v1/deliveries/register",
            json={"resident_ids": [maria["id"]], "observation": "Caixa grande"},
            headers=porteiro,
        )
        body = registered.json()
        assert registered.status_code == 200
        assert body["succeeded"] == 1
        assert body["deliveries"][0]["code"] == code
        assert body["deliveries"][0]["status"] == "pending"
        assert body["deliveries"][0]["persistence"]["kind"] == "persisted"
        assert f"Código de retirada na portaria: *{code}*" in webhook.payloads[0]["mensagem"]

        lookup = await client.get(f"/api/v1/pickups/lookup/{code}", headers=porteiro)
        assert lookup.status_code == 200
        assert lookup.json()["resident"]["name"] == "Maria Santos"
        assert "Filho(a)" in lookup.json()["pickup_options"]

        delivery_id = lookup.json()["delivery"]["id"]
        confirmed = await client.post(f"/api/v1/pickups/{delivery_id}/confirm", json={}, headers=porteiro)
        assert confirmed.status_code == 200
        assert confirmed.json()["delivery"]["status"] == "picked-up"
        assert confirmed.json()["delivery"]["picked_up_by"] == "O proprio(a)"
        assert confirmed.json()["notified"] is True

        again = await client.get(f"/api/v1/pickups/lookup/{code}", headers=porteiro)
        assert again.status_code == 404
        assert again.json()["detail"] == "Nenhuma entrega pendente encontrada com este código"

        picked_up = (await client.get("/api/v1/pickups/", headers=porteiro)).json()
        assert [d["code"] for d in picked_up] == [code]

    async def test_confirm_twice_is_rejected(self, client, porteiro):
        delivery_id = (await client.get("/api/v1/pickups/lookup/48213", headers=porteiro)).json()["delivery"]["id"]

        first = await client.post(f"/api/v1/pickups/{delivery_id}/confirm", json={}, headers=porteiro)
        second = await client.post(f"/api/v1/pickups/{delivery_id}/confirm", json={}, headers=porteiro)

        assert first.status_code == 200
        assert second.status_code == 400

    async def test_short_code(self, client, porteiro):
        assert (await client.get("/api/v1/pickups/lookup/482", headers=porteiro)).status_code == 400

    async def test_register_needs_a_service(self, client, porteiro):
        response = await client.post("/api/v1/deliveries/register", json={"resident_ids": [1]}, headers=porteiro)
        assert response.status_code == 400

    async def test_unknown_service(self, client, porteiro):
        response = await client.put("/api/v1/deliveries/form/service", json={"service": "Correios"}, headers=porteiro)
        assert response.status_code == 400

    async def test_invalid_photo(self, client, porteiro):
        response = await client.post(
            "/api/v1/deliveries/register",
            json={"resident_ids": [1], "photo": {"content_base64": "not base64!"}},
            headers=porteiro,
        )
        assert response.status_code == 400

    async def test_cancel(self, client, porteiro):
        delivery_id = (await client.get("/api/v1/pickups/lookup/48213", headers=porteiro)).json()["delivery"]["id"]

        response = await client.post(
            f"/api/v1/deliveries/{delivery_id}/cancel", json={"reason": "Recusada"}, headers=porteiro
        )

        assert response.json()["status"] == "cancelled"
        listed = (await client.get("/api/v1/deliveries/", params={"status": "cancelled"}, headers=porteiro)).json()
        assert [d["id"] for d in listed] == [delivery_id]

    async def test_report_export_and_stats(self, client, porteiro):
        export = await client.get("/api/v1/deliveries/export.csv", headers=porteiro)
        assert export.headers["content-type"].startswith("text/csv")
        assert export.text.splitlines()[0].startswith("Código;Morador")
        assert "48213;João Silva;101 / A;José Porteiro;Pendente" in export.text

        stats = (await client.get("/api/v1/deliveries/stats", headers=porteiro)).json()
        assert stats["backend"]["pendentes"] == 1
        assert stats["dashboard"]["deliveries_pending"] == 1

    async def test_hide_deliveries(self, client, porteiro):
        delivery_id = (await client.get("/api/v1/pickups/lookup/48213", headers=porteiro)).json()["delivery"]["id"]

        response = await client.delete("/api/v1/deliveries/", params={"ids": [delivery_id]}, headers=porteiro)

        assert response.status_code == 204
        assert (await client.get("/api/v1/deliveries/", headers=porteiro)).json() == []

        await client.post("/api/v1/sessions/reload", headers=porteiro)
        assert (await client.get("/api/v1/deliveries/", headers=porteiro)).json() == []


class TestDirectoryApi:
    async def test_resident_crud(self, client, sindico):
        created = await client.post(
            "/api/v1/residents/",
            json={"name": "ana paula", "apt": "301", "block": "c", "phone": "11 95555-0000", "condo": GRAN},
            headers=sindico,
        )
        assert created.status_code == 201
        resident = created.json()
        assert resident["name"] == "Ana Paula"

        patched = await client.patch(f"/api/v1/residents/{resident['id']}", json={"apt": "302"}, headers=sindico)
        assert patched.json()["apt"] == "302"
        assert patched.json()["block"] == "C"

        assert (await client.delete(f"/api/v1/residents/{resident['id']}", headers=sindico)).status_code == 204
        names = [r["name"] for r in (await client.get("/api/v1/residents/", headers=sindico)).json()]
        assert "Ana Paula" not in names

    async def test_staff_cannot_create_residents(self, client, porteiro):
        response = await client.post(
            "/api/v1/residents/",
            json={"name": "Ana", "apt": "301", "phone": "11", "condo": GRAN},
            headers=porteiro,
        )
        assert response.status_code == 403

    async def test_csv_import_and_export(self, client, sindico):
        example = await client.get("/api/v1/residents/example.csv")
        assert example.text.startswith("name;apartment;block;phone;building\n")

        imported = await client.post(
            "/api/v1/residents/import",
            json={"content": "\ufeffname;apartment;block;phone;building\nBia Lima;501;E;11 93333-0000;Edifício Gran\n"},
            headers=sindico,
        )
        assert [r["name"] for r in imported.json()["created"]] == ["Bia Lima"]

        exported = (await client.get("/api/v1/residents/export.csv", headers=sindico)).text
        assert "Bia Lima;501;E;11 93333-0000;Edifício Gran" in exported

    async def test_grouped(self, client, sindico):
        grouped = (await client.get("/api/v1/residents/grouped", headers=sindico)).json()
        assert sorted(grouped["A"]) == ["101", "102"]
        assert len(grouped["A"]["102"]) == 2

    async def test_employees(self, client, sindico):
        created = await client.post(
            "/api/v1/employees/",
            json={"name": "Rita", "cpf": "66666666666", "password": "abc", "password_confirm": "abc"},
            headers=sindico,
        )
        assert created.status_code == 201
        assert created.json()["condo"] == GRAN

        patched = await client.patch(f"/api/v1/employees/{created.json()['id']}", json={"active": False}, headers=sindico)
        assert patched.json()["active"] is False
        active = (await client.get("/api/v1/employees/", params={"active": True}, headers=sindico)).json()
        assert [e["name"] for e in active] == ["José Porteiro"]

        mismatch = await client.post(
            "/api/v1/employees/",
            json={"name": "Rui", "cpf": "7", "password": "abc", "password_confirm": "x"},
            headers=sindico,
        )
        assert mismatch.status_code == 400

    async def test_webhook_setting(self, client, sindico):
        gran = (await client.get("/api/v1/condominiums/", headers=sindico)).json()[0]

        custom = await client.put(
            f"/api/v1/condominiums/{gran['id']}/webhook", json={"webhook_url": "https://hooks/gran"}, headers=sindico
        )
        assert custom.json()["effective_url"] == "https://hooks/gran"

        cleared = await client.put(f"/api/v1/condominiums/{gran['id']}/webhook", json={"webhook_url": ""}, headers=sindico)
        assert cleared.json()["condo"]["webhook_url"] is None
        assert cleared.json()["effective_url"] == "https://webhook.test/default"

    async def test_buildings_are_super_admin_only(self, client, sindico, admin):
        body = {"name": "Solar", "address": {"city": "Santos"}}
        assert (await client.post("/api/v1/condominiums/", json=body, headers=sindico)).status_code == 403

        created = await client.post("/api/v1/condominiums/", json=body, headers=admin)
        assert created.status_code == 201

        renamed = await client.patch(
            f"/api/v1/condominiums/{created.json()['id']}", json={"name": "Solar Novo"}, headers=admin
        )
        assert renamed.json()["name"] == "Solar Novo"

        hidden = await client.delete(f"/api/v1/condominiums/{created.json()['id']}", headers=admin)
        assert hidden.status_code == 204
        names = [c["name"] for c in (await client.get("/api/v1/condominiums/", headers=admin)).json()]
        assert names == [GRAN, "Residencial Teste"]


class TestMessagingApi:
    async def test_reminders(self, client, porteiro, webhook):
        buckets = (await client.get("/api/v1/reminders/", headers=porteiro)).json()
        delivery_id = buckets["pending"][0]["delivery"]["id"]
        assert buckets["sent"] == []

        sent = await client.post("/api/v1/reminders/send", json={"delivery_ids": [delivery_id, 999]}, headers=porteiro)
        assert sent.json() == {"attempted": 1, "succeeded": [delivery_id], "failed": [], "skipped": [999]}

        buckets = (await client.get("/api/v1/reminders/", headers=porteiro)).json()
        assert buckets["pending"] == []
        assert buckets["sent"][0]["resident"]["name"] == "João Silva"

        resent = await client.post("/api/v1/reminders/resend", json={"delivery_ids": [delivery_id]}, headers=porteiro)
        assert resent.json()["succeeded"] == [delivery_id]
        assert len(webhook.requests) == 2

        excluded = await client.post("/api/v1/reminders/exclude", json={"delivery_ids": [delivery_id]}, headers=porteiro)
        assert excluded.status_code == 204
        assert (await client.get("/api/v1/reminders/", headers=porteiro)).json() == {"pending": [], "sent": []}

    async def test_reminder_day_filter(self, client, porteiro):
        assert (await client.get("/api/v1/reminders/", params={"day": "month"}, headers=porteiro)).status_code == 400
        assert (await client.get("/api/v1/reminders/overdue", headers=porteiro)).json() == []

    async def test_broadcast(self, client, sindico, porteiro, webhook):
        residents = (await client.get("/api/v1/residents/", headers=sindico)).json()

        response = await client.post(
            "/api/v1/messages/broadcast",
            json={"resident_ids": [r["id"] for r in residents], "text": "Assembleia sexta"},
            headers=sindico,
        )
        assert response.json()["attempted"] == 3
        assert {p["tipo"] for p in webhook.payloads} == {"mensagem_sindico"}

        forbidden = await client.post(
            "/api/v1/messages/broadcast", json={"resident_ids": [1], "text": "oi"}, headers=porteiro
        )
        assert forbidden.status_code == 403

    async def test_reload(self, client, porteiro):
        response = await client.post("/api/v1/sessions/reload", headers=porteiro)

        assert response.json()["residents"] == 3
        assert response.json()["deliveries"] == 1
