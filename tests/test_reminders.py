"""Tests for reminder buckets, day filters and reminder sends"""
from datetime import date, datetime, timedelta

import pytest

from entregas_zap.domain.clock import to_local
from entregas_zap.domain.entities import DeliveryStatus
from entregas_zap.domain.exceptions import BusyError, ValidationError
from entregas_zap.domain.models import Entrega
from entregas_zap.workflows import reminder
from entregas_zap.workflows.retrieval import find_pending_by_code


@pytest.fixture
async def old_delivery(session, seeded):
    """Maria's package, waiting for four days"""
    entrega = Entrega(
        condominio_id=seeded.gran.id,
        morador_id=seeded.maria.id,
        funcionario_id=seeded.porteiro.id,
        codigo_retirada="70001",
        data_entrega=datetime.utcnow() - timedelta(days=4),
        mensagem_enviada=True,
    )
    session.add(entrega)
    await session.commit()
    return entrega


@pytest.fixture
async def dashboard(session, old_delivery, porteiro_dashboard):
    await porteiro_dashboard.load(session)
    return porteiro_dashboard


def codes(items):
    return sorted(item.delivery.code for item in items)


class TestDayFilter:
    today = date(2025, 3, 10)

    @pytest.mark.parametrize(
        "received, day_filter, expected",
        [
            (date(2025, 3, 10), None, True),
            (date(2025, 3, 10), "today", True),
            (date(2025, 3, 9), "today", False),
            (date(2025, 3, 9), "yesterday", True),
            (date(2025, 3, 8), "yesterday", False),
            (date(2025, 3, 7), "3days", True),
            (date(2025, 3, 8), "3days", False),
            (date(2025, 3, 3), "7days", True),
            (date(2025, 3, 4), "7days", False),
        ],
    )
    def test_matches(self, received, day_filter, expected):
        assert reminder.matches_day_filter(received, day_filter, self.today) is expected

    def test_unknown_filter(self):
        with pytest.raises(ValidationError):
            reminder.matches_day_filter(self.today, "month", self.today)


class TestBuckets:
    def test_pending_deliveries_are_candidates(self, dashboard):
        assert codes(reminder.candidates(dashboard)) == ["48213", "70001"]
        assert reminder.sent(dashboard) == []

    def test_search_matches_name_apartment_block_or_code(self, dashboard):
        assert codes(reminder.candidates(dashboard, search="maria")) == ["70001"]
        assert codes(reminder.candidates(dashboard, search="101")) == ["48213"]
        assert codes(reminder.candidates(dashboard, search="a")) == ["48213", "70001"]
        assert codes(reminder.candidates(dashboard, search="7000")) == ["70001"]

    def test_day_filter_uses_local_received_day(self, dashboard, seeded):
        today = to_local(seeded.pending.data_entrega).date()

        assert codes(reminder.candidates(dashboard, day_filter="today", today=today)) == ["48213"]
        assert codes(reminder.candidates(dashboard, day_filter="3days", today=today)) == ["70001"]

    def test_picked_up_deliveries_are_not_candidates(self, dashboard):
        delivery = find_pending_by_code(dashboard, "48213")
        dashboard.replace_delivery(delivery.model_copy(update={"status": DeliveryStatus.PICKED_UP}))

        assert codes(reminder.candidates(dashboard)) == ["70001"]

    def test_exclude_hides_from_both_buckets(self, dashboard):
        delivery = find_pending_by_code(dashboard, "70001")
        dashboard.sent_reminders.add(delivery.id)

        reminder.exclude(dashboard, [delivery.id])

        assert codes(reminder.candidates(dashboard)) == ["48213"]
        assert reminder.sent(dashboard) == []


class TestReminderSender:
    async def test_success_moves_to_sent_and_stamps_database(self, session, dashboard, old_delivery, webhook, webhook_client, queue):
        delivery = find_pending_by_code(dashboard, "70001")

        report = await reminder.ReminderSender(dashboard, webhook_client, session=session, queue=queue).send([delivery.id])

        assert report.succeeded == [delivery.id]
        assert codes(reminder.sent(dashboard)) == ["70001"]
        assert codes(reminder.candidates(dashboard)) == ["48213"]
        assert old_delivery.ultimo_lembrete_enviado is not None

        payload = webhook.payloads[0]
        assert payload["telefone"] == "5511999992222"
        assert "*70001*" in payload["mensagem"]
        assert to_local(old_delivery.data_entrega).strftime("%d/%m/%Y") in payload["mensagem"]

    async def test_failure_stays_candidate(self, session, dashboard, webhook, webhook_client, queue):
        webhook.fail_phones.add("5511999992222")
        ids = [find_pending_by_code(dashboard, c).id for c in ("48213", "70001")]

        report = await reminder.ReminderSender(dashboard, webhook_client, session=session, queue=queue).send(ids)

        assert report.succeeded == [ids[0]]
        assert report.failed == [ids[1]]
        assert report.attempted == 2
        assert codes(reminder.candidates(dashboard)) == ["70001"]

    async def test_ids_outside_the_bucket_are_skipped(self, session, dashboard, webhook, webhook_client, queue):
        report = await reminder.ReminderSender(dashboard, webhook_client, session=session, queue=queue).send([999])

        assert report.skipped == [999]
        assert report.attempted == 0
        assert webhook.requests == []

    async def test_resend_only_from_sent_bucket(self, session, dashboard, webhook, webhook_client, queue):
        sender = reminder.ReminderSender(dashboard, webhook_client, session=session, queue=queue)
        delivery = find_pending_by_code(dashboard, "70001")
        other = find_pending_by_code(dashboard, "48213")
        await sender.send([delivery.id])

        report = await sender.resend([delivery.id, other.id])

        assert report.succeeded == [delivery.id]
        assert report.skipped == [other.id]
        assert codes(reminder.sent(dashboard)) == ["70001"]

    async def test_works_without_a_database_session(self, dashboard, webhook_client, queue):
        delivery = find_pending_by_code(dashboard, "70001")
        report = await reminder.ReminderSender(dashboard, webhook_client, queue=queue).send([delivery.id])
        assert report.succeeded == [delivery.id]

    async def test_busy(self, dashboard, webhook_client, queue):
        dashboard.is_sending = True
        with pytest.raises(BusyError):
            await reminder.ReminderSender(dashboard, webhook_client, queue=queue).send([1])


class TestOverdue:
    async def test_lists_only_long_waiting_packages(self, session, dashboard):
        items = await reminder.overdue(session, dashboard, hours=24)

        assert codes(items) == ["70001"]
        assert items[0].resident.name == "Maria Santos"

    async def test_reminded_packages_drop_out(self, session, dashboard, webhook_client, queue):
        delivery = find_pending_by_code(dashboard, "70001")
        await reminder.ReminderSender(dashboard, webhook_client, session=session, queue=queue).send([delivery.id])
        dashboard.sent_reminders.clear()

        assert await reminder.overdue(session, dashboard, hours=24) == []

    async def test_other_buildings_are_out_of_scope(self, session, seeded, dashboard):
        session.add(
            Entrega(
                condominio_id=seeded.teste.id,
                morador_id=seeded.pedro.id,
                codigo_retirada="80002",
                data_entrega=datetime.utcnow() - timedelta(days=3),
            )
        )
        await session.commit()

        assert codes(await reminder.overdue(session, dashboard, hours=24)) == ["70001"]
