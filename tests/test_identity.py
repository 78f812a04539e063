"""Tests for session-local ids and row adapters"""
from datetime import datetime
from uuid import uuid4

import pytest

from entregas_zap.domain.adapters import (
    RowAdapter,
    app_to_funcionario,
    normalize_resident_fields,
    to_title_case,
)
from entregas_zap.domain.entities import DeliveryStatus, Employee, LocalOnly, Persisted
from entregas_zap.domain.identity import IdentityMap
from entregas_zap.domain.models import Condominio, Entrega, Funcionario, Morador


class TestIdentityMap:
    def test_same_native_id_always_gets_same_local_id(self):
        ids = IdentityMap()
        native = uuid4()

        first = ids.to_local_id(native)
        ids.to_local_id(uuid4())

        assert ids.to_local_id(native) == first
        assert ids.to_native_id(first) == native

    def test_distinct_native_ids_never_share_a_local_id(self):
        ids = IdentityMap()
        natives = [uuid4() for _ in range(50)]

        locals_ = [ids.to_local_id(n) for n in natives]

        assert len(set(locals_)) == 50
        assert locals_ == list(range(1, 51))

    def test_synthesized_ids_have_no_native_until_bound(self):
        ids = IdentityMap()
        ids.to_local_id(uuid4())

        local_id = ids.synthesize()
        assert local_id == 2
        assert ids.to_native_id(local_id) is None

        native = uuid4()
        ids.bind(local_id, native)
        assert ids.to_native_id(local_id) == native
        assert ids.to_local_id(native) == local_id

    def test_bind_refuses_to_remap(self):
        ids = IdentityMap()
        native = uuid4()
        local_id = ids.to_local_id(native)
        other = ids.synthesize()

        with pytest.raises(ValueError):
            ids.bind(other, native)
        with pytest.raises(ValueError):
            ids.bind(local_id, uuid4())

    def test_fresh_maps_are_independent(self):
        native = uuid4()
        a, b = IdentityMap(), IdentityMap()
        a.synthesize()

        assert a.to_local_id(native) == 2
        assert b.to_local_id(native) == 1


class TestRowAdapter:
    def setup_method(self):
        self.adapter = RowAdapter(IdentityMap())
        self.condominio = Condominio(nome="Edifício Gran", endereco="Rua A", cidade="São Paulo", webhook_url="")

    def test_resident_carries_building_name(self):
        row = Morador(
            condominio_id=self.condominio.id, nome="Maria Santos", apartamento="102", bloco=None, telefone="11"
        )

        resident = self.adapter.morador_to_app(row, [self.condominio])

        assert resident.condo == "Edifício Gran"
        assert resident.block == ""
        assert resident.id == self.adapter.ids.to_local_id(row.id)

    def test_unknown_building_gives_empty_name(self):
        row = Funcionario(condominio_id=uuid4(), cpf="1", nome="José", senha="x")
        assert self.adapter.funcionario_to_app(row, [self.condominio]).condo == ""

    def test_blank_webhook_reads_as_none(self):
        assert self.adapter.condominio_to_app(self.condominio).webhook_url is None

    @pytest.mark.parametrize(
        "status, expected",
        [
            ("pendente", DeliveryStatus.PENDING),
            ("retirada", DeliveryStatus.PICKED_UP),
            ("cancelada", DeliveryStatus.CANCELLED),
        ],
    )
    def test_delivery_status_mapping(self, status, expected):
        row = Entrega(morador_id=uuid4(), codigo_retirada="12345", status=status, data_entrega=datetime(2025, 3, 5))

        delivery = self.adapter.entrega_to_app(row)

        assert delivery.status == expected
        assert isinstance(delivery.persistence, Persisted)
        assert delivery.native_id == row.id
        assert delivery.employee_id == 0

    def test_delivery_reuses_resident_local_id(self):
        morador = Morador(condominio_id=self.condominio.id, nome="Maria", apartamento="102", telefone="11")
        resident = self.adapter.morador_to_app(morador, [self.condominio])
        row = Entrega(morador_id=morador.id, codigo_retirada="12345")

        assert self.adapter.entrega_to_app(row).resident_id == resident.id


class TestNormalization:
    def test_title_case(self):
        assert to_title_case("maria SANTOS") == "Maria Santos"
        assert to_title_case("") == ""

    def test_resident_fields(self):
        fields = normalize_resident_fields("  joão da silva ", " 101 ", " a ", "edifício gran")
        assert fields == {"name": "João Da Silva", "apt": "101", "block": "A", "condo": "Edifício Gran"}

    def test_new_employee_gets_default_password(self):
        employee = Employee(id=0, name="José", cpf="1", condo="Edifício Gran")
        assert app_to_funcionario(employee, uuid4()).senha == "123456"

    def test_local_only_has_no_native_id(self):
        assert LocalOnly().kind == "local_only"
