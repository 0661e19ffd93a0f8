# Overview: Pytest coverage for vendor administration commands and the service behind them.

import pytest

from onboarding.cli import init_db, list_vendors_cli, provision_vendor_cli, set_status_cli, show_vendor_cli
from onboarding.errors import ValidationError, VendorNotFoundError
from onboarding.extensions import db
from onboarding.models import VendorStatusRecord
from onboarding.services import vendor_status_service


CPF = "52998224725"
CNPJ = "11222333000181"


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestVendorStatusService:
    """Out-of-band status administration."""

    def test_provision_creates(self, db_session):
        record, created = vendor_status_service.provision_vendor(document="529.982.247-25")
        assert created is True
        assert record.vendor_id == CPF
        assert record.status == "selecionado"

    def test_provision_updates_without_touching_links(self, db_session, confirmed_vendor):
        record, created = vendor_status_service.provision_vendor(document=CPF, status="desistente")
        assert created is False
        assert record.status == "desistente"
        assert db.session.get(VendorStatusRecord, CPF).status == "desistente"

    def test_invalid_status(self, db_session):
        with pytest.raises(ValidationError):
            vendor_status_service.provision_vendor(document=CPF, status="aprovado")

    def test_set_status_unknown(self, db_session):
        with pytest.raises(VendorNotFoundError):
            vendor_status_service.set_vendor_status(document=CPF, status="confirmado")

    def test_list_filter(self, db_session, confirmed_vendor, pending_vendor):
        assert [r.vendor_id for r in vendor_status_service.list_vendors()] == [CNPJ, CPF]
        assert [r.vendor_id for r in vendor_status_service.list_vendors(status="confirmado")] == [CPF]


class TestVendorCommands:
    """flask vendors ..."""

    def test_provision(self, runner, db_session):
        result = runner.invoke(provision_vendor_cli, ["--document", "529.982.247-25", "--status", "confirmado"])
        assert result.exit_code == 0, result.output
        assert "PASS Created vendor 529.982.247-25 with status 'confirmado'" in result.output

        result = runner.invoke(provision_vendor_cli, ["--document", CPF, "--status", "desistente"])
        assert result.exit_code == 0, result.output
        assert "PASS Updated vendor" in result.output

    def test_provision_bad_document(self, runner, db_session):
        result = runner.invoke(provision_vendor_cli, ["--document", "123"])
        assert result.exit_code != 0
        assert "CPF/CNPJ inválido" in result.output

    def test_provision_bad_status(self, runner, db_session):
        result = runner.invoke(provision_vendor_cli, ["--document", CPF, "--status", "aprovado"])
        assert result.exit_code == 2

    def test_list(self, runner, confirmed_vendor, pending_vendor):
        result = runner.invoke(list_vendors_cli, [])
        assert result.exit_code == 0, result.output
        assert CPF in result.output
        assert CNPJ in result.output

        result = runner.invoke(list_vendors_cli, ["--status", "aguardando_pagamento"])
        assert CNPJ in result.output
        assert CPF not in result.output

    def test_list_empty(self, runner, db_session):
        result = runner.invoke(list_vendors_cli, [])
        assert "No vendors found." in result.output

    def test_show(self, runner, confirmed_vendor):
        result = runner.invoke(show_vendor_cli, [CPF])
        assert result.exit_code == 0, result.output
        assert "Can continue: Yes" in result.output
        assert "Mode:        create" in result.output

    def test_show_unknown(self, runner, db_session):
        result = runner.invoke(show_vendor_cli, [CPF])
        assert result.exit_code != 0
        assert "Documento não encontrado" in result.output

    def test_set_status(self, runner, pending_vendor):
        result = runner.invoke(set_status_cli, [CNPJ, "confirmado"])
        assert result.exit_code == 0, result.output
        assert db.session.get(VendorStatusRecord, CNPJ).status == "confirmado"


class TestSystemCommands:
    """flask system ..."""

    def test_init_db_is_idempotent(self, runner, db_session):
        result = runner.invoke(init_db, [])
        assert result.exit_code == 0, result.output
        assert "PASS Tables created." in result.output
