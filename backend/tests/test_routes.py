# Overview: Pytest coverage for the onboarding HTTP API.

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from onboarding.models import BannerProfile, Merchant
from onboarding.services import spreadsheet_service
from onboarding.services.spreadsheet_service import SheetSource


CPF = "52998224725"
CPF_MASKED = "529.982.247-25"
CNPJ = "11222333000181"


def submit_body(drafts, **extra):
    body = {
        "vendorId": CPF,
        "personalData": drafts["personal"],
        "bankData": drafts["bank"],
        "equipmentData": drafts["equipment"],
        "menuData": drafts["menu"],
        "bannerData": drafts["banner"],
    }
    body.update(extra)
    return body


class TestVendorLookupRoute:
    """POST /api/vendor"""

    def test_confirmed_vendor(self, client, confirmed_vendor):
        res = client.post("/api/vendor", json={"cpfCnpj": CPF_MASKED})
        assert res.status_code == 200
        data = res.get_json()
        assert data["ok"] is True
        assert data["canContinue"] is True
        assert data["mode"] == "create"
        assert data["vendor"]["vendor_id"] == CPF
        assert data["vendor"]["merchant_id"] is None

    def test_pending_vendor_cannot_continue(self, client, pending_vendor):
        res = client.post("/api/vendor", json={"cpfCnpj": CNPJ})
        assert res.status_code == 200
        assert res.get_json()["canContinue"] is False

    def test_short_document(self, client, db_session):
        res = client.post("/api/vendor", json={"cpfCnpj": "123"})
        assert res.status_code == 400
        assert res.get_json()["ok"] is False

    def test_missing_body(self, client, db_session):
        res = client.post("/api/vendor")
        assert res.status_code == 400

    def test_unknown_document(self, client, db_session):
        res = client.post("/api/vendor", json={"cpfCnpj": CPF})
        assert res.status_code == 404
        assert res.get_json()["error"] == "Documento não encontrado"


class TestSubmitRoute:
    """POST /api/onboarding/submit"""

    def test_create(self, client, confirmed_vendor, drafts):
        res = client.post("/api/onboarding/submit", json=submit_body(drafts, mode="create"))
        assert res.status_code == 200
        data = res.get_json()
        assert data["ok"] is True
        assert data["mode"] == "create"
        assert data["merchantId"] is not None
        assert data["equipmentProfileId"] is not None
        assert data["bannerProfileId"] is not None

        lookup = client.post("/api/vendor", json={"cpfCnpj": CPF}).get_json()
        assert lookup["mode"] == "edit"
        assert lookup["vendor"]["merchant_id"] == data["merchantId"]

    def test_edit_reuses_ids(self, client, confirmed_vendor, drafts):
        first = client.post("/api/onboarding/submit", json=submit_body(drafts)).get_json()
        drafts["personal"]["pdvName"] = "Bar Novo"
        res = client.post("/api/onboarding/submit", json=submit_body(drafts, mode="edit"))
        assert res.status_code == 200
        second = res.get_json()
        assert second["mode"] == "edit"
        assert second["merchantId"] == first["merchantId"]
        assert second["equipmentProfileId"] == first["equipmentProfileId"]
        assert second["bannerProfileId"] == first["bannerProfileId"]

    def test_stale_create_is_conflict(self, client, confirmed_vendor, drafts):
        client.post("/api/onboarding/submit", json=submit_body(drafts))
        res = client.post("/api/onboarding/submit", json=submit_body(drafts, mode="create"))
        assert res.status_code == 409
        data = res.get_json()
        assert data["ok"] is False
        assert data["mode"] == "edit"

    def test_missing_vendor_id(self, client, db_session, drafts):
        body = submit_body(drafts)
        del body["vendorId"]
        res = client.post("/api/onboarding/submit", json=body)
        assert res.status_code == 400

    def test_unknown_vendor(self, client, db_session, drafts):
        res = client.post("/api/onboarding/submit", json=submit_body(drafts))
        assert res.status_code == 404

    def test_edit_without_merchant(self, client, confirmed_vendor, drafts):
        res = client.post("/api/onboarding/submit", json=submit_body(drafts, mode="edit"))
        assert res.status_code == 400

    def test_invalid_mode(self, client, confirmed_vendor, drafts):
        res = client.post("/api/onboarding/submit", json=submit_body(drafts, mode="upsert"))
        assert res.status_code == 400

    def test_invalid_draft(self, client, confirmed_vendor, drafts):
        drafts["menu"]["categories"][0]["products"][0]["price"] = -1
        res = client.post("/api/onboarding/submit", json=submit_body(drafts))
        assert res.status_code == 400
        assert Merchant.query.count() == 0

    def test_draft_not_an_object(self, client, confirmed_vendor, drafts):
        res = client.post("/api/onboarding/submit", json=submit_body(drafts, equipmentData=[1, 2]))
        assert res.status_code == 400

    def test_unexpected_error(self, client, confirmed_vendor, drafts):
        with patch("onboarding.services.submission_service.submit_request", side_effect=RuntimeError("boom")):
            res = client.post("/api/onboarding/submit", json=submit_body(drafts))
        assert res.status_code == 500
        assert res.get_json() == {"ok": False, "error": "Internal server error"}


class TestPrefillRoutes:
    """GET prefill endpoints and POST /api/banner"""

    @pytest.fixture
    def submitted(self, client, confirmed_vendor, drafts):
        return client.post("/api/onboarding/submit", json=submit_body(drafts)).get_json()

    def test_merchant(self, client, submitted):
        res = client.get(f"/api/merchant?merchantId={submitted['merchantId']}")
        assert res.status_code == 200
        data = res.get_json()
        assert data["personal"]["pdvName"] == "Boteco da Maria"
        assert data["bank"]["bankName"] == "Banco do Brasil"

    def test_merchant_missing_param(self, client, db_session):
        res = client.get("/api/merchant")
        assert res.status_code == 400
        assert res.get_json()["error"] == "merchantId é obrigatório"

    def test_merchant_bad_param(self, client, db_session):
        res = client.get("/api/merchant?merchantId=abc")
        assert res.status_code == 400
        assert res.get_json()["error"] == "merchantId inválido"

    def test_merchant_unknown(self, client, db_session):
        assert client.get("/api/merchant?merchantId=999").status_code == 404

    def test_equipment(self, client, submitted):
        res = client.get(f"/api/equipment-profile?id={submitted['equipmentProfileId']}")
        assert res.status_code == 200
        assert [i["name"] for i in res.get_json()["items"]] == ["Fritadeira", "Freezer"]

    def test_equipment_unknown(self, client, db_session):
        assert client.get("/api/equipment-profile?id=999").status_code == 404

    def test_menu(self, client, submitted):
        res = client.get(f"/api/menu?merchantId={submitted['merchantId']}")
        assert res.status_code == 200
        data = res.get_json()
        assert data["machinesQty"] == 3
        assert [c["name"] for c in data["categories"]] == ["Petiscos", "Bebidas"]
        assert data["categories"][0]["products"][0]["price"] == 7.9

    def test_menu_empty(self, client, db_session):
        res = client.get("/api/menu?merchantId=999")
        assert res.status_code == 200
        assert res.get_json() == {"machinesQty": 2, "categories": []}

    def test_banner(self, client, submitted):
        res = client.get(f"/api/banner?merchantId={submitted['merchantId']}")
        assert res.status_code == 200
        assert res.get_json()["theme"] == "neon"

    def test_banner_save_overwrites(self, client, submitted):
        body = {"merchantId": submitted["merchantId"], "bannerName": "Novo", "theme": "dark", "accent": "green"}
        res = client.post("/api/banner", json=body)
        assert res.status_code == 200
        assert res.get_json() == {
            "merchant_id": submitted["merchantId"],
            "banner_name": "Novo",
            "theme": "dark",
            "accent": "green",
        }
        assert BannerProfile.query.count() == 1

    def test_banner_save_requires_name(self, client, submitted):
        res = client.post("/api/banner", json={"merchantId": submitted["merchantId"], "bannerName": "  "})
        assert res.status_code == 400
        assert res.get_json()["error"] == "bannerName é obrigatório"

    def test_banner_save_too_long(self, client, submitted):
        res = client.post("/api/banner", json={"merchantId": submitted["merchantId"], "bannerName": "x" * 29})
        assert res.status_code == 400

    def test_banner_save_unknown_merchant(self, client, db_session):
        res = client.post("/api/banner", json={"merchantId": 999, "bannerName": "Bar"})
        assert res.status_code == 404

    def test_sheet_prefill(self, app, client, db_session, tmp_path):
        path = tmp_path / "prospects.csv"
        path.write_text("pf_full_name,pf_cpf,bank_name\nMaria Silva,529.982.247-25,Nubank\n", encoding="utf-8")
        app.extensions[spreadsheet_service.SHEET_SOURCE_KEY] = SheetSource(path=str(path))

        res = client.get(f"/api/sheet-prefill?document={CPF}")
        assert res.status_code == 200
        data = res.get_json()
        assert data["personal"]["fullName"] == "Maria Silva"
        assert data["bank"]["bankName"] == "Nubank"

        assert client.get("/api/sheet-prefill?document=00000000191").status_code == 404
        assert client.get("/api/sheet-prefill?document=1").status_code == 400

    def test_sheet_prefill_unconfigured(self, client, db_session):
        res = client.get(f"/api/sheet-prefill?document={CPF}")
        assert res.status_code == 502


class TestSystemRoutes:
    """Health check and CORS."""

    def test_health_degraded_without_spreadsheet(self, client, confirmed_vendor):
        res = client.get("/health")
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"]["details"]["vendors"] == 1

    def test_health_unhealthy_database(self, client, db_session):
        with patch("onboarding.routes.system.db") as mock_db:
            mock_db.session.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
            res = client.get("/health")
        assert res.status_code == 503
        data = res.get_json()
        assert data["status"] == "unhealthy"
        assert data["checks"]["database"] == {"status": "unhealthy", "error": "Database error"}

    def test_health_healthy_with_spreadsheet(self, app, client, db_session):
        with patch.dict(app.config, {"SHEETS_FILE_PATH": "/tmp/prospects.csv"}):
            res = client.get("/health")
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "healthy"
        assert data["checks"]["spreadsheet"]["details"] == {"source": "file"}
        assert data["timestamp"].endswith("Z")

    def test_cors_allowed_origin(self, client, confirmed_vendor):
        res = client.post("/api/vendor", json={"cpfCnpj": CPF}, headers={"Origin": "http://localhost:5173"})
        assert res.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_unknown_origin(self, client, confirmed_vendor):
        res = client.post("/api/vendor", json={"cpfCnpj": CPF}, headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in res.headers
