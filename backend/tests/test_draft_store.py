# Overview: Pytest coverage for per-step draft storage.

import pytest

from onboarding.errors import ValidationError
from onboarding.services.draft_store import (
    BANK,
    BANNER,
    EQUIPMENT,
    MENU,
    PERSONAL,
    SOURCE_DEFAULT,
    SOURCE_DRAFT,
    SOURCE_SERVER,
    SOURCE_SHEET,
    DraftStore,
)


CPF = "52998224725"


class TestWriteDisciplines:
    """Merge for personal/bank, replace for the rest."""

    def test_personal_merges(self):
        store = DraftStore(CPF)
        store.write(PERSONAL, {"fullName": "Maria", "email": "a@b.c"})
        store.write(PERSONAL, {"email": "new@b.c"})
        draft = store.get(PERSONAL)
        assert draft["fullName"] == "Maria"
        assert draft["email"] == "new@b.c"

    def test_bank_merges_over_prefill(self):
        """A partial bank write keeps prefilled fields."""
        store = DraftStore(CPF)
        store.set_sheet_prefill(BANK, {"bankName": "Itaú", "agency": "0001"})
        store.write(BANK, {"agency": "0002"})
        assert store.get(BANK) == {"bankName": "Itaú", "agency": "0002"}

    def test_equipment_replaces(self):
        store = DraftStore(CPF)
        store.write(EQUIPMENT, {"items": [{"name": "Freezer", "qty": 1}], "notes": "x"})
        store.write(EQUIPMENT, {"items": []})
        assert store.get(EQUIPMENT) == {"items": []}

    def test_menu_replaces(self):
        store = DraftStore(CPF)
        store.write(MENU, {"machinesQty": 2, "categories": [{"name": "A", "products": []}]})
        store.write(MENU, {"machinesQty": 1, "categories": []})
        assert store.get(MENU) == {"machinesQty": 1, "categories": []}

    def test_written_data_is_copied(self):
        """Mutating the caller's dict afterwards does not leak in."""
        data = {"items": [{"name": "Freezer", "qty": 1}]}
        store = DraftStore(CPF)
        store.write(EQUIPMENT, data)
        data["items"].append({"name": "Chapa", "qty": 1})
        assert len(store.get(EQUIPMENT)["items"]) == 1

    def test_unknown_slot(self):
        with pytest.raises(ValidationError):
            DraftStore(CPF).write("payment", {})


class TestReadPrecedence:
    """draft > server > sheet > defaults."""

    def test_defaults_when_empty(self):
        value, source = DraftStore(CPF).resolve(BANNER)
        assert source == SOURCE_DEFAULT
        assert value == {"banner_name": "", "theme": "classic", "accent": "orange"}

    def test_sheet_over_defaults(self):
        store = DraftStore(CPF)
        store.set_sheet_prefill(PERSONAL, {"fullName": "Sheet"})
        assert store.resolve(PERSONAL) == ({"fullName": "Sheet"}, SOURCE_SHEET)

    def test_server_over_sheet(self):
        store = DraftStore(CPF)
        store.set_sheet_prefill(PERSONAL, {"fullName": "Sheet"})
        store.set_server_prefill(PERSONAL, {"fullName": "Server"})
        assert store.resolve(PERSONAL) == ({"fullName": "Server"}, SOURCE_SERVER)

    def test_draft_over_everything(self):
        store = DraftStore(CPF)
        store.set_sheet_prefill(MENU, {"machinesQty": 1, "categories": []})
        store.set_server_prefill(MENU, {"machinesQty": 2, "categories": []})
        store.write(MENU, {"machinesQty": 3, "categories": []})
        value, source = store.resolve(MENU)
        assert source == SOURCE_DRAFT
        assert value["machinesQty"] == 3

    def test_clear_falls_back(self):
        store = DraftStore(CPF)
        store.set_server_prefill(BANNER, {"banner_name": "Old", "theme": "dark", "accent": "green"})
        store.write(BANNER, {"banner_name": "New", "theme": "dark", "accent": "green"})
        store.clear(BANNER)
        assert store.read(BANNER)["banner_name"] == "Old"


class TestLifetime:
    """State never crosses vendor documents."""

    def test_bind_same_document_keeps_state(self):
        store = DraftStore(CPF)
        store.write(PERSONAL, {"fullName": "Maria"})
        assert store.bind(CPF) is False
        assert store.get(PERSONAL) == {"fullName": "Maria"}

    def test_bind_other_document_resets(self):
        store = DraftStore(CPF)
        store.write(PERSONAL, {"fullName": "Maria"})
        store.set_server_prefill(MENU, {"machinesQty": 4, "categories": []})
        store.set_sheet_prefill(BANK, {"bankName": "Itaú"})

        assert store.bind("11222333000181") is True
        assert store.vendor_id == "11222333000181"
        assert all(v is None for v in store.drafts().values())
        assert store.resolve(MENU)[1] == SOURCE_DEFAULT
        assert store.resolve(BANK)[1] == SOURCE_DEFAULT
        assert not store.has_server_prefill(MENU)

    def test_reset_clears_everything(self):
        store = DraftStore(CPF)
        store.write(BANNER, {"banner_name": "X", "theme": "classic", "accent": "orange"})
        store.reset()
        assert store.vendor_id is None
        assert store.get(BANNER) is None
