# Overview: Per-vendor, per-step draft state with merge/replace write disciplines.

"""
Draft Store

One draft per wizard step, bound to a single vendor document.

WRITE DISCIPLINES:
- personal, bank: shallow merge. A later visit that only sends the
  fields it changed keeps everything set earlier (or prefilled).
- equipment, menu, banner: replace. These hold whole nested collections
  where merging two item lists has no sensible meaning.

READ PRECEDENCE (first source that has the slot wins):
  DRAFT -> SERVER (stored rows, edit mode) -> SHEET (spreadsheet) -> DEFAULT

LIFETIME: bind() to a different document resets every slot and every
prefill cache. State never crosses vendor documents.
"""

from __future__ import annotations

import copy
from typing import Any

from ..errors import ValidationError
from ..models.banners import DEFAULT_ACCENT, DEFAULT_THEME
from .prefill_service import DEFAULT_ACCOUNT_TYPE, DEFAULT_MACHINES_QTY


PERSONAL = "personal"
BANK = "bank"
EQUIPMENT = "equipment"
MENU = "menu"
BANNER = "banner"

SLOTS = (PERSONAL, BANK, EQUIPMENT, MENU, BANNER)
MERGE_SLOTS = {PERSONAL, BANK}
REPLACE_SLOTS = {EQUIPMENT, MENU, BANNER}

SOURCE_DRAFT = "DRAFT"
SOURCE_SERVER = "SERVER"
SOURCE_SHEET = "SHEET"
SOURCE_DEFAULT = "DEFAULT"
PRECEDENCE = [SOURCE_DRAFT, SOURCE_SERVER, SOURCE_SHEET]

EMPTY_DEFAULTS: dict[str, dict[str, Any]] = {
    PERSONAL: {
        "personType": "PF",
        "cpfCnpj": "",
        "fullName": "",
        "email": "",
        "phone": "",
        "pdvName": "",
        "addressFull": "",
        "addressCity": "",
        "addressState": "",
        "addressZipcode": "",
        "addressCombined": "",
    },
    BANK: {
        "accountType": DEFAULT_ACCOUNT_TYPE,
        "bankName": "",
        "agency": "",
        "account": "",
        "holderDoc": "",
        "holderName": "",
        "pixKey": "",
    },
    EQUIPMENT: {
        "items": [],
        "outlets110": 0,
        "outlets220": 0,
        "otherOutletsQty": 0,
        "otherOutletsLabel": "",
        "notes": "",
    },
    MENU: {
        "machinesQty": DEFAULT_MACHINES_QTY,
        "categories": [],
    },
    BANNER: {
        "banner_name": "",
        "theme": DEFAULT_THEME,
        "accent": DEFAULT_ACCENT,
    },
}


def _require_slot(slot: str) -> str:
    if slot not in SLOTS:
        raise ValidationError(f"Unknown draft slot: {slot!r}")
    return slot


class DraftStore:
    def __init__(self, vendor_id: str | None = None):
        self._vendor_id = vendor_id
        self._drafts: dict[str, dict] = {}
        self._prefill: dict[str, dict[str, dict]] = {SOURCE_SERVER: {}, SOURCE_SHEET: {}}

    @property
    def vendor_id(self) -> str | None:
        return self._vendor_id

    def reset(self, vendor_id: str | None = None) -> None:
        """Drop every draft and prefill cache, optionally rebinding."""
        self._vendor_id = vendor_id
        self._drafts = {}
        self._prefill = {SOURCE_SERVER: {}, SOURCE_SHEET: {}}

    def bind(self, vendor_id: str | None) -> bool:
        """Bind to a document; returns True when that forced a reset."""
        if vendor_id == self._vendor_id:
            return False
        self.reset(vendor_id)
        return True

    # -- prefill caches ---------------------------------------------------

    def set_server_prefill(self, slot: str, data: dict | None) -> None:
        self._set_prefill(SOURCE_SERVER, slot, data)

    def set_sheet_prefill(self, slot: str, data: dict | None) -> None:
        self._set_prefill(SOURCE_SHEET, slot, data)

    def _set_prefill(self, source: str, slot: str, data: dict | None) -> None:
        _require_slot(slot)
        if data is None:
            self._prefill[source].pop(slot, None)
        else:
            self._prefill[source][slot] = copy.deepcopy(data)

    def has_server_prefill(self, slot: str) -> bool:
        return slot in self._prefill[SOURCE_SERVER]

    # -- drafts -----------------------------------------------------------

    def write(self, slot: str, data: dict) -> dict:
        """
        Store a step's submitted data using the slot's discipline.

        Returns the draft as now stored.
        """
        _require_slot(slot)
        if not isinstance(data, dict):
            raise ValidationError(f"Draft for {slot} must be an object")

        if slot in MERGE_SLOTS:
            base, _ = self.resolve(slot)
            merged = dict(base)
            merged.update(copy.deepcopy(data))
            self._drafts[slot] = merged
        else:
            self._drafts[slot] = copy.deepcopy(data)
        return copy.deepcopy(self._drafts[slot])

    def get(self, slot: str) -> dict | None:
        """The in-session draft only (None if the step was never saved)."""
        _require_slot(slot)
        draft = self._drafts.get(slot)
        return copy.deepcopy(draft) if draft is not None else None

    def clear(self, slot: str) -> None:
        _require_slot(slot)
        self._drafts.pop(slot, None)

    def resolve(self, slot: str) -> tuple[dict, str]:
        """Value to display for a step, and which source it came from."""
        _require_slot(slot)
        for source in PRECEDENCE:
            if source == SOURCE_DRAFT:
                value = self._drafts.get(slot)
            else:
                value = self._prefill[source].get(slot)
            if value is not None:
                return copy.deepcopy(value), source
        return copy.deepcopy(EMPTY_DEFAULTS[slot]), SOURCE_DEFAULT

    def read(self, slot: str) -> dict:
        value, _ = self.resolve(slot)
        return value

    def drafts(self) -> dict[str, dict | None]:
        """Every slot's in-session draft, None for steps never saved."""
        return {slot: self.get(slot) for slot in SLOTS}
