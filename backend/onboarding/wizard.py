# Overview: Step-by-step onboarding wizard driven against the API or the services in-process.

"""
Wizard Controller

Steps, in order:

  doc -> approved -> personal -> bank -> equipment -> menu -> banner -> success

SESSION: everything the wizard knows (vendor, mode, identifiers, drafts)
lives in one WizardSession. Entering a different document resets it; going
back from "approved" resets it too.

MODE: submit() looks the vendor up again right before sending, so the mode
always comes from stored state. A retry after a partial failure therefore
goes out as an edit.

GATEWAYS:
- LocalGateway calls the services directly (needs an app context)
- HttpGateway calls the JSON API with httpx
Both return the same JSON-shaped dicts and raise the same OnboardingError
subclasses.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .errors import (
    ConflictError,
    ModeConflictError,
    NotFoundError,
    OnboardingError,
    PersistenceError,
    SheetRowNotFoundError,
    SheetSourceError,
    StorageError,
    ValidationError,
    VendorNotFoundError,
)
from .services import draft_store, prefill_service, spreadsheet_service, submission_service, vendor_lookup_service
from .services.draft_store import DraftStore
from .services.vendor_lookup_service import MODE_CREATE, MODE_EDIT, require_document
from .validation import STEP_VALIDATORS


logger = logging.getLogger(__name__)

STEP_DOC = "doc"
STEP_APPROVED = "approved"
STEP_PERSONAL = draft_store.PERSONAL
STEP_BANK = draft_store.BANK
STEP_EQUIPMENT = draft_store.EQUIPMENT
STEP_MENU = draft_store.MENU
STEP_BANNER = draft_store.BANNER
STEP_SUCCESS = "success"

STEPS = (
    STEP_DOC,
    STEP_APPROVED,
    STEP_PERSONAL,
    STEP_BANK,
    STEP_EQUIPMENT,
    STEP_MENU,
    STEP_BANNER,
    STEP_SUCCESS,
)
FORM_STEPS = draft_store.SLOTS


class WizardStateError(OnboardingError):
    """Operation not allowed in the wizard's current step or while busy."""

    http_status = 409


# ---------------------------------------------------------------------------
# Gateways
# ---------------------------------------------------------------------------

class Gateway(Protocol):
    def lookup_vendor(self, document: str) -> dict: ...
    def sheet_prefill(self, document: str) -> dict: ...
    def merchant_prefill(self, merchant_id: int) -> dict: ...
    def equipment_prefill(self, profile_id: int) -> dict: ...
    def menu_prefill(self, merchant_id: int) -> dict: ...
    def banner_prefill(self, merchant_id: int) -> dict: ...
    def submit(self, payload: dict) -> dict: ...


class LocalGateway:
    """
    Calls the services in-process.

    With app=None the caller must already be inside an app context.
    """

    def __init__(self, app=None):
        self.app = app

    @contextmanager
    def _context(self):
        if self.app is None:
            yield
        else:
            with self.app.app_context():
                yield

    def _config(self, key: str, default: Any) -> Any:
        from flask import current_app
        return current_app.config.get(key, default)

    def lookup_vendor(self, document: str) -> dict:
        with self._context():
            return vendor_lookup_service.lookup_vendor(document).to_dict()

    def sheet_prefill(self, document: str) -> dict:
        with self._context():
            return spreadsheet_service.sheet_prefill(document)

    def merchant_prefill(self, merchant_id: int) -> dict:
        with self._context():
            return prefill_service.load_merchant_prefill(merchant_id)

    def equipment_prefill(self, profile_id: int) -> dict:
        with self._context():
            return prefill_service.load_equipment_prefill(profile_id)

    def menu_prefill(self, merchant_id: int) -> dict:
        with self._context():
            return prefill_service.load_menu_prefill(
                merchant_id,
                default_machines_qty=self._config("DEFAULT_MACHINES_QTY", prefill_service.DEFAULT_MACHINES_QTY),
            )

    def banner_prefill(self, merchant_id: int) -> dict:
        with self._context():
            return prefill_service.load_banner_prefill(merchant_id)

    def submit(self, payload: dict) -> dict:
        with self._context():
            return submission_service.submit_request(payload).to_dict()


class HttpGateway:
    """Calls the onboarding JSON API."""

    def __init__(self, base_url: str, *, timeout: float = 30.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, *, not_found=NotFoundError, server_error=StorageError, **kwargs) -> dict:
        try:
            res = self.client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("onboarding api unreachable path=%s error=%s", path, exc)
            raise server_error("Erro de conexão. Tente novamente.") from exc

        try:
            body = res.json()
        except ValueError:
            body = None
        if res.is_success:
            return body or {}

        if not isinstance(body, dict):
            body = {}
        message = body.get("error") or f"HTTP {res.status_code}"
        if res.status_code == 400:
            raise ValidationError(message)
        if res.status_code == 404:
            raise not_found(message)
        if res.status_code == 409:
            if body.get("mode"):
                raise ModeConflictError(message)
            raise ConflictError(message)
        if res.status_code == 502:
            raise SheetSourceError(message)
        raise server_error(message)

    def lookup_vendor(self, document: str) -> dict:
        return self._request("POST", "/api/vendor", json={"cpfCnpj": document}, not_found=VendorNotFoundError)

    def sheet_prefill(self, document: str) -> dict:
        return self._request(
            "GET", "/api/sheet-prefill", params={"document": document}, not_found=SheetRowNotFoundError,
        )

    def merchant_prefill(self, merchant_id: int) -> dict:
        return self._request("GET", "/api/merchant", params={"merchantId": merchant_id})

    def equipment_prefill(self, profile_id: int) -> dict:
        return self._request("GET", "/api/equipment-profile", params={"id": profile_id})

    def menu_prefill(self, merchant_id: int) -> dict:
        return self._request("GET", "/api/menu", params={"merchantId": merchant_id})

    def banner_prefill(self, merchant_id: int) -> dict:
        return self._request("GET", "/api/banner", params={"merchantId": merchant_id})

    def submit(self, payload: dict) -> dict:
        return self._request("POST", "/api/onboarding/submit", json=payload, server_error=PersistenceError)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass
class WizardSession:
    vendor_id: str | None = None
    status: str | None = None
    can_continue: bool = False
    mode: str = MODE_CREATE
    merchant_id: int | None = None
    equipment_profile_id: int | None = None
    banner_profile_id: int | None = None
    sheet_row: dict | None = None
    step: str = STEP_DOC
    result: dict | None = None
    drafts: DraftStore = field(default_factory=DraftStore)

    def reset(self) -> None:
        self.vendor_id = None
        self.status = None
        self.can_continue = False
        self.mode = MODE_CREATE
        self.merchant_id = None
        self.equipment_profile_id = None
        self.banner_profile_id = None
        self.sheet_row = None
        self.step = STEP_DOC
        self.result = None
        self.drafts.reset()

    def apply_lookup(self, data: dict) -> None:
        vendor = data.get("vendor") or {}
        self.vendor_id = vendor.get("vendor_id")
        self.status = vendor.get("status")
        self.can_continue = bool(data.get("canContinue"))
        self.mode = data.get("mode") or MODE_CREATE
        self.merchant_id = vendor.get("merchant_id")
        self.equipment_profile_id = vendor.get("equipment_profile_id")
        self.banner_profile_id = vendor.get("banner_profile_id")


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class WizardController:
    def __init__(self, gateway: Gateway, session: WizardSession | None = None):
        self.gateway = gateway
        self.session = session or WizardSession()
        self._lock = threading.Lock()

    @property
    def step(self) -> str:
        return self.session.step

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def _busy(self):
        if not self._lock.acquire(blocking=False):
            raise WizardStateError("Aguarde, uma operação já está em andamento.")
        try:
            yield
        finally:
            self._lock.release()

    def _require_step(self, *steps: str) -> None:
        if self.session.step not in steps:
            raise WizardStateError(f"Operação indisponível na etapa {self.session.step!r}")

    # -- doc / approved ---------------------------------------------------

    def start(self, document: str) -> WizardSession:
        """
        Look the document up and move to "approved".

        A different document than the current one starts a fresh session.
        """
        self._require_step(STEP_DOC)
        vendor_id = require_document(document)

        with self._busy():
            data = self.gateway.lookup_vendor(vendor_id)

            session = self.session
            if session.drafts.vendor_id != vendor_id:
                session.reset()
                session.drafts.bind(vendor_id)
            session.apply_lookup(data)

            if session.mode == MODE_EDIT:
                self._load_server_prefill()
            else:
                self._load_sheet_prefill()

            session.step = STEP_APPROVED

        logger.info("wizard start vendor_id=%s mode=%s can_continue=%s",
                    session.vendor_id, session.mode, session.can_continue)
        return session

    def _load_server_prefill(self) -> None:
        session = self.session
        drafts = session.drafts

        merchant = self.gateway.merchant_prefill(session.merchant_id)
        drafts.set_server_prefill(draft_store.PERSONAL, merchant.get("personal"))
        drafts.set_server_prefill(draft_store.BANK, merchant.get("bank"))

        if session.equipment_profile_id is not None:
            drafts.set_server_prefill(
                draft_store.EQUIPMENT, self.gateway.equipment_prefill(session.equipment_profile_id)
            )
        drafts.set_server_prefill(draft_store.MENU, self.gateway.menu_prefill(session.merchant_id))

        banner = self.gateway.banner_prefill(session.merchant_id)
        drafts.set_server_prefill(draft_store.BANNER, {
            "banner_name": banner.get("banner_name") or "",
            "theme": banner.get("theme") or draft_store.EMPTY_DEFAULTS[draft_store.BANNER]["theme"],
            "accent": banner.get("accent") or draft_store.EMPTY_DEFAULTS[draft_store.BANNER]["accent"],
        })

    def _load_sheet_prefill(self) -> None:
        session = self.session
        try:
            data = self.gateway.sheet_prefill(session.vendor_id)
        except (SheetRowNotFoundError, SheetSourceError) as exc:
            # spreadsheet only fills defaults
            logger.info("no spreadsheet prefill vendor_id=%s reason=%s", session.vendor_id, exc)
            session.sheet_row = None
            return
        session.sheet_row = data.get("row")
        session.drafts.set_sheet_prefill(draft_store.PERSONAL, data.get("personal"))
        session.drafts.set_sheet_prefill(draft_store.BANK, data.get("bank"))

    def proceed(self) -> str:
        """Leave "approved" for the first form step."""
        self._require_step(STEP_APPROVED)
        if not self.session.can_continue:
            raise WizardStateError(
                f"Cadastro ainda não liberado (status: {self.session.status}). Entre em contato com o suporte."
            )
        self.session.step = STEP_PERSONAL
        return self.session.step

    def back(self) -> str:
        """Previous step; from "approved" this discards the whole session."""
        if self.busy:
            raise WizardStateError("Aguarde, uma operação já está em andamento.")
        self._require_step(*STEPS[1:-1])

        if self.session.step == STEP_APPROVED:
            self.session.reset()
            return self.session.step

        self.session.step = STEPS[STEPS.index(self.session.step) - 1]
        return self.session.step

    # -- form steps -------------------------------------------------------

    def form(self) -> dict:
        """Values the current form step should display."""
        self._require_step(*FORM_STEPS)
        return self.session.drafts.read(self.session.step)

    def save_step(self, data: dict) -> dict:
        """
        Validate and store the current step's data, then advance.

        The banner step stores without advancing; submit() finishes it.
        An empty banner name is allowed and means "no banner".

        Raises:
            ValidationError: The step's own rules failed (nothing stored)
        """
        self._require_step(*FORM_STEPS)
        slot = self.session.step
        drafts = self.session.drafts

        if not isinstance(data, dict):
            raise ValidationError("Dados inválidos")
        if slot in draft_store.MERGE_SLOTS:
            candidate = {**drafts.read(slot), **data}
        else:
            candidate = dict(data)

        if slot == STEP_PERSONAL and not str(candidate.get("cpfCnpj") or "").strip():
            candidate["cpfCnpj"] = self.session.vendor_id

        if slot != STEP_BANNER or str(candidate.get("banner_name") or "").strip():
            STEP_VALIDATORS[slot](candidate)

        stored = drafts.write(slot, candidate)
        if slot != STEP_BANNER:
            self.session.step = STEPS[STEPS.index(slot) + 1]
        return stored

    def build_payload(self) -> dict:
        session = self.session
        drafts = session.drafts
        return {
            "vendorId": session.vendor_id,
            "mode": session.mode,
            "merchantId": session.merchant_id,
            "equipmentProfileId": session.equipment_profile_id,
            "bannerProfileId": session.banner_profile_id,
            "personalData": drafts.get(draft_store.PERSONAL),
            "bankData": drafts.get(draft_store.BANK),
            "equipmentData": drafts.get(draft_store.EQUIPMENT),
            "menuData": drafts.get(draft_store.MENU),
            "bannerData": drafts.get(draft_store.BANNER),
        }

    def submit(self) -> dict:
        """
        Send every draft; on success move to "success".

        On failure the wizard stays on the banner step with drafts intact,
        so submitting again retries the whole submission.

        Raises:
            WizardStateError: Not on the banner step, or already submitting
            OnboardingError: Whatever the gateway raised
        """
        self._require_step(STEP_BANNER)

        with self._busy():
            session = self.session
            session.apply_lookup(self.gateway.lookup_vendor(session.vendor_id))

            result = self.gateway.submit(self.build_payload())

            session.mode = MODE_EDIT
            session.merchant_id = result.get("merchantId")
            session.equipment_profile_id = result.get("equipmentProfileId")
            session.banner_profile_id = result.get("bannerProfileId")
            session.result = result
            session.step = STEP_SUCCESS

        logger.info("wizard submitted vendor_id=%s mode=%s merchant_id=%s",
                    session.vendor_id, result.get("mode"), session.merchant_id)
        return result

    def restart(self) -> str:
        """From "success" back to an empty "doc" step."""
        self._require_step(STEP_SUCCESS)
        self.session.reset()
        return self.session.step
