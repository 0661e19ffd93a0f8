# Overview: Service-layer write orchestration for a wizard submission.

"""
Submission Reconciler

Turns the five step drafts into normalized rows, in a fixed order:

  1. merchant      insert (create) or full overwrite (edit)
  2. equipment     profile upsert + items replaced
  3. menu          categories/products replaced
  4. banner        upsert, only when the trimmed name is non-empty
  5. status        vendor_status linked to every identifier

Each step commits on its own. A failing step aborts the rest and raises
PersistenceError (PartialWriteError when an earlier step already
committed). There is no rollback of committed steps.

SELF-HEALING: every step links the identifier it produced to the vendor
status record in the same commit as the rows themselves. After any partial
failure, lookup-by-document already reports merchant_id, so the retry
resolves to edit and updates the committed rows instead of duplicating them.

COLLECTIONS: equipment items and menu categories/products are never
diffed. The stored collection is replaced by the submitted one, and
positions are reassigned 0..n-1 in draft order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import (
    ConflictError,
    MissingIdentifierError,
    NotFoundError,
    PartialWriteError,
    PersistenceError,
    ValidationError,
    VendorNotFoundError,
)
from ..extensions import db
from ..models import (
    BannerProfile,
    EquipmentItem,
    EquipmentProfile,
    MenuCategory,
    MenuProduct,
    Merchant,
    VendorStatusRecord,
)
from ..models.banners import DEFAULT_ACCENT, DEFAULT_THEME
from ..models.merchants import PERSON_TYPES
from ..tax_document import normalize
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_banner,
    enforce_rules_menu_product,
    price_to_cents,
    validate_payload,
)
from .mode_service import ModeResolution, resolve_mode
from .vendor_lookup_service import MODE_CREATE, MODE_EDIT, MODES, lookup_vendor


logger = logging.getLogger(__name__)

STEP_MERCHANT = "merchant"
STEP_EQUIPMENT = "equipment"
STEP_MENU = "menu"
STEP_BANNER = "banner"
STEP_STATUS = "status"

GENERIC_WRITE_ERROR = "Erro ao salvar cadastro. Tente novamente."


# ---------------------------------------------------------------------------
# Field fallbacks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSource:
    """
    Where a column's value comes from.

    keys are tried in order; the first one present with a non-None value
    wins. Steps send camelCase, older clients and prefill rows send
    snake_case, and the first form version used the remaining aliases.
    """
    column: str
    keys: tuple[str, ...]
    default: Any = None


PERSONAL_FIELDS = (
    FieldSource("pdv_name", ("pdvName", "pdv_name", "pointOfSaleName"), "PDV"),
    FieldSource("person_type", ("personType", "person_type"), "PF"),
    FieldSource("full_name", ("fullName", "full_name"), ""),
    FieldSource("email", ("email", "responsibleEmail")),
    FieldSource("phone", ("phone", "responsiblePhone")),
    FieldSource("address_full", ("addressFull", "address_full", "fullAddress")),
    FieldSource("address_city", ("addressCity", "address_city")),
    FieldSource("address_state", ("addressState", "address_state")),
    FieldSource("address_zipcode", ("addressZipcode", "address_zipcode")),
)

BANK_FIELDS = (
    FieldSource("bank_name", ("bankName", "bank_name")),
    FieldSource("bank_agency", ("agency", "bank_agency")),
    FieldSource("bank_account", ("account", "bank_account", "accountNumber")),
    FieldSource("bank_account_type", ("accountType", "bank_account_type")),
    FieldSource("bank_holder_doc", ("holderDoc", "bank_holder_doc", "holderCpfCnpj")),
    FieldSource("bank_holder_name", ("holderName", "bank_holder_name")),
    FieldSource("pix_key", ("pixKey", "pix_key")),
)

EQUIPMENT_FIELDS = (
    FieldSource("outlets110", ("outlets110", "outlets_110"), 0),
    FieldSource("outlets220", ("outlets220", "outlets_220"), 0),
    FieldSource("other_outlets_qty", ("otherOutletsQty", "other_outlets_qty"), 0),
    FieldSource("other_outlets_label", ("otherOutletsLabel", "other_outlets_label")),
    FieldSource("notes", ("notes",)),
)


def pick(data: dict | None, keys: tuple[str, ...], default: Any = None) -> Any:
    if not data:
        return default
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def resolve_fields(data: dict | None, sources: tuple[FieldSource, ...]) -> dict[str, Any]:
    return {src.column: pick(data, src.keys, src.default) for src in sources}


MERCHANT_POLICY = ModelValidationPolicy(
    writable_fields={src.column for src in PERSONAL_FIELDS + BANK_FIELDS} | {"cpf_cnpj", "machines_qty"},
    required_on_create={"pdv_name", "person_type", "cpf_cnpj", "full_name"},
)
EQUIPMENT_POLICY = ModelValidationPolicy(
    writable_fields={src.column for src in EQUIPMENT_FIELDS},
)
EQUIPMENT_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "qty"},
    required_on_create={"name", "qty"},
)
BANNER_POLICY = ModelValidationPolicy(
    writable_fields={"banner_name", "theme", "accent"},
    required_on_create={"banner_name", "theme", "accent"},
)


# ---------------------------------------------------------------------------
# Inputs / outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExistingIds:
    merchant_id: int | None = None
    equipment_profile_id: int | None = None
    banner_profile_id: int | None = None
    version_id: int | None = None

    @classmethod
    def from_resolution(cls, resolution: ModeResolution) -> "ExistingIds":
        return cls(
            merchant_id=resolution.existing_merchant_id,
            equipment_profile_id=resolution.existing_equipment_profile_id,
            banner_profile_id=resolution.existing_banner_profile_id,
            version_id=resolution.existing_version_id,
        )


@dataclass(frozen=True)
class SubmissionResult:
    mode: str
    merchant_id: int
    equipment_profile_id: int | None
    banner_profile_id: int | None

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "mode": self.mode,
            "merchantId": self.merchant_id,
            "equipmentProfileId": self.equipment_profile_id,
            "bannerProfileId": self.banner_profile_id,
        }


@dataclass
class _MenuPlan:
    categories: list[tuple[str, list[tuple[str, int]]]]


# ---------------------------------------------------------------------------
# Payload builders (all validation happens before the first write)
# ---------------------------------------------------------------------------

def _to_int(value: Any, field: str, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} deve ser um número inteiro")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} deve ser um número inteiro")
    if not number.is_integer():
        raise ValidationError(f"{field} deve ser um número inteiro")
    return int(number)


def build_merchant_payload(
    vendor_id: str,
    personal: dict | None,
    bank: dict | None,
    menu: dict | None,
    *,
    current_machines_qty: int = 0,
) -> dict:
    """Normalized merchant row; cpf_cnpj always comes from vendor_id."""
    payload = resolve_fields(personal, PERSONAL_FIELDS)
    payload.update(resolve_fields(bank, BANK_FIELDS))
    payload["cpf_cnpj"] = vendor_id
    if menu is not None:
        payload["machines_qty"] = _to_int(pick(menu, ("machinesQty", "machines_qty"), 0), "machinesQty")
    else:
        payload["machines_qty"] = current_machines_qty
    payload["person_type"] = str(payload["person_type"]).strip().upper()
    if payload["person_type"] not in PERSON_TYPES:
        raise ValidationError(f"Tipo de pessoa inválido: {payload['person_type']!r}")
    return validate_payload(model=Merchant, payload=payload, policy=MERCHANT_POLICY, partial=False)


def build_equipment_payload(equipment: dict) -> tuple[dict, list[dict]]:
    fields = resolve_fields(equipment, EQUIPMENT_FIELDS)
    for key in ("outlets110", "outlets220", "other_outlets_qty"):
        fields[key] = _to_int(fields[key], key)
        if fields[key] < 0:
            raise ValidationError(f"{key} não pode ser negativo")
    profile = validate_payload(
        model=EquipmentProfile,
        payload=fields,
        policy=EQUIPMENT_POLICY,
        partial=True,
    )

    raw_items = equipment.get("items") or []
    if not isinstance(raw_items, list):
        raise ValidationError("items deve ser uma lista")

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Item de equipamento inválido")
        item = validate_payload(
            model=EquipmentItem,
            payload={"name": raw.get("name"), "qty": _to_int(raw.get("qty"), "qty", default=1)},
            policy=EQUIPMENT_ITEM_POLICY,
            partial=False,
        )
        if not item["name"]:
            raise ValidationError("Preencha o nome de todos os equipamentos.")
        if item["qty"] < 1:
            raise ValidationError("Quantidade do equipamento deve ser 1 ou mais.")
        items.append(item)
    return profile, items


def build_menu_plan(menu: dict) -> _MenuPlan:
    raw_categories = menu.get("categories") or []
    if not isinstance(raw_categories, list):
        raise ValidationError("categories deve ser uma lista")

    categories = []
    for raw in raw_categories:
        if not isinstance(raw, dict):
            raise ValidationError("Categoria inválida")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ValidationError("Categoria sem nome.")
        products = []
        for product in raw.get("products") or []:
            if not isinstance(product, dict):
                raise ValidationError("Produto inválido")
            pname = str(product.get("name") or "").strip()
            enforce_rules_menu_product(pname, product.get("price"))
            products.append((pname, price_to_cents(product.get("price"))))
        categories.append((name, products))
    return _MenuPlan(categories=categories)


def build_banner_payload(banner: dict | None) -> dict | None:
    """None when there is nothing to persist (no draft or blank name)."""
    if banner is None:
        return None
    name = str(pick(banner, ("banner_name", "bannerName"), "") or "").strip()
    if not name:
        return None
    payload = {
        "banner_name": name,
        "theme": pick(banner, ("theme",), DEFAULT_THEME),
        "accent": pick(banner, ("accent",), DEFAULT_ACCENT),
    }
    enforce_rules_banner(payload["theme"], payload["accent"])
    return validate_payload(model=BannerProfile, payload=payload, policy=BANNER_POLICY, partial=False)


# ---------------------------------------------------------------------------
# Collection replacement
# ---------------------------------------------------------------------------

def write_equipment_items(profile_id: int, items: list[dict], *, replace: bool) -> None:
    """
    Post-condition: the profile's stored items equal `items`, in order,
    with positions 0..len(items)-1.

    replace=False skips the delete for profiles created in this submission.
    """
    if replace:
        db.session.query(EquipmentItem).filter(
            EquipmentItem.equipment_profile_id == profile_id
        ).delete(synchronize_session=False)

    for position, item in enumerate(items):
        db.session.add(EquipmentItem(
            equipment_profile_id=profile_id,
            name=item["name"],
            qty=item["qty"],
            position=position,
        ))


def write_menu(merchant_id: int, plan: _MenuPlan, *, replace: bool) -> None:
    """
    Post-condition: the merchant's stored categories/products equal the
    plan, all active, positions 0..n-1 per level in draft order.

    Products go first on delete; they reference categories.
    """
    if replace:
        db.session.query(MenuProduct).filter(
            MenuProduct.merchant_id == merchant_id
        ).delete(synchronize_session=False)
        db.session.query(MenuCategory).filter(
            MenuCategory.merchant_id == merchant_id
        ).delete(synchronize_session=False)

    for c_index, (name, products) in enumerate(plan.categories):
        category = MenuCategory(
            merchant_id=merchant_id,
            name=name,
            position=c_index,
            is_active=True,
        )
        db.session.add(category)
        db.session.flush()

        for p_index, (pname, cents) in enumerate(products):
            db.session.add(MenuProduct(
                merchant_id=merchant_id,
                category_id=category.id,
                name=pname,
                price_cents=cents,
                position=p_index,
                is_active=True,
            ))


# ---------------------------------------------------------------------------
# Step runner
# ---------------------------------------------------------------------------

class _StepRunner:
    """
    Commits one step at a time.

    Every step rewrites the vendor_status row, so its version_id guards the
    whole submission: the row must still carry the version this runner last
    saw (the lookup's, then its own after each commit).
    """

    def __init__(self, status: VendorStatusRecord, expected_version: int | None):
        self.status = status
        self.vendor_id = status.vendor_id
        self.expected_version = expected_version
        self.committed: list[str] = []

    def run(self, step: str, fn: Callable[[], Any]) -> Any:
        try:
            if self.status.version_id != self.expected_version:
                raise StaleDataError(
                    f"vendor_status {self.vendor_id} at version {self.status.version_id}, "
                    f"expected {self.expected_version}"
                )
            result = fn()
            self.status.updated_at = utcnow()
            db.session.flush()
            self.expected_version = self.status.version_id
            db.session.commit()
        except StaleDataError as exc:
            db.session.rollback()
            logger.warning(
                "concurrent submission detected vendor_id=%s step=%s committed=%s",
                self.vendor_id, step, self.committed,
            )
            raise ConflictError(
                "Este cadastro foi alterado em outra sessão. Recarregue e tente novamente."
            ) from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception(
                "submission step failed vendor_id=%s step=%s committed=%s",
                self.vendor_id, step, self.committed,
            )
            if self.committed:
                raise PartialWriteError(
                    GENERIC_WRITE_ERROR, step=step, committed_steps=self.committed,
                ) from exc
            raise PersistenceError(GENERIC_WRITE_ERROR, step=step) from exc
        except Exception:
            db.session.rollback()
            raise
        self.committed.append(step)
        return result


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

def _resolve_merchant_id(
    vendor_id: str,
    effective_mode: str,
    existing: ExistingIds,
    client_merchant_id: int | None,
) -> Merchant | None:
    if effective_mode != MODE_EDIT:
        return None

    merchant_id = existing.merchant_id if existing.merchant_id is not None else client_merchant_id
    if merchant_id is None:
        raise MissingIdentifierError("merchantId obrigatório para edição")

    merchant = db.session.get(Merchant, merchant_id)
    if merchant is None:
        raise NotFoundError(f"Merchant {merchant_id} não encontrado")
    if merchant.cpf_cnpj != vendor_id:
        raise ValidationError("merchantId não pertence a este documento")
    return merchant


def _owned(model, row_id: int | None, merchant_id: int | None):
    """Row by id, only if it belongs to the merchant."""
    if row_id is None or merchant_id is None:
        return None
    row = db.session.get(model, row_id)
    if row is None or row.merchant_id != merchant_id:
        logger.warning("ignoring %s id=%s not owned by merchant_id=%s", model.__tablename__, row_id, merchant_id)
        return None
    return row


def submit(
    *,
    vendor_id: str,
    effective_mode: str,
    existing_ids: ExistingIds | None = None,
    personal: dict | None = None,
    bank: dict | None = None,
    equipment: dict | None = None,
    menu: dict | None = None,
    banner: dict | None = None,
    client_merchant_id: int | None = None,
    client_equipment_profile_id: int | None = None,
    client_banner_profile_id: int | None = None,
) -> SubmissionResult:
    """
    Persist a full wizard submission.

    Args:
        vendor_id: Normalized document of the vendor
        effective_mode: "create" or "edit", as decided by resolve_mode
        existing_ids: Identifiers read from vendor_status by the lookup
        personal/bank/equipment/menu/banner: Step drafts (None = step absent)
        client_*: Identifiers the client had cached; used only where the
            status record has none, and only when owned by this vendor

    Returns:
        SubmissionResult with the identifiers now linked to the vendor

    Raises:
        ValidationError: Missing vendor_id or malformed draft (nothing written)
        MissingIdentifierError: Edit without any merchant identifier
        VendorNotFoundError: No vendor_status row for vendor_id
        ConflictError: Another session changed the status record meanwhile
        PersistenceError / PartialWriteError: A write step failed
    """
    vendor_id = normalize(vendor_id)
    if not vendor_id:
        raise ValidationError("vendorId obrigatório")
    if effective_mode not in MODES:
        raise ValidationError(f"Modo inválido: {effective_mode!r}")
    existing = existing_ids or ExistingIds()

    status = db.session.get(VendorStatusRecord, vendor_id)
    if status is None:
        raise VendorNotFoundError("vendor_status não encontrado para este vendorId")

    merchant = _resolve_merchant_id(vendor_id, effective_mode, existing, client_merchant_id)
    is_edit = merchant is not None

    # Validate every draft before touching storage
    merchant_payload = build_merchant_payload(
        vendor_id, personal, bank, menu,
        current_machines_qty=merchant.machines_qty if merchant else 0,
    )
    equipment_payload = build_equipment_payload(equipment) if equipment is not None else None
    menu_plan = build_menu_plan(menu) if menu is not None else None
    banner_payload = build_banner_payload(banner)

    logger.info("submission start vendor_id=%s mode=%s", vendor_id, effective_mode)
    expected_version = existing.version_id if existing.version_id is not None else status.version_id
    runner = _StepRunner(status, expected_version)

    # 1) merchant
    def merchant_step() -> int:
        nonlocal merchant
        if is_edit:
            for key, value in merchant_payload.items():
                setattr(merchant, key, value)
        else:
            merchant = Merchant(**merchant_payload)
            db.session.add(merchant)
        db.session.flush()
        status.merchant_id = merchant.id
        return merchant.id

    merchant_id = runner.run(STEP_MERCHANT, merchant_step)

    # 2) equipment
    equipment_profile_id = None
    if equipment_payload is not None:
        profile_fields, items = equipment_payload

        def equipment_step() -> int:
            profile = None
            if is_edit:
                known_id = existing.equipment_profile_id or client_equipment_profile_id
                profile = _owned(EquipmentProfile, known_id, merchant_id)
            if profile is not None:
                for key, value in profile_fields.items():
                    setattr(profile, key, value)
                write_equipment_items(profile.id, items, replace=True)
            else:
                profile = EquipmentProfile(merchant_id=merchant_id, vendor_id=vendor_id, **profile_fields)
                db.session.add(profile)
                db.session.flush()
                write_equipment_items(profile.id, items, replace=False)
            status.equipment_profile_id = profile.id
            return profile.id

        equipment_profile_id = runner.run(STEP_EQUIPMENT, equipment_step)

    # 3) menu
    if menu_plan is not None:
        runner.run(STEP_MENU, lambda: write_menu(merchant_id, menu_plan, replace=is_edit))

    # 4) banner
    banner_profile_id = None
    if banner_payload is not None:

        def banner_step() -> int:
            row = None
            if is_edit:
                known_id = existing.banner_profile_id or client_banner_profile_id
                row = _owned(BannerProfile, known_id, merchant_id)
                if row is None:
                    # conflict target: one banner per merchant
                    row = db.session.query(BannerProfile).filter_by(merchant_id=merchant_id).first()
            if row is not None:
                for key, value in banner_payload.items():
                    setattr(row, key, value)
            else:
                row = BannerProfile(merchant_id=merchant_id, **banner_payload)
                db.session.add(row)
            db.session.flush()
            status.banner_profile_id = row.id
            return row.id

        banner_profile_id = runner.run(STEP_BANNER, banner_step)

    # 5) status linkage; identifiers are never cleared once set
    final_equipment_id = equipment_profile_id if equipment_profile_id is not None else existing.equipment_profile_id
    final_banner_id = banner_profile_id if banner_profile_id is not None else existing.banner_profile_id

    def status_step() -> None:
        status.merchant_id = merchant_id
        if final_equipment_id is not None:
            status.equipment_profile_id = final_equipment_id
        if final_banner_id is not None:
            status.banner_profile_id = final_banner_id

    runner.run(STEP_STATUS, status_step)

    result = SubmissionResult(
        mode=MODE_EDIT if is_edit else MODE_CREATE,
        merchant_id=merchant_id,
        equipment_profile_id=status.equipment_profile_id,
        banner_profile_id=status.banner_profile_id,
    )
    logger.info(
        "submission done vendor_id=%s mode=%s merchant_id=%s equipment_profile_id=%s banner_profile_id=%s",
        vendor_id, result.mode, result.merchant_id, result.equipment_profile_id, result.banner_profile_id,
    )
    return result


def upsert_banner(*, merchant_id: int, banner_name: str | None, theme: str | None, accent: str | None) -> BannerProfile:
    """
    Standalone banner save, conflict target merchant_id.

    Also links the banner to the merchant's vendor status when that has none.
    """
    payload = build_banner_payload({
        "banner_name": banner_name,
        "theme": theme or DEFAULT_THEME,
        "accent": accent or DEFAULT_ACCENT,
    })
    if payload is None:
        raise ValidationError("bannerName é obrigatório")

    if db.session.get(Merchant, merchant_id) is None:
        raise NotFoundError(f"Merchant {merchant_id} não encontrado")

    try:
        row = db.session.query(BannerProfile).filter_by(merchant_id=merchant_id).first()
        if row is None:
            row = BannerProfile(merchant_id=merchant_id, **payload)
            db.session.add(row)
        else:
            for key, value in payload.items():
                setattr(row, key, value)
        db.session.flush()

        status = db.session.query(VendorStatusRecord).filter_by(merchant_id=merchant_id).first()
        if status is not None and status.banner_profile_id is None:
            status.banner_profile_id = row.id
            status.updated_at = utcnow()

        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("banner upsert failed merchant_id=%s", merchant_id)
        raise PersistenceError(GENERIC_WRITE_ERROR, step=STEP_BANNER) from exc
    return row


# ---------------------------------------------------------------------------
# Request entry point
# ---------------------------------------------------------------------------

def _optional_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} inválido")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} inválido")


def _draft(data: dict, key: str) -> dict | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(f"{key} deve ser um objeto")
    return value


def submit_request(data: dict | None) -> SubmissionResult:
    """
    Submit a wizard request body.

    Looks the vendor up again and resolves the mode from stored state
    before writing, so a stale client can never pick the mode.

    Raises:
        Everything lookup_vendor, resolve_mode and submit raise.
    """
    data = data or {}
    vendor_id = normalize(str(data.get("vendorId") or ""))
    if not vendor_id:
        raise ValidationError("vendorId obrigatório")

    lookup = lookup_vendor(vendor_id)
    resolution = resolve_mode(lookup, data.get("mode") or None)

    return submit(
        vendor_id=lookup.vendor_id,
        effective_mode=resolution.effective_mode,
        existing_ids=ExistingIds.from_resolution(resolution),
        personal=_draft(data, "personalData"),
        bank=_draft(data, "bankData"),
        equipment=_draft(data, "equipmentData"),
        menu=_draft(data, "menuData"),
        banner=_draft(data, "bannerData"),
        client_merchant_id=_optional_int(data.get("merchantId"), "merchantId"),
        client_equipment_profile_id=_optional_int(data.get("equipmentProfileId"), "equipmentProfileId"),
        client_banner_profile_id=_optional_int(data.get("bannerProfileId"), "bannerProfileId"),
    )
