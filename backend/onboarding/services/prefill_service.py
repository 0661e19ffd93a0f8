# Overview: Shapes stored records and spreadsheet rows into step-form defaults.

"""
Prefill Service

Every function here returns data in the exact shape the matching wizard
step edits, with every field defaulted, so a step never has to guess
whether a key is missing or empty.

Two sources:
- stored rows (edit mode): merchant, equipment profile, menu, banner
- the prospect spreadsheet (before the first submission)
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, StorageError
from ..extensions import db
from ..models import BannerProfile, EquipmentItem, EquipmentProfile, MenuCategory, MenuProduct, Merchant
from ..models.banners import DEFAULT_ACCENT, DEFAULT_THEME
from ..tax_document import CNPJ_LENGTH, CPF_LENGTH, normalize
from ..validation import cents_to_price
from .spreadsheet_service import SheetRow


logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_TYPE = "corrente"
DEFAULT_MACHINES_QTY = 2


def build_address_combined(
    full: str | None,
    city: str | None,
    state: str | None,
    zipcode: str | None,
) -> str:
    """'Rua X, 10 • Recife - PE • CEP 50000-000' (empty parts dropped)."""
    parts = []
    full = (full or "").strip()
    if full:
        parts.append(full)
    city_state = " - ".join(p for p in ((city or "").strip(), (state or "").strip()) if p)
    if city_state:
        parts.append(city_state)
    zipcode = (zipcode or "").strip()
    if zipcode:
        parts.append(f"CEP {zipcode}")
    return " • ".join(parts)


def _read(fn, what: str):
    try:
        return fn()
    except SQLAlchemyError as exc:
        logger.exception("prefill read failed what=%s", what)
        raise StorageError("Erro ao carregar dados salvos. Tente novamente.") from exc


# ---------------------------------------------------------------------------
# Stored records (edit mode)
# ---------------------------------------------------------------------------

def load_merchant_prefill(merchant_id: int) -> dict:
    """
    Personal- and bank-shaped defaults from a stored merchant.

    Raises:
        NotFoundError: Unknown merchant id
        StorageError: Store unavailable
    """
    merchant = _read(lambda: db.session.get(Merchant, merchant_id), "merchant")
    if merchant is None:
        raise NotFoundError("Merchant não encontrado")

    personal = {
        "personType": merchant.person_type or "PF",
        "cpfCnpj": merchant.cpf_cnpj or "",
        "fullName": merchant.full_name or "",
        "email": merchant.email or "",
        "phone": merchant.phone or "",
        "pdvName": merchant.pdv_name or "",
        "addressFull": merchant.address_full or "",
        "addressCity": merchant.address_city or "",
        "addressState": merchant.address_state or "",
        "addressZipcode": merchant.address_zipcode or "",
        "addressCombined": build_address_combined(
            merchant.address_full,
            merchant.address_city,
            merchant.address_state,
            merchant.address_zipcode,
        ),
    }

    bank = {
        "accountType": merchant.bank_account_type or DEFAULT_ACCOUNT_TYPE,
        "bankName": merchant.bank_name or "",
        "agency": merchant.bank_agency or "",
        "account": merchant.bank_account or "",
        "holderDoc": merchant.bank_holder_doc or "",
        "holderName": merchant.bank_holder_name or "",
        "pixKey": merchant.pix_key or "",
    }

    return {"personal": personal, "bank": bank}


def load_equipment_prefill(profile_id: int) -> dict:
    """
    Equipment-step defaults from a stored profile; items in position order.

    Raises:
        NotFoundError: Unknown profile id
        StorageError: Store unavailable
    """
    profile = _read(lambda: db.session.get(EquipmentProfile, profile_id), "equipment_profile")
    if profile is None:
        raise NotFoundError("Perfil de equipamento não encontrado")

    items = _read(
        lambda: (
            db.session.query(EquipmentItem)
            .filter(EquipmentItem.equipment_profile_id == profile_id)
            .order_by(EquipmentItem.position.asc(), EquipmentItem.id.asc())
            .all()
        ),
        "equipment_items",
    )

    return {
        "items": [
            {"id": it.id, "name": it.name or "", "qty": it.qty if it.qty is not None else 1}
            for it in items
        ],
        "outlets110": profile.outlets110 or 0,
        "outlets220": profile.outlets220 or 0,
        "otherOutletsQty": profile.other_outlets_qty or 0,
        "otherOutletsLabel": profile.other_outlets_label or "",
        "notes": profile.notes or "",
    }


def load_menu_prefill(merchant_id: int, *, default_machines_qty: int = DEFAULT_MACHINES_QTY) -> dict:
    """
    Menu-step defaults: categories in position order, active products only,
    prices converted back from cents.
    """
    categories = _read(
        lambda: (
            db.session.query(MenuCategory)
            .filter(MenuCategory.merchant_id == merchant_id)
            .order_by(MenuCategory.position.asc(), MenuCategory.id.asc())
            .all()
        ),
        "menu_categories",
    )
    if not categories:
        return {"machinesQty": default_machines_qty, "categories": []}

    category_ids = [c.id for c in categories]
    products = _read(
        lambda: (
            db.session.query(MenuProduct)
            .filter(MenuProduct.category_id.in_(category_ids))
            .filter(MenuProduct.is_active.is_(True))
            .order_by(MenuProduct.position.asc(), MenuProduct.id.asc())
            .all()
        ),
        "menu_products",
    )

    merchant = _read(lambda: db.session.get(Merchant, merchant_id), "merchant")
    machines_qty = merchant.machines_qty if merchant and merchant.machines_qty else default_machines_qty

    by_category: dict[int, list[dict]] = {cid: [] for cid in category_ids}
    for p in products:
        by_category[p.category_id].append({
            "id": p.id,
            "name": p.name or "",
            "price": cents_to_price(p.price_cents),
        })

    return {
        "machinesQty": machines_qty,
        "categories": [
            {"id": c.id, "name": c.name or "", "products": by_category[c.id]}
            for c in categories
        ],
    }


def load_banner_prefill(merchant_id: int) -> dict:
    banner = _read(
        lambda: db.session.query(BannerProfile).filter_by(merchant_id=merchant_id).first(),
        "banner",
    )
    if banner is None:
        return {
            "merchant_id": merchant_id,
            "banner_name": "",
            "theme": DEFAULT_THEME,
            "accent": DEFAULT_ACCENT,
        }
    return {
        "merchant_id": banner.merchant_id,
        "banner_name": banner.banner_name,
        "theme": banner.theme,
        "accent": banner.accent,
    }


# ---------------------------------------------------------------------------
# Spreadsheet rows (before the first submission)
# ---------------------------------------------------------------------------

def pick_person_type(row: SheetRow | None) -> str:
    pt = ((row.person_type if row else None) or "").lower()
    if "pj" in pt:
        return "PJ"
    if "pf" in pt:
        return "PF"
    if row is not None and len(normalize(row.pj_cnpj)) >= CNPJ_LENGTH:
        return "PJ"
    return "PF"


def personal_from_sheet(row: SheetRow | None, vendor_id: str) -> dict:
    person_type = pick_person_type(row)
    row = row or SheetRow()

    if person_type == "PJ":
        full_name = row.pj_legal_representative_name or ""
        pdv_name = row.pj_brand_name or ""
    else:
        full_name = row.pf_full_name or ""
        pdv_name = row.pf_brand_name or ""

    return {
        "personType": person_type,
        "cpfCnpj": vendor_id or "",
        "fullName": full_name,
        "email": row.contact_email or "",
        "phone": row.contact_phone or "",
        "pdvName": pdv_name,
        "addressFull": row.address_full or " - ".join(
            p for p in (row.address_city, row.address_state, row.address_zipcode) if p
        ),
        "addressCity": row.address_city or "",
        "addressState": row.address_state or "",
        "addressZipcode": row.address_zipcode or "",
        "addressCombined": build_address_combined(
            row.address_full, row.address_city, row.address_state, row.address_zipcode,
        ),
    }


def _pick_holder_doc(row: SheetRow, vendor_id: str) -> str:
    pj = normalize(row.pj_cnpj)
    pf = normalize(row.pf_cpf)
    if len(pj) >= CNPJ_LENGTH:
        return pj
    if len(pf) >= CPF_LENGTH:
        return pf
    return normalize(vendor_id)


def bank_from_sheet(row: SheetRow | None, vendor_id: str) -> dict:
    row = row or SheetRow()
    return {
        "accountType": DEFAULT_ACCOUNT_TYPE,
        "bankName": row.bank_name or "",
        "agency": row.bank_agency or "",
        "account": row.bank_account or "",
        "holderDoc": _pick_holder_doc(row, vendor_id),
        "holderName": row.pix_favored_name or row.pf_full_name or row.pj_legal_representative_name or "",
        "pixKey": row.pix_key or "",
    }
