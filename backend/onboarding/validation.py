from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models.banners import BANNER_ACCENTS, BANNER_THEMES, MAX_BANNER_NAME_LENGTH
from .models.menu import MAX_PRODUCT_NAME_LENGTH


# Maximum price: R$ 999.999,99 per menu product
MAX_PRICE_CENTS = 99_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what a payload is allowed to set
    - required_on_create: fields required when inserting
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - drafts come from forms, so numeric strings are accepted
    if isinstance(coltype, Integer):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if not value.is_integer():
                raise ValidationError(f"{col.key} must be an integer, not a decimal")
            return int(value)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes a row payload against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned dict with only writable fields.

    partial=False: insert semantics (enforce required_on_create)
    partial=True: update semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def price_to_cents(price: Any) -> int:
    """
    Decimal currency amount -> integer cents, rounded to nearest, half up.

    12.5 -> 1250, "7,90" -> 790
    """
    if isinstance(price, bool) or price is None or price == "":
        raise ValidationError("Preço é obrigatório.")
    if isinstance(price, str):
        text = price.strip().replace("R$", "").strip().replace(",", ".")
        try:
            price = float(text)
        except ValueError:
            raise ValidationError(f"Preço inválido: {price!r}")
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise ValidationError(f"Preço inválido: {price!r}")
    if not math.isfinite(value):
        raise ValidationError("Preço inválido.")

    # half-cents round up
    cents = math.floor(value * 100 + 0.5)
    if cents < 0:
        raise ValidationError("Preço não pode ser negativo.")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"Preço não pode passar de {MAX_PRICE_CENTS / 100:,.2f}.")
    return cents


def cents_to_price(cents: int | None) -> float:
    return (cents or 0) / 100


def _required(value: Any) -> bool:
    return bool(str(value or "").strip())


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def enforce_rules_menu_product(name: Any, price: Any) -> None:
    """Server-side product rules; the menu step applies stricter ones."""
    if not _required(name):
        raise ValidationError("Preencha o nome do produto.")
    if len(str(name).strip()) > MAX_PRODUCT_NAME_LENGTH:
        raise ValidationError(f"Produto \"{name}\" excede {MAX_PRODUCT_NAME_LENGTH} caracteres.")
    price_to_cents(price)


def enforce_rules_banner(theme: Any, accent: Any) -> None:
    if theme not in BANNER_THEMES:
        raise ValidationError(f"Tema de banner inválido: {theme!r}")
    if accent not in BANNER_ACCENTS:
        raise ValidationError(f"Cor de destaque inválida: {accent!r}")


# ---------------------------------------------------------------------------
# Step validation (what each wizard step checks before letting the user on)
# ---------------------------------------------------------------------------

def validate_personal_step(data: dict) -> None:
    if not _required(data.get("pdvName")):
        raise ValidationError("Preencha o nome do ponto de venda.")
    if not _required(data.get("fullName")):
        raise ValidationError("Preencha o nome.")
    if not _required(data.get("cpfCnpj")):
        raise ValidationError("CPF/CNPJ é obrigatório.")
    if not _required(data.get("email")):
        raise ValidationError("Preencha o e-mail.")
    if not _required(data.get("phone")):
        raise ValidationError("Preencha o contato.")
    if not _required(data.get("addressFull")):
        raise ValidationError("Endereço inválido.")
    if not _required(data.get("addressCity")):
        raise ValidationError("Cidade inválida.")
    if not _required(data.get("addressState")):
        raise ValidationError("Estado inválido.")
    if not _required(data.get("addressZipcode")):
        raise ValidationError("CEP inválido.")


def validate_bank_step(data: dict) -> None:
    if data.get("accountType", "corrente") not in ("corrente", "poupanca"):
        raise ValidationError("Tipo de conta inválido.")
    if not _required(data.get("bankName")):
        raise ValidationError("Preencha o nome do banco.")
    if not _required(data.get("agency")):
        raise ValidationError("Preencha a agência.")
    if not _required(data.get("account")):
        raise ValidationError("Preencha o número da conta.")
    if not _required(data.get("holderDoc")):
        raise ValidationError("Preencha o CPF/CNPJ do titular.")
    if not _required(data.get("holderName")):
        raise ValidationError("Preencha o nome do titular.")
    if not _required(data.get("pixKey")):
        raise ValidationError("Preencha a chave Pix.")


def validate_equipment_step(data: dict) -> None:
    items = data.get("items") or []
    if not items:
        raise ValidationError("Adicione pelo menos 1 equipamento.")

    for item in items:
        if not _required(item.get("name")):
            raise ValidationError("Preencha o nome de todos os equipamentos.")
        qty = _to_number(item.get("qty"))
        if qty is None or qty < 1:
            raise ValidationError("Quantidade do equipamento deve ser 1 ou mais.")

    outlets = [_to_number(data.get(k)) or 0 for k in ("outlets110", "outlets220", "otherOutletsQty")]
    if sum(outlets) < 1:
        raise ValidationError("Informe a quantidade de tomadas (110, 220 ou outras).")

    if (_to_number(data.get("otherOutletsQty")) or 0) > 0 and not _required(data.get("otherOutletsLabel")):
        raise ValidationError("Você informou 'outras tomadas'. Diga qual (ex: trifásico, 380v, extensão).")


def validate_menu_step(data: dict) -> None:
    machines = _to_number(data.get("machinesQty"))
    if machines is None or machines < 1:
        raise ValidationError("Selecione a quantidade de máquinas.")

    categories = data.get("categories") or []
    if not categories:
        raise ValidationError("Adicione pelo menos 1 categoria.")

    for category in categories:
        name = category.get("name")
        if not _required(name):
            raise ValidationError("Categoria sem nome.")
        products = category.get("products") or []
        if not products:
            raise ValidationError(f"A categoria \"{name}\" precisa ter pelo menos 1 produto.")
        for product in products:
            pname = str(product.get("name") or "")
            if not _required(pname):
                raise ValidationError("Preencha o nome do produto.")
            if len(pname) > MAX_PRODUCT_NAME_LENGTH:
                raise ValidationError(f"Produto \"{pname}\" excede {MAX_PRODUCT_NAME_LENGTH} caracteres.")
            price = _to_number(product.get("price"))
            if price is None or price <= 0:
                raise ValidationError(f"Produto \"{pname}\" com preço inválido.")


def validate_banner_step(data: dict) -> None:
    name = str(data.get("banner_name") or "").strip()
    if not name:
        raise ValidationError("Digite o nome do banner.")
    if len(name) > MAX_BANNER_NAME_LENGTH:
        raise ValidationError(f"O nome do banner pode ter no máximo {MAX_BANNER_NAME_LENGTH} caracteres.")
    enforce_rules_banner(data.get("theme", "classic"), data.get("accent", "orange"))


STEP_VALIDATORS = {
    "personal": validate_personal_step,
    "bank": validate_bank_step,
    "equipment": validate_equipment_step,
    "menu": validate_menu_step,
    "banner": validate_banner_step,
}
