# Overview: Service-layer operations for vendor lookup; read-only access to vendor status.

"""
Vendor Lookup Service

WHY: A returning vendor is identified only by their tax document. The
vendor status record says whether onboarding may continue and which
merchant/equipment/banner rows already belong to that document.

MODE TRUTH: mode is derived from merchant_id on every lookup, never cached
by clients. A submission that failed half-way already linked whatever it
committed, so the next lookup resolves to edit and the retry reuses it.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError, ValidationError, VendorNotFoundError
from ..extensions import db
from ..models import VendorStatusRecord
from ..models.vendors import STATUS_CONFIRMED
from ..tax_document import MIN_DOCUMENT_DIGITS, normalize


logger = logging.getLogger(__name__)

MODE_CREATE = "create"
MODE_EDIT = "edit"
MODES = (MODE_CREATE, MODE_EDIT)


@dataclass(frozen=True)
class VendorLookupResult:
    vendor_id: str
    status: str
    merchant_id: int | None
    equipment_profile_id: int | None
    banner_profile_id: int | None
    version_id: int | None = None

    @property
    def can_continue(self) -> bool:
        return self.status == STATUS_CONFIRMED

    @property
    def mode(self) -> str:
        return MODE_EDIT if self.merchant_id is not None else MODE_CREATE

    def vendor_dict(self) -> dict:
        data = asdict(self)
        data.pop("version_id")
        return data

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "vendor": self.vendor_dict(),
            "canContinue": self.can_continue,
            "mode": self.mode,
        }


def require_document(document: str | None) -> str:
    """Normalize and reject documents too short to be a CPF or CNPJ."""
    vendor_id = normalize(document)
    if len(vendor_id) < MIN_DOCUMENT_DIGITS:
        raise ValidationError("CPF/CNPJ inválido")
    return vendor_id


def get_status_record(vendor_id: str) -> VendorStatusRecord | None:
    try:
        return db.session.get(VendorStatusRecord, vendor_id)
    except SQLAlchemyError as exc:
        logger.exception("vendor_status read failed vendor_id=%s", vendor_id)
        raise StorageError("Erro ao consultar cadastro. Tente novamente.") from exc


def lookup_vendor(document: str | None) -> VendorLookupResult:
    """
    Look up a vendor by tax document.

    Args:
        document: Raw or normalized CPF/CNPJ

    Returns:
        VendorLookupResult with derived can_continue and mode

    Raises:
        ValidationError: Fewer than 11 digits after normalization
        VendorNotFoundError: No status record for this document
        StorageError: Store unavailable
    """
    vendor_id = require_document(document)

    record = get_status_record(vendor_id)
    if record is None:
        raise VendorNotFoundError("Documento não encontrado")

    result = VendorLookupResult(
        vendor_id=record.vendor_id,
        status=record.status,
        merchant_id=record.merchant_id,
        equipment_profile_id=record.equipment_profile_id,
        banner_profile_id=record.banner_profile_id,
        version_id=record.version_id,
    )
    logger.info(
        "vendor lookup vendor_id=%s status=%s mode=%s",
        result.vendor_id, result.status, result.mode,
    )
    return result
