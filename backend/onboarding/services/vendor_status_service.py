# Overview: Out-of-band administration of vendor status records.

"""
Vendor Status Service

The event team selects prospects and moves them through the commercial
pipeline (signature, payment, confirmation) outside the wizard. These
functions back the `vendors` CLI group.

The wizard itself never creates or deletes status records; it only links
identifiers on submission.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError, StorageError, ValidationError, VendorNotFoundError
from ..extensions import db
from ..models import VendorStatusRecord
from ..models.vendors import STATUS_SELECTED, VENDOR_STATUSES
from ..time_utils import utcnow
from .vendor_lookup_service import require_document


logger = logging.getLogger(__name__)


def _require_status(status: str) -> str:
    if status not in VENDOR_STATUSES:
        raise ValidationError(f"Status inválido: {status!r}")
    return status


def provision_vendor(*, document: str, status: str = STATUS_SELECTED) -> tuple[VendorStatusRecord, bool]:
    """
    Create the status record for a document, or update its status.

    Linked identifiers are never touched.

    Returns:
        (record, created)
    """
    vendor_id = require_document(document)
    _require_status(status)

    try:
        record = db.session.get(VendorStatusRecord, vendor_id)
        created = record is None
        if created:
            record = VendorStatusRecord(vendor_id=vendor_id, status=status)
            db.session.add(record)
        else:
            record.status = status
            record.updated_at = utcnow()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("vendor provision failed vendor_id=%s", vendor_id)
        raise PersistenceError("Erro ao salvar status do vendedor") from exc

    logger.info("vendor provisioned vendor_id=%s status=%s created=%s", vendor_id, status, created)
    return record, created


def set_vendor_status(*, document: str, status: str) -> VendorStatusRecord:
    vendor_id = require_document(document)
    _require_status(status)

    record = db.session.get(VendorStatusRecord, vendor_id)
    if record is None:
        raise VendorNotFoundError("Documento não encontrado")

    previous = record.status
    try:
        record.status = status
        record.updated_at = utcnow()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("vendor status update failed vendor_id=%s", vendor_id)
        raise PersistenceError("Erro ao salvar status do vendedor") from exc

    logger.info("vendor status vendor_id=%s %s -> %s", vendor_id, previous, status)
    return record


def list_vendors(*, status: str | None = None) -> list[VendorStatusRecord]:
    if status is not None:
        _require_status(status)
    try:
        query = db.session.query(VendorStatusRecord)
        if status is not None:
            query = query.filter(VendorStatusRecord.status == status)
        return query.order_by(VendorStatusRecord.vendor_id.asc()).all()
    except SQLAlchemyError as exc:
        logger.exception("vendor list failed")
        raise StorageError("Erro ao consultar cadastros") from exc
