from __future__ import annotations

from ..extensions import db
from onboarding.time_utils import to_utc_z


STATUS_SELECTED = "selecionado"
STATUS_AWAITING_SIGNATURE = "aguardando_assinatura"
STATUS_AWAITING_PAYMENT = "aguardando_pagamento"
STATUS_CONFIRMED = "confirmado"
STATUS_WITHDRAWN = "desistente"

VENDOR_STATUSES = (
    STATUS_SELECTED,
    STATUS_AWAITING_SIGNATURE,
    STATUS_AWAITING_PAYMENT,
    STATUS_CONFIRMED,
    STATUS_WITHDRAWN,
)


class VendorStatusRecord(db.Model):
    """
    One row per normalized tax document (CPF or CNPJ).

    LIFECYCLE: Provisioned out-of-band before onboarding starts (see the
    `vendors provision` CLI command). The onboarding flow only updates it,
    at the end of each submission step, and never deletes it.

    MODE TRUTH: merchant_id is non-null iff a submission created a
    merchant. Its presence alone classifies a visit as edit vs create.

    CONCURRENCY: version_id is an optimistic-lock counter. A submission
    carries the version it looked up and rewrites this row in every step,
    so a change by another session fails the next step with StaleDataError.
    """
    __tablename__ = "vendor_status"
    __table_args__ = (
        db.Index("ix_vendor_status_status", "status"),
    )

    vendor_id = db.Column(db.String(14), primary_key=True)
    status = db.Column(db.String(32), nullable=False, default=STATUS_SELECTED)

    merchant_id = db.Column(db.Integer, db.ForeignKey("merchants.id"), nullable=True)
    equipment_profile_id = db.Column(db.Integer, db.ForeignKey("equipment_profiles.id"), nullable=True)
    banner_profile_id = db.Column(db.Integer, db.ForeignKey("vendor_banners.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    merchant = db.relationship("Merchant", foreign_keys=[merchant_id])
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<VendorStatusRecord vendor_id={self.vendor_id!r} status={self.status!r} merchant_id={self.merchant_id}>"

    def to_dict(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "status": self.status,
            "merchant_id": self.merchant_id,
            "equipment_profile_id": self.equipment_profile_id,
            "banner_profile_id": self.banner_profile_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
