from __future__ import annotations

from ..extensions import db
from onboarding.time_utils import to_utc_z


PERSON_TYPES = ("PF", "PJ")
ACCOUNT_TYPES = ("corrente", "poupanca")


class Merchant(db.Model):
    """
    Committed point-of-sale record produced by a completed onboarding.

    INVARIANT: cpf_cnpj equals the vendor_id of the status record that
    produced it.

    WRITES: Inserted once in create mode. Edit mode overwrites every field
    in place (full overwrite, not merge); no second row is ever created for
    the same document.
    """
    __tablename__ = "merchants"
    __table_args__ = (
        db.Index("ix_merchants_cpf_cnpj", "cpf_cnpj"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    pdv_name = db.Column(db.String(255), nullable=False)
    person_type = db.Column(db.String(2), nullable=False, default="PF")
    cpf_cnpj = db.Column(db.String(14), nullable=False)

    full_name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    # Address
    address_full = db.Column(db.Text, nullable=True)
    address_city = db.Column(db.String(128), nullable=True)
    address_state = db.Column(db.String(64), nullable=True)
    address_zipcode = db.Column(db.String(16), nullable=True)

    # Bank
    bank_account_type = db.Column(db.String(16), nullable=True)
    bank_name = db.Column(db.String(255), nullable=True)
    bank_agency = db.Column(db.String(32), nullable=True)
    bank_account = db.Column(db.String(32), nullable=True)
    bank_holder_doc = db.Column(db.String(32), nullable=True)
    bank_holder_name = db.Column(db.String(255), nullable=True)
    pix_key = db.Column(db.String(255), nullable=True)

    machines_qty = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Merchant id={self.id} cpf_cnpj={self.cpf_cnpj!r} pdv_name={self.pdv_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pdv_name": self.pdv_name,
            "person_type": self.person_type,
            "cpf_cnpj": self.cpf_cnpj,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address_full": self.address_full,
            "address_city": self.address_city,
            "address_state": self.address_state,
            "address_zipcode": self.address_zipcode,
            "bank_account_type": self.bank_account_type,
            "bank_name": self.bank_name,
            "bank_agency": self.bank_agency,
            "bank_account": self.bank_account,
            "bank_holder_doc": self.bank_holder_doc,
            "bank_holder_name": self.bank_holder_name,
            "pix_key": self.pix_key,
            "machines_qty": self.machines_qty,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
