from __future__ import annotations

from ..extensions import db


class EquipmentProfile(db.Model):
    """
    Power and equipment needs of a merchant's stand (at most one per merchant).

    Items are owned by the profile and replaced wholesale on every edit.
    """
    __tablename__ = "equipment_profiles"
    __table_args__ = (
        db.Index("ix_equipment_profiles_merchant", "merchant_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    merchant_id = db.Column(db.Integer, db.ForeignKey("merchants.id"), nullable=False)
    vendor_id = db.Column(db.String(14), nullable=False, index=True)

    outlets110 = db.Column(db.Integer, nullable=False, default=0)
    outlets220 = db.Column(db.Integer, nullable=False, default=0)
    other_outlets_qty = db.Column(db.Integer, nullable=False, default=0)
    other_outlets_label = db.Column(db.String(255), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "EquipmentItem",
        backref="profile",
        lazy=True,
        order_by="EquipmentItem.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchant_id": self.merchant_id,
            "vendor_id": self.vendor_id,
            "outlets110": self.outlets110,
            "outlets220": self.outlets220,
            "other_outlets_qty": self.other_outlets_qty,
            "other_outlets_label": self.other_outlets_label,
            "notes": self.notes,
            "items": [item.to_dict() for item in self.items],
        }


class EquipmentItem(db.Model):
    """
    One equipment line (e.g. "Fritadeira" x2).

    ORDERING: position is explicit, 0-based and contiguous in draft order.
    Never rely on insertion order.
    """
    __tablename__ = "equipment_items"
    __table_args__ = (
        db.Index("ix_equipment_items_profile_position", "equipment_profile_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    equipment_profile_id = db.Column(db.Integer, db.ForeignKey("equipment_profiles.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=1)
    position = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "equipment_profile_id": self.equipment_profile_id,
            "name": self.name,
            "qty": self.qty,
            "position": self.position,
        }
