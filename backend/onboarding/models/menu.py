from __future__ import annotations

from ..extensions import db


# Card printers truncate longer names
MAX_PRODUCT_NAME_LENGTH = 40


class MenuCategory(db.Model):
    """
    Menu category owned by a merchant.

    WRITES: Edit mode deletes every category (after its products) and
    reinserts the submitted draft, so server-side ids do not survive edits.
    """
    __tablename__ = "menu_categories"
    __table_args__ = (
        db.Index("ix_menu_categories_merchant_position", "merchant_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    merchant_id = db.Column(db.Integer, db.ForeignKey("merchants.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    products = db.relationship(
        "MenuProduct",
        backref="category",
        lazy=True,
        order_by="MenuProduct.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchant_id": self.merchant_id,
            "name": self.name,
            "position": self.position,
            "is_active": self.is_active,
        }


class MenuProduct(db.Model):
    """Menu product; price stored in integer cents."""
    __tablename__ = "menu_products"
    __table_args__ = (
        db.Index("ix_menu_products_category_position", "category_id", "position"),
        db.Index("ix_menu_products_merchant", "merchant_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    merchant_id = db.Column(db.Integer, db.ForeignKey("merchants.id"), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("menu_categories.id"), nullable=False)

    name = db.Column(db.String(MAX_PRODUCT_NAME_LENGTH), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    position = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchant_id": self.merchant_id,
            "category_id": self.category_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "position": self.position,
            "is_active": self.is_active,
        }
