from __future__ import annotations

from ..extensions import db


MAX_BANNER_NAME_LENGTH = 28
BANNER_THEMES = ("classic", "neon", "dark")
BANNER_ACCENTS = ("orange", "blue", "purple", "green")
DEFAULT_THEME = "classic"
DEFAULT_ACCENT = "orange"


class BannerProfile(db.Model):
    """
    Stand banner shown at the event (at most one per merchant).

    Only persisted when banner_name is non-empty after trimming.
    """
    __tablename__ = "vendor_banners"
    __table_args__ = (
        db.UniqueConstraint("merchant_id", name="uq_vendor_banners_merchant"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    merchant_id = db.Column(db.Integer, db.ForeignKey("merchants.id"), nullable=False)

    banner_name = db.Column(db.String(MAX_BANNER_NAME_LENGTH), nullable=False)
    theme = db.Column(db.String(16), nullable=False, default=DEFAULT_THEME)
    accent = db.Column(db.String(16), nullable=False, default=DEFAULT_ACCENT)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchant_id": self.merchant_id,
            "banner_name": self.banner_name,
            "theme": self.theme,
            "accent": self.accent,
        }
