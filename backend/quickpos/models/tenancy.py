from __future__ import annotations

from ..extensions import db
from quickpos.time_utils import to_utc_z
from ._ids import new_id


class Store(db.Model):
    """
    Tenant boundary: every product, sale and line item belongs to one store.
    """
    __tablename__ = "stores"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class StoreMembership(db.Model):
    """
    Binds one user to one store.

    Exactly one membership per user is assumed; the unique constraint on
    user_id enforces it at the database level.
    """
    __tablename__ = "store_memberships"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_store_memberships_user"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("memberships", lazy=True))

    def __repr__(self) -> str:
        return f"<StoreMembership user_id={self.user_id} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "created_at": to_utc_z(self.created_at),
        }
