from __future__ import annotations

from ..extensions import db
from avenue.time_utils import to_utc_z

ORDER_STATUSES = ("Pending", "Confirmed", "Processing", "In transit", "Delivered", "Cancelled")


class Order(db.Model):
    """
    Customer order. Only the fields the tracking timeline and the admin
    status workflow need; line items and payment live with checkout.

    Amounts are whole KES.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(16), nullable=False, unique=True, index=True)  # ORD-0123456789
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    address_id = db.Column(db.Integer, db.ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="Pending", index=True)

    subtotal = db.Column(db.Integer, nullable=False, default=0)
    shipping = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    status_events = db.relationship(
        "OrderStatusEvent",
        backref="order",
        lazy=True,
        order_by="OrderStatusEvent.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Order {self.order_number} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "address_id": self.address_id,
            "status": self.status,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "total": self.total,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderStatusEvent(db.Model):
    """Append-only log: one row per status the order has been put in."""
    __tablename__ = "order_status_events"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False)
    note = db.Column(db.String(255), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "status": self.status,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
