from __future__ import annotations

from ..extensions import db
from avenue.time_utils import to_utc_z


class PushSubscription(db.Model):
    """
    Browser Push API subscription, one per browser endpoint.

    A user may hold several (one per device). The endpoint is the push
    service URL a dispatcher posts to; p256dh/auth are the client keys used
    to encrypt the payload.
    """
    __tablename__ = "push_subscriptions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    endpoint = db.Column(db.String(1024), nullable=False, unique=True)
    p256dh = db.Column(db.String(255), nullable=False)
    auth = db.Column(db.String(255), nullable=False)
    expiration_time = db.Column(db.DateTime(timezone=True), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("push_subscriptions", lazy=True))

    def to_webpush_info(self) -> dict:
        """Shape expected by web push senders (matches PushSubscription.toJSON())."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "endpoint": self.endpoint,
            "user_id": self.user_id,
            "expiration_time": to_utc_z(self.expiration_time),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
