from __future__ import annotations

from ..extensions import db
from avenue.time_utils import to_utc_z


class Address(db.Model):
    """
    Shipping address owned by exactly one user.

    The referenced country/county/city rows are shared, read-only lookups.
    At most one address per user is the default; the partial unique index
    backs up the address service, which flips defaults inside one
    transaction.
    """
    __tablename__ = "addresses"
    __table_args__ = (
        db.Index(
            "uq_addresses_user_default",
            "user_id",
            unique=True,
            sqlite_where=db.text("is_default = 1"),
            postgresql_where=db.text("is_default"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    recipient_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32), nullable=False)

    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=False)
    county_id = db.Column(db.Integer, db.ForeignKey("counties.id"), nullable=False)
    city_id = db.Column(db.Integer, db.ForeignKey("cities.id"), nullable=False)
    street_address = db.Column(db.String(255), nullable=False)

    is_default = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("addresses", lazy=True))
    country = db.relationship("Country")
    county = db.relationship("County")
    city = db.relationship("City")

    def __repr__(self) -> str:
        return f"<Address id={self.id} user_id={self.user_id} default={self.is_default}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "recipient_name": self.recipient_name,
            "phone": self.phone,
            "country": {"id": self.country_id, "name": self.country.name},
            "county": {"id": self.county_id, "name": self.county.name},
            "city": {
                "id": self.city_id,
                "name": self.city.name,
                "delivery_fee": self.city.delivery_fee,
            },
            "street_address": self.street_address,
            "is_default": self.is_default,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
