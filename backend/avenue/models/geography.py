from __future__ import annotations

from ..extensions import db
from avenue.time_utils import to_utc_z


class Country(db.Model):
    """
    Top of the location hierarchy (country -> county -> city).

    Nodes are never hard-deleted: addresses keep referencing them, so
    retirement is done by clearing is_active.
    """
    __tablename__ = "countries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Country id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class County(db.Model):
    """County (state/province). Names are unique within a country."""
    __tablename__ = "counties"
    __table_args__ = (
        db.UniqueConstraint("country_id", "name", name="uq_counties_country_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    country = db.relationship("Country", backref=db.backref("counties", lazy=True))

    def __repr__(self) -> str:
        return f"<County id={self.id} name={self.name!r} country_id={self.country_id}>"

    def to_dict(self, *, include_parent: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "country_id": self.country_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
        if include_parent:
            data["country"] = {"id": self.country.id, "name": self.country.name}
        return data


class City(db.Model):
    """
    Leaf of the location hierarchy. Carries the flat delivery fee charged
    for orders shipped here. Names are unique within a county.
    """
    __tablename__ = "cities"
    __table_args__ = (
        db.UniqueConstraint("county_id", "name", name="uq_cities_county_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    county_id = db.Column(db.Integer, db.ForeignKey("counties.id"), nullable=False, index=True)
    delivery_fee = db.Column(db.Integer, nullable=False, default=0)  # whole KES
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    county = db.relationship("County", backref=db.backref("cities", lazy=True))

    def __repr__(self) -> str:
        return f"<City id={self.id} name={self.name!r} county_id={self.county_id}>"

    def to_dict(self, *, include_parent: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "county_id": self.county_id,
            "delivery_fee": self.delivery_fee,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
        if include_parent:
            county = self.county
            data["county"] = {
                "id": county.id,
                "name": county.name,
                "country": {"id": county.country.id, "name": county.country.name},
            }
        return data
