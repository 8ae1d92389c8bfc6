# Overview: Service-layer operations for the location hierarchy (country -> county -> city).

"""
Location hierarchy used by address entry and delivery pricing.

Public reads only ever return active nodes, sorted case-insensitively by
name. Admin writes validate input against explicit policies, check that
parent references exist, and keep the hierarchy consistent: a city's
county must belong to the country the caller names, if one is named.

Nodes are never deleted. Deactivate with is_active=False.
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..errors import NotFound, ValidationError, parse_id
from ..extensions import db
from ..models import City, Country, County
from ..validation import ModelValidationPolicy, enforce_rules_city, validate_payload
from .concurrency import commit_or_conflict, lock_for_update, run_with_retry

logger = logging.getLogger(__name__)

COUNTRY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "is_active"},
    required_on_create={"name"},
)

COUNTY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "is_active", "country_id"},
    required_on_create={"name", "country_id"},
)

CITY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "is_active", "delivery_fee", "county_id"},
    required_on_create={"name", "county_id"},
    rules=(enforce_rules_city,),
)

COUNTRY_CONFLICT = "A country with this name already exists."
COUNTY_CONFLICT = "A county with this name already exists in the selected country."
CITY_CONFLICT = "A city with this name already exists in the selected county."


# =============================================================================
# PUBLIC READS
# =============================================================================

def list_countries() -> list[Country]:
    return (
        db.session.query(Country)
        .filter(Country.is_active.is_(True))
        .order_by(func.lower(Country.name).asc(), Country.id.asc())
        .all()
    )


def list_counties(country_id) -> list[County]:
    """
    Active counties of one country.

    Raises InvalidReference for a malformed id. A well-formed id with no
    matching country (or a country without active counties) yields [].
    """
    country_id = parse_id(country_id, "Country")
    return (
        db.session.query(County)
        .filter(County.country_id == country_id, County.is_active.is_(True))
        .order_by(func.lower(County.name).asc(), County.id.asc())
        .all()
    )


def list_cities(county_id) -> list[City]:
    """Active cities of one county; same id rules as list_counties."""
    county_id = parse_id(county_id, "County")
    return (
        db.session.query(City)
        .filter(City.county_id == county_id, City.is_active.is_(True))
        .order_by(func.lower(City.name).asc(), City.id.asc())
        .all()
    )


# =============================================================================
# ADMIN READS (include inactive nodes)
# =============================================================================

def list_all_countries() -> list[Country]:
    return db.session.query(Country).order_by(func.lower(Country.name).asc()).all()


def list_all_counties() -> list[County]:
    return db.session.query(County).order_by(func.lower(County.name).asc()).all()


def list_all_cities() -> list[City]:
    return db.session.query(City).order_by(func.lower(City.name).asc()).all()


# =============================================================================
# REFERENCE CHECKS
# =============================================================================

def _split_reference(payload: dict, field: str, label: str) -> dict:
    """Replace a raw reference in the payload with a parsed id (InvalidReference if malformed)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    if payload.get(field) not in (None, ""):
        payload[field] = parse_id(payload[field], label)
    return payload


def _require_country(country_id: int) -> Country:
    country = db.session.get(Country, country_id)
    if not country:
        raise ValidationError("Parent country not found")
    return country


def _require_county(county_id: int) -> County:
    county = db.session.get(County, county_id)
    if not county:
        raise ValidationError("Parent county not found")
    return county


def _check_city_lineage(county: County, country_id) -> None:
    if country_id in (None, ""):
        return
    country_id = parse_id(country_id, "Country")
    if county.country_id != country_id:
        raise ValidationError("The selected county does not belong to the selected country")


# =============================================================================
# ADMIN WRITES
# =============================================================================

def create_country(payload: dict) -> Country:
    patch = validate_payload(model=Country, payload=payload, policy=COUNTRY_POLICY, partial=False)

    country = Country(**patch)
    db.session.add(country)
    commit_or_conflict(COUNTRY_CONFLICT)
    logger.info("Created country %s (%s)", country.id, country.name)
    return country


def update_country(country_id, payload: dict) -> Country:
    country_id = parse_id(country_id, "Country")
    patch = validate_payload(model=Country, payload=payload, policy=COUNTRY_POLICY, partial=True)

    def _op():
        country = lock_for_update(db.session.query(Country).filter_by(id=country_id)).first()
        if not country:
            raise NotFound("Country not found")
        for key, value in patch.items():
            setattr(country, key, value)
        commit_or_conflict(COUNTRY_CONFLICT)
        return country

    return run_with_retry(_op)


def create_county(payload: dict) -> County:
    payload = _split_reference(payload, "country_id", "Country")
    patch = validate_payload(model=County, payload=payload, policy=COUNTY_POLICY, partial=False)
    _require_country(patch["country_id"])

    county = County(**patch)
    db.session.add(county)
    commit_or_conflict(COUNTY_CONFLICT)
    logger.info("Created county %s (%s) in country %s", county.id, county.name, county.country_id)
    return county


def update_county(county_id, payload: dict) -> County:
    county_id = parse_id(county_id, "County")
    payload = _split_reference(payload, "country_id", "Country")
    patch = validate_payload(model=County, payload=payload, policy=COUNTY_POLICY, partial=True)

    def _op():
        county = lock_for_update(db.session.query(County).filter_by(id=county_id)).first()
        if not county:
            raise NotFound("County not found")
        if patch.get("country_id") is not None:
            _require_country(patch["country_id"])
        for key, value in patch.items():
            setattr(county, key, value)
        commit_or_conflict(COUNTY_CONFLICT)
        return county

    return run_with_retry(_op)


def create_city(payload: dict) -> City:
    """
    Create a city under a county.

    `country_id` is optional and not stored; when present it must be the
    county's country, so a form posting a stale country/county pair is
    rejected instead of silently filed under the wrong country.
    """
    payload = _split_reference(payload, "county_id", "County")
    country_id = payload.pop("country_id", None)
    patch = validate_payload(model=City, payload=payload, policy=CITY_POLICY, partial=False)
    county = _require_county(patch["county_id"])
    _check_city_lineage(county, country_id)

    city = City(**patch)
    db.session.add(city)
    commit_or_conflict(CITY_CONFLICT)
    logger.info("Created city %s (%s) in county %s", city.id, city.name, city.county_id)
    return city


def update_city(city_id, payload: dict) -> City:
    city_id = parse_id(city_id, "City")
    payload = _split_reference(payload, "county_id", "County")
    country_id = payload.pop("country_id", None)
    patch = validate_payload(model=City, payload=payload, policy=CITY_POLICY, partial=True)

    def _op():
        city = lock_for_update(db.session.query(City).filter_by(id=city_id)).first()
        if not city:
            raise NotFound("City not found")
        county = _require_county(patch["county_id"]) if patch.get("county_id") is not None else city.county
        _check_city_lineage(county, country_id)
        for key, value in patch.items():
            setattr(city, key, value)
        commit_or_conflict(CITY_CONFLICT)
        return city

    return run_with_retry(_op)


# =============================================================================
# ADDRESS SUPPORT
# =============================================================================

def resolve_active_lineage(country_id: int, county_id: int, city_id: int) -> tuple[Country, County, City]:
    """
    Load a country/county/city triple for an address and check that it is
    a real path through the hierarchy made of active nodes.
    """
    country = db.session.get(Country, country_id)
    county = db.session.get(County, county_id)
    city = db.session.get(City, city_id)

    if not country or not country.is_active:
        raise ValidationError("Selected country is not available")
    if not county or not county.is_active:
        raise ValidationError("Selected county is not available")
    if not city or not city.is_active:
        raise ValidationError("Selected city is not available")
    if county.country_id != country.id:
        raise ValidationError("The selected county does not belong to the selected country")
    if city.county_id != county.id:
        raise ValidationError("The selected city does not belong to the selected county")

    return country, county, city
