# Overview: Service-layer operations for the brand registry.

from __future__ import annotations

import logging

from ..errors import NotFound, ValidationError, parse_id
from ..extensions import db
from ..models import Brand
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import commit_or_conflict

logger = logging.getLogger(__name__)

BRAND_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

BRAND_CONFLICT = "A brand with this name already exists"


def list_brands() -> list[Brand]:
    return db.session.query(Brand).order_by(Brand.name.asc()).all()


def create_brand(name) -> Brand:
    """
    Register a brand.

    Raises ValidationError for a missing/blank name and Conflict when the
    (trimmed) name is already taken. Comparison is byte-for-byte, so
    "Zara" and "ZARA" are distinct brands.
    """
    if name is None or (isinstance(name, str) and not name.strip()):
        raise ValidationError("Brand name is required")
    patch = validate_payload(model=Brand, payload={"name": name}, policy=BRAND_POLICY, partial=False)

    brand = Brand(**patch)
    db.session.add(brand)
    commit_or_conflict(BRAND_CONFLICT)
    logger.info("Created brand %s (%s)", brand.id, brand.name)
    return brand


def update_brand(brand_id, payload: dict) -> Brand:
    brand_id = parse_id(brand_id, "Brand")
    patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=True)

    brand = db.session.get(Brand, brand_id)
    if not brand:
        raise NotFound("Brand not found")
    for key, value in patch.items():
        setattr(brand, key, value)
    commit_or_conflict(BRAND_CONFLICT)
    return brand
