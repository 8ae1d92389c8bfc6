# Overview: Service-layer operations for user address books and the default-address policy.

"""
Address book with a single default per user.

Every operation that can change which address is the default does it in
one unit of work: the user's other defaults are cleared with a bulk UPDATE
and the new default is set before the single commit. A failed commit is
rolled back, so the store never holds two defaults (the partial
unique index on addresses(user_id) WHERE is_default rejects it anyway).

Rules:
- a user's first address becomes the default automatically
- creating or patching an address with is_default=true demotes the old one
- deleting the default promotes the most recently updated remaining address
- the default cannot be un-set directly; another address has to take over
- addresses owned by someone else are reported as NotFound
"""

from __future__ import annotations

import logging

from ..errors import NotFound, ValidationError, parse_id
from ..extensions import db
from ..models import Address
from ..validation import ModelValidationPolicy, enforce_rules_address, validate_payload
from . import geography_service
from .concurrency import commit_or_conflict, run_with_retry

logger = logging.getLogger(__name__)

ADDRESS_POLICY = ModelValidationPolicy(
    writable_fields={
        "recipient_name",
        "phone",
        "country_id",
        "county_id",
        "city_id",
        "street_address",
        "is_default",
    },
    required_on_create={
        "recipient_name",
        "phone",
        "country_id",
        "county_id",
        "city_id",
        "street_address",
    },
    rules=(enforce_rules_address,),
)

_REFERENCES = (("country_id", "Country"), ("county_id", "County"), ("city_id", "City"))

DEFAULT_CONFLICT = "Another default address was saved at the same time; please retry"


def _parse_references(payload) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    for field, label in _REFERENCES:
        if payload.get(field) not in (None, ""):
            payload[field] = parse_id(payload[field], label)
    return payload


def _clear_other_defaults(user_id: int, keep_address_id: int | None = None) -> int:
    query = db.session.query(Address).filter(
        Address.user_id == user_id,
        Address.is_default.is_(True),
    )
    if keep_address_id is not None:
        query = query.filter(Address.id != keep_address_id)
    return query.update({Address.is_default: False}, synchronize_session="fetch")


def _get_owned(user_id: int, address_id) -> Address:
    address_id = parse_id(address_id, "Address")
    address = db.session.query(Address).filter_by(id=address_id, user_id=user_id).first()
    if not address:
        raise NotFound("Address not found")
    return address


def list_addresses(user_id: int) -> list[Address]:
    """Default first, then newest."""
    return (
        db.session.query(Address)
        .filter_by(user_id=user_id)
        .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
        .all()
    )


def get_default_address(user_id: int) -> Address | None:
    return db.session.query(Address).filter_by(user_id=user_id, is_default=True).first()


def create_address(user_id: int, payload: dict) -> Address:
    payload = _parse_references(payload)
    patch = validate_payload(model=Address, payload=payload, policy=ADDRESS_POLICY, partial=False)
    geography_service.resolve_active_lineage(patch["country_id"], patch["county_id"], patch["city_id"])

    def _op():
        has_addresses = db.session.query(Address.id).filter_by(user_id=user_id).first() is not None
        make_default = bool(patch.get("is_default")) or not has_addresses

        if make_default:
            _clear_other_defaults(user_id)

        address = Address(user_id=user_id, **{**patch, "is_default": make_default})
        db.session.add(address)
        commit_or_conflict(DEFAULT_CONFLICT)
        return address

    address = run_with_retry(_op)
    logger.info("User %s added address %s (default=%s)", user_id, address.id, address.is_default)
    return address


def update_address(user_id: int, address_id, payload: dict) -> Address:
    address = _get_owned(user_id, address_id)
    payload = _parse_references(payload)
    patch = validate_payload(model=Address, payload=payload, policy=ADDRESS_POLICY, partial=True)

    if any(field in patch for field, _ in _REFERENCES):
        geography_service.resolve_active_lineage(
            patch.get("country_id", address.country_id),
            patch.get("county_id", address.county_id),
            patch.get("city_id", address.city_id),
        )

    if patch.get("is_default") is True:
        _clear_other_defaults(user_id, keep_address_id=address.id)
    elif patch.get("is_default") is False and address.is_default:
        raise ValidationError("Set another address as default instead")
    for key, value in patch.items():
        setattr(address, key, value)
    commit_or_conflict(DEFAULT_CONFLICT)
    return address


def set_default(user_id: int, address_id) -> Address:
    """
    Make `address_id` the user's only default address.

    Clearing the other defaults and setting this one commit together.
    Raises NotFound if the address is not owned by `user_id`.
    """
    address = _get_owned(user_id, address_id)

    _clear_other_defaults(user_id, keep_address_id=address.id)
    address.is_default = True
    commit_or_conflict(DEFAULT_CONFLICT)
    logger.info("User %s default address is now %s", user_id, address.id)
    return address


def delete_address(user_id: int, address_id) -> Address | None:
    """
    Delete one of the user's addresses.

    Returns the address promoted to default, if the deleted one was the
    default and another address remains.
    """
    address = _get_owned(user_id, address_id)
    was_default = address.is_default
    promoted = None

    db.session.delete(address)
    db.session.flush()
    if was_default:
        promoted = (
            db.session.query(Address)
            .filter_by(user_id=user_id)
            .order_by(Address.updated_at.desc(), Address.id.desc())
            .first()
        )
        if promoted:
            promoted.is_default = True
    commit_or_conflict(DEFAULT_CONFLICT)

    if promoted:
        logger.info("User %s default address promoted to %s", user_id, promoted.id)
    return promoted
