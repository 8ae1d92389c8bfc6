# Overview: Service-layer operations for the browser push subscription registry.

"""
Registry of Web Push subscriptions.

The browser hands us a PushSubscription (endpoint + p256dh/auth keys).
One endpoint identifies one browser install, so the endpoint is unique and
subscribing again simply refreshes the keys and re-points it at whoever is
logged in now. A user may have many endpoints (one per device).

Sending is done elsewhere: a dispatcher reads list_for_user() and calls
prune_endpoint() when the push service answers 404/410 for an endpoint.
"""

from __future__ import annotations

import logging

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import PushSubscription, User
from ..models.auth import ROLE_ADMIN
from .concurrency import commit_or_conflict, run_with_retry
from avenue.time_utils import epoch_ms_to_datetime

logger = logging.getLogger(__name__)

MAX_ENDPOINT_LENGTH = 1024


def _clean_subscription(endpoint, keys, expiration_time):
    if not isinstance(endpoint, str) or not endpoint.startswith("https://"):
        raise ValidationError("endpoint must be an https URL")
    if len(endpoint) > MAX_ENDPOINT_LENGTH:
        raise ValidationError(f"endpoint exceeds max length {MAX_ENDPOINT_LENGTH}")
    if not isinstance(keys, dict):
        raise ValidationError("keys.p256dh and keys.auth are required")

    p256dh = keys.get("p256dh")
    auth = keys.get("auth")
    if not isinstance(p256dh, str) or not p256dh.strip() or not isinstance(auth, str) or not auth.strip():
        raise ValidationError("keys.p256dh and keys.auth are required")

    if expiration_time is not None and (
        isinstance(expiration_time, bool) or not isinstance(expiration_time, (int, float))
    ):
        raise ValidationError("expirationTime must be epoch milliseconds or null")

    return endpoint, p256dh.strip(), auth.strip(), epoch_ms_to_datetime(expiration_time)


def subscribe(user_id: int, endpoint, keys, expiration_time=None) -> tuple[PushSubscription, bool]:
    """
    Upsert by endpoint. Returns (subscription, created).
    """
    endpoint, p256dh, auth, expires = _clean_subscription(endpoint, keys, expiration_time)

    def _op():
        subscription = db.session.query(PushSubscription).filter_by(endpoint=endpoint).first()
        created = subscription is None
        if created:
            subscription = PushSubscription(endpoint=endpoint)
            db.session.add(subscription)
        subscription.user_id = user_id
        subscription.p256dh = p256dh
        subscription.auth = auth
        subscription.expiration_time = expires
        commit_or_conflict("This push endpoint was registered concurrently; please retry")
        return subscription, created

    subscription, created = run_with_retry(_op)
    logger.info("User %s %s push endpoint %s", user_id, "registered" if created else "refreshed", subscription.id)
    return subscription, created


def unsubscribe(user_id: int, endpoint) -> None:
    subscription = db.session.query(PushSubscription).filter_by(endpoint=endpoint, user_id=user_id).first()
    if not subscription:
        raise NotFound("Subscription not found")
    db.session.delete(subscription)
    db.session.commit()


def list_for_user(user_id: int) -> list[PushSubscription]:
    return (
        db.session.query(PushSubscription)
        .filter_by(user_id=user_id)
        .order_by(PushSubscription.id.asc())
        .all()
    )


def list_for_admins() -> list[PushSubscription]:
    return (
        db.session.query(PushSubscription)
        .join(User, User.id == PushSubscription.user_id)
        .filter(User.role == ROLE_ADMIN, User.is_active.is_(True))
        .order_by(PushSubscription.id.asc())
        .all()
    )


def prune_endpoint(endpoint: str) -> bool:
    """Drop an endpoint the push service reported as gone. Returns True if one was removed."""
    removed = db.session.query(PushSubscription).filter_by(endpoint=endpoint).delete()
    db.session.commit()
    if removed:
        logger.info("Pruned expired push endpoint")
    return bool(removed)
