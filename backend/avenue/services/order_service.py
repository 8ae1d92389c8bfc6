# Overview: Service-layer operations for orders; status workflow and the tracking timeline.

"""
Orders carry a status and an append-only status event log.

The status decides which timeline stage is current; the log only supplies
timestamps (see avenue.order_stages.derive_timeline). Every status write,
including the initial "Pending", appends an OrderStatusEvent in the same
commit as the status change.
"""

from __future__ import annotations

import logging
import secrets

from ..errors import NotFound, ValidationError, parse_id
from ..extensions import db
from ..models import Address, Order, OrderStatusEvent
from ..models.orders import ORDER_STATUSES
from ..order_stages import OrderTimeline, derive_timeline
from .concurrency import lock_for_update, run_with_retry
from avenue.time_utils import utcnow

logger = logging.getLogger(__name__)

INITIAL_STATUS = "Pending"


def generate_order_number() -> str:
    """User-facing id: ORD- followed by 10 random digits."""
    return "ORD-" + "".join(secrets.choice("0123456789") for _ in range(10))


def _unused_order_number() -> str:
    while True:
        candidate = generate_order_number()
        if not db.session.query(Order.id).filter_by(order_number=candidate).first():
            return candidate


def _append_event(order: Order, status: str, note: str | None = None) -> OrderStatusEvent:
    event = OrderStatusEvent(status=status, note=note, occurred_at=utcnow())
    order.status_events.append(event)
    return event


def create_order(
    user_id: int,
    *,
    subtotal: int,
    address_id=None,
    shipping: int | None = None,
) -> Order:
    """
    Record a placed order.

    Shipping defaults to the delivery fee of the address's city. The
    address must belong to the ordering user.
    """
    if not isinstance(subtotal, int) or isinstance(subtotal, bool) or subtotal < 0:
        raise ValidationError("subtotal must be a non-negative integer")
    if shipping is not None and (not isinstance(shipping, int) or isinstance(shipping, bool) or shipping < 0):
        raise ValidationError("shipping must be a non-negative integer")

    address = None
    if address_id is not None:
        address_id = parse_id(address_id, "Address")
        address = db.session.query(Address).filter_by(id=address_id, user_id=user_id).first()
        if not address:
            raise NotFound("Address not found")

    if shipping is None:
        shipping = address.city.delivery_fee if address else 0

    def _op():
        order = Order(
            order_number=_unused_order_number(),
            user_id=user_id,
            address_id=address.id if address else None,
            status=INITIAL_STATUS,
            subtotal=subtotal,
            shipping=shipping,
            total=subtotal + shipping,
        )
        _append_event(order, INITIAL_STATUS, note="Order placed")
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    logger.info("Order %s placed by user %s (total=%s)", order.order_number, user_id, order.total)
    return order


def get_order(order_number: str) -> Order:
    order = db.session.query(Order).filter_by(order_number=order_number).first()
    if not order:
        raise NotFound("Order not found")
    return order


def get_order_for_user(user_id: int, order_number: str) -> Order:
    order = db.session.query(Order).filter_by(order_number=order_number, user_id=user_id).first()
    if not order:
        raise NotFound("Order not found")
    return order


def list_orders_for_user(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter_by(user_id=user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_orders(status: str | None = None) -> list[Order]:
    query = db.session.query(Order)
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {status}")
        query = query.filter_by(status=status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def update_status(order_number: str, status, note: str | None = None) -> Order:
    """
    Move an order to `status` and log the change.

    Setting the status an order already has is a no-op (no duplicate log
    entry). Any listed status may be set, so an admin can correct a
    mistaken advance.
    """
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
    if note is not None and (not isinstance(note, str) or len(note) > 255):
        raise ValidationError("note must be a string of at most 255 characters")

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(order_number=order_number)).first()
        if not order:
            raise NotFound("Order not found")
        if order.status == status:
            return order, None

        previous = order.status
        order.status = status
        _append_event(order, status, note=note)
        db.session.commit()
        return order, previous

    order, previous = run_with_retry(_op)
    if previous is not None:
        logger.info("Order %s moved from %s to %s", order.order_number, previous, status)
    return order


def timeline_for(order: Order) -> OrderTimeline:
    events = [(event.status, event.occurred_at) for event in order.status_events]
    return derive_timeline(order.status, events)


def order_detail(order: Order) -> dict:
    data = order.to_dict()
    data["timeline"] = timeline_for(order).to_dict()
    data["status_history"] = [event.to_dict() for event in order.status_events]
    return data
