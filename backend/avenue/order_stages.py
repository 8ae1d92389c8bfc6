# Overview: Order lifecycle stages and the tracking timeline derived from an order's status.

"""
The customer-facing progress indicator always shows the same four stages.
Which one is "current" is a function of the persisted order status alone;
the status event log only contributes timestamps.

Cancelled orders do not sit on any stage. derive_timeline reports them as
non-progressing (stages=None) so callers render a cancellation banner
instead of a progress bar stuck wherever the order was when it stopped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from avenue.time_utils import to_utc_z

STAGE_UPCOMING = "upcoming"
STAGE_CURRENT = "current"
STAGE_COMPLETE = "complete"


@dataclass(frozen=True)
class OrderStage:
    key: str
    title: str
    description: str


ORDER_STAGES: tuple[OrderStage, ...] = (
    OrderStage(
        "confirmed",
        "Order Confirmed",
        "Your order has been received and is waiting for processing.",
    ),
    OrderStage(
        "processing",
        "Processing",
        "We are preparing your items for shipment at the warehouse.",
    ),
    OrderStage(
        "in-transit",
        "In Transit",
        "Your order has shipped and is on its way.",
    ),
    OrderStage(
        "delivered",
        "Delivered",
        "Your order has been successfully delivered. Thank you!",
    ),
)

STAGE_KEYS = tuple(stage.key for stage in ORDER_STAGES)

# "Cancelled" is terminal and maps to no stage.
STATUS_TO_TIMELINE_KEY: dict[str, str] = {
    "Pending": "confirmed",
    "Confirmed": "confirmed",
    "Processing": "processing",
    "In transit": "in-transit",
    "Delivered": "delivered",
}


@dataclass(frozen=True)
class OrderTimelineEvent:
    key: str
    title: str
    description: str
    status: str
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "timestamp": to_utc_z(self.timestamp),
        }


@dataclass(frozen=True)
class OrderTimeline:
    """
    status: the order status the timeline was derived from.
    stages: four events in template order, or None when the order is not
    progressing (cancelled or unrecognized status).
    """
    status: object
    stages: Optional[tuple[OrderTimelineEvent, ...]] = field(default=None)

    @property
    def is_progressing(self) -> bool:
        return self.stages is not None

    @property
    def current_key(self) -> Optional[str]:
        if self.stages is None:
            return None
        for event in self.stages:
            if event.status == STAGE_CURRENT:
                return event.key
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status if isinstance(self.status, str) else None,
            "progressing": self.is_progressing,
            "stages": [e.to_dict() for e in self.stages] if self.stages is not None else None,
        }


def timeline_key_for(status) -> Optional[str]:
    """Stage key for an order status, or None for Cancelled/unknown values."""
    if not isinstance(status, str):
        return None
    return STATUS_TO_TIMELINE_KEY.get(status)


def _first_timestamps(events) -> dict[str, datetime]:
    """
    Earliest timestamp per stage key. Entries may name either a stage key or
    an order status; anything that is neither, or that is not a
    (name, datetime) pair, is ignored.
    """
    found: dict[str, datetime] = {}
    if events is None:
        return found
    if isinstance(events, Mapping):
        events = events.items()
    try:
        iterator = iter(events)
    except TypeError:
        return found

    for entry in iterator:
        try:
            name, when = entry
        except (TypeError, ValueError):
            continue
        if not isinstance(when, datetime) or not isinstance(name, str):
            continue
        key = name if name in STAGE_KEYS else STATUS_TO_TIMELINE_KEY.get(name)
        if key is None:
            continue
        previous = found.get(key)
        if previous is None or _sort_key(when) < _sort_key(previous):
            found[key] = when
    return found


def _sort_key(when: datetime) -> datetime:
    # Mixed naive/aware values cannot be compared; naive ones are UTC already
    if when.tzinfo is None:
        return when
    return when.astimezone(timezone.utc).replace(tzinfo=None)


def derive_timeline(status, events: Optional[Iterable[tuple[str, datetime]]] = None) -> OrderTimeline:
    """
    Build the tracking timeline for an order.

    Stages before the current one are complete, the current one is current,
    later ones are upcoming. Complete and current stages pick up the earliest
    matching timestamp from `events`; the rest keep timestamp=None.

    Never raises: a cancelled or unrecognized status yields a
    non-progressing timeline.
    """
    current_key = timeline_key_for(status)
    if current_key is None:
        return OrderTimeline(status=status, stages=None)

    timestamps = _first_timestamps(events)
    current_index = STAGE_KEYS.index(current_key)

    stages = []
    for index, stage in enumerate(ORDER_STAGES):
        if index < current_index:
            stage_status = STAGE_COMPLETE
        elif index == current_index:
            stage_status = STAGE_CURRENT
        else:
            stage_status = STAGE_UPCOMING

        timestamp = timestamps.get(stage.key) if stage_status != STAGE_UPCOMING else None
        stages.append(
            OrderTimelineEvent(
                key=stage.key,
                title=stage.title,
                description=stage.description,
                status=stage_status,
                timestamp=timestamp,
            )
        )

    return OrderTimeline(status=status, stages=tuple(stages))
