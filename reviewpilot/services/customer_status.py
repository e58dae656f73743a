"""
Customer lifecycle status derived from the append-only event log.

Status is recomputed on every call and never stored. The fold is
"last event wins": a sent event recorded after a reviewed event moves the
customer back to sent. Keep this behaviour until product decides otherwise.

Event timestamps are brought onto a single clock before ordering, so a log
mixing UTC offsets with offset-less values still folds.
"""
from datetime import timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from reviewpilot.schemas.review_requests import (
    Customer,
    CustomerStatus,
    CustomerWithStatus,
    Event,
    EventType,
)
from reviewpilot.services.quiet_hours import align_to

_FOLLOW_UP_STATUSES = {CustomerStatus.SENT, CustomerStatus.CLICKED}


def calculate_customer_status(
    customer: Customer,
    events: Iterable[Event],
    tz: Optional[tzinfo] = timezone.utc,
) -> CustomerWithStatus:
    """Fold the customer's events (oldest first) into a CustomerWithStatus.

    Timestamps on the result are expressed on the clock of `tz`.
    """
    customer_events = sorted(
        ((align_to(e.timestamp, tz), e.type) for e in events if e.customer_id == customer.id),
        key=lambda pair: pair[0],
    )

    status = CustomerStatus.QUEUED
    last_sent_at = None
    last_clicked_at = None
    last_reviewed_at = None

    for timestamp, event_type in customer_events:
        if event_type == EventType.OPTED_OUT:
            status = CustomerStatus.OPTED_OUT
        elif event_type == EventType.REVIEWED:
            status = CustomerStatus.REVIEWED
            last_reviewed_at = timestamp
        elif event_type == EventType.CLICKED:
            status = CustomerStatus.CLICKED
            last_clicked_at = timestamp
        elif event_type == EventType.SENT:
            status = CustomerStatus.SENT
            last_sent_at = timestamp

    return CustomerWithStatus(
        **customer.model_dump(include=set(Customer.model_fields)),
        status=status,
        last_sent_at=last_sent_at,
        last_clicked_at=last_clicked_at,
        last_reviewed_at=last_reviewed_at,
        needs_follow_up=status in _FOLLOW_UP_STATUSES,
    )


def resolve_customer_statuses(
    customers: Iterable[Customer],
    events: Iterable[Event],
    tz: Optional[tzinfo] = timezone.utc,
) -> List[CustomerWithStatus]:
    """Resolve every customer in one pass over the event log."""
    by_customer: Dict[str, List[Event]] = {}
    for event in events:
        by_customer.setdefault(event.customer_id, []).append(event)
    return [calculate_customer_status(c, by_customer.get(c.id, []), tz) for c in customers]
