"""
Funnel Metrics Aggregator.

`queued` counts pending items in the freshly computed queue, while
`sent`/`clicked`/`reviewed` count raw events in the log. The stored-campaign
view re-derives these from persisted queue items separately, so the two
sources are deliberately not unified here.
"""
from typing import List, Sequence

from reviewpilot.schemas.review_requests import (
    Customer,
    Event,
    EventType,
    FunnelMetrics,
    QueueItemStatus,
    SendQueueItem,
)


def _count_events(events: Sequence[Event], event_type: EventType) -> int:
    return sum(1 for e in events if e.type == event_type)


def calculate_funnel_metrics(
    customers: Sequence[Customer],
    events: Sequence[Event],
    send_queue: List[SendQueueItem],
) -> FunnelMetrics:
    return FunnelMetrics(
        loaded=len(customers),
        ready=sum(1 for c in customers if c.has_contact and not c.opted_out),
        queued=sum(1 for q in send_queue if q.status == QueueItemStatus.PENDING),
        sent=_count_events(events, EventType.SENT),
        clicked=_count_events(events, EventType.CLICKED),
        reviewed=_count_events(events, EventType.REVIEWED),
        opted_out=sum(1 for c in customers if c.opted_out),
    )
