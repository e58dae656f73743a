"""Send timeline: the key moments of a campaign for the dashboard chart."""
from datetime import datetime
from typing import List, Optional, Sequence

from reviewpilot.schemas.review_requests import (
    Campaign,
    MessageVariant,
    QueueItemStatus,
    SendQueueItem,
    SendTimeline,
    TimelineEvent,
    TimelineEventType,
)


def _earliest(items: Sequence[SendQueueItem]) -> Optional[SendQueueItem]:
    return min(items, key=lambda q: q.scheduled_at, default=None)


def calculate_send_timeline(
    campaign: Campaign,
    send_queue: Sequence[SendQueueItem],
    now: datetime,
) -> SendTimeline:
    events: List[TimelineEvent] = [
        TimelineEvent(id="now", label="Now", timestamp=now, type=TimelineEventType.NOW)
    ]

    pending = [q for q in send_queue if q.status == QueueItemStatus.PENDING]

    first_initial = _earliest([q for q in pending if q.variant != MessageVariant.FOLLOW_UP_SMS])
    if first_initial is not None:
        events.append(TimelineEvent(
            id="initial-send",
            label="Initial Send",
            timestamp=first_initial.scheduled_at,
            type=TimelineEventType.INITIAL_SEND,
        ))

    first_follow_up = _earliest([q for q in pending if q.variant == MessageVariant.FOLLOW_UP_SMS])
    if first_follow_up is not None:
        events.append(TimelineEvent(
            id="follow-up",
            label="Follow-Up",
            timestamp=first_follow_up.scheduled_at,
            type=TimelineEventType.FOLLOW_UP,
        ))

    return SendTimeline(
        events=sorted(events, key=lambda e: e.timestamp),
        has_follow_up=campaign.rules.follow_up_enabled,
    )
