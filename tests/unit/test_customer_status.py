"""
Unit tests for event-log status resolution.
"""
from datetime import datetime, timedelta, timezone

from reviewpilot.schemas.review_requests import CustomerStatus, Event, EventType
from reviewpilot.services.customer_status import calculate_customer_status, resolve_customer_statuses


def _event(event_id, customer_id, event_type, at):
    return Event(id=event_id, customer_id=customer_id, type=event_type, timestamp=at)


def test_no_events_is_queued(make_customer):
    resolved = calculate_customer_status(make_customer(), [])
    assert resolved.status == CustomerStatus.QUEUED
    assert resolved.last_sent_at is None
    assert resolved.needs_follow_up is False


def test_events_fold_in_timestamp_order(make_customer, now):
    sent_at = now - timedelta(days=3)
    clicked_at = now - timedelta(days=2)
    # Deliberately out of order
    events = [
        _event("e2", "c1", EventType.CLICKED, clicked_at),
        _event("e1", "c1", EventType.SENT, sent_at),
    ]
    resolved = calculate_customer_status(make_customer(), events)
    assert resolved.status == CustomerStatus.CLICKED
    assert resolved.last_sent_at == sent_at
    assert resolved.last_clicked_at == clicked_at
    assert resolved.needs_follow_up is True


def test_other_customers_events_are_ignored(make_customer, now):
    events = [_event("e1", "someone-else", EventType.REVIEWED, now)]
    assert calculate_customer_status(make_customer(), events).status == CustomerStatus.QUEUED


def test_late_sent_event_regresses_reviewed_customer(make_customer, now):
    """Last event wins, even when it moves a reviewed customer back to sent."""
    events = [
        _event("e1", "c1", EventType.SENT, now - timedelta(days=10)),
        _event("e2", "c1", EventType.REVIEWED, now - timedelta(days=9)),
        _event("e3", "c1", EventType.SENT, now - timedelta(days=1)),
    ]
    resolved = calculate_customer_status(make_customer(), events)
    assert resolved.status == CustomerStatus.SENT
    assert resolved.last_reviewed_at == now - timedelta(days=9)
    assert resolved.last_sent_at == now - timedelta(days=1)


def test_opted_out_event(make_customer, now):
    events = [
        _event("e1", "c1", EventType.SENT, now - timedelta(days=2)),
        _event("e2", "c1", EventType.OPTED_OUT, now - timedelta(days=1)),
    ]
    resolved = calculate_customer_status(make_customer(), events)
    assert resolved.status == CustomerStatus.OPTED_OUT
    assert resolved.needs_follow_up is False


def test_resolve_customer_statuses_keeps_input_order(make_customer, now):
    customers = [make_customer("c1"), make_customer("c2")]
    events = [_event("e1", "c2", EventType.REVIEWED, now)]
    resolved = resolve_customer_statuses(customers, events)
    assert [c.id for c in resolved] == ["c1", "c2"]
    assert [c.status for c in resolved] == [CustomerStatus.QUEUED, CustomerStatus.REVIEWED]


def test_offset_and_naive_timestamps_fold_together(make_customer):
    events = [
        _event("e1", "c1", EventType.SENT, datetime(2024, 1, 1, 10, 0)),
        _event("e2", "c1", EventType.CLICKED, datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)),
    ]
    resolved = calculate_customer_status(make_customer(), events)
    assert resolved.status == CustomerStatus.CLICKED
    # Offset-less values are read on the resolving clock
    assert resolved.last_sent_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_events_in_different_zones_fold_by_instant(make_customer):
    eastern = timezone(timedelta(hours=-5))
    events = [
        # 17:00 UTC
        _event("e1", "c1", EventType.SENT, datetime(2024, 3, 1, 12, 0, tzinfo=eastern)),
        # 16:00 UTC, earlier despite the later wall-clock hour
        _event("e2", "c1", EventType.CLICKED, datetime(2024, 3, 1, 16, 0, tzinfo=timezone.utc)),
    ]
    resolved = calculate_customer_status(make_customer(), events, eastern)
    assert resolved.status == CustomerStatus.SENT
    assert resolved.last_sent_at.utcoffset() == timedelta(hours=-5)
    assert resolved.last_clicked_at == datetime(2024, 3, 1, 11, 0, tzinfo=eastern)
