"""
Send Queue Builder.

Turns campaign rules, customers and their event history into an ordered list
of scheduled sends. Nothing is sent from here; the queue is a plan that a
human (or a separate delivery job) works through.

Per customer, in order:
  1. skip opted-out, already-reviewed and unreachable customers (no item)
  2. pick the channel (SMS when a phone exists, else email)
  3. compute the base send time from the trigger type and send delay
  4. push the time out of quiet hours, judged on the clock of `now`
  5. frequency cap: emit a skipped item and stop for this customer
  6. emit the pending initial item
  7. optionally emit a follow-up item
The final queue is stable-sorted by scheduled time.
"""
import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from reviewpilot.core.ids import IdFactory, uuid4_ids
from reviewpilot.core.logging import get_logger
from reviewpilot.schemas.review_requests import (
    Campaign,
    Customer,
    CustomerStatus,
    CustomerWithStatus,
    Event,
    MessageChannel,
    MessageVariant,
    QueueItemStatus,
    SendQueueItem,
    TriggerType,
)
from reviewpilot.services.customer_status import resolve_customer_statuses
from reviewpilot.services.quiet_hours import align_to, get_next_allowed_time, is_within_quiet_hours

logger = get_logger(__name__)

_DELAYED_TRIGGERS = {TriggerType.AFTER_SERVICE, TriggerType.AFTER_PAYMENT}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _skip_reason(customer: CustomerWithStatus) -> Optional[str]:
    if customer.opted_out or customer.status == CustomerStatus.OPTED_OUT:
        return "opted out"
    if customer.status == CustomerStatus.REVIEWED:
        return "already reviewed"
    if not customer.has_contact:
        return "no phone or email"
    return None


def _base_send_time(campaign: Campaign, customer: CustomerWithStatus, now: datetime) -> datetime:
    rules = campaign.rules
    if rules.trigger_type in _DELAYED_TRIGGERS and customer.last_visit_date is not None:
        visit = align_to(customer.last_visit_date, now.tzinfo)
        return visit + timedelta(hours=rules.send_delay_hours)
    # manual trigger, unknown trigger, or no visit date: queue immediately
    return now


def _shift_out_of_quiet_hours(t: datetime, campaign: Campaign) -> datetime:
    quiet_hours = campaign.rules.quiet_hours
    if is_within_quiet_hours(t, quiet_hours):
        return get_next_allowed_time(t, quiet_hours)
    return t


def build_customer_queue_items(
    campaign: Campaign,
    customer: CustomerWithStatus,
    now: datetime,
    id_factory: IdFactory = uuid4_ids,
) -> List[SendQueueItem]:
    """Queue items for a single resolved customer, in emission order."""
    reason = _skip_reason(customer)
    if reason:
        logger.debug(f"Customer {customer.id} not queued: {reason}")
        return []

    rules = campaign.rules
    channel = MessageChannel.SMS if customer.phone else MessageChannel.EMAIL
    variant = MessageVariant.SMS_STANDARD if channel == MessageChannel.SMS else MessageVariant.EMAIL

    scheduled_at = _shift_out_of_quiet_hours(_base_send_time(campaign, customer, now), campaign)

    if customer.last_sent_at is not None:
        elapsed = now - align_to(customer.last_sent_at, now.tzinfo)
        days_since_last_sent = elapsed.total_seconds() / 86400
        if days_since_last_sent < rules.frequency_cap_days:
            skipped_reason = f"Frequency cap: last sent {round_half_up(days_since_last_sent)} days ago"
            logger.debug(f"Customer {customer.id} skipped: {skipped_reason}")
            return [
                SendQueueItem(
                    id=id_factory(),
                    customer_id=customer.id,
                    scheduled_at=scheduled_at,
                    variant=variant,
                    channel=channel,
                    status=QueueItemStatus.SKIPPED,
                    skipped_reason=skipped_reason,
                )
            ]

    items = [
        SendQueueItem(
            id=id_factory(),
            customer_id=customer.id,
            scheduled_at=scheduled_at,
            variant=variant,
            channel=channel,
            status=QueueItemStatus.PENDING,
        )
    ]

    # Follow-ups go to brand-new customers and to those sent/clicked but not reviewed
    if rules.follow_up_enabled and (customer.status == CustomerStatus.QUEUED or customer.needs_follow_up):
        follow_up_at = _shift_out_of_quiet_hours(
            scheduled_at + timedelta(days=rules.follow_up_delay_days), campaign
        )
        items.append(
            SendQueueItem(
                id=id_factory(),
                customer_id=customer.id,
                scheduled_at=follow_up_at,
                variant=MessageVariant.FOLLOW_UP_SMS,
                channel=MessageChannel.SMS if customer.phone else MessageChannel.EMAIL,
                status=QueueItemStatus.PENDING,
            )
        )

    return items


def compute_send_queue(
    campaign: Campaign,
    customers: Iterable[Customer],
    events: Iterable[Event],
    now: datetime,
    id_factory: IdFactory = uuid4_ids,
) -> List[SendQueueItem]:
    """
    Build the full send queue for a campaign.

    Pure apart from the ID source: identical inputs and a deterministic
    id_factory give identical output.
    """
    queue: List[SendQueueItem] = []
    for customer in resolve_customer_statuses(customers, events, now.tzinfo):
        queue.extend(build_customer_queue_items(campaign, customer, now, id_factory))

    # sorted() is stable, so items sharing a timestamp keep emission order
    return sorted(queue, key=lambda item: item.scheduled_at)
