"""
Integration tests for campaign persistence against an in-memory database.
"""
from datetime import datetime, timedelta, timezone

import pytest

from reviewpilot.schemas.review_requests import (
    QueueItemStatus,
    ReviewRequestAutomationRequest,
    TriggerType,
)
from reviewpilot.services.review_request_engine import process_review_request_automation
from reviewpilot.services.review_request_repository import compute_snapshot_warnings


@pytest.fixture
def evaluated(make_campaign, make_customer, now):
    campaign = make_campaign(
        business_type="Plumbing",
        rules={"follow_up_enabled": True, "follow_up_delay_days": 3},
    )
    request = ReviewRequestAutomationRequest(
        campaign=campaign,
        customers=[make_customer("c1"), make_customer("c2", phone=None, email="sam@example.com")],
    )
    return request, process_review_request_automation(request, now)


@pytest.mark.asyncio
async def test_save_and_read_back(repository, evaluated, now):
    request, result = evaluated

    saved = await repository.save_campaign("tenant-a", request, result, computed_at=now)

    assert saved.snapshot_id.startswith("RRA-")
    assert len(saved.snapshot_id) == 12

    campaign = await repository.get_campaign("tenant-a", saved.campaign_id)
    assert campaign.business_name == "Ocean Side Plumbing"

    items = await repository.list_queue_items("tenant-a", saved.campaign_id)
    assert len(items) == 4
    assert all(item.status == QueueItemStatus.PENDING for item in items)

    dataset = await repository.get_dataset("tenant-a", saved.dataset_id)
    assert dataset.campaign_id == saved.campaign_id
    assert dataset.business_name == "Ocean Side Plumbing"
    assert dataset.metrics.sent == 0
    assert dataset.metrics.clicked_rate == 0.0
    assert dataset.totals["queued"] == 4
    assert dataset.warnings is None


@pytest.mark.asyncio
async def test_status_updates_drive_dataset_metrics(repository, evaluated, now):
    request, result = evaluated
    saved = await repository.save_campaign("tenant-a", request, result, computed_at=now)
    items = await repository.list_queue_items("tenant-a", saved.campaign_id)

    first, second, third = items[0], items[1], items[2]
    await repository.update_queue_item_status("tenant-a", first.id, QueueItemStatus.SENT, at=now)
    await repository.update_queue_item_status("tenant-a", second.id, QueueItemStatus.SENT, at=now)
    await repository.update_queue_item_status("tenant-a", third.id, QueueItemStatus.SENT, at=now)
    updated = await repository.update_queue_item_status(
        "tenant-a", first.id, QueueItemStatus.CLICKED, at=now + timedelta(hours=1)
    )
    assert updated.status == QueueItemStatus.CLICKED
    assert updated.sent_at is not None
    assert updated.clicked_at is not None

    dataset = await repository.get_latest_dataset("tenant-a")
    assert dataset.metrics.sent == 3
    assert dataset.metrics.clicked == 1
    assert dataset.metrics.clicked_rate == 33.33
    assert dataset.metrics.reviewed_rate == 0.0
    assert dataset.totals["clickedRate"] == 33.33


@pytest.mark.asyncio
async def test_latest_dataset_is_tenant_and_campaign_scoped(repository, evaluated, now):
    request, result = evaluated
    older = await repository.save_campaign("tenant-a", request, result, computed_at=now - timedelta(days=1))
    newer = await repository.save_campaign("tenant-a", request, result, computed_at=now)

    assert (await repository.get_latest_dataset("tenant-a")).dataset_id == newer.dataset_id
    scoped = await repository.get_latest_dataset("tenant-a", campaign_id=older.campaign_id)
    assert scoped.dataset_id == older.dataset_id

    assert await repository.get_latest_dataset("tenant-b") is None
    assert await repository.get_dataset("tenant-b", newer.dataset_id) is None
    assert await repository.get_campaign("tenant-b", newer.campaign_id) is None


@pytest.mark.asyncio
async def test_missing_rows_and_invalid_ids(repository):
    assert await repository.get_campaign("tenant-a", "does-not-exist") is None
    assert await repository.update_queue_item_status("tenant-a", "does-not-exist", QueueItemStatus.SENT) is None

    with pytest.raises(ValueError):
        await repository.get_dataset("", "dataset-id")
    with pytest.raises(ValueError):
        await repository.get_campaign("tenant-a", "")


@pytest.mark.asyncio
async def test_queue_items_for_unknown_customers_are_skipped(repository, evaluated, now):
    request, result = evaluated
    orphan = result.send_queue[0].model_copy(update={"customer_id": "ghost"})
    result = result.model_copy(update={"send_queue": result.send_queue + [orphan]})

    saved = await repository.save_campaign("tenant-a", request, result, computed_at=now)
    assert len(await repository.list_queue_items("tenant-a", saved.campaign_id)) == 4


def test_snapshot_warnings(make_campaign, make_customer, now):
    campaign = make_campaign(rules={
        "trigger_type": TriggerType.MANUAL,
        "follow_up_enabled": True,
        "follow_up_delay_days": 1,
        "frequency_cap_days": 30,
    })
    customers = [make_customer("c1", phone=None, email=None), make_customer("c2")]
    request = ReviewRequestAutomationRequest(campaign=campaign, customers=customers)
    result = process_review_request_automation(request, datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))
    skipped = result.send_queue[0].model_copy(update={"status": QueueItemStatus.SKIPPED})

    warnings = compute_snapshot_warnings(campaign, customers, [skipped], result.templates)
    assert warnings == {"followUpTooSoon": True, "highQueueSkipRate": True}

    no_contacts = compute_snapshot_warnings(campaign.model_copy(update={"review_link": " "}), customers[:1], [], None)
    assert no_contacts == {"missingReviewLink": True, "noCustomerContacts": True, "followUpTooSoon": True}
