"""
Review Request Repository.

Persists evaluated campaigns (campaign, customers, queue items, dataset
snapshot) and reads them back. Dataset metrics are re-aggregated from the
stored queue-item statuses on every read, independently of the event-derived
funnel metrics computed by the engine.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reviewpilot.core.logging import get_logger
from reviewpilot.models.review_request_orm import (
    ReviewRequestCampaignORM,
    ReviewRequestCustomerORM,
    ReviewRequestDatasetORM,
    ReviewRequestQueueItemORM,
)
from reviewpilot.schemas.review_request_store import (
    CampaignSummary,
    DatasetMetrics,
    DatasetSummary,
    QueueItemRecord,
    SavedCampaign,
)
from reviewpilot.schemas.review_requests import (
    Campaign,
    Customer,
    MessageChannel,
    MessageTemplate,
    QueueItemStatus,
    ReviewRequestAutomationRequest,
    ReviewRequestAutomationResponse,
    SendQueueItem,
)

logger = get_logger(__name__)

SMS_SNAPSHOT_MAX_CHARS = 300
HIGH_SKIP_RATE = 0.25

# Status -> timestamp column stamped when a queue item moves into it
_STATUS_TIMESTAMPS = {
    QueueItemStatus.SENT: "sent_at",
    QueueItemStatus.CLICKED: "clicked_at",
    QueueItemStatus.REVIEWED: "reviewed_at",
    QueueItemStatus.OPTED_OUT: "opted_out_at",
}


def _require_id(value: Any, name: str) -> None:
    if not value or not isinstance(value, str):
        raise ValueError(f"Invalid {name}")


def _rate(count: int, sent: int) -> float:
    return round(count / sent * 100, 2) if sent > 0 else 0.0


def compute_snapshot_warnings(
    campaign: Campaign,
    customers: Sequence[Customer],
    queue: Sequence[SendQueueItem],
    templates: Optional[MessageTemplate],
) -> Dict[str, bool]:
    """Informational flags stored with a dataset snapshot."""
    warnings: Dict[str, bool] = {}

    if not campaign.review_link.strip():
        warnings["missingReviewLink"] = True

    has_contacts = any(
        (c.phone and c.phone.strip()) or (c.email and c.email.strip()) for c in customers
    )
    if not has_contacts:
        warnings["noCustomerContacts"] = True

    if templates is not None:
        sms_lengths = (len(templates.sms_short), len(templates.sms_standard), len(templates.follow_up_sms))
        if any(length > SMS_SNAPSHOT_MAX_CHARS for length in sms_lengths):
            warnings["smsTooLong"] = True

    if campaign.rules.follow_up_enabled and campaign.rules.follow_up_delay_days < 2:
        warnings["followUpTooSoon"] = True

    if queue:
        skipped = sum(1 for q in queue if q.status == QueueItemStatus.SKIPPED)
        if skipped / len(queue) > HIGH_SKIP_RATE:
            warnings["highQueueSkipRate"] = True

    return warnings


def aggregate_queue_item_metrics(items: Iterable[ReviewRequestQueueItemORM]) -> DatasetMetrics:
    """Delivery metrics from stored queue-item statuses and timestamps."""
    sent = clicked = reviewed = opted_out = 0
    for item in items:
        status = item.status
        if status == QueueItemStatus.SENT.value or item.sent_at:
            sent += 1
        if status in (QueueItemStatus.CLICKED.value, QueueItemStatus.REVIEWED.value) or item.clicked_at:
            clicked += 1
        if status == QueueItemStatus.REVIEWED.value or item.reviewed_at:
            reviewed += 1
        if status == QueueItemStatus.OPTED_OUT.value or item.opted_out_at:
            opted_out += 1

    return DatasetMetrics(
        sent=sent,
        clicked=clicked,
        reviewed=reviewed,
        opted_out=opted_out,
        clicked_rate=_rate(clicked, sent),
        reviewed_rate=_rate(reviewed, sent),
    )


def _channel_mode(queue: Sequence[SendQueueItem]) -> str:
    channels = {q.channel for q in queue}
    if channels == {MessageChannel.SMS, MessageChannel.EMAIL}:
        return "both"
    if MessageChannel.SMS in channels:
        return "sms"
    return "email"


class ReviewRequestRepository:
    """Tenant-scoped storage for evaluated review request campaigns."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _get_session(self, session: Optional[AsyncSession] = None):
        if session:
            yield session
        else:
            async with self.session_factory() as new_session:
                try:
                    yield new_session
                    await new_session.commit()
                except Exception:
                    await new_session.rollback()
                    raise
                finally:
                    await new_session.close()

    async def save_campaign(
        self,
        tenant_id: str,
        request: ReviewRequestAutomationRequest,
        result: ReviewRequestAutomationResponse,
        computed_at: Optional[datetime] = None,
        session: Optional[AsyncSession] = None,
    ) -> SavedCampaign:
        """Store campaign, customers, queue items and a dataset snapshot in one transaction."""
        _require_id(tenant_id, "tenant_id")
        campaign = request.campaign
        rules = campaign.rules
        queue = result.send_queue
        computed_at = computed_at or datetime.now(timezone.utc)
        snapshot_id = f"RRA-{int(computed_at.timestamp() * 1000) % 100_000_000:08d}"

        metrics = result.metrics
        totals: Dict[str, Any] = {
            **metrics.model_dump(by_alias=True),
            "clickedRate": _rate(metrics.clicked, metrics.sent),
            "reviewedRate": _rate(metrics.reviewed, metrics.sent),
        }
        warnings = compute_snapshot_warnings(campaign, request.customers, queue, result.templates)

        async with self._get_session(session) as s:
            db_campaign = ReviewRequestCampaignORM(
                tenant_id=tenant_id,
                business_name=campaign.business_name,
                business_type=campaign.business_type,
                platform=campaign.platform.value,
                review_link_url=campaign.review_link,
                language_mode=campaign.language.value,
                tone_style=campaign.tone_style.value,
                brand_voice=campaign.brand_voice or None,
                channel_mode=_channel_mode(queue),
                trigger_type=rules.trigger_type.value,
                send_delay_hours=rules.send_delay_hours,
                follow_up_enabled=rules.follow_up_enabled,
                follow_up_delay_days=rules.follow_up_delay_days if rules.follow_up_enabled else None,
                frequency_cap_days=rules.frequency_cap_days,
                quiet_hours_start=rules.quiet_hours.start or None,
                quiet_hours_end=rules.quiet_hours.end or None,
            )
            s.add(db_campaign)
            await s.flush()

            # input customer id -> stored row id
            customer_ids: Dict[str, str] = {}
            for customer in request.customers:
                db_customer = ReviewRequestCustomerORM(
                    tenant_id=tenant_id,
                    campaign_id=db_campaign.id,
                    name=customer.customer_name,
                    email=customer.email or None,
                    phone=customer.phone or None,
                    tags=list(customer.tags),
                    last_visit_date=customer.last_visit_date,
                    service_type=customer.service_type,
                    job_id=customer.job_id,
                    opted_out=customer.opted_out,
                )
                s.add(db_customer)
                await s.flush()
                customer_ids[customer.id] = db_customer.id

            for item in queue:
                db_customer_id = customer_ids.get(item.customer_id)
                if db_customer_id is None:
                    logger.warning(f"Skipping queue item with unknown customerId: {item.customer_id}")
                    continue
                s.add(ReviewRequestQueueItemORM(
                    tenant_id=tenant_id,
                    campaign_id=db_campaign.id,
                    customer_id=db_customer_id,
                    scheduled_at=item.scheduled_at,
                    channel=item.channel.value,
                    variant=item.variant.value,
                    status=item.status.value,
                    skipped_reason=item.skipped_reason,
                ))

            dataset = ReviewRequestDatasetORM(
                tenant_id=tenant_id,
                campaign_id=db_campaign.id,
                snapshot_id=snapshot_id,
                computed_at=computed_at,
                totals=totals,
                warnings=warnings or None,
            )
            s.add(dataset)
            await s.flush()

            logger.info(
                f"Saved review request campaign {db_campaign.id} "
                f"({len(customer_ids)} customers, {len(queue)} queue items, snapshot {snapshot_id})"
            )
            return SavedCampaign(
                campaign_id=db_campaign.id,
                dataset_id=dataset.id,
                snapshot_id=snapshot_id,
                computed_at=computed_at,
            )

    async def _summarize(self, s: AsyncSession, dataset: ReviewRequestDatasetORM) -> DatasetSummary:
        campaign = await s.get(ReviewRequestCampaignORM, dataset.campaign_id)
        result = await s.execute(
            select(ReviewRequestQueueItemORM).where(
                ReviewRequestQueueItemORM.tenant_id == dataset.tenant_id,
                ReviewRequestQueueItemORM.campaign_id == dataset.campaign_id,
            )
        )
        metrics = aggregate_queue_item_metrics(result.scalars().all())

        totals = {
            **(dataset.totals or {}),
            "sent": metrics.sent,
            "clicked": metrics.clicked,
            "reviewed": metrics.reviewed,
            "optOutCount": metrics.opted_out,
            "clickedRate": metrics.clicked_rate,
            "reviewedRate": metrics.reviewed_rate,
        }
        return DatasetSummary(
            dataset_id=dataset.id,
            campaign_id=dataset.campaign_id,
            snapshot_id=dataset.snapshot_id,
            business_name=campaign.business_name if campaign else "",
            computed_at=dataset.computed_at,
            metrics=metrics,
            totals=totals,
            warnings=dataset.warnings or None,
        )

    async def get_latest_dataset(
        self,
        tenant_id: str,
        campaign_id: Optional[str] = None,
        session: Optional[AsyncSession] = None,
    ) -> Optional[DatasetSummary]:
        """Most recently computed snapshot for the tenant, optionally within one campaign."""
        _require_id(tenant_id, "tenant_id")
        if campaign_id is not None:
            _require_id(campaign_id, "campaign_id")

        async with self._get_session(session) as s:
            query = select(ReviewRequestDatasetORM).where(ReviewRequestDatasetORM.tenant_id == tenant_id)
            if campaign_id is not None:
                query = query.where(ReviewRequestDatasetORM.campaign_id == campaign_id)
            query = query.order_by(
                ReviewRequestDatasetORM.computed_at.desc(),
                ReviewRequestDatasetORM.created_at.desc(),
            ).limit(1)

            dataset = (await s.execute(query)).scalar_one_or_none()
            if dataset is None:
                return None
            return await self._summarize(s, dataset)

    async def get_dataset(
        self,
        tenant_id: str,
        dataset_id: str,
        session: Optional[AsyncSession] = None,
    ) -> Optional[DatasetSummary]:
        _require_id(tenant_id, "tenant_id")
        _require_id(dataset_id, "dataset_id")

        async with self._get_session(session) as s:
            result = await s.execute(
                select(ReviewRequestDatasetORM).where(
                    ReviewRequestDatasetORM.id == dataset_id,
                    ReviewRequestDatasetORM.tenant_id == tenant_id,
                )
            )
            dataset = result.scalar_one_or_none()
            if dataset is None:
                return None
            return await self._summarize(s, dataset)

    async def get_campaign(
        self,
        tenant_id: str,
        campaign_id: str,
        session: Optional[AsyncSession] = None,
    ) -> Optional[CampaignSummary]:
        _require_id(tenant_id, "tenant_id")
        _require_id(campaign_id, "campaign_id")

        async with self._get_session(session) as s:
            result = await s.execute(
                select(ReviewRequestCampaignORM).where(
                    ReviewRequestCampaignORM.id == campaign_id,
                    ReviewRequestCampaignORM.tenant_id == tenant_id,
                )
            )
            campaign = result.scalar_one_or_none()
            return CampaignSummary.model_validate(campaign) if campaign else None

    async def update_queue_item_status(
        self,
        tenant_id: str,
        item_id: str,
        status: QueueItemStatus,
        at: Optional[datetime] = None,
        session: Optional[AsyncSession] = None,
    ) -> Optional[QueueItemRecord]:
        """Move a stored queue item to a new status, stamping the matching timestamp."""
        _require_id(tenant_id, "tenant_id")
        _require_id(item_id, "item_id")

        async with self._get_session(session) as s:
            result = await s.execute(
                select(ReviewRequestQueueItemORM).where(
                    ReviewRequestQueueItemORM.id == item_id,
                    ReviewRequestQueueItemORM.tenant_id == tenant_id,
                )
            )
            item = result.scalar_one_or_none()
            if item is None:
                return None

            item.status = status.value
            timestamp_column = _STATUS_TIMESTAMPS.get(status)
            if timestamp_column:
                setattr(item, timestamp_column, at or datetime.now(timezone.utc))
            await s.flush()

            logger.info(f"Queue item {item_id} moved to {status.value}")
            return QueueItemRecord.model_validate(item)

    async def list_queue_items(
        self,
        tenant_id: str,
        campaign_id: str,
        session: Optional[AsyncSession] = None,
    ) -> List[QueueItemRecord]:
        """Stored queue items of a campaign in scheduled order."""
        _require_id(tenant_id, "tenant_id")
        _require_id(campaign_id, "campaign_id")

        async with self._get_session(session) as s:
            result = await s.execute(
                select(ReviewRequestQueueItemORM)
                .where(
                    ReviewRequestQueueItemORM.tenant_id == tenant_id,
                    ReviewRequestQueueItemORM.campaign_id == campaign_id,
                )
                .order_by(ReviewRequestQueueItemORM.scheduled_at)
            )
            return [QueueItemRecord.model_validate(item) for item in result.scalars().all()]
