"""
Pydantic Schemas for stored review request campaigns and dataset snapshots.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ConfigDict

from reviewpilot.schemas.review_requests import (
    CamelModel,
    MessageChannel,
    MessageVariant,
    QueueItemStatus,
    ReviewRequestAutomationResponse,
)


class SavedCampaign(CamelModel):
    campaign_id: str
    dataset_id: str
    snapshot_id: str
    computed_at: datetime


class SaveCampaignResponse(CamelModel):
    saved: SavedCampaign
    evaluation: ReviewRequestAutomationResponse


class CampaignSummary(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_name: str
    business_type: Optional[str] = None
    created_at: datetime


class DatasetMetrics(CamelModel):
    sent: int
    clicked: int
    reviewed: int
    opted_out: int
    clicked_rate: float
    reviewed_rate: float


class DatasetSummary(CamelModel):
    dataset_id: str
    campaign_id: str
    snapshot_id: str
    business_name: str
    computed_at: datetime
    metrics: DatasetMetrics
    totals: Dict[str, Any]
    warnings: Optional[Dict[str, Any]] = None


class QueueItemRecord(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    campaign_id: str
    customer_id: str
    scheduled_at: datetime
    channel: MessageChannel
    variant: MessageVariant
    status: QueueItemStatus
    skipped_reason: Optional[str] = None
    sent_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    opted_out_at: Optional[datetime] = None


class QueueItemStatusUpdate(CamelModel):
    status: QueueItemStatus
