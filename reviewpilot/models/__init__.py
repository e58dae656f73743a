"""Models package."""

from reviewpilot.models.review_request_orm import (
    ReviewRequestCampaignORM,
    ReviewRequestCustomerORM,
    ReviewRequestDatasetORM,
    ReviewRequestQueueItemORM,
)

__all__ = [
    "ReviewRequestCampaignORM",
    "ReviewRequestCustomerORM",
    "ReviewRequestDatasetORM",
    "ReviewRequestQueueItemORM",
]
