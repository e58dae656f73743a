"""Services package."""

from reviewpilot.services.review_request_engine import (
    process_review_request_automation,
    validate_campaign,
)
from reviewpilot.services.review_request_repository import ReviewRequestRepository

__all__ = [
    "ReviewRequestRepository",
    "process_review_request_automation",
    "validate_campaign",
]
