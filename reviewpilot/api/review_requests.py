"""
API Router for Review Request Automation.

Evaluation is stateless; saving a campaign persists the evaluated queue and a
dataset snapshot that later status updates are aggregated against.
"""
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import Response

from reviewpilot.core.config import Settings, get_settings
from reviewpilot.core.database import async_session_maker
from reviewpilot.core.logging import get_logger
from reviewpilot.schemas.customer_import import CSVImportRequest, CSVParseResult
from reviewpilot.schemas.review_request_store import (
    CampaignSummary,
    DatasetSummary,
    QueueItemRecord,
    QueueItemStatusUpdate,
    SaveCampaignResponse,
)
from reviewpilot.schemas.review_requests import (
    MessagePreview,
    MessagePreviewRequest,
    ReviewRequestAutomationRequest,
    ReviewRequestAutomationResponse,
)
from reviewpilot.services.csv_import import generate_csv_template, parse_customers_csv
from reviewpilot.services.message_templates import generate_message_templates, personalize_message
from reviewpilot.services.review_request_engine import process_review_request_automation
from reviewpilot.services.review_request_repository import ReviewRequestRepository

router = APIRouter()
logger = get_logger(__name__)


def get_repository() -> ReviewRequestRepository:
    return ReviewRequestRepository(async_session_maker)


def get_now(settings: Settings = Depends(get_settings)) -> datetime:
    """Request clock in the business timezone."""
    return datetime.now(ZoneInfo(settings.business_timezone))


def get_tenant_id(
    x_tenant_id: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    return x_tenant_id or settings.default_tenant_id


@router.post("/evaluate", response_model=ReviewRequestAutomationResponse)
async def evaluate_campaign(
    request: ReviewRequestAutomationRequest,
    now: datetime = Depends(get_now),
):
    """
    Run the campaign engine without saving anything.
    """
    return process_review_request_automation(request, now)


@router.post("/messages/preview", response_model=MessagePreview)
async def preview_message(request: MessagePreviewRequest):
    """
    Personalised message for one customer, as it would be copied or sent.
    """
    templates = generate_message_templates(request.campaign)
    return MessagePreview(
        variant=request.variant,
        text=personalize_message(templates, request.variant, request.customer_name),
    )


@router.post("/campaigns", response_model=SaveCampaignResponse, status_code=status.HTTP_201_CREATED)
async def save_campaign(
    request: ReviewRequestAutomationRequest,
    now: datetime = Depends(get_now),
    tenant_id: str = Depends(get_tenant_id),
    repository: ReviewRequestRepository = Depends(get_repository),
):
    """
    Evaluate and persist a campaign. Campaigns with validation errors are not saved.
    """
    evaluation = process_review_request_automation(request, now)
    if evaluation.validation_errors:
        logger.warning(f"Rejected campaign save for tenant {tenant_id}: {len(evaluation.validation_errors)} validation error(s)")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Campaign has validation errors", "validationErrors": evaluation.validation_errors},
        )

    try:
        saved = await repository.save_campaign(tenant_id, request, evaluation, computed_at=now)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return SaveCampaignResponse(saved=saved, evaluation=evaluation)


@router.get("/campaigns/{campaign_id}", response_model=CampaignSummary)
async def get_campaign(
    campaign_id: str,
    tenant_id: str = Depends(get_tenant_id),
    repository: ReviewRequestRepository = Depends(get_repository),
):
    try:
        campaign = await repository.get_campaign(tenant_id, campaign_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if campaign is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")
    return campaign


@router.get("/campaigns/{campaign_id}/queue-items", response_model=List[QueueItemRecord])
async def list_queue_items(
    campaign_id: str,
    tenant_id: str = Depends(get_tenant_id),
    repository: ReviewRequestRepository = Depends(get_repository),
):
    try:
        return await repository.list_queue_items(tenant_id, campaign_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/datasets/latest", response_model=DatasetSummary)
async def get_latest_dataset(
    campaign_id: Optional[str] = None,
    tenant_id: str = Depends(get_tenant_id),
    repository: ReviewRequestRepository = Depends(get_repository),
):
    """
    Latest snapshot, with metrics re-aggregated from stored queue statuses.
    """
    try:
        dataset = await repository.get_latest_dataset(tenant_id, campaign_id=campaign_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if dataset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No dataset found")
    return dataset


@router.get("/datasets/{dataset_id}", response_model=DatasetSummary)
async def get_dataset(
    dataset_id: str,
    tenant_id: str = Depends(get_tenant_id),
    repository: ReviewRequestRepository = Depends(get_repository),
):
    try:
        dataset = await repository.get_dataset(tenant_id, dataset_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if dataset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dataset not found")
    return dataset


@router.patch("/queue-items/{item_id}", response_model=QueueItemRecord)
async def update_queue_item_status(
    item_id: str,
    update: QueueItemStatusUpdate,
    now: datetime = Depends(get_now),
    tenant_id: str = Depends(get_tenant_id),
    repository: ReviewRequestRepository = Depends(get_repository),
):
    try:
        item = await repository.update_queue_item_status(tenant_id, item_id, update.status, at=now)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Queue item not found")
    return item


@router.post("/customers/import", response_model=CSVParseResult)
async def import_customers(
    request: CSVImportRequest,
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings),
):
    """
    Parse customers out of pasted CSV text. Bad rows are reported, not fatal.
    """
    return parse_customers_csv(
        request.csv_text,
        now,
        column_mapping=request.column_mapping,
        max_rows=settings.max_import_rows,
    )


@router.get("/customers/template")
async def download_customer_template():
    return Response(
        content=generate_csv_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="review-request-customers-template.csv"'},
    )
