"""
Review Request Automation Engine.

Entry point that validates a campaign request and runs every calculator in
dependency order. Validation problems are reported, never raised: the result
is always computed on a best-effort basis and the caller decides whether to
block on `validation_errors`.

The engine performs no I/O and never reads the clock; `now` and the ID source
are supplied by the caller.
"""
from datetime import datetime
from typing import List

from reviewpilot.core.ids import IdFactory, uuid4_ids
from reviewpilot.core.logging import get_logger
from reviewpilot.schemas.review_requests import (
    Campaign,
    ReviewRequestAutomationRequest,
    ReviewRequestAutomationResponse,
)
from reviewpilot.services.campaign_health import calculate_campaign_health
from reviewpilot.services.funnel_metrics import calculate_funnel_metrics
from reviewpilot.services.guidance import (
    calculate_guidance_benchmarks,
    get_business_type_recommendation,
)
from reviewpilot.services.message_templates import generate_message_templates
from reviewpilot.services.quality_checks import (
    generate_next_actions,
    generate_quality_checks,
    is_valid_url,
)
from reviewpilot.services.send_queue import compute_send_queue
from reviewpilot.services.send_timeline import calculate_send_timeline
from reviewpilot.services.template_quality import calculate_template_quality

logger = get_logger(__name__)

MAX_SEND_DELAY_HOURS = 168
FOLLOW_UP_DELAY_DAYS_RANGE = (1, 30)


def validate_campaign(campaign: Campaign) -> List[str]:
    """Friendly messages for structural problems in the campaign configuration."""
    errors: List[str] = []
    rules = campaign.rules

    if not campaign.business_name.strip():
        errors.append("Business name is required")

    if not campaign.review_link.strip():
        errors.append("Review link is required")

    if not is_valid_url(campaign.review_link):
        errors.append("Review link must be a valid URL")

    if rules.send_delay_hours < 0 or rules.send_delay_hours > MAX_SEND_DELAY_HOURS:
        errors.append(f"Send delay hours must be between 0 and {MAX_SEND_DELAY_HOURS}")

    if rules.follow_up_enabled:
        low, high = FOLLOW_UP_DELAY_DAYS_RANGE
        if rules.follow_up_delay_days < low or rules.follow_up_delay_days > high:
            errors.append(f"Follow-up delay days must be between {low} and {high}")

    return errors


def process_review_request_automation(
    request: ReviewRequestAutomationRequest,
    now: datetime,
    id_factory: IdFactory = uuid4_ids,
) -> ReviewRequestAutomationResponse:
    campaign = request.campaign
    customers = request.customers
    events = request.events

    validation_errors = validate_campaign(campaign)
    if validation_errors:
        logger.warning(
            f"Campaign '{campaign.business_name}' has {len(validation_errors)} validation error(s)",
            extra={"extra_data": {"validation_errors": validation_errors}},
        )

    templates = generate_message_templates(campaign)
    send_queue = compute_send_queue(campaign, customers, events, now, id_factory)
    metrics = calculate_funnel_metrics(customers, events, send_queue)
    quality_checks = generate_quality_checks(campaign, customers, templates)
    next_actions = generate_next_actions(metrics, quality_checks)
    campaign_health = calculate_campaign_health(campaign, customers, templates)
    send_timeline = calculate_send_timeline(campaign, send_queue, now)
    template_quality = calculate_template_quality(campaign, templates)
    business_type_recommendation = (
        get_business_type_recommendation(campaign.business_type)
        if campaign.business_type
        else None
    )
    guidance_benchmarks = calculate_guidance_benchmarks(campaign)

    logger.info(
        f"Evaluated review request campaign '{campaign.business_name}'",
        extra={"extra_data": {
            "customers": len(customers),
            "events": len(events),
            "queue_items": len(send_queue),
            "health_score": campaign_health.score,
        }},
    )

    return ReviewRequestAutomationResponse(
        templates=templates,
        send_queue=send_queue,
        metrics=metrics,
        quality_checks=quality_checks,
        next_actions=next_actions,
        validation_errors=validation_errors,
        campaign_health=campaign_health,
        send_timeline=send_timeline,
        template_quality=template_quality,
        business_type_recommendation=business_type_recommendation,
        guidance_benchmarks=guidance_benchmarks,
    )
