"""
Campaign Health Scorer.

Starts from 100 and deducts a fixed weight per problem found. Every deduction
(and every positive signal) is recorded as a human-readable reason.

    Missing / invalid review link     -30
    Contact coverage < 40%            -25
    Contact coverage < 60%            -15
    No customers loaded               -10
    Follow-up delay < 2 days          -10
    Quiet hours misconfigured         -10
    SMS template missing STOP         -20
    SMS Short > 240 chars              -5
    SMS Standard > 420 chars           -5

Score >= 80 is Good, >= 60 Needs Attention, anything lower At Risk.
"""
from typing import List, Sequence

from reviewpilot.schemas.review_requests import (
    Campaign,
    CampaignHealth,
    CampaignHealthStatus,
    Customer,
    MessageTemplate,
)
from reviewpilot.services.quality_checks import (
    SMS_SHORT_MAX_CHARS,
    SMS_STANDARD_MAX_CHARS,
    is_valid_url,
)
from reviewpilot.services.quiet_hours import is_misconfigured

GOOD_THRESHOLD = 80
NEEDS_ATTENTION_THRESHOLD = 60


def health_status_for(score: int) -> CampaignHealthStatus:
    if score >= GOOD_THRESHOLD:
        return CampaignHealthStatus.GOOD
    if score >= NEEDS_ATTENTION_THRESHOLD:
        return CampaignHealthStatus.NEEDS_ATTENTION
    return CampaignHealthStatus.AT_RISK


def has_stop_line(text: str) -> bool:
    return "stop" in text.lower()


def calculate_campaign_health(
    campaign: Campaign,
    customers: Sequence[Customer],
    templates: MessageTemplate,
) -> CampaignHealth:
    reasons: List[str] = []
    score = 100
    rules = campaign.rules

    if not campaign.review_link.strip():
        reasons.append("Review link is missing")
        score -= 30
    elif not is_valid_url(campaign.review_link):
        reasons.append("Review link is not a valid URL")
        score -= 30

    if customers:
        with_contact = sum(
            1 for c in customers
            if (c.phone and c.phone.strip()) or (c.email and c.email.strip())
        )
        coverage = with_contact / len(customers) * 100
        coverage_pct = int(coverage + 0.5)
        if coverage < 40:
            reasons.append(f"Only {coverage_pct}% of customers have phone or email")
            score -= 25
        elif coverage < 60:
            reasons.append(f"Only {coverage_pct}% of customers have phone or email")
            score -= 15
        else:
            reasons.append(f"{coverage_pct}% of customers have contact info")
    else:
        reasons.append("No customers added yet")
        score -= 10

    if rules.follow_up_enabled:
        if rules.follow_up_delay_days < 2:
            reasons.append("Follow-up delay is less than 2 days (may be too aggressive)")
            score -= 10
        else:
            reasons.append(f"Follow-up enabled with {rules.follow_up_delay_days} day delay")

    if is_misconfigured(rules.quiet_hours):
        reasons.append("Quiet hours may be misconfigured")
        score -= 10

    sms_templates = (templates.sms_short, templates.sms_standard, templates.follow_up_sms)
    if not all(has_stop_line(t) for t in sms_templates):
        reasons.append("SMS templates missing STOP opt-out line")
        score -= 20

    sms_short_length = len(templates.sms_short)
    if sms_short_length > SMS_SHORT_MAX_CHARS:
        reasons.append(f"SMS Short template exceeds {SMS_SHORT_MAX_CHARS} characters ({sms_short_length} chars)")
        score -= 5

    sms_standard_length = len(templates.sms_standard)
    if sms_standard_length > SMS_STANDARD_MAX_CHARS:
        reasons.append(
            f"SMS Standard template exceeds {SMS_STANDARD_MAX_CHARS} characters ({sms_standard_length} chars)"
        )
        score -= 5

    score = max(0, min(100, score))

    return CampaignHealth(
        status=health_status_for(score),
        score=score,
        reasons=reasons or ["All checks passed"],
    )
