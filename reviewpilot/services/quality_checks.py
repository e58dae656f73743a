"""
Quality checks and next actions.

Checks are advisory: they describe configuration and data problems with a
severity and a suggested fix, and never block queue computation.
"""
from typing import List, Sequence

from pydantic import AnyUrl, TypeAdapter, ValidationError

from reviewpilot.schemas.review_requests import (
    Campaign,
    Customer,
    FunnelMetrics,
    MessageTemplate,
    NextAction,
    QualityCheck,
    QualityCheckSeverity,
)
from reviewpilot.services.quiet_hours import is_misconfigured

SMS_SHORT_MAX_CHARS = 240
SMS_STANDARD_MAX_CHARS = 420
MIN_FOLLOW_UP_DAYS = 3
MISSING_CONTACT_ERROR_PCT = 20

_url_adapter = TypeAdapter(AnyUrl)


def is_valid_url(value: str) -> bool:
    """True if value parses as an absolute URL."""
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def generate_quality_checks(
    campaign: Campaign,
    customers: Sequence[Customer],
    templates: MessageTemplate,
) -> List[QualityCheck]:
    checks: List[QualityCheck] = []
    rules = campaign.rules

    if not is_valid_url(campaign.review_link):
        checks.append(QualityCheck(
            id="invalid-review-link",
            severity=QualityCheckSeverity.ERROR,
            title="Invalid Review Link",
            description=f'The review link "{campaign.review_link}" does not appear to be a valid URL.',
            suggested_fix="Please provide a valid URL starting with http:// or https://",
        ))

    sms_short_length = len(templates.sms_short)
    if sms_short_length > SMS_SHORT_MAX_CHARS:
        checks.append(QualityCheck(
            id="sms-short-too-long",
            severity=QualityCheckSeverity.WARNING,
            title="SMS Short Template Too Long",
            description=(
                f"SMS Short template is {sms_short_length} characters (target: ≤{SMS_SHORT_MAX_CHARS}). "
                "This may be split into multiple messages."
            ),
            suggested_fix="Consider shortening the template or using SMS Standard variant.",
        ))

    sms_standard_length = len(templates.sms_standard)
    if sms_standard_length > SMS_STANDARD_MAX_CHARS:
        checks.append(QualityCheck(
            id="sms-standard-too-long",
            severity=QualityCheckSeverity.WARNING,
            title="SMS Standard Template Too Long",
            description=(
                f"SMS Standard template is {sms_standard_length} characters (target: ≤{SMS_STANDARD_MAX_CHARS}). "
                "This may be split into multiple messages."
            ),
            suggested_fix="Consider shortening the template.",
        ))

    if rules.follow_up_enabled and rules.follow_up_delay_days < MIN_FOLLOW_UP_DAYS:
        checks.append(QualityCheck(
            id="follow-up-too-aggressive",
            severity=QualityCheckSeverity.WARNING,
            title="Follow-Up May Be Too Aggressive",
            description=(
                f"Follow-up is scheduled {rules.follow_up_delay_days} days after initial send. "
                "This may feel too frequent."
            ),
            suggested_fix="Consider increasing follow-up delay to at least 3-5 days.",
        ))

    if is_misconfigured(rules.quiet_hours):
        checks.append(QualityCheck(
            id="quiet-hours-misconfigured",
            severity=QualityCheckSeverity.WARNING,
            title="Quiet Hours May Be Misconfigured",
            description=(
                f"Quiet hours start ({rules.quiet_hours.start}) is after end ({rules.quiet_hours.end}). "
                "If this is intentional (spanning midnight), this warning can be ignored."
            ),
            suggested_fix="Ensure quiet hours are configured correctly (e.g., 09:00-19:00).",
        ))

    missing_contact = sum(1 for c in customers if not c.has_contact)
    if missing_contact > 0:
        percentage = int(missing_contact / len(customers) * 100 + 0.5)
        verb = "is" if missing_contact == 1 else "are"
        checks.append(QualityCheck(
            id="missing-contact-info",
            severity=(
                QualityCheckSeverity.ERROR if percentage > MISSING_CONTACT_ERROR_PCT
                else QualityCheckSeverity.WARNING
            ),
            title="Customers Missing Contact Info",
            description=f"{_plural(missing_contact, 'customer')} ({percentage}%) {verb} missing both phone and email.",
            suggested_fix="Add phone or email for these customers to enable sending.",
        ))

    return checks


def generate_next_actions(
    metrics: FunnelMetrics,
    quality_checks: Sequence[QualityCheck],
) -> List[NextAction]:
    """Suggested next steps for the campaign owner, most urgent first."""
    actions: List[NextAction] = []

    error_count = sum(1 for c in quality_checks if c.severity == QualityCheckSeverity.ERROR)
    if error_count > 0:
        need = "needs" if error_count == 1 else "need"
        actions.append(NextAction(
            id="fix-quality-issues",
            title="Fix Quality Issues",
            description=f"{_plural(error_count, 'critical issue')} {need} attention before sending.",
        ))

    if metrics.loaded < 10:
        actions.append(NextAction(
            id="add-more-customers",
            title="Add More Customers",
            description=(
                f"You have {_plural(metrics.loaded, 'customer')}. "
                "Consider importing more for better results."
            ),
            copy_text="Import customers via CSV or add manually",
        ))

    actions.append(NextAction(
        id="review-templates",
        title="Review Message Templates",
        description=(
            "Review and customize your message templates before sending "
            "to ensure they match your brand voice."
        ),
        copy_text="Click 'Generate Templates' to review",
    ))

    if metrics.queued > 0:
        actions.append(NextAction(
            id="test-send",
            title="Test Send Queue",
            description=(
                f"You have {_plural(metrics.queued, 'message')} queued. "
                "Review the send queue and test with a few customers first."
            ),
            copy_text="Review send queue",
        ))

    return actions
