"""
Template Quality Evaluator.

Grades each of the four message slots independently. Every triggered
observation is kept in `details`; the slot's label and severity come from the
most severe finding (a later finding of equal severity replaces an earlier one).
"""
from typing import List, Optional

from reviewpilot.schemas.review_requests import (
    Campaign,
    MessageTemplate,
    MessageVariant,
    TemplateQuality,
    TemplateQualityLabel,
    TemplateQualitySeverity,
)
from reviewpilot.services.campaign_health import has_stop_line
from reviewpilot.services.quality_checks import SMS_SHORT_MAX_CHARS, SMS_STANDARD_MAX_CHARS

EMAIL_SUBJECT_MAX_CHARS = 60
FOLLOW_UP_MAX_CHARS = 320

_SEVERITY_RANK = {
    TemplateQualitySeverity.INFO: 0,
    TemplateQualitySeverity.WARNING: 1,
    TemplateQualitySeverity.CRITICAL: 2,
}

_CONTEXT_WORDS = ("review", "feedback")

ADD_STOP_SUGGESTION = "Add 'Reply STOP to opt out' to the template"
ADD_LINK_SUGGESTION = "Add the review link to the template"
ADD_CONTEXT_SUGGESTION = "Consider adding context before the link (e.g., 'Please leave a review:')"


class _SlotGrade:
    """Accumulates findings for one template slot."""

    def __init__(self, template_key: MessageVariant):
        self.template_key = template_key
        self.label = TemplateQualityLabel.GOOD
        self.severity = TemplateQualitySeverity.INFO
        self.details: List[str] = []
        self.suggestion: Optional[str] = None

    def flag(
        self,
        label: TemplateQualityLabel,
        severity: TemplateQualitySeverity,
        detail: str,
        suggestion: str,
    ) -> None:
        self.details.append(detail)
        if _SEVERITY_RANK[severity] >= _SEVERITY_RANK[self.severity]:
            self.label = label
            self.severity = severity
            self.suggestion = suggestion
        elif self.suggestion is None:
            self.suggestion = suggestion

    def result(self) -> TemplateQuality:
        details = list(self.details)
        if self.label == TemplateQualityLabel.GOOD:
            details.append("Template meets all quality criteria")
        return TemplateQuality(
            template_key=self.template_key,
            label=self.label,
            severity=self.severity,
            details=details,
            suggestion=self.suggestion,
        )


def _grade_sms(
    key: MessageVariant,
    text: str,
    review_link: str,
    max_chars: int,
    length_suggestion: str,
    check_link_context: bool = True,
) -> TemplateQuality:
    grade = _SlotGrade(key)
    prefix = "Follow-up SMS" if key == MessageVariant.FOLLOW_UP_SMS else "SMS"

    if not has_stop_line(text):
        grade.flag(
            TemplateQualityLabel.MISSING_OPT_OUT,
            TemplateQualitySeverity.CRITICAL,
            f"{prefix} template missing STOP opt-out line (required for compliance)",
            ADD_STOP_SUGGESTION,
        )

    if len(text) > max_chars:
        grade.flag(
            TemplateQualityLabel.TOO_LONG,
            TemplateQualitySeverity.WARNING,
            f"Template is {len(text)} characters (target: ≤{max_chars})",
            length_suggestion,
        )

    if review_link not in text:
        grade.flag(
            TemplateQualityLabel.LINK_ISSUE,
            TemplateQualitySeverity.CRITICAL,
            "Review link is missing from template",
            ADD_LINK_SUGGESTION,
        )
    elif check_link_context and text.strip().endswith(review_link) and not any(
        word in text.lower() for word in _CONTEXT_WORDS
    ):
        grade.flag(
            TemplateQualityLabel.NEEDS_REVIEW,
            TemplateQualitySeverity.WARNING,
            "Review link appears at the end without clear call-to-action",
            ADD_CONTEXT_SUGGESTION,
        )

    return grade.result()


def _grade_email(templates: MessageTemplate, review_link: str) -> TemplateQuality:
    grade = _SlotGrade(MessageVariant.EMAIL)
    subject = templates.email.subject
    body = templates.email.body

    if review_link not in f"{subject} {body}":
        grade.flag(
            TemplateQualityLabel.LINK_ISSUE,
            TemplateQualitySeverity.CRITICAL,
            "Review link is missing from email template",
            "Add the review link to the email body",
        )
    elif review_link not in body:
        grade.flag(
            TemplateQualityLabel.NEEDS_REVIEW,
            TemplateQualitySeverity.WARNING,
            "Review link only appears in subject line",
            "Consider adding the review link to the email body as well",
        )

    if len(subject) > EMAIL_SUBJECT_MAX_CHARS:
        grade.flag(
            TemplateQualityLabel.TOO_LONG,
            TemplateQualitySeverity.WARNING,
            f"Email subject is {len(subject)} characters (recommended: ≤{EMAIL_SUBJECT_MAX_CHARS})",
            "Consider shortening the email subject line",
        )

    return grade.result()


def calculate_template_quality(campaign: Campaign, templates: MessageTemplate) -> List[TemplateQuality]:
    """One TemplateQuality per slot: smsShort, smsStandard, followUpSms, email."""
    review_link = campaign.review_link
    return [
        _grade_sms(
            MessageVariant.SMS_SHORT,
            templates.sms_short,
            review_link,
            SMS_SHORT_MAX_CHARS,
            "Consider shortening the message or using SMS Standard variant",
        ),
        _grade_sms(
            MessageVariant.SMS_STANDARD,
            templates.sms_standard,
            review_link,
            SMS_STANDARD_MAX_CHARS,
            "Consider shortening the message",
        ),
        _grade_sms(
            MessageVariant.FOLLOW_UP_SMS,
            templates.follow_up_sms,
            review_link,
            FOLLOW_UP_MAX_CHARS,
            "Consider shortening the follow-up message",
            check_link_context=False,
        ),
        _grade_email(templates, review_link),
    ]
