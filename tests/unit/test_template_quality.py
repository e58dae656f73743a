"""
Unit tests for per-slot template grading.
"""
from reviewpilot.schemas.review_requests import (
    EmailTemplate,
    MessageTemplate,
    MessageVariant,
    TemplateQualityLabel,
    TemplateQualitySeverity,
)
from reviewpilot.services.message_templates import generate_message_templates
from reviewpilot.services.template_quality import calculate_template_quality

LINK = "https://g.page/r/ocean-side-plumbing/review"


def _by_key(results):
    return {r.template_key: r for r in results}


def test_generated_templates_grade_good(make_campaign):
    campaign = make_campaign()
    results = calculate_template_quality(campaign, generate_message_templates(campaign))

    assert [r.template_key for r in results] == [
        MessageVariant.SMS_SHORT,
        MessageVariant.SMS_STANDARD,
        MessageVariant.FOLLOW_UP_SMS,
        MessageVariant.EMAIL,
    ]
    for result in results:
        assert result.label == TemplateQualityLabel.GOOD
        assert result.severity == TemplateQualitySeverity.INFO
        assert result.details == ["Template meets all quality criteria"]
        assert result.suggestion is None


def test_missing_stop_is_critical(make_campaign):
    campaign = make_campaign()
    templates = generate_message_templates(campaign)
    templates = templates.model_copy(update={
        "sms_standard": templates.sms_standard.replace(" Reply STOP to opt out.", ""),
    })

    result = _by_key(calculate_template_quality(campaign, templates))[MessageVariant.SMS_STANDARD]
    assert result.label == TemplateQualityLabel.MISSING_OPT_OUT
    assert result.severity == TemplateQualitySeverity.CRITICAL


def test_missing_link_outranks_length(make_campaign):
    campaign = make_campaign()
    templates = MessageTemplate(
        sms_short="x" * 250 + " Reply STOP to opt out.",
        sms_standard=f"Please leave a review: {LINK} Reply STOP to opt out.",
        email=EmailTemplate(subject="Thanks", body=f"Review us: {LINK}"),
        follow_up_sms=f"{LINK} Reply STOP to opt out.",
    )
    result = _by_key(calculate_template_quality(campaign, templates))[MessageVariant.SMS_SHORT]

    assert result.label == TemplateQualityLabel.LINK_ISSUE
    assert result.severity == TemplateQualitySeverity.CRITICAL
    assert len(result.details) == 2
    assert result.suggestion == "Add the review link to the template"


def test_bare_link_at_end_needs_context(make_campaign):
    # A link without "review" in it, so only the surrounding copy can supply context
    link = "https://g.page/r/ocean-side"
    campaign = make_campaign(review_link=link)
    templates = MessageTemplate(
        sms_short=f"STOP to opt out. Thanks for visiting: {link}",
        sms_standard=f"Please leave a review: {link} Reply STOP to opt out.",
        email=EmailTemplate(subject="Thanks", body=f"Review us: {link}"),
        follow_up_sms=f"STOP to opt out. {link}",
    )
    results = _by_key(calculate_template_quality(campaign, templates))

    assert results[MessageVariant.SMS_SHORT].label == TemplateQualityLabel.NEEDS_REVIEW
    assert results[MessageVariant.SMS_SHORT].severity == TemplateQualitySeverity.WARNING
    # Follow-ups are not checked for link context
    assert results[MessageVariant.FOLLOW_UP_SMS].label == TemplateQualityLabel.GOOD


def test_email_link_only_in_subject_and_long_subject(make_campaign):
    campaign = make_campaign()
    templates = generate_message_templates(campaign)
    long_subject = f"We would really love to hear about your visit today {LINK}"
    templates = templates.model_copy(update={
        "email": EmailTemplate(subject=long_subject, body="Thanks for choosing us!"),
    })

    result = _by_key(calculate_template_quality(campaign, templates))[MessageVariant.EMAIL]
    assert result.details[0] == "Review link only appears in subject line"
    assert result.label == TemplateQualityLabel.TOO_LONG
    assert result.severity == TemplateQualitySeverity.WARNING
    assert result.suggestion == "Consider shortening the email subject line"
