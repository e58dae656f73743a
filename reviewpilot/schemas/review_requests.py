"""
Pydantic Schemas for the Review Request campaign engine.

Python attributes are snake_case; JSON uses the camelCase names the dashboard
speaks (sendDelayHours, skippedReason, ...). Both spellings are accepted on input.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewPlatform(str, Enum):
    GOOGLE = "Google"
    FACEBOOK = "Facebook"
    YELP = "Yelp"
    OTHER = "Other"


class Language(str, Enum):
    ENGLISH = "English"
    SPANISH = "Spanish"
    BILINGUAL = "Bilingual"


class ToneStyle(str, Enum):
    FRIENDLY = "Friendly"
    PROFESSIONAL = "Professional"
    BOLD = "Bold"
    LUXURY = "Luxury"


class TriggerType(str, Enum):
    MANUAL = "manual"
    AFTER_SERVICE = "after_service"
    AFTER_PAYMENT = "after_payment"


class CustomerStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    CLICKED = "clicked"
    REVIEWED = "reviewed"
    OPTED_OUT = "optedOut"


class EventType(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    CLICKED = "clicked"
    REVIEWED = "reviewed"
    OPTED_OUT = "optedOut"


class MessageVariant(str, Enum):
    SMS_SHORT = "smsShort"
    SMS_STANDARD = "smsStandard"
    EMAIL = "email"
    FOLLOW_UP_SMS = "followUpSms"


class MessageChannel(str, Enum):
    SMS = "sms"
    EMAIL = "email"


class QueueItemStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    CLICKED = "clicked"
    REVIEWED = "reviewed"
    OPTED_OUT = "optedOut"
    SKIPPED = "skipped"


# Campaign configuration

HHMM_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


class QuietHours(CamelModel):
    """Daily sending window, HH:mm wall-clock times."""
    start: str = Field("09:00", pattern=HHMM_PATTERN)
    end: str = Field("19:00", pattern=HHMM_PATTERN)


class CampaignRules(CamelModel):
    # Numeric ranges are checked by the engine's validation step, not here,
    # so out-of-range values still produce a best-effort evaluation.
    trigger_type: TriggerType = TriggerType.MANUAL
    send_delay_hours: int = 24
    follow_up_enabled: bool = False
    follow_up_delay_days: int = 3
    frequency_cap_days: int = 30
    quiet_hours: QuietHours = Field(default_factory=QuietHours)


class Campaign(CamelModel):
    business_name: str
    business_type: Optional[str] = None
    platform: ReviewPlatform = ReviewPlatform.GOOGLE
    review_link: str
    language: Language = Language.ENGLISH
    tone_style: ToneStyle = ToneStyle.FRIENDLY
    brand_voice: Optional[str] = None
    rules: CampaignRules = Field(default_factory=CampaignRules)


# Customers and events

class Customer(CamelModel):
    id: str
    customer_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    last_visit_date: Optional[datetime] = None
    service_type: Optional[str] = None
    job_id: Optional[str] = None
    opted_out: bool = False
    created_at: datetime

    @property
    def has_contact(self) -> bool:
        return bool(self.phone or self.email)


class CustomerWithStatus(Customer):
    status: CustomerStatus = CustomerStatus.QUEUED
    last_sent_at: Optional[datetime] = None
    last_clicked_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None
    needs_follow_up: bool = False


class Event(CamelModel):
    id: str
    customer_id: str
    type: EventType
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None


# Derived outputs

class SendQueueItem(CamelModel):
    id: str
    customer_id: str
    scheduled_at: datetime
    variant: MessageVariant
    channel: MessageChannel
    status: QueueItemStatus = QueueItemStatus.PENDING
    skipped_reason: Optional[str] = None


class EmailTemplate(CamelModel):
    subject: str
    body: str


class MessageTemplate(CamelModel):
    sms_short: str
    sms_standard: str
    email: EmailTemplate
    follow_up_sms: str


class FunnelMetrics(CamelModel):
    loaded: int = Field(0, ge=0)
    ready: int = Field(0, ge=0)
    queued: int = Field(0, ge=0)
    sent: int = Field(0, ge=0)
    clicked: int = Field(0, ge=0)
    reviewed: int = Field(0, ge=0)
    opted_out: int = Field(0, ge=0)


class QualityCheckSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class QualityCheck(CamelModel):
    id: str
    severity: QualityCheckSeverity
    title: str
    description: str
    suggested_fix: Optional[str] = None


class NextAction(CamelModel):
    id: str
    title: str
    description: str
    copy_text: Optional[str] = None


class CampaignHealthStatus(str, Enum):
    GOOD = "Good"
    NEEDS_ATTENTION = "Needs Attention"
    AT_RISK = "At Risk"


class CampaignHealth(CamelModel):
    status: CampaignHealthStatus
    score: int = Field(..., ge=0, le=100)
    reasons: List[str]


class TimelineEventType(str, Enum):
    NOW = "now"
    INITIAL_SEND = "initial_send"
    FOLLOW_UP = "follow_up"


class TimelineEvent(CamelModel):
    id: str
    label: str
    timestamp: datetime
    type: TimelineEventType


class SendTimeline(CamelModel):
    events: List[TimelineEvent]
    has_follow_up: bool


class TemplateQualityLabel(str, Enum):
    GOOD = "Good"
    TOO_LONG = "Too Long"
    MISSING_OPT_OUT = "Missing Opt-out"
    LINK_ISSUE = "Link Issue"
    NEEDS_REVIEW = "Needs Review"


class TemplateQualitySeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class TemplateQuality(CamelModel):
    template_key: MessageVariant
    label: TemplateQualityLabel
    severity: TemplateQualitySeverity
    details: List[str]
    suggestion: Optional[str] = None


class RecommendedRange(CamelModel):
    min: int
    max: int
    recommended: int


class BusinessTypeRecommendation(CamelModel):
    business_type: str
    send_delay_hours: RecommendedRange
    follow_up_delay_days: RecommendedRange
    tone_style: List[ToneStyle]
    explanation: str


class BenchmarkCategory(str, Enum):
    FOLLOW_UP = "followUp"
    QUIET_HOURS = "quietHours"
    FREQUENCY_CAP = "frequencyCap"
    CONTACT_INFO = "contactInfo"


class GuidanceBenchmark(CamelModel):
    id: str
    category: BenchmarkCategory
    title: str
    recommendation: str
    current_value: Optional[str] = None
    is_within_range: bool
    suggestion: Optional[str] = None


# Request / response envelopes

class ReviewRequestAutomationRequest(CamelModel):
    campaign: Campaign
    customers: List[Customer] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)


class ReviewRequestAutomationResponse(CamelModel):
    templates: MessageTemplate
    send_queue: List[SendQueueItem]
    metrics: FunnelMetrics
    quality_checks: List[QualityCheck]
    next_actions: List[NextAction]
    validation_errors: List[str]
    campaign_health: CampaignHealth
    send_timeline: SendTimeline
    template_quality: List[TemplateQuality]
    business_type_recommendation: Optional[BusinessTypeRecommendation] = None
    guidance_benchmarks: List[GuidanceBenchmark]


class MessagePreviewRequest(CamelModel):
    campaign: Campaign
    customer_name: str = Field(..., min_length=1)
    variant: MessageVariant = MessageVariant.SMS_STANDARD


class MessagePreview(CamelModel):
    variant: MessageVariant
    text: str
