"""
Business-type timing recommendations and guidance benchmarks.

Both are static rule tables. Business types are matched by case-insensitive
substring against free text, first profile wins, so keyword order matters
(e.g. "home" is checked before "health").
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from reviewpilot.schemas.review_requests import (
    BenchmarkCategory,
    BusinessTypeRecommendation,
    Campaign,
    GuidanceBenchmark,
    RecommendedRange,
    ToneStyle,
)
from reviewpilot.services.quiet_hours import parse_hhmm


@dataclass(frozen=True)
class BusinessTypeProfile:
    name: str
    keywords: Tuple[str, ...]
    send_delay_hours: Tuple[int, int, int]  # (min, max, recommended)
    follow_up_delay_days: Tuple[int, int, int]
    tones: Tuple[ToneStyle, ...]
    explanation: str


BUSINESS_TYPE_PROFILES: Tuple[BusinessTypeProfile, ...] = (
    BusinessTypeProfile(
        name="restaurant",
        keywords=("restaurant", "food", "cafe", "dining", "bakery", "catering"),
        send_delay_hours=(2, 6, 4),
        follow_up_delay_days=(2, 4, 2),
        tones=(ToneStyle.FRIENDLY,),
        explanation=(
            "Restaurants benefit from quick follow-up (2-4 hours) while the experience is fresh. "
            "Friendly tone matches the hospitality industry."
        ),
    ),
    BusinessTypeProfile(
        name="home_services",
        keywords=("home", "plumbing", "electrical", "hvac", "roofing", "contractor", "handyman", "landscaping"),
        send_delay_hours=(12, 24, 18),
        follow_up_delay_days=(3, 5, 3),
        tones=(ToneStyle.PROFESSIONAL,),
        explanation=(
            "Home services work is often completed over time. A 12-24 hour delay allows customers "
            "to fully experience the service. Professional tone builds trust."
        ),
    ),
    BusinessTypeProfile(
        name="beauty_wellness",
        keywords=("beauty", "salon", "spa", "wellness", "massage", "nail", "hair", "facial"),
        send_delay_hours=(6, 12, 8),
        follow_up_delay_days=(3, 5, 3),
        tones=(ToneStyle.FRIENDLY, ToneStyle.LUXURY),
        explanation=(
            "Beauty and wellness services benefit from timely follow-up (6-12 hours) while the "
            "experience is memorable. Friendly or luxury tone matches the personal care industry."
        ),
    ),
    BusinessTypeProfile(
        name="auto_trades",
        keywords=("auto", "car", "vehicle", "mechanic", "tire", "repair", "trades", "construction"),
        send_delay_hours=(12, 24, 18),
        follow_up_delay_days=(4, 7, 4),
        tones=(ToneStyle.PROFESSIONAL, ToneStyle.BOLD),
        explanation=(
            "Auto and trade services often involve longer projects. A 12-24 hour delay gives customers "
            "time to test the work. Professional or bold tone conveys expertise."
        ),
    ),
    BusinessTypeProfile(
        name="medical",
        keywords=("medical", "health", "dental", "doctor", "clinic", "therapy"),
        send_delay_hours=(24, 48, 36),
        follow_up_delay_days=(5, 7, 5),
        tones=(ToneStyle.PROFESSIONAL,),
        explanation=(
            "Medical services require more time for patients to assess outcomes. A 24-48 hour delay "
            "is respectful. Professional tone is essential for healthcare."
        ),
    ),
    BusinessTypeProfile(
        name="retail",
        keywords=("retail", "store", "shop", "boutique", "merchandise"),
        send_delay_hours=(4, 12, 6),
        follow_up_delay_days=(2, 4, 3),
        tones=(ToneStyle.FRIENDLY, ToneStyle.PROFESSIONAL),
        explanation=(
            "Retail purchases benefit from quick follow-up (4-12 hours) while the purchase is fresh. "
            "Friendly or professional tone works well."
        ),
    ),
)

# Benchmark targets
FOLLOW_UP_DAYS_RANGE = (2, 4)
QUIET_HOURS_START_RANGE = (9, 10)
QUIET_HOURS_END_RANGE = (18, 19)
FREQUENCY_CAP_DAYS_RANGE = (30, 90)


def match_business_type(business_type: str) -> Optional[BusinessTypeProfile]:
    normalized = business_type.lower().strip()
    for profile in BUSINESS_TYPE_PROFILES:
        if any(keyword in normalized for keyword in profile.keywords):
            return profile
    return None


def _range(values: Tuple[int, int, int]) -> RecommendedRange:
    low, high, recommended = values
    return RecommendedRange(min=low, max=high, recommended=recommended)


def get_business_type_recommendation(business_type: str) -> Optional[BusinessTypeRecommendation]:
    """Suggested timing and tone for a free-text business type, or None if unrecognised."""
    profile = match_business_type(business_type)
    if profile is None:
        return None
    return BusinessTypeRecommendation(
        business_type=business_type,
        send_delay_hours=_range(profile.send_delay_hours),
        follow_up_delay_days=_range(profile.follow_up_delay_days),
        tone_style=list(profile.tones),
        explanation=profile.explanation,
    )


def _within(value: int, bounds: Tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def calculate_guidance_benchmarks(campaign: Campaign) -> List[GuidanceBenchmark]:
    benchmarks: List[GuidanceBenchmark] = []
    rules = campaign.rules

    if rules.follow_up_enabled:
        in_range = _within(rules.follow_up_delay_days, FOLLOW_UP_DAYS_RANGE)
        benchmarks.append(GuidanceBenchmark(
            id="follow-up-timing",
            category=BenchmarkCategory.FOLLOW_UP,
            title="Follow-Up Timing",
            recommendation="A soft follow-up 2–4 days later is a common best practice.",
            current_value=f"{rules.follow_up_delay_days} days",
            is_within_range=in_range,
            suggestion=(
                None if in_range
                else f"Consider adjusting to 2–4 days (currently {rules.follow_up_delay_days} days)"
            ),
        ))

    start_hour, _ = parse_hhmm(rules.quiet_hours.start)
    end_hour, _ = parse_hhmm(rules.quiet_hours.end)
    quiet_hours_ok = _within(start_hour, QUIET_HOURS_START_RANGE) and _within(end_hour, QUIET_HOURS_END_RANGE)
    benchmarks.append(GuidanceBenchmark(
        id="quiet-hours",
        category=BenchmarkCategory.QUIET_HOURS,
        title="Quiet Hours",
        recommendation="9am–7pm tends to reduce complaint risk.",
        current_value=f"{rules.quiet_hours.start}–{rules.quiet_hours.end}",
        is_within_range=quiet_hours_ok,
        suggestion=None if quiet_hours_ok else "Consider setting quiet hours to 9am–7pm",
    ))

    cap_ok = _within(rules.frequency_cap_days, FREQUENCY_CAP_DAYS_RANGE)
    benchmarks.append(GuidanceBenchmark(
        id="frequency-cap",
        category=BenchmarkCategory.FREQUENCY_CAP,
        title="Frequency Cap",
        recommendation="30–90 days helps prevent over-messaging.",
        current_value=f"{rules.frequency_cap_days} days",
        is_within_range=cap_ok,
        suggestion=(
            None if cap_ok
            else f"Consider setting frequency cap to 30–90 days (currently {rules.frequency_cap_days} days)"
        ),
    ))

    return benchmarks
