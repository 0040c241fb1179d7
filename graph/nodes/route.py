import os
from typing import Dict, Any
from urllib.parse import urlencode

from graph.rules import first_match
from graph.state import LeadState, ProspectProfile, BookingRecommendation
from loguru import logger

CALENDLY_BASE_URL = os.getenv("CALENDLY_BASE_URL", "https://calendly.com/lorenzo-theglobalenterprise")

CALL_PAGES = {
    "executive_strategy": "executive-strategy-session",
    "divine_strategy": "divine-strategy-session",
    "ai_implementation": "ai-implementation-assessment",
    "general_discovery": "discovery-call",
}

PREPARATION_GUIDES = {
    "executive_strategy": {
        "title": "Executive Strategy Session Preparation",
        "content": [
            "Review your organization's strategic priorities for the next 12-24 months",
            "Identify 2-3 key challenges where divine strategy could provide breakthrough",
            "Consider your role in advancing kingdom purposes through your position",
            "Prepare questions about integrating spiritual intelligence with business strategy",
        ],
        "questions": [
            "What are your top 3 strategic priorities this year?",
            "Where do you feel most called to create kingdom impact?",
            "What challenges are you facing that traditional consulting hasn't solved?",
            "How do you currently integrate faith and business strategy?",
        ],
    },
    "divine_strategy": {
        "title": "Divine Strategy Session Preparation",
        "content": [
            "Reflect on your current life/ministry vision and areas needing breakthrough",
            "Consider where you feel spiritually called but lack clear implementation strategy",
            "Think about your leadership context and transformation opportunities",
            "Prepare to discuss both spiritual insights and practical implementation needs",
        ],
        "questions": [
            "What is your current divine assignment or calling?",
            "Where do you feel stuck between spiritual vision and practical implementation?",
            "What leadership challenges are you facing in your current context?",
            "How do you want to grow in prophetic and strategic intelligence?",
        ],
    },
    "ai_implementation": {
        "title": "AI Implementation Assessment Preparation",
        "content": [
            "Review your organization's current technology infrastructure and data systems",
            "Identify specific business processes that could benefit from AI enhancement",
            "Consider your team's current AI knowledge and change management capabilities",
            "Prepare questions about ROI expectations and implementation timelines",
        ],
        "questions": [
            "What specific business processes do you want to enhance with AI?",
            "What is your current data infrastructure and integration capabilities?",
            "How does your team currently handle technology adoption and change?",
            "What are your budget parameters and expected ROI timeline?",
        ],
    },
    "general_discovery": {
        "title": "Discovery Call Preparation",
        "content": [
            "Consider your primary goals and challenges in your current context",
            "Think about areas where you need strategic breakthrough or divine guidance",
            "Reflect on your leadership role and transformation opportunities",
            "Prepare specific questions about how Lorenzo's approach might help your situation",
        ],
        "questions": [
            "What brings you to seek strategic counsel at this time?",
            "What are your most pressing challenges or opportunities?",
            "How do you typically approach major decisions or strategic planning?",
            "What outcomes would make this conversation valuable for you?",
        ],
    },
}


def _recommend(call_type: str, priority: str, estimated_value: int) -> BookingRecommendation:
    return {
        "call_type": call_type,
        "calendly_url": f"{CALENDLY_BASE_URL}/{CALL_PAGES[call_type]}",
        "preparation_guide": f"{call_type.replace('_', '-')}-prep",
        "priority": priority,
        "estimated_value": estimated_value,
    }


def _executive(profile: ProspectProfile) -> BookingRecommendation:
    return _recommend("executive_strategy", "high", 100_000)


def _divine(profile: ProspectProfile) -> BookingRecommendation:
    high = profile.get("tier") == "tier_2"
    return _recommend("divine_strategy", "high" if high else "medium", 25_000 if high else 5_000)


def _ai_implementation(profile: ProspectProfile) -> BookingRecommendation:
    high = profile.get("tier") == "tier_1"
    return _recommend("ai_implementation", "high" if high else "medium", 75_000 if high else 25_000)


BOOKING_RULES = [
    (lambda p: p.get("category") == "investment_fund"
        or (p.get("tier") == "tier_1" and p.get("lead_score", 0) >= 40), _executive),
    (lambda p: p.get("category") == "ministry_coaching"
        or "divine_strategy" in (p.get("interests") or []), _divine),
    (lambda p: p.get("category") == "enterprise_ai" and p.get("lead_score", 0) >= 25, _ai_implementation),
]


def get_booking_recommendation(profile: ProspectProfile) -> BookingRecommendation:
    """Choose call type, scheduling link and deal value; first matching rule wins."""
    build = first_match(BOOKING_RULES, profile)
    if build is None:
        return _recommend("general_discovery", "standard", 0)
    return build(profile)


def generate_tracking_url(base_url: str, profile: ProspectProfile, source: str = "qualification_system") -> str:
    """Append attribution parameters to a scheduling link."""
    params = {
        "utm_source": source,
        "utm_medium": "qualification",
        "utm_campaign": profile.get("category", "undetermined"),
        "utm_content": profile.get("tier", "tier_4"),
        "lead_score": str(profile.get("lead_score", 0)),
        "prospect_id": profile.get("id", ""),
    }
    return f"{base_url}?{urlencode(params)}"


def get_preparation_guide(call_type: str) -> Dict[str, Any]:
    return PREPARATION_GUIDES.get(call_type, PREPARATION_GUIDES["general_discovery"])


def route(state: LeadState) -> LeadState:
    """Attach a booking recommendation and tracked scheduling link to the prospect."""
    profile = state.get("profile")
    if not profile:
        logger.warning("No prospect profile to route")
        return state

    logger.info(f"Starting booking recommendation for prospect: {profile.get('id')}")

    recommendation = get_booking_recommendation(profile)
    state["recommendation"] = recommendation
    state["tracking_url"] = generate_tracking_url(recommendation["calendly_url"], profile)

    logger.info(
        f"Recommended {recommendation['call_type']} ({recommendation['priority']}, "
        f"${recommendation['estimated_value']:,}) for {profile.get('id')}"
    )
    return state
