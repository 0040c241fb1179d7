import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from graph.rules import band, category_band, first_match
from graph.state import LeadState, ProspectProfile, SignalScore
from graph.nodes.score import status_from_score
from loguru import logger

ASSESSMENT_TYPES = {
    "enterprise": {"score": 25, "category": "enterprise_ai", "interests": ["ai_implementation", "enterprise_transformation"]},
    "personal": {"score": 15, "category": "ministry_coaching", "interests": ["divine_strategy", "personal_development"]},
}

# (response field, points) - each counts when the answer is 3 or more
AI_READINESS_FACTORS = [
    ("ai_familiarity", 10),
    ("data_readiness", 8),
    ("process_documentation", 6),
    ("change_capability", 8),
    ("budget_authority", 12),
]
AI_READINESS_CAP = 30

# Bucket order matters: on equal weight the later bucket is suggested
PAGE_BUCKETS = [
    {"category": "enterprise_ai", "paths": ["/enterprise", "/catalyst", "/ai-assessment"],
     "weight": 3, "points": 5, "interests": ["ai_implementation"]},
    {"category": "ministry_coaching", "paths": ["/ministry", "/divine-strategy", "/lorenzo"],
     "weight": 3, "points": 4, "interests": ["divine_strategy", "spiritual_intelligence"]},
    {"category": "investment_fund", "paths": ["/investment", "/perpetual-engine"],
     "weight": 4, "points": 8, "interests": ["impact_investing", "kingdom_economics"]},
    {"category": "speaking_engagement", "paths": ["/speaking", "/connect"],
     "weight": 2, "points": 3, "interests": ["speaking_engagement"]},
    {"category": "platform_user", "paths": ["/chat", "/assessment", "/documents"],
     "weight": 1, "points": 2, "interests": ["platform_usage"]},
]
PAGE_ENGAGEMENT_CAP = 25

EXECUTIVE_TITLES = ["ceo", "cto", "president", "founder", "executive"]
MINISTRY_TITLES = ["pastor", "minister", "missionary", "chaplain"]

COMPANY_RULES = {
    "min_employees": 100,
    "employees_points": 10,
    "min_revenue": 10_000_000,
    "revenue_points": 15,
}

TIER_RULES = [
    (category_band("investment_fund", 20), "tier_1"),
    (category_band("enterprise_ai", 35), "tier_1"),
    (category_band("enterprise_ai", 25), "tier_2"),
    (category_band("ministry_coaching", 30), "tier_2"),
    (category_band("ministry_coaching", 20), "tier_3"),
    (category_band("strategic_consulting", 25), "tier_2"),
    (band(40), "tier_1"),
    (band(25), "tier_2"),
    (band(15), "tier_3"),
]
DEFAULT_TIER = "tier_4"


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def generate_prospect_id() -> str:
    return f"prospect_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def calculate_ai_readiness_score(responses: Dict[str, Any]) -> int:
    """
    Extra points for enterprise AI readiness answers.

    The current assessment form does not collect these fields, so in practice
    this returns 0 until the form is extended.
    """
    points = sum(weight for field, weight in AI_READINESS_FACTORS if _as_number(responses.get(field)) >= 3)
    return min(points, AI_READINESS_CAP)


def score_assessment_signal(responses: Dict[str, Any]) -> Optional[SignalScore]:
    rule = ASSESSMENT_TYPES.get(responses.get("type"))
    if not rule:
        return None

    points = rule["score"]
    if responses.get("type") == "enterprise":
        points += calculate_ai_readiness_score(responses)

    return {
        "kind": "assessment",
        "score": points,
        "category": rule["category"],
        "interests": list(rule["interests"]),
    }


def score_page_views(page_views: List[str]) -> SignalScore:
    """Match visited URLs against interest buckets and suggest a category."""
    points = 0
    interests: List[str] = []
    weights = {bucket["category"]: 0 for bucket in PAGE_BUCKETS}

    for page in page_views:
        for bucket in PAGE_BUCKETS:
            if any(path in page for path in bucket["paths"]):
                weights[bucket["category"]] += bucket["weight"]
                interests.extend(bucket["interests"])
                points += bucket["points"]

    suggested = None
    for bucket in PAGE_BUCKETS:
        category = bucket["category"]
        if weights[category] > 0 and (suggested is None or weights[category] >= weights[suggested]):
            suggested = category

    return {
        "kind": "page_views",
        "score": min(points, PAGE_ENGAGEMENT_CAP),
        "category": suggested,
        "interests": _dedupe(interests),
    }


def score_form_signal(form_data: Dict[str, Any]) -> SignalScore:
    role = (form_data.get("role") or "").lower()
    points = 0
    category = None

    if any(title in role for title in EXECUTIVE_TITLES):
        points += 15
    if any(title in role for title in MINISTRY_TITLES):
        points += 10
        category = "ministry_coaching"

    return {"kind": "form", "score": points, "category": category, "interests": []}


def score_company_signal(company_info: Dict[str, Any]) -> SignalScore:
    points = 0
    if _as_number(company_info.get("employees")) > COMPANY_RULES["min_employees"]:
        points += COMPANY_RULES["employees_points"]
    if _as_number(company_info.get("revenue")) > COMPANY_RULES["min_revenue"]:
        points += COMPANY_RULES["revenue_points"]

    return {"kind": "company", "score": points, "category": None, "interests": []}


def collect_signals(data: Dict[str, Any]) -> List[SignalScore]:
    """Score every evidence source present in ``data``, in fold order."""
    signals: List[SignalScore] = []

    if data.get("assessment_responses"):
        assessment = score_assessment_signal(data["assessment_responses"])
        if assessment:
            signals.append(assessment)

    if data.get("page_views"):
        signals.append(score_page_views(data["page_views"]))

    if data.get("form_data"):
        signals.append(score_form_signal(data["form_data"]))

    if data.get("company_info"):
        signals.append(score_company_signal(data["company_info"]))

    return signals


def assign_tier(lead_score: int, category: str) -> str:
    """Category thresholds first, then generic score bands; first match wins."""
    return first_match(TIER_RULES, {"lead_score": lead_score, "category": category}, DEFAULT_TIER)


def qualify_prospect(data: Dict[str, Any]) -> ProspectProfile:
    """
    Build a prospect profile from whatever evidence is available.

    Args:
        data: Optional keys ``assessment_responses``, ``page_views``,
            ``downloads``, ``form_data``, ``company_info`` and ``utm_data``.

    Returns:
        Profile with lead score, category, tier and interests populated.
    """
    form_data = data.get("form_data") or {}
    utm_data = data.get("utm_data") or {}
    now = datetime.now(timezone.utc).isoformat()

    lead_score = 0
    category = None
    interests: List[str] = []

    for signal in collect_signals(data):
        lead_score += signal["score"]
        if category is None and signal.get("category"):
            category = signal["category"]
        interests.extend(signal.get("interests", []))
        logger.debug(f"Signal {signal['kind']}: +{signal['score']} category={signal.get('category')}")

    category = category or "undetermined"

    return {
        "id": generate_prospect_id(),
        "email": form_data.get("email"),
        "name": form_data.get("name"),
        "company": form_data.get("company"),
        "role": form_data.get("role"),
        "lead_score": lead_score,
        "category": category,
        "tier": assign_tier(lead_score, category),
        "interests": _dedupe(interests),
        "assessment_data": data.get("assessment_responses"),
        "source": utm_data.get("source") or "organic",
        "utm_data": utm_data or None,
        "status": "new",
        "created_at": now,
        "last_engagement_at": now,
    }


def qualify(state: LeadState) -> LeadState:
    """Classify the prospect and fold in the lead score when one was computed."""
    norm = state.get("normalized", {})
    logger.info(f"Starting qualification for prospect: {norm.get('email', 'unknown')}")

    profile = qualify_prospect(norm.get("signals", {}))

    score_result = state.get("score_result")
    if score_result:
        profile["lead_score"] = max(profile["lead_score"], score_result["points"])
        profile["tier"] = assign_tier(profile["lead_score"], profile["category"])
        profile["status"] = status_from_score(score_result["score"])

    state["profile"] = profile
    logger.info(
        f"Qualified {profile['id']}: score={profile['lead_score']} "
        f"category={profile['category']} tier={profile['tier']}"
    )
    return state
