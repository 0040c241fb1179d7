from typing import Dict, Any, Optional
from graph.state import LeadState, LeadScoringData, NurtureSequenceData, SCORE_DIMENSIONS
from loguru import logger

REQUIRED_FIELDS = {
    "assessment": ["email", "name", "scores"],
    "form": [],
    "lead_magnet": ["email"],
}

# snake_case field -> camelCase alias accepted from web clients
SCORING_FIELDS = {
    "assessment_completed": "assessmentCompleted",
    "overall_score": "overallScore",
    "score_breakdown": "scoreBreakdown",
    "email_opened": "emailOpened",
    "email_clicked": "emailClicked",
    "calendar_booked": "calendarBooked",
    "chat_used": "chatUsed",
    "days_since_signup": "daysSinceSignup",
    "days_since_assessment": "daysSinceAssessment",
}

BREAKDOWN_ALIASES = {
    "current_state": "currentState",
    "strategy_vision": "strategyVision",
    "team_capabilities": "teamCapabilities",
    "implementation": "implementation",
}


def _pick(raw: Dict[str, Any], snake: str, camel: Optional[str] = None) -> Any:
    value = raw.get(snake)
    if value is None and camel:
        value = raw.get(camel)
    return value


def _number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_breakdown(scores: Optional[Dict[str, Any]]) -> Optional[Dict[str, float]]:
    """Pull the four dimension scores out of a scores object, either casing."""
    if not scores:
        return None
    breakdown = {}
    for key, alias in BREAKDOWN_ALIASES.items():
        value = _number(_pick(scores, key, alias))
        if value is not None:
            breakdown[key] = value
    return breakdown or None


def normalize_scoring_data(raw: Optional[Dict[str, Any]]) -> LeadScoringData:
    """Accept a scoring snapshot in snake_case or camelCase."""
    raw = raw or {}
    data: LeadScoringData = {}
    for field, alias in SCORING_FIELDS.items():
        value = _pick(raw, field, alias)
        if value is None:
            continue
        if field == "score_breakdown":
            value = normalize_breakdown(value)
        elif field == "overall_score":
            value = _number(value)
        elif field.startswith("days_since"):
            value = int(_number(value) or 0)
        else:
            value = bool(value)
        if value is not None:
            data[field] = value
    return data


def _identity(raw: Dict[str, Any]) -> Dict[str, Any]:
    email = (_pick(raw, "email") or "").strip().lower()
    return {
        "email": email or None,
        "name": (_pick(raw, "name") or "").strip() or None,
        "company": _pick(raw, "company") or None,
        "role": _pick(raw, "role") or None,
    }


def _signals(raw: Dict[str, Any], identity: Dict[str, Any]) -> Dict[str, Any]:
    """Evidence bag for the classifier; keys are only present when supplied."""
    signals = {
        "assessment_responses": _pick(raw, "assessment_responses", "assessmentResponses"),
        "page_views": _pick(raw, "page_views", "pageViews"),
        "downloads": _pick(raw, "downloads"),
        "company_info": _pick(raw, "company_info", "companyInfo"),
        "utm_data": _pick(raw, "utm_data", "utmData"),
    }
    signals = {key: value for key, value in signals.items() if value}
    form_data = {key: value for key, value in identity.items() if value}
    if form_data:
        signals["form_data"] = form_data
    return signals


def _capture_assessment(state: LeadState, raw: Dict[str, Any], normalized: Dict[str, Any]) -> None:
    scores = raw.get("scores") or {}
    overall = _number(scores.get("overall"))
    breakdown = normalize_breakdown(scores) or {}

    # The AI readiness quiz is the enterprise assessment
    responses = dict(_pick(raw, "responses") or {})
    responses.setdefault("type", "enterprise")
    normalized["signals"]["assessment_responses"] = responses

    normalized.update({
        "industry": _pick(raw, "industry"),
        "team_size": _pick(raw, "team_size", "teamSize"),
        "biggest_challenge": _pick(raw, "biggest_challenge", "biggestChallenge"),
        "timeline": _pick(raw, "timeline"),
        "scores": scores,
    })

    state["scoring_data"] = {
        "assessment_completed": True,
        "overall_score": overall,
        "score_breakdown": breakdown or None,
        "days_since_assessment": 0,
    }

    nurture_data: NurtureSequenceData = {
        "email": normalized["email"],
        "name": normalized["name"],
        "industry": normalized["industry"] or "Other",
        "team_size": normalized["team_size"] or "",
        "role": normalized["role"] or "",
        "biggest_challenge": normalized["biggest_challenge"] or "",
        "timeline": normalized["timeline"] or "",
        "overall_score": overall or 0,
        "scores": {key: breakdown.get(key, 0) for key in SCORE_DIMENSIONS},
    }
    state["nurture_data"] = nurture_data


def capture(state: LeadState) -> LeadState:
    """Normalize and validate an incoming prospect event."""
    raw = state.get("raw", {})
    event = state.get("event") or "form"
    logger.info(f"Starting capture for {event} event: {raw.get('email', 'unknown')}")

    identity = _identity(raw)
    normalized = {**identity, "signals": _signals(raw, identity)}

    missing_fields = [field for field in REQUIRED_FIELDS.get(event, []) if not (normalized.get(field) or raw.get(field))]
    if missing_fields:
        state["validation_errors"] = [f"Missing required fields: {missing_fields}"]
        state["normalized"] = normalized
        logger.warning(f"Rejected {event} event: missing {missing_fields}")
        return state

    state["validation_errors"] = []

    if event == "assessment":
        _capture_assessment(state, raw, normalized)
    elif event == "lead_magnet":
        magnet_type = _pick(raw, "magnet_type", "magnetType") or "unknown"
        normalized["magnet_type"] = magnet_type
        normalized["signals"].setdefault("downloads", [magnet_type])
    elif _pick(raw, "scoring_data", "scoringData"):
        state["scoring_data"] = normalize_scoring_data(_pick(raw, "scoring_data", "scoringData"))

    state["normalized"] = normalized
    logger.info(f"Capture completed for {normalized.get('email') or 'anonymous prospect'}")
    return state
