from typing import Dict, List
from graph.state import LeadState, LeadScoringData, LeadScoreResult
from loguru import logger

SCORE_RULES = {
    "assessment_completed": 30,
    "high_score_threshold": 70,
    "high_score_points": 20,
    "mid_score_threshold": 50,
    "mid_score_points": 10,
    "email_opened": 5,
    "email_clicked": 15,
    "calendar_booked": 35,
    "chat_used": 15,
    "stale_signup_days": 30,
    "stale_signup_penalty": 10,
    "stale_assessment_days": 14,
    "stale_assessment_penalty": 5,
    "imbalance_spread": 30,
    "imbalance_bonus": 10,
}

# (min points, score, priority, follow-up days, action), checked top down
SCORE_BANDS = [
    (70, "hot", 5, 1, "URGENT: Personal outreach within 24 hours. Call or personalized video message."),
    (40, "warm", 3, 3, "Send personalized follow-up email with specific value proposition."),
    (0, "cold", 1, 7, "Add to nurture sequence. Focus on education and value."),
]

BOOKED_ACTION = "BOOKED: Prepare personalized call agenda. Research their business."

PRIORITY_LABELS = {
    5: "🔥 Urgent",
    4: "⚡ High",
    3: "📈 Medium",
    2: "📊 Low",
    1: "❄️ Cold",
}

STATUS_BY_SCORE = {
    "hot": "opportunity",
    "warm": "qualified",
    "cold": "nurturing",
}


def score_band(points: float):
    """The (score, priority, follow-up days, action) band a point total falls into."""
    for min_points, score, priority, follow_up, action in SCORE_BANDS:
        if points >= min_points:
            return score, priority, follow_up, action
    return SCORE_BANDS[-1][1:]


def calculate_lead_score(data: LeadScoringData) -> LeadScoreResult:
    """
    Calculate an additive lead score from assessment and engagement facts.

    Points are clamped to 0-100 and mapped to hot/warm/cold. A booked calendar
    call always yields hot/priority 5/follow-up today, whatever the points say.
    """
    points = 0
    tags: List[str] = []

    def tag(name: str) -> None:
        if name not in tags:
            tags.append(name)

    assessment_completed = bool(data.get("assessment_completed"))
    calendar_booked = bool(data.get("calendar_booked"))

    if assessment_completed:
        points += SCORE_RULES["assessment_completed"]
        tag("assessment_complete")

    overall = data.get("overall_score")
    if overall is not None:
        if overall >= SCORE_RULES["high_score_threshold"]:
            points += SCORE_RULES["high_score_points"]
            tag("high_score")
            tag("ready_to_buy")
        elif overall >= SCORE_RULES["mid_score_threshold"]:
            points += SCORE_RULES["mid_score_points"]
        else:
            tag("needs_nurture")

    # Engagement
    if data.get("email_opened"):
        points += SCORE_RULES["email_opened"]
    if data.get("email_clicked"):
        points += SCORE_RULES["email_clicked"]
    if calendar_booked:
        points += SCORE_RULES["calendar_booked"]
        tag("ready_to_buy")
    if data.get("chat_used"):
        points += SCORE_RULES["chat_used"]

    # Timing penalties
    days_since_signup = data.get("days_since_signup") or 0
    if days_since_signup > SCORE_RULES["stale_signup_days"] and not assessment_completed:
        points -= SCORE_RULES["stale_signup_penalty"]
        tag("unengaged")

    days_since_assessment = data.get("days_since_assessment") or 0
    if days_since_assessment > SCORE_RULES["stale_assessment_days"] and not calendar_booked:
        points -= SCORE_RULES["stale_assessment_penalty"]

    # A wide spread between dimensions means there are gaps worth selling against
    breakdown = data.get("score_breakdown")
    if breakdown:
        values = list(breakdown.values())
        if max(values) - min(values) > SCORE_RULES["imbalance_spread"]:
            points += SCORE_RULES["imbalance_bonus"]

    points = int(max(0, min(100, points)))

    score, priority, follow_up, action = score_band(points)

    if calendar_booked:
        score, priority, follow_up, action = "hot", 5, 0, BOOKED_ACTION

    return {
        "score": score,
        "points": points,
        "tags": tags,
        "priority": priority,
        "recommended_action": action,
        "next_follow_up_days": follow_up,
    }


def suggest_next_action(data: LeadScoringData, result: LeadScoreResult) -> Dict[str, str]:
    """Pick the next outreach step and how urgently to take it."""
    if data.get("calendar_booked"):
        return {
            "action": "Prepare for strategy call - research their business and create personalized agenda",
            "template": "personal_outreach",
            "urgency": "immediate",
        }

    if data.get("assessment_completed"):
        days = data.get("days_since_assessment")
        if days is not None and days <= 1:
            return {
                "action": "Send personal video message reviewing their results",
                "template": "personal_outreach",
                "urgency": "today",
            }
        return {
            "action": "Send calendar booking reminder with case study",
            "template": "follow_up",
            "urgency": "this_week",
        }

    if (data.get("days_since_signup") or 0) > 14:
        return {
            "action": "Send re-engagement campaign with social proof",
            "template": "reengagement",
            "urgency": "this_week",
        }

    return {
        "action": "Send assessment reminder with value proposition",
        "template": "nurture",
        "urgency": "this_week",
    }


def get_lead_priority_label(priority: int) -> str:
    return PRIORITY_LABELS.get(priority, "📊 Unknown")


def tier_from_priority(priority: int) -> str:
    """Map a 1-5 scoring priority onto the tier_1..tier_4 buckets."""
    if priority >= 5:
        return "tier_1"
    if priority >= 4:
        return "tier_2"
    if priority >= 3:
        return "tier_3"
    return "tier_4"


def status_from_score(score: str) -> str:
    return STATUS_BY_SCORE.get(score, "new")


def score(state: LeadState) -> LeadState:
    """Score the prospect from the scoring snapshot captured on the state."""
    logger.info(f"Starting scoring for prospect: {state.get('normalized', {}).get('email', 'unknown')}")

    if "scoring_data" not in state:
        logger.info("No scoring snapshot on this event, skipping lead score")
        return state

    result = calculate_lead_score(state["scoring_data"])
    state["score_result"] = result

    logger.info(f"Lead score: {result['points']} ({result['score']}, priority {result['priority']}) tags={result['tags']}")
    return state
