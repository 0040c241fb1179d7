from graph.state import LeadState
from tools import llm, slack
from loguru import logger


def needs_alert(state: LeadState) -> bool:
    """High booking priority or a hot lead score gets the sales team's attention."""
    recommendation = state.get("recommendation") or {}
    score_result = state.get("score_result") or {}
    return recommendation.get("priority") == "high" or score_result.get("score") == "hot"


def notify(state: LeadState) -> LeadState:
    """Alert Slack about high-priority prospects; failures never fail the request."""
    if not needs_alert(state):
        return state

    profile = state.get("profile", {})
    logger.info(f"Starting high-priority alert for prospect: {profile.get('id')}")

    try:
        brief = llm.write_prospect_brief(state)
        message_ts = slack.send_prospect_alert(state, brief)
        if message_ts:
            state.setdefault("notifications", []).append(f"high_priority_slack:{message_ts}")

    except Exception as e:
        error_msg = f"slack_notification_failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)

    return state
