from graph.state import LeadState
from graph.nodes.qualify import assign_tier
from tools import store
from loguru import logger


def persist(state: LeadState) -> LeadState:
    """
    Upsert the prospect profile and log the score change to history.

    Persistence is best-effort: a failed write is logged on the state and the
    workflow carries on with the unsaved profile.
    """
    profile = state.get("profile")
    if not profile:
        logger.warning("No prospect profile to persist")
        return state

    logger.info(f"Starting persistence for prospect: {profile.get('email') or profile.get('id')}")

    try:
        existing = store.get_prospect_by_email(profile["email"]) if profile.get("email") else None
        previous_score = (existing or {}).get("lead_score") or 0

        # Stored scores only ever grow; keep tier consistent with the kept score
        if previous_score > profile["lead_score"]:
            profile["lead_score"] = previous_score
            profile["tier"] = assign_tier(previous_score, profile["category"])

        stored = store.upsert_prospect(profile)
        profile["id"] = stored["id"]
        state["prospect_id"] = stored["id"]

        event = state.get("event") or "form"
        score_result = state.get("score_result") or {}
        store.append_history(
            stored["id"],
            profile["lead_score"] - previous_score,
            profile["lead_score"],
            f"{event}_qualified",
            event,
            {
                "category": profile["category"],
                "tier": profile["tier"],
                "points": score_result.get("points"),
                "tags": score_result.get("tags", []),
            },
        )
        logger.info(f"Persisted prospect {stored['id']} with score {profile['lead_score']}")

    except Exception as e:
        error_msg = f"persist_failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["prospect_id"] = None

    return state
