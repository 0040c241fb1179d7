import os
import time
from typing import Dict, Any, Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from dotenv import load_dotenv

from graph.workflow import build_workflow
from graph.nodes.capture import normalize_scoring_data
from graph.nodes.qualify import generate_prospect_id
from graph.nodes.route import get_preparation_guide
from graph.nodes.score import (
    calculate_lead_score,
    get_lead_priority_label,
    score_band,
    status_from_score,
    suggest_next_action,
    tier_from_priority,
)
from graph.templates import build_report_email
from tools import mailer, store
from tools.mailer import EmailError
from tools.idempotency import Idem
from tools.store import StoreError

# Load environment variables
load_dotenv()

# Configure logging
logger.add("logs/app.log", rotation="1 day", retention="7 days", level="INFO")

app = FastAPI(
    title="Prospect Qualification & Nurture Engine",
    description="Lead scoring, prospect qualification, booking recommendations and nurture sequences",
    version="1.0.0"
)

# Initialize workflow and idempotency
app_graph = build_workflow()
idem = Idem()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def read_payload(req: Request) -> Optional[Dict[str, Any]]:
    try:
        payload = await req.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def delivery_key(kind: str, payload: Optional[Dict[str, Any]]) -> Optional[str]:
    """Same eventId, or same email and timestamp, means a redelivery."""
    if not payload:
        return None
    key = payload.get("eventId") or payload.get("event_id")
    if not key and payload.get("email") and payload.get("timestamp"):
        key = f"{payload['email']}:{payload['timestamp']}"
    return f"{kind}:{key}" if key else None


def is_duplicate(kind: str, payload: Dict[str, Any]) -> bool:
    key = delivery_key(kind, payload)
    if not key:
        return False

    if not idem.check_and_set(key):
        logger.warning(f"Duplicate delivery ignored: {key}")
        return True
    return False


def failed_delivery(kind: str, payload: Optional[Dict[str, Any]], status_code: int, message: str) -> JSONResponse:
    """Error response that also forgets the delivery, so a retry is processed."""
    key = delivery_key(kind, payload)
    if key:
        idem.clear_key(key)
    return error_response(status_code, message)


def duplicate_response() -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={"status": "duplicate_ignored", "message": "Event already processed"}
    )


def run_workflow(event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    initial_state = {
        "event": event,
        "raw": payload,
        "errors": [],
        "notifications": [],
    }
    return app_graph.invoke(initial_state)


@app.post("/api/assessment-results")
async def assessment_results(req: Request):
    """
    Assessment completion: qualify the prospect, send the report, queue the nurture sequence.

    Expected payload:
    {
        "email": "jane@acme.com",
        "name": "Jane",
        "company": "Acme",
        "scores": {"overall": 72, "current_state": 60, "strategy_vision": 80,
                   "team_capabilities": 70, "implementation": 78},
        "industry": "Healthcare",
        "teamSize": "51-200 employees",
        "role": "C-Suite Executive (CTO, COO, etc.)",
        "biggestChallenge": "Team lacks AI skills",
        "timeline": "Next 3 months"
    }
    """
    start_time = time.time()

    payload = None
    try:
        payload = await read_payload(req)
        if payload is None:
            return error_response(400, "Invalid JSON body")

        logger.info(f"Received assessment results: {payload.get('email', 'unknown')}")

        if is_duplicate("assessment", payload):
            return duplicate_response()

        result = run_workflow("assessment", payload)
        if result.get("validation_errors"):
            return failed_delivery("assessment", payload, 400, "Missing required fields")

        normalized = result["normalized"]
        scores = payload["scores"]

        assessment_id = None
        try:
            record = store.save_assessment({
                "email": normalized["email"],
                "name": normalized["name"],
                "company": normalized.get("company"),
                "responses": payload.get("responses"),
                "scores": scores,
                "overall_score": scores.get("overall"),
                "created_at": payload.get("timestamp"),
            })
            assessment_id = record.get("id")
        except Exception as e:
            # The report still goes out without a stored assessment
            logger.error(f"Saving assessment failed: {e}")

        report = build_report_email(scores, normalized["name"], normalized.get("company"))
        try:
            email_id = mailer.send_email(normalized["email"], report["subject"], report["html"])
        except EmailError as e:
            logger.error(f"Report email failed: {e}")
            return failed_delivery("assessment", payload, 500, "Failed to send results email")

        scheduled = 0
        try:
            scheduled = mailer.schedule_sequence(
                normalized["email"], normalized["name"], assessment_id, result.get("nurture_emails", [])
            )
        except Exception as e:
            # Non-fatal: the report e-mail already went out
            logger.error(f"Nurture scheduling failed: {e}")

        processing_time = time.time() - start_time
        logger.info(f"Assessment processed in {processing_time:.2f}s: {result.get('prospect_id', 'unsaved')}")

        return JSONResponse(
            status_code=200,
            content={
                "message": "Assessment completed and results sent",
                "assessmentId": assessment_id,
                "emailId": email_id,
                "nurtureEmailsScheduled": scheduled,
                "scores": scores,
                "prospectId": result.get("prospect_id"),
                "readinessLabel": report["readiness_label"],
            }
        )

    except Exception as e:
        logger.error(f"Assessment processing failed: {e}")
        return failed_delivery("assessment", payload, 500, "Internal server error")


@app.post("/api/lead")
async def ingest_lead(req: Request):
    """
    Form submission: qualify the prospect and recommend a call.

    Expected payload (all optional):
    {
        "email": "pastor@church.org",
        "name": "Sam",
        "company": "Grace Church",
        "role": "Senior Pastor",
        "pageViews": ["/ministry", "/divine-strategy"],
        "companyInfo": {"employees": 40},
        "utmData": {"source": "linkedin"}
    }
    """
    payload = None
    try:
        payload = await read_payload(req)
        if payload is None:
            return error_response(400, "Invalid JSON body")

        logger.info(f"Received lead form: {payload.get('email', 'unknown')}")

        if is_duplicate("lead", payload):
            return duplicate_response()

        result = run_workflow("form", payload)
        recommendation = result.get("recommendation", {})

        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "prospectId": result.get("prospect_id"),
                "profile": result.get("profile"),
                "recommendation": recommendation,
                "trackingUrl": result.get("tracking_url"),
                "preparationGuide": get_preparation_guide(recommendation.get("call_type", "general_discovery")),
            }
        )

    except Exception as e:
        logger.error(f"Lead processing failed: {e}")
        return failed_delivery("lead", payload, 500, "Internal server error")


@app.post("/api/lead-scoring/update")
async def update_lead_score(req: Request):
    """Rescore a prospect from an engagement snapshot: {email, scoringData}."""
    try:
        payload = await read_payload(req)
        if payload is None:
            return error_response(400, "Invalid JSON body")

        prospect_email = (payload.get("email") or "").strip().lower()
        if not prospect_email:
            return error_response(400, "Email is required")

        scoring_data = normalize_scoring_data(payload.get("scoringData") or payload.get("scoring_data"))
        score_result = calculate_lead_score(scoring_data)

        existing = store.get_prospect_by_email(prospect_email)
        previous_score = (existing or {}).get("lead_score") or 0

        # The store keeps the higher score, so tier and status follow the kept one
        kept_score = max(previous_score, score_result["points"])
        band, priority = score_result["score"], score_result["priority"]
        kept_band, kept_priority = score_band(kept_score)[:2]
        if kept_priority > priority:
            band, priority = kept_band, kept_priority

        profile = {
            "email": prospect_email,
            "name": payload.get("name"),
            "lead_score": score_result["points"],
            "tier": tier_from_priority(priority),
            "status": status_from_score(band),
        }
        if not existing:
            profile.update({
                "id": generate_prospect_id(),
                "category": "undetermined",
                "interests": [],
                "source": "lead_scoring",
            })

        stored = store.upsert_prospect(profile)
        store.append_history(
            stored["id"],
            stored["lead_score"] - previous_score,
            stored["lead_score"],
            f"Score update: {', '.join(score_result['tags']) or 'no tags'}",
            "lead_scoring_update",
            {"scoring_data": scoring_data, "points": score_result["points"], "tags": score_result["tags"]},
        )

        logger.info(f"Lead score updated for {prospect_email}: {score_result['points']} ({score_result['score']})")

        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "prospect_id": stored["id"],
                "scoreResult": score_result,
                "priorityLabel": get_lead_priority_label(score_result["priority"]),
                "nextAction": suggest_next_action(scoring_data, score_result),
            }
        )

    except StoreError as e:
        logger.error(f"Lead score update failed: {e}")
        return error_response(500, "Failed to update lead score")
    except Exception as e:
        logger.error(f"Lead score update failed: {e}")
        return error_response(500, "Internal server error")


@app.get("/api/lead-scoring/update")
def get_lead_score(email: Optional[str] = None):
    """Prospect profile with its latest scoring history."""
    if not email:
        return error_response(400, "Email is required")

    try:
        prospect = store.get_prospect_by_email(email.strip().lower())
        if not prospect:
            return error_response(404, "Prospect not found")

        return {"prospect": prospect, "history": store.get_history(prospect["id"], limit=10)}

    except StoreError as e:
        logger.error(f"Lead score lookup failed: {e}")
        return error_response(500, "Failed to load prospect")


@app.post("/api/bookings")
async def record_booking(req: Request):
    """Calendar booking: {prospectId, callType, calendlyUrl, estimatedValue, scheduledFor?}."""
    payload = None
    try:
        payload = await read_payload(req)
        if payload is None:
            return error_response(400, "Invalid JSON body")

        prospect_id = payload.get("prospectId") or payload.get("prospect_id")
        call_type = payload.get("callType") or payload.get("call_type")
        if not prospect_id or not call_type:
            return error_response(400, "prospectId and callType are required")

        try:
            estimated_value = int(payload.get("estimatedValue") or payload.get("estimated_value") or 0)
        except (TypeError, ValueError):
            return error_response(400, "estimatedValue must be a whole number")

        if is_duplicate("booking", payload):
            return duplicate_response()

        if not store.get_prospect(prospect_id):
            return failed_delivery("booking", payload, 404, "Prospect not found")

        booking = store.record_booking(
            prospect_id,
            call_type,
            payload.get("calendlyUrl") or payload.get("calendly_url") or "",
            estimated_value,
            payload.get("scheduledFor") or payload.get("scheduled_for"),
        )

        prospect = store.get_prospect(prospect_id)
        logger.info(f"Booking recorded for {prospect_id}: {call_type}")

        return JSONResponse(
            status_code=200,
            content={"success": True, "booking": booking, "leadScore": prospect.get("lead_score")}
        )

    except StoreError as e:
        logger.error(f"Booking failed: {e}")
        return failed_delivery("booking", payload, 500, "Failed to record booking")
    except Exception as e:
        logger.error(f"Booking failed: {e}")
        return failed_delivery("booking", payload, 500, "Internal server error")


@app.post("/api/lead-magnet")
async def lead_magnet_download(req: Request):
    """Lead magnet download: {email, name?, magnetType}."""
    payload = None
    try:
        payload = await read_payload(req)
        if payload is None:
            return error_response(400, "Invalid JSON body")

        if is_duplicate("lead_magnet", payload):
            return duplicate_response()

        result = run_workflow("lead_magnet", payload)
        if result.get("validation_errors"):
            return failed_delivery("lead_magnet", payload, 400, "Email is required")

        prospect_id = result.get("prospect_id")
        if not prospect_id:
            return failed_delivery("lead_magnet", payload, 500, "Failed to save prospect")

        store.record_lead_magnet_download(prospect_id, result["normalized"]["magnet_type"])
        prospect = store.get_prospect(prospect_id) or {}

        return JSONResponse(
            status_code=200,
            content={"success": True, "prospectId": prospect_id, "leadScore": prospect.get("lead_score")}
        )

    except StoreError as e:
        logger.error(f"Lead magnet download failed: {e}")
        return failed_delivery("lead_magnet", payload, 500, "Failed to record download")
    except Exception as e:
        logger.error(f"Lead magnet download failed: {e}")
        return failed_delivery("lead_magnet", payload, 500, "Internal server error")


@app.get("/api/prospects")
def list_prospects(
    category: Optional[str] = None,
    tier: Optional[str] = None,
    status: Optional[str] = None,
    min_lead_score: Optional[int] = None,
    source: Optional[str] = None,
    limit: int = 100,
):
    """Prospects matching the filters, highest lead score first."""
    try:
        prospects = store.query_prospects(
            category=category,
            tier=tier,
            status=status,
            min_lead_score=min_lead_score,
            source=source,
            limit=limit,
        )
        return {"prospects": prospects, "count": len(prospects)}

    except StoreError as e:
        logger.error(f"Prospect query failed: {e}")
        return error_response(500, "Failed to load prospects")


def is_authorized(req: Request) -> bool:
    """Cron bearer token or the shared webhook secret."""
    cron_secret = os.getenv("CRON_SECRET")
    if cron_secret and req.headers.get("authorization") == f"Bearer {cron_secret}":
        return True

    webhook_secret = os.getenv("WEBHOOK_SHARED_SECRET")
    if webhook_secret and req.headers.get("x-webhook-secret") == webhook_secret:
        return True

    return False


@app.post("/api/nurture/send-scheduled")
def send_scheduled(req: Request):
    """Send nurture e-mails that are due; called by the scheduler."""
    if not is_authorized(req):
        return error_response(401, "Unauthorized")

    try:
        return mailer.send_due_emails(batch_size=50)

    except StoreError as e:
        logger.error(f"Fetching pending emails failed: {e}")
        return error_response(500, "Failed to fetch pending emails")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": "1.0.0",
        "services": {
            "redis": "connected" if idem.r else "disconnected",
            "store": "mock" if store.prospect_store.mock else "supabase",
            "email": "resend" if mailer.email_client.api_key else "mock",
            "workflow": "ready"
        }
    }


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return error_response(500, "Internal server error")


if __name__ == "__main__":
    import uvicorn

    os.makedirs("logs", exist_ok=True)

    logger.info("Starting Prospect Qualification & Nurture Engine")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info"
    )
