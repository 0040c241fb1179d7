import httpx
import os
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from loguru import logger

PROSPECTS = "prospect_profiles"
HISTORY = "lead_scoring_history"
ASSESSMENTS = "ai_assessments"
BOOKINGS = "booking_events"
DOWNLOADS = "lead_magnet_downloads"
EMAIL_QUEUE = "scheduled_emails"

# Columns an update may change; identity, attribution and created_at are write-once
UPDATABLE_FIELDS = ["name", "company", "role", "lead_score", "category", "tier", "interests", "assessment_data", "status"]


class StoreError(RuntimeError):
    """Raised when the database rejects or cannot be reached for a request."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProspectStore:
    """Persistence adapter for prospect profiles, scoring history and the nurture queue."""

    def __init__(self):
        self.url = (os.getenv("SUPABASE_URL") or "").rstrip("/")
        self.api_key = os.getenv("SUPABASE_SERVICE_KEY")
        self.mock = not (self.url and self.api_key)
        self._tables: Dict[str, List[Dict[str, Any]]] = {}

        if self.mock:
            logger.warning("No Supabase credentials provided, using in-memory store")

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for PostgREST requests."""
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _request(self, method: str, table: str, params: Optional[Dict[str, str]] = None, json: Any = None) -> List[Dict[str, Any]]:
        try:
            with httpx.Client(timeout=20) as client:
                response = client.request(
                    method,
                    f"{self.url}/rest/v1/{table}",
                    headers=self._get_headers(),
                    params=params,
                    json=json,
                )
                response.raise_for_status()
                return response.json() if response.content else []
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

    # In-memory tables for mock mode

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        return self._tables.setdefault(table, [])

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.mock:
            stored = {"id": str(uuid.uuid4()), **row}
            self._rows(table).append(stored)
            return dict(stored)
        return self._request("POST", table, json=row)[0]

    def _update(self, table: str, row_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if self.mock:
            for row in self._rows(table):
                if row["id"] == row_id:
                    row.update(changes)
                    return dict(row)
            return None
        rows = self._request("PATCH", table, params={"id": f"eq.{row_id}"}, json=changes)
        return rows[0] if rows else None

    def _find_one(self, table: str, column: str, value: Any) -> Optional[Dict[str, Any]]:
        if self.mock:
            for row in self._rows(table):
                if row.get(column) == value:
                    return dict(row)
            return None
        rows = self._request("GET", table, params={column: f"eq.{value}", "limit": "1"})
        return rows[0] if rows else None

    # Prospects

    def upsert_prospect(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a profile, or update the existing one with the same email.

        The stored lead score never goes down: an update keeps the larger of
        the stored and the incoming score.

        Returns:
            The stored profile row
        """
        existing = self.get_prospect_by_email(profile["email"]) if profile.get("email") else None

        if existing:
            changes = {field: profile[field] for field in UPDATABLE_FIELDS if profile.get(field) is not None}
            changes["lead_score"] = max(existing.get("lead_score") or 0, profile.get("lead_score") or 0)
            changes["last_engagement_at"] = _now()
            changes["updated_at"] = changes["last_engagement_at"]
            stored = self._update(PROSPECTS, existing["id"], changes)
            logger.info(f"Updated prospect {existing['id']} ({profile.get('email')})")
            return stored or {**existing, **changes}

        now = _now()
        row = {
            **profile,
            "status": profile.get("status") or "new",
            "created_at": profile.get("created_at") or now,
            "updated_at": now,
            "last_engagement_at": now,
        }
        if self.mock:
            row.setdefault("id", str(uuid.uuid4()))
            self._rows(PROSPECTS).append(row)
            stored = dict(row)
        else:
            stored = self._request("POST", PROSPECTS, json=row)[0]
        logger.info(f"Created prospect {stored['id']} ({profile.get('email')})")
        return stored

    def get_prospect(self, prospect_id: str) -> Optional[Dict[str, Any]]:
        return self._find_one(PROSPECTS, "id", prospect_id)

    def get_prospect_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self._find_one(PROSPECTS, "email", email)

    def query_prospects(
        self,
        category: Optional[str] = None,
        tier: Optional[str] = None,
        status: Optional[str] = None,
        min_lead_score: Optional[int] = None,
        source: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Filter prospects, highest lead score first."""
        filters = {"category": category, "tier": tier, "status": status, "source": source}
        filters = {key: value for key, value in filters.items() if value is not None}

        if self.mock:
            rows = [
                dict(row) for row in self._rows(PROSPECTS)
                if all(row.get(key) == value for key, value in filters.items())
                and (min_lead_score is None or (row.get("lead_score") or 0) >= min_lead_score)
            ]
            rows.sort(key=lambda row: row.get("lead_score") or 0, reverse=True)
            return rows[:limit]

        params = {key: f"eq.{value}" for key, value in filters.items()}
        if min_lead_score is not None:
            params["lead_score"] = f"gte.{min_lead_score}"
        params["order"] = "lead_score.desc"
        params["limit"] = str(limit)
        return self._request("GET", PROSPECTS, params=params)

    # Scoring history

    def append_history(
        self,
        prospect_id: str,
        score_change: int,
        new_total_score: int,
        reason: str,
        source_event: str,
        event_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        entry = {
            "prospect_id": prospect_id,
            "score_change": score_change,
            "new_total_score": new_total_score,
            "reason": reason,
            "source_event": source_event,
            "event_data": event_data or {},
            "created_at": _now(),
        }
        return self._insert(HISTORY, entry)

    def get_history(self, prospect_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Latest history rows for a prospect, newest first."""
        if self.mock:
            rows = [dict(row) for row in self._rows(HISTORY) if row["prospect_id"] == prospect_id]
            return list(reversed(rows))[:limit]

        return self._request("GET", HISTORY, params={
            "prospect_id": f"eq.{prospect_id}",
            "order": "created_at.desc",
            "limit": str(limit),
        })

    def record_score_event(self, prospect_id: str, delta: int, reason: str,
                           event_data: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Add ``delta`` to the stored lead score and log it to history."""
        prospect = self.get_prospect(prospect_id)
        if not prospect:
            logger.warning(f"Score event {reason} for unknown prospect {prospect_id}")
            return None

        new_total = (prospect.get("lead_score") or 0) + delta
        now = _now()
        updated = self._update(PROSPECTS, prospect_id, {
            "lead_score": new_total,
            "last_engagement_at": now,
            "updated_at": now,
        })
        self.append_history(prospect_id, delta, new_total, reason, reason, event_data)

        logger.info(f"Score event {reason} for {prospect_id}: +{delta} -> {new_total}")
        return updated

    # Events

    def save_assessment(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert(ASSESSMENTS, {**record, "created_at": record.get("created_at") or _now()})

    def record_booking(self, prospect_id: str, call_type: str, calendly_url: str,
                       estimated_value: int, scheduled_for: Optional[str] = None) -> Dict[str, Any]:
        booking = self._insert(BOOKINGS, {
            "prospect_id": prospect_id,
            "call_type": call_type,
            "calendly_url": calendly_url,
            "estimated_value": estimated_value,
            "scheduled_for": scheduled_for,
            "status": "scheduled",
            "created_at": _now(),
        })
        self.record_score_event(prospect_id, 25, "call_booked",
                                {"call_type": call_type, "estimated_value": estimated_value})
        return booking

    def record_lead_magnet_download(self, prospect_id: str, magnet_type: str) -> Dict[str, Any]:
        download = self._insert(DOWNLOADS, {
            "prospect_id": prospect_id,
            "magnet_type": magnet_type,
            "created_at": _now(),
        })
        self.record_score_event(prospect_id, 15, "lead_magnet_download", {"magnet_type": magnet_type})
        return download

    # Nurture queue

    def enqueue_emails(self, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        if self.mock:
            for row in rows:
                self._insert(EMAIL_QUEUE, row)
            return len(rows)
        return len(self._request("POST", EMAIL_QUEUE, json=rows))

    def get_due_emails(self, batch_size: int = 50, now: Optional[str] = None) -> List[Dict[str, Any]]:
        """Pending queue rows whose send time has passed, oldest first."""
        now = now or _now()
        if self.mock:
            rows = [
                dict(row) for row in self._rows(EMAIL_QUEUE)
                if row["status"] == "pending" and row["scheduled_for"] <= now
            ]
            rows.sort(key=lambda row: row["scheduled_for"])
            return rows[:batch_size]

        return self._request("GET", EMAIL_QUEUE, params={
            "status": "eq.pending",
            "scheduled_for": f"lte.{now}",
            "order": "scheduled_for.asc",
            "limit": str(batch_size),
        })

    def mark_email_sent(self, email_id: str, provider_id: Optional[str] = None) -> None:
        now = _now()
        self._update(EMAIL_QUEUE, email_id, {"status": "sent", "sent_at": now, "provider_id": provider_id, "updated_at": now})

    def mark_email_failed(self, email_id: str, error: str) -> None:
        self._update(EMAIL_QUEUE, email_id, {"status": "failed", "error_message": error, "updated_at": _now()})


# Global store instance
prospect_store = ProspectStore()

def upsert_prospect(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Upsert a profile using the global store."""
    return prospect_store.upsert_prospect(profile)

def get_prospect(prospect_id: str) -> Optional[Dict[str, Any]]:
    return prospect_store.get_prospect(prospect_id)

def get_prospect_by_email(email: str) -> Optional[Dict[str, Any]]:
    return prospect_store.get_prospect_by_email(email)

def query_prospects(**filters) -> List[Dict[str, Any]]:
    """Filter prospects using the global store."""
    return prospect_store.query_prospects(**filters)

def append_history(prospect_id: str, score_change: int, new_total_score: int, reason: str,
                   source_event: str, event_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return prospect_store.append_history(prospect_id, score_change, new_total_score, reason, source_event, event_data)

def get_history(prospect_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    return prospect_store.get_history(prospect_id, limit)

def record_booking(prospect_id: str, call_type: str, calendly_url: str,
                   estimated_value: int, scheduled_for: Optional[str] = None) -> Dict[str, Any]:
    return prospect_store.record_booking(prospect_id, call_type, calendly_url, estimated_value, scheduled_for)

def record_lead_magnet_download(prospect_id: str, magnet_type: str) -> Dict[str, Any]:
    return prospect_store.record_lead_magnet_download(prospect_id, magnet_type)

def save_assessment(record: Dict[str, Any]) -> Dict[str, Any]:
    return prospect_store.save_assessment(record)
