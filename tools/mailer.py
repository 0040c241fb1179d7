import httpx
import os
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Optional
from loguru import logger

from tools.store import ProspectStore, StoreError, prospect_store


class EmailError(RuntimeError):
    """Raised when the email provider rejects or cannot be reached for a send."""


class EmailClient:
    """Resend transport for report and nurture e-mails."""

    def __init__(self, store: Optional[ProspectStore] = None):
        self.api_key = os.getenv("RESEND_API_KEY")
        self.sender = os.getenv("EMAIL_FROM", "Lorenzo DC <lorenzo@lorenzodc.com>")
        self.base_url = "https://api.resend.com"
        self.store = store or prospect_store
        # Pause between queued sends to stay under the provider's rate limit
        self.send_interval = 0.1

        if not self.api_key:
            logger.warning("No Resend API key provided, using mock mode")

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def send_email(self, to: str, subject: str, html: str) -> str:
        """
        Send one e-mail.

        Returns:
            Provider message id

        Raises:
            EmailError: the provider rejected the message or was unreachable
        """
        if not self.api_key:
            logger.info(f"Mock mode: would send '{subject}' to {to}")
            return f"mock_email_{uuid.uuid4().hex[:12]}"

        try:
            with httpx.Client(timeout=20) as client:
                response = client.post(
                    f"{self.base_url}/emails",
                    headers=self._get_headers(),
                    json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                )
                response.raise_for_status()
                email_id = response.json().get("id")
        except httpx.HTTPError as e:
            raise EmailError(f"Send to {to} failed: {e}") from e

        logger.info(f"Email sent to {to}: {email_id}")
        return email_id

    def schedule_sequence(self, email: str, name: str, assessment_id: Optional[str],
                          emails: List[Dict[str, Any]], sequence_type: str = "assessment_nurture") -> int:
        """
        Queue a nurture sequence, each email due ``send_after_days`` from now.

        Returns:
            Number of emails queued
        """
        now = datetime.now(timezone.utc)
        rows = [
            {
                "prospect_email": email,
                "prospect_name": name,
                "assessment_id": assessment_id,
                "sequence_type": sequence_type,
                "email_number": item["email_number"],
                "subject": item["subject"],
                "html_content": item["html"],
                "scheduled_for": (now + timedelta(days=item["send_after_days"])).isoformat(),
                "status": "pending",
            }
            for item in emails
        ]

        count = self.store.enqueue_emails(rows)
        logger.info(f"Scheduled {count} nurture emails for {email}")
        return count

    def _mark(self, mark, row: Dict[str, Any], value: Optional[str]) -> Optional[str]:
        """Update a queue row's status; a store failure is logged and returned, not raised."""
        try:
            mark(row["id"], value)
            return None
        except StoreError as e:
            logger.error(f"Could not update queued email {row['id']}: {e}")
            return str(e)

    def send_due_emails(self, batch_size: int = 50) -> Dict[str, Any]:
        """
        Send queued e-mails whose time has come.

        A failed row is marked failed and the batch moves on.
        """
        pending = self.store.get_due_emails(batch_size)
        if not pending:
            return {"message": "No emails to send", "sent": 0, "failed": 0, "unmarked": 0, "results": []}

        sent = 0
        failed = 0
        results = []

        for row in pending:
            try:
                provider_id = self.send_email(row["prospect_email"], row["subject"], row["html_content"])
            except EmailError as e:
                failed += 1
                results.append({"id": row["id"], "status": "failed", "error": str(e)})
                logger.error(f"Failed to send nurture email to {row['prospect_email']}: {e}")
                self._mark(self.store.mark_email_failed, row, str(e))
            else:
                sent += 1
                result = {"id": row["id"], "status": "sent"}
                logger.info(f"Sent nurture email {row['email_number']} to {row['prospect_email']}")
                mark_error = self._mark(self.store.mark_email_sent, row, provider_id)
                if mark_error:
                    result["error"] = mark_error
                results.append(result)

            if self.api_key and self.send_interval:
                time.sleep(self.send_interval)

        return {
            "message": f"Processed {len(pending)} emails",
            # Sent rows that could not be marked stay pending and are retried next run
            "unmarked": sum(1 for result in results if result["status"] == "sent" and "error" in result),
            "sent": sent,
            "failed": failed,
            "results": results,
        }


# Global email client instance
email_client = EmailClient()

def send_email(to: str, subject: str, html: str) -> str:
    """Send an e-mail using the global client."""
    return email_client.send_email(to, subject, html)

def schedule_sequence(email: str, name: str, assessment_id: Optional[str], emails: List[Dict[str, Any]]) -> int:
    """Queue a nurture sequence using the global client."""
    return email_client.schedule_sequence(email, name, assessment_id, emails)

def send_due_emails(batch_size: int = 50) -> Dict[str, Any]:
    return email_client.send_due_emails(batch_size)
