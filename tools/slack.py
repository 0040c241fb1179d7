import os
from typing import Dict, Any, Optional
from loguru import logger

class SlackNotifier:
    """Slack integration for alerting the sales team about high-priority prospects."""

    def __init__(self):
        self.token = os.getenv("SLACK_BOT_TOKEN")
        self.alert_channel = os.getenv("SLACK_ALERT_CHANNEL", "#high-priority-prospects")

        if not self.token:
            logger.warning("No Slack token provided, using mock mode")

    def send_prospect_alert(self, state: Dict[str, Any], brief: str = "", channel: Optional[str] = None) -> Optional[str]:
        """
        Send a high-priority prospect alert.

        Args:
            state: Prospect processing state
            brief: Pre-call brief to include under the profile fields
            channel: Slack channel (optional, uses the alert channel if not specified)

        Returns:
            Slack message timestamp or None if failed
        """
        if not self.token:
            logger.info("Mock mode: would send prospect alert")
            return "mock_alert_timestamp_456"

        try:
            from slack_sdk.web import WebClient

            client = WebClient(token=self.token)
            target_channel = channel or self.alert_channel

            message = self._build_alert_message(state, brief)

            response = client.chat_postMessage(
                channel=target_channel,
                text=message["text"],
                blocks=message["blocks"]
            )

            message_ts = response["ts"]
            logger.info(f"Prospect alert sent to {target_channel}: {message_ts}")

            return message_ts

        except Exception as e:
            logger.error(f"Prospect alert failed: {e}")
            return None

    def _build_alert_message(self, state: Dict[str, Any], brief: str) -> Dict[str, Any]:
        """Build Slack message for a high-priority prospect."""
        profile = state.get("profile", {})
        recommendation = state.get("recommendation", {})
        score_result = state.get("score_result") or {}
        name = profile.get("name") or profile.get("email") or "Unknown"

        text = (
            f"🚨 HIGH PRIORITY PROSPECT: {name} from {profile.get('company') or 'Unknown'} "
            f"(Score: {profile.get('lead_score', 0)})"
        )

        blocks = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": "🚨 HIGH PRIORITY PROSPECT"
                }
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Name:*\n{name}"},
                    {"type": "mrkdwn", "text": f"*Company:*\n{profile.get('company') or 'Unknown'}"},
                    {"type": "mrkdwn", "text": f"*Role:*\n{profile.get('role') or 'Unknown'}"},
                    {"type": "mrkdwn", "text": f"*Score:*\n{profile.get('lead_score', 0)} ({score_result.get('score', 'unscored')})"},
                    {"type": "mrkdwn", "text": f"*Category:*\n{profile.get('category', 'undetermined')}"},
                    {"type": "mrkdwn", "text": f"*Tier:*\n{profile.get('tier', 'tier_4')}"},
                ]
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        f"*Recommended call:* {recommendation.get('call_type', 'general_discovery')} "
                        f"(est. ${recommendation.get('estimated_value', 0):,})"
                    )
                }
            }
        ]

        if brief:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Brief:*\n{brief}"}
            })

        booking_url = state.get("tracking_url") or recommendation.get("calendly_url")
        if booking_url:
            blocks.append({
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": "Booking Link"},
                        "url": booking_url,
                        "style": "primary"
                    }
                ]
            })

        return {"text": text, "blocks": blocks}

# Global Slack notifier instance
slack_notifier = SlackNotifier()

def send_prospect_alert(state: Dict[str, Any], brief: str = "", channel: Optional[str] = None) -> Optional[str]:
    """Send a prospect alert using the global Slack notifier."""
    return slack_notifier.send_prospect_alert(state, brief, channel)
