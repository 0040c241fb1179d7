import os
from typing import Dict, Any, Optional
from loguru import logger

class LLMClient:
    """Text completion client used for sales briefs on high-priority prospects."""

    def __init__(self):
        self.api_key = os.getenv("OPENAI_API_KEY")
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self._client = None

        if not self.api_key:
            logger.warning("No OpenAI API key provided, using mock mode")

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def complete(self, system: str, user: str, temperature: float = 0.3, max_tokens: int = 500) -> Optional[str]:
        """
        Run one chat completion.

        Returns:
            Completion text, or None in mock mode
        """
        if not self.api_key:
            return None

        response = self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content

    def write_prospect_brief(self, state: Dict[str, Any]) -> str:
        """
        Write a short pre-call brief for the sales team.

        Falls back to a template brief when no API key is set or the call fails.
        """
        if not self.api_key:
            logger.info("Using mock prospect brief")
            return self._mock_brief(state)

        try:
            brief = self.complete(self._get_brief_rubric(), self._build_brief_prompt(state), temperature=0.3, max_tokens=600)
            logger.info("LLM prospect brief generated successfully")
            return brief or self._mock_brief(state)

        except Exception as e:
            logger.error(f"LLM prospect brief failed: {e}")
            return self._mock_brief(state)

    def _get_brief_rubric(self) -> str:
        return """You are a sales strategist preparing a consultant for a discovery call.

Write 5-7 short bullet points covering:
- Who the prospect is (name, company, role)
- What they care about (category, interests, assessment results)
- Why they are a priority now
- The one question to open the call with

Be concrete and concise. No preamble."""

    def _build_brief_prompt(self, state: Dict[str, Any]) -> str:
        profile = state.get("profile", {})
        recommendation = state.get("recommendation", {})
        score_result = state.get("score_result") or {}
        scores = (state.get("nurture_data") or {}).get("scores") or {}

        return f"""Prepare a brief for this prospect:

PROSPECT: {profile.get('name', 'N/A')} ({profile.get('email', 'N/A')})
COMPANY: {profile.get('company', 'N/A')}
ROLE: {profile.get('role', 'N/A')}
CATEGORY: {profile.get('category', 'undetermined')}
TIER: {profile.get('tier', 'tier_4')}
LEAD SCORE: {profile.get('lead_score', 0)}
INTERESTS: {', '.join(profile.get('interests') or []) or 'N/A'}
SCORE TAGS: {', '.join(score_result.get('tags') or []) or 'N/A'}
ASSESSMENT SCORES: {scores or 'N/A'}

RECOMMENDED CALL: {recommendation.get('call_type', 'general_discovery')} (estimated value ${recommendation.get('estimated_value', 0):,})

Generate the brief:"""

    def _mock_brief(self, state: Dict[str, Any]) -> str:
        profile = state.get("profile", {})
        recommendation = state.get("recommendation", {})
        score_result = state.get("score_result") or {}

        return f"""Prospect Brief for {profile.get('name') or 'Unknown'}

• Company: {profile.get('company') or 'Unknown'} ({profile.get('role') or 'Unknown role'})
• Category: {profile.get('category', 'undetermined')} / {profile.get('tier', 'tier_4')}
• Lead Score: {profile.get('lead_score', 0)} ({score_result.get('score', 'unscored')})
• Interests: {', '.join(profile.get('interests') or []) or 'None recorded'}
• Recommended Call: {recommendation.get('call_type', 'general_discovery')} (${recommendation.get('estimated_value', 0):,})
• Next Action: {score_result.get('recommended_action') or 'Reach out within 24 hours'}"""

# Global LLM client instance
llm_client = LLMClient()

def complete(system: str, user: str, temperature: float = 0.3, max_tokens: int = 500) -> Optional[str]:
    """Run a completion using the global LLM client."""
    return llm_client.complete(system, user, temperature, max_tokens)

def write_prospect_brief(state: Dict[str, Any]) -> str:
    """Generate a prospect brief using the global LLM client."""
    return llm_client.write_prospect_brief(state)
