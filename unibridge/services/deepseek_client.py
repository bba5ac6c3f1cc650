"""
DeepSeek API Client

DeepSeek uses OpenAI-compatible API, so we use the openai library.

AI is used ONLY for:
- Ranking opportunities against a student profile (scores + reasons)
- Richer phrasing of wellness check-in replies

Both uses are optional. Every failure here surfaces as
ProviderUnavailableError and the caller falls back to its
deterministic path. Nothing from this module is shown to users verbatim
unless it passed validation.
"""
import json
import logging
import math
from typing import List, Optional

from openai import OpenAI

from unibridge.core.config import Settings
from unibridge.core.errors import ProviderUnavailableError
from unibridge.schemas.schemas import Opportunity, StudentProfile

logger = logging.getLogger(__name__)


RANKING_PROMPT = """You rank student opportunities (scholarships, bursaries, gigs, internships, grants).
Given a student profile and a list of opportunities, score EVERY opportunity from 0 to 1
for how well it fits the student, and give a short reason (max 15 words).
Return ONLY a JSON array, one item per opportunity:
[{"id": "string", "score": number, "reason": "string"}]"""

CHECKIN_PROMPT = """You are a warm, calm wellness assistant for university students.
Reply to the student's check-in in 2-4 sentences. Do not diagnose.
If the message suggests risk of self-harm or suicide, set "urgent" to true.
Return ONLY valid JSON:
{"urgent": boolean, "response": "string", "followUps": ["short practical prompt", "..."]}
Give at most 4 followUps."""


class DeepSeekClient:
    """
    Wrapper for DeepSeek API. One attempt per call, no retries.
    """

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        if not settings.deepseek_api_key.strip():
            raise ProviderUnavailableError("deepseek_api_key_missing")
        self.client = client or OpenAI(
            api_key=settings.deepseek_api_key,
            base_url=settings.deepseek_base_url,
            timeout=settings.ai_timeout_seconds,
            max_retries=0
        )
        self.model = settings.deepseek_model

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 1000) -> str:
        """
        Internal method to call DeepSeek API.
        Returns raw text response.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                max_tokens=max_tokens,
                temperature=0.2
            )
            content = response.choices[0].message.content
        except Exception as exc:
            raise ProviderUnavailableError(f"deepseek_request_failed: {type(exc).__name__}") from exc

        if not content or not content.strip():
            raise ProviderUnavailableError("deepseek_empty_response")
        return content

    def _extract_json(self, text: str):
        """
        Extract JSON from API response.
        Handles cases where model wraps JSON in markdown code blocks.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        try:
            return json.loads(text.strip())
        except ValueError as exc:
            raise ProviderUnavailableError("deepseek_invalid_json") from exc

    def rank_opportunities(
        self,
        profile: StudentProfile,
        opportunities: List[Opportunity]
    ) -> List[dict]:
        """
        Ask the model to score every opportunity.

        Returns the raw items ({"id", "score", "reason"}); shape checks
        happen in the ranker, which knows the full id set.
        """
        payload = {
            "profile": profile.model_dump(exclude_none=True),
            "opportunities": [
                {
                    "id": opp.id,
                    "type": opp.type.value,
                    "title": opp.title,
                    "organization": opp.organization,
                    "skills": opp.skills,
                    "requirements": opp.requirements,
                    "tags": opp.tags,
                    "location": opp.location,
                    "isRemote": opp.is_remote,
                    "deadline": opp.deadline.isoformat()
                }
                for opp in opportunities
            ]
        }
        response = self._call_api(
            RANKING_PROMPT,
            json.dumps(payload),
            max_tokens=min(4000, 120 + 60 * len(opportunities))
        )
        items = self._extract_json(response)
        if not isinstance(items, list):
            raise ProviderUnavailableError("deepseek_ranking_not_a_list")
        return items

    def write_checkin_reply(self, message: str, mood: str, themes: List[str]) -> dict:
        """
        Ask the model for a supportive reply.
        Returns {"urgent": bool, "response": str, "followUps": [str]}.
        """
        user_content = json.dumps({"message": message, "mood": mood, "themes": themes})
        data = self._extract_json(self._call_api(CHECKIN_PROMPT, user_content, max_tokens=400))
        if not isinstance(data, dict):
            raise ProviderUnavailableError("deepseek_reply_not_an_object")

        reply = data.get("response")
        if not isinstance(reply, str) or not reply.strip():
            raise ProviderUnavailableError("deepseek_reply_missing_response")

        follow_ups = data.get("followUps", [])
        if not isinstance(follow_ups, list):
            follow_ups = []

        return {
            "urgent": data.get("urgent") is True,
            "response": reply.strip(),
            "followUps": [str(q).strip() for q in follow_ups if isinstance(q, str) and q.strip()][:4]
        }

    def test_connection(self) -> bool:
        """Test if DeepSeek API is reachable"""
        try:
            response = self._call_api(
                "You are a test assistant.",
                "Reply with exactly: OK",
                max_tokens=10
            )
            return "OK" in response.upper()
        except ProviderUnavailableError as e:
            logger.warning("DeepSeek connection failed: %s", e)
            return False


def is_valid_score(value) -> bool:
    """True for a finite real number in [0, 1] (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value) and 0.0 <= value <= 1.0
    except OverflowError:
        return False


def build_deepseek_client(settings: Settings) -> Optional[DeepSeekClient]:
    """
    Build the provider client once per process.
    Returns None when AI is disabled or no API key is configured.
    """
    if not settings.provider_configured:
        logger.info("DeepSeek provider not configured; using fallback paths only")
        return None
    return DeepSeekClient(settings)
