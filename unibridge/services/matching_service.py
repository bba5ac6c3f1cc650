"""
Opportunity Matching Service

PURPOSE:
Rank a catalog of opportunities (scholarships, bursaries, gigs,
internships, grants) against one student profile and explain each score.

HOW IT WORKS:
1. Normalize the caller's profile
2. Try the provider-backed ranker (DeepSeek) under a hard timeout
3. On ANY provider problem, score every opportunity with the heuristic
4. Sort: score desc, then nearer deadline, then newer listing

The two scorers are never mixed within one call, so all scores in a
ranking come from the same scale.

HEURISTIC WEIGHTS:
- 40% skill overlap
- 25% interest / type alignment
- 15% location fit
- 15% deadline urgency
- GPA requirement applied as a multiplier (x0.5 when below)
"""

import logging
import math
import re
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Set, Tuple, Union

import numpy as np

from unibridge.core.errors import ProviderUnavailableError
from unibridge.schemas.schemas import MatchResult, Opportunity, StudentProfile
from unibridge.services.deepseek_client import DeepSeekClient, is_valid_score
from unibridge.services.profile_service import normalize_profile
from unibridge.utils.timeouts import ProviderCallRunner

logger = logging.getLogger(__name__)

ScoreAndReason = Tuple[float, str]

# Order matters: skill, interest, location, deadline
TERM_WEIGHTS = np.array([0.40, 0.25, 0.15, 0.15])

SKILL_FLOOR = 3  # denominator when an opportunity lists no skills
LOCATION_MISMATCH_CREDIT = 0.2
URGENT_WINDOW_DAYS = 14
LONG_WINDOW_DAYS = 90
DEADLINE_FLOOR = 0.2
GPA_PENALTY = 0.5
MAX_REASON_SKILLS = 3

TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#.]*")
GPA_AFTER_RE = re.compile(r"\bc?gpa\b[^0-9\n]{0,20}(?<![\d.])(\d(?:\.\d{1,2})?)(?![\d])", re.IGNORECASE)
GPA_BEFORE_RE = re.compile(
    r"(?<![\d.])(\d(?:\.\d{1,2})?)(?:\s*/\s*\d(?:\.\d{1,2})?)?\s*c?gpa\b",
    re.IGNORECASE
)

STOP_WORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "have",
    "in", "is", "it", "its", "must", "of", "on", "or", "should", "the", "to",
    "with", "who", "will", "you", "your", "our", "we", "all", "any", "etc",
    "experience", "knowledge", "ability", "skills", "skill", "strong", "good",
    "basic", "years", "year", "student", "students", "least", "minimum",
    "required", "preferred", "plus",
}


# ============================================================
# TERM HELPERS
# ============================================================

def extract_requirement_keywords(requirements: Sequence[str]) -> Set[str]:
    """Lower-cased keyword tokens from free-text requirements."""
    keywords = set()
    for line in requirements:
        if not isinstance(line, str):
            continue
        for token in TOKEN_RE.findall(line.lower()):
            token = token.rstrip(".")
            if len(token) >= 2 and token not in STOP_WORDS and not token[0].isdigit():
                keywords.add(token)
    return keywords


def extract_gpa_requirement(requirements: Sequence[str]) -> Optional[float]:
    """
    Highest GPA-like threshold (0-5) stated in the requirements, if any.

    Recognises "Minimum GPA of 3.5", "3.0 CGPA and above", "CGPA: 4.0/5.0".
    """
    found = []
    for line in requirements:
        if not isinstance(line, str):
            continue
        for pattern in (GPA_AFTER_RE, GPA_BEFORE_RE):
            for match in pattern.finditer(line):
                value = float(match.group(1))
                if 0.0 < value <= 5.0:
                    found.append(value)
    return max(found) if found else None


def deadline_urgency(deadline: date, today: date) -> float:
    """
    1.0 inside the near-term window, linear decay to DEADLINE_FLOOR at the
    long-term window, 0.0 once the deadline has passed.
    """
    days = (deadline - today).days
    if days < 0:
        return 0.0
    if days <= URGENT_WINDOW_DAYS:
        return 1.0
    if days >= LONG_WINDOW_DAYS:
        return DEADLINE_FLOOR
    progress = (days - URGENT_WINDOW_DAYS) / (LONG_WINDOW_DAYS - URGENT_WINDOW_DAYS)
    return 1.0 - progress * (1.0 - DEADLINE_FLOOR)


def _matched_skills(profile: StudentProfile, opportunity: Opportunity) -> Tuple[List[str], int]:
    """Profile skills found in the opportunity, plus the normalizing denominator."""
    opp_skills = []
    for skill in opportunity.skills:
        term = " ".join(skill.lower().split())
        if term and term not in opp_skills:
            opp_skills.append(term)

    keywords = extract_requirement_keywords(opportunity.requirements)
    requirement_text = " ".join(opportunity.requirements).lower()

    matched = []
    for skill in profile.skills:
        if skill in opp_skills or skill in keywords:
            matched.append(skill)
        elif " " in skill and skill in requirement_text:
            matched.append(skill)

    # Report skills in the opportunity's own order where possible
    matched.sort(key=lambda s: opp_skills.index(s) if s in opp_skills else len(opp_skills))
    return matched, len(opp_skills) or SKILL_FLOOR


def _matched_interest(profile: StudentProfile, opportunity: Opportunity) -> Optional[str]:
    interests = set(profile.interests)
    candidates = [opportunity.type.value] + [tag.strip().lower() for tag in opportunity.tags]
    for candidate in candidates:
        if candidate and candidate in interests:
            return candidate
    return None


def _location_matches(profile: StudentProfile, opportunity: Opportunity) -> bool:
    if not profile.location:
        return False
    mine = profile.location.lower()
    theirs = opportunity.location.strip().lower()
    if not theirs:
        return False
    return mine in theirs or theirs in mine


def _deadline_phrase(days: int) -> str:
    if days == 0:
        return "closes today"
    if days == 1:
        return "closes tomorrow"
    if days <= URGENT_WINDOW_DAYS:
        return f"closes in {days} days"
    return f"deadline in {days} days"


# ============================================================
# SCORING CAPABILITY
# ============================================================

class OpportunityScorer(Protocol):
    """Scores every opportunity in a catalog for one profile."""
    name: str

    def score_all(
        self,
        profile: StudentProfile,
        opportunities: Sequence[Opportunity]
    ) -> List[ScoreAndReason]:
        raise NotImplementedError


class HeuristicScorer:
    """
    Deterministic, provider-independent scorer.
    No network access; safe to run for every opportunity in a catalog.
    """
    name = "heuristic"

    def __init__(self, clock: Callable[[], date] = date.today):
        self.clock = clock

    def score(
        self,
        profile: StudentProfile,
        opportunity: Opportunity,
        today: Optional[date] = None
    ) -> ScoreAndReason:
        """
        Score one opportunity against one profile.

        Returns:
            (score in [0, 1], short human-readable reason)
        """
        today = today or self.clock()

        matched_skills, denominator = _matched_skills(profile, opportunity)
        skill_term = min(1.0, len(matched_skills) / denominator)

        interest = _matched_interest(profile, opportunity)
        interest_term = 1.0 if interest else 0.0

        location_fit = opportunity.is_remote or _location_matches(profile, opportunity)
        location_term = 1.0 if location_fit else LOCATION_MISMATCH_CREDIT

        deadline_term = deadline_urgency(opportunity.deadline, today)

        terms = np.array([skill_term, interest_term, location_term, deadline_term])
        contributions = TERM_WEIGHTS * terms

        multiplier = 1.0
        required_gpa = extract_gpa_requirement(opportunity.requirements)
        below_gpa = (
            required_gpa is not None
            and profile.gpa is not None
            and profile.gpa < required_gpa
        )
        if below_gpa:
            multiplier = GPA_PENALTY

        score = float(np.clip(contributions.sum() * multiplier, 0.0, 1.0))

        phrases = {
            0: self._skill_phrase(matched_skills, skill_term),
            1: f"matches your interest in {interest}",
            2: "remote-friendly" if opportunity.is_remote else f"based in {opportunity.location}",
            3: _deadline_phrase((opportunity.deadline - today).days),
        }
        # Partial location credit is not a reason to recommend
        explained = contributions.copy()
        if not location_fit:
            explained[2] = 0.0
        # Stable: equal contributions keep term order
        ranked_terms = sorted(range(len(explained)), key=lambda i: -explained[i])
        parts = [phrases[i] for i in ranked_terms if explained[i] > 0][:2]
        if not parts:
            parts = ["limited overlap with your profile"]
        if below_gpa:
            parts.append(f"below the stated GPA requirement ({required_gpa:g})")

        reason = "; ".join(parts)
        return round(score, 4), reason[0].upper() + reason[1:]

    @staticmethod
    def _skill_phrase(matched: List[str], coverage: float) -> str:
        shown = ", ".join(matched[:MAX_REASON_SKILLS])
        strength = "strong" if coverage >= 0.6 else "partial"
        return f"{strength} skill match ({shown})"

    def score_all(
        self,
        profile: StudentProfile,
        opportunities: Sequence[Opportunity]
    ) -> List[ScoreAndReason]:
        today = self.clock()
        return [self.score(profile, opp, today=today) for opp in opportunities]


class ProviderRanker:
    """
    Provider-backed scorer (DeepSeek judgment).

    Accepts the provider's answer only if it covers EVERY opportunity
    exactly once with a valid score; anything else is "unavailable".
    """
    name = "deepseek"

    def __init__(self, client: DeepSeekClient):
        self.client = client

    def score_all(
        self,
        profile: StudentProfile,
        opportunities: Sequence[Opportunity]
    ) -> List[ScoreAndReason]:
        ids = [opp.id for opp in opportunities]
        if len(set(ids)) != len(ids):
            raise ProviderUnavailableError("duplicate_opportunity_ids")

        items = self.client.rank_opportunities(profile, list(opportunities))
        by_id: Dict[str, ScoreAndReason] = {}
        for item in items:
            if not isinstance(item, dict):
                raise ProviderUnavailableError("ranking_item_not_an_object")
            opp_id = str(item.get("id", ""))
            score = item.get("score")
            reason = item.get("reason")
            if opp_id not in ids or opp_id in by_id:
                raise ProviderUnavailableError(f"ranking_unexpected_id {opp_id!r}")
            if not is_valid_score(score):
                raise ProviderUnavailableError(f"ranking_invalid_score {score!r}")
            if not isinstance(reason, str) or not reason.strip():
                raise ProviderUnavailableError("ranking_missing_reason")
            by_id[opp_id] = (round(float(score), 4), reason.strip()[:200])

        if len(by_id) != len(ids):
            raise ProviderUnavailableError(
                f"ranking_partial {len(by_id)}/{len(ids)}"
            )
        return [by_id[opp_id] for opp_id in ids]


# ============================================================
# RANKING ENGINE
# ============================================================

def _sort_key(match: MatchResult):
    created = match.opportunity.created_at
    recency = -created.timestamp() if created else math.inf
    return (-match.score, match.opportunity.deadline, recency)


def sort_matches(matches: List[MatchResult]) -> List[MatchResult]:
    """Score desc, then nearer deadline, then more recently created."""
    return sorted(matches, key=_sort_key)


class RankingEngine:
    """
    Orchestrates normalization, provider attempt, fallback and ordering.

    Built once per process from configuration; holds no per-request state.
    """

    def __init__(
        self,
        fallback: Optional[HeuristicScorer] = None,
        provider: Optional[OpportunityScorer] = None,
        provider_timeout: float = 8.0,
        runner: Optional[ProviderCallRunner] = None
    ):
        self.fallback = fallback or HeuristicScorer()
        self.provider = provider
        self.provider_timeout = provider_timeout
        self.runner = runner or ProviderCallRunner()

    def _provider_scores(
        self,
        profile: StudentProfile,
        opportunities: Sequence[Opportunity]
    ) -> Optional[List[ScoreAndReason]]:
        """Provider scores, or None when the provider is absent or failed."""
        if self.provider is None:
            return None
        try:
            scores = self.runner.call(
                self.provider.score_all, self.provider_timeout, profile, opportunities
            )
        except Exception as exc:
            logger.warning(
                "Provider ranking unavailable (%s: %s); using heuristic",
                type(exc).__name__, exc
            )
            return None

        if not isinstance(scores, list) or len(scores) != len(opportunities):
            logger.warning("Provider returned %s results for %d opportunities; using heuristic",
                           len(scores) if isinstance(scores, list) else "no", len(opportunities))
            return None
        if not all(isinstance(s, tuple) and len(s) == 2 and is_valid_score(s[0]) for s in scores):
            logger.warning("Provider returned out-of-range scores; using heuristic")
            return None
        return scores

    def rank(
        self,
        profile: Union[StudentProfile, Dict[str, Any], None],
        opportunities: Sequence[Opportunity]
    ) -> List[MatchResult]:
        """
        Rank every opportunity for the profile.

        The caller guarantees a non-empty catalog and slices the top N.
        Output length always equals input length.
        """
        if not isinstance(profile, StudentProfile):
            profile = normalize_profile(profile)

        scores = self._provider_scores(profile, opportunities)
        source = self.provider.name if scores is not None else self.fallback.name
        if scores is None:
            scores = self.fallback.score_all(profile, opportunities)

        matches = [
            MatchResult(opportunity=opp, score=score, reason=reason)
            for opp, (score, reason) in zip(opportunities, scores)
        ]
        logger.info("Ranked %d opportunities via %s", len(matches), source)
        return sort_matches(matches)


def build_ranking_engine(
    client: Optional[DeepSeekClient],
    timeout_seconds: float,
    runner: Optional[ProviderCallRunner] = None
) -> RankingEngine:
    """Wire the engine: provider ranker only when a client exists."""
    provider = ProviderRanker(client) if client is not None else None
    return RankingEngine(HeuristicScorer(), provider, provider_timeout=timeout_seconds, runner=runner)
