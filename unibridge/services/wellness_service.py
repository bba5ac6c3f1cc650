"""
Wellness Check-In Triage Service

PURPOSE:
Decide whether a wellness check-in message is urgent and produce a safe
reply for the student.

HOW IT WORKS:
1. Signal extraction - crisis phrases, hopelessness phrases, distress
   intensity (text + mood), study themes
2. Decision - crisis => urgent reply pointing to a human counsellor/hotline,
   with no follow-up prompts
3. Otherwise ask the provider (optional) for a richer reply; on any
   failure use templates keyed by theme and mood

SAFETY:
- Triage augments, never gates: the portal always shows HOTLINES.
- The provider can raise urgency, never lower it.
- Negated mentions ("I'm not suicidal") still take the urgent path.
- CRISIS_PATTERNS / HOPELESSNESS_PATTERNS are the full trigger list.
  Any change must be re-checked against representative transcripts.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from unibridge.schemas.schemas import Hotline, Mood, TriageDecision
from unibridge.services.deepseek_client import DeepSeekClient
from unibridge.utils.timeouts import ProviderCallRunner

logger = logging.getLogger(__name__)

MAX_FOLLOW_UPS = 4

HOTLINES = [
    Hotline(name="Lagos Suicide Hotline", number="+234 806 210 6493"),
    Hotline(name="NIMHANS Crisis Line", number="+234 809 111 6262"),
    Hotline(name="Mentally Aware Nigeria", number="+234 808 432 9889"),
]


# ============================================================
# SIGNAL PATTERNS
# ============================================================

CRISIS_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\bsuicid",
        r"\bkill(ing)?\s+my\s*self\b",
        r"\bend(ing)?\s+(my\s+life|it\s+all|my\s+own\s+life)\b",
        r"\btake\s+my\s+(own\s+)?life\b",
        r"\bwant(ed)?\s+to\s+die\b",
        r"\bwish\s+i\s+(was|were)\s+dead\b",
        r"\b(don'?t|do\s+not)\s+want\s+to\s+(live|be\s+alive|be\s+here|exist)\b",
        r"\bbetter\s+off\s+(dead|without\s+me)\b",
        r"\bno\s+reason\s+to\s+live\b",
        r"\bself[\s-]?harm",
        r"\b(hurt|harm|cut)(ting)?\s+my\s*self\b",
        r"\boverdos",
    )
]

HOPELESSNESS_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\bhopeless",
        r"\bno\s+way\s+out\b",
        r"\bcan'?t\s+go\s+on\b",
        r"\bcan'?t\s+do\s+this\s+any\s*more\b",
        r"\bgive\s+up\s+on\s+(everything|life)\b",
        r"\bnothing\s+matters\b",
        r"\bno\s+point\s+(in\s+)?(living|trying|anything)\b",
        r"\bworthless\b",
    )
]

DISTRESS_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\boverwhelm",
        r"\bcan'?t\s+cope\b",
        r"\bbreaking\s+down\b",
        r"\bpanic",
        r"\bexhausted\b",
        r"\bcrying\b",
        r"\bfalling\s+apart\b",
        r"\btoo\s+much\b",
    )
]

MOOD_DISTRESS = {
    Mood.sad: 2,
    Mood.anxious: 1,
    Mood.stressed: 1,
    Mood.neutral: 0,
    Mood.happy: 0,
}
HOPELESSNESS_THRESHOLD = 2

APOSTROPHES = str.maketrans({
    "\u2019": "'",  # right single quotation mark (iOS, Android)
    "\u2018": "'",
    "\u02bc": "'",
    "\u0060": "'",
    "\u00b4": "'",
})

THEME_PATTERNS = {
    "exam_stress": re.compile(
        r"\b(exams?|tests?|quiz(zes)?|finals|revision|revise|cgpa|gpa|grades?|results?|fail(ing)?)\b",
        re.IGNORECASE
    ),
    "focus": re.compile(
        r"\b(focus(ing)?|concentrat\w*|distract\w*|procrastinat\w*|attention)\b",
        re.IGNORECASE
    ),
    "time_pressure": re.compile(
        r"\b(deadlines?|time|schedule|assignments?|overwhelm\w*|behind|workload|due)\b",
        re.IGNORECASE
    ),
    "isolation": re.compile(
        r"\b(lonely|alone|isolated|no\s+friends|homesick|left\s+out|nobody)\b",
        re.IGNORECASE
    ),
}


# ============================================================
# RESPONSE TEMPLATES
# ============================================================

URGENT_RESPONSE = (
    "Thank you for telling me. What you're describing sounds really serious, and you "
    "deserve support from a person right now. Please contact a counsellor or one of the "
    "crisis hotlines immediately, or reach out to someone you trust and let them know "
    "how you're feeling. If you are in immediate danger, call emergency services now."
)

THEME_TEMPLATES = {
    "exam_stress": (
        "Exam pressure is really common, and feeling stressed about it shows how much "
        "you care. Let's make it more manageable, one step at a time.",
        [
            "Break your revision into 25-minute focused sessions with short breaks.",
            "List the topics that worry you most and start with the smallest one.",
            "Try a few past questions to see where you already stand.",
            "Protect your sleep the night before an exam; it helps recall more than cramming.",
        ],
    ),
    "focus": (
        "Struggling to focus happens to everyone, especially when there's a lot on your "
        "mind. Small changes to your setup can help.",
        [
            "Put your phone in another room while you study.",
            "Pick one task and write down the very first step.",
            "Study in short blocks and take a real break between them.",
        ],
    ),
    "time_pressure": (
        "Having a lot due at once can feel overwhelming. Getting it all out of your head "
        "and onto paper is a good place to start.",
        [
            "Write every deadline down and sort them by due date.",
            "Choose the one task that matters most today and start there.",
            "Ask your lecturer early if you think you'll need an extension.",
        ],
    ),
    "isolation": (
        "Feeling alone at university is more common than it looks, and it's okay to "
        "want more connection.",
        [
            "Message one classmate or friend today, even briefly.",
            "Look for a club, study group, or campus event this week.",
            "Consider talking to a counsellor; they're there for exactly this.",
        ],
    ),
}

MOOD_TEMPLATES = {
    Mood.happy: (
        "It's great to hear you're doing well! Noticing the good days matters too.",
        [
            "What's one thing that made today good?",
            "Is there a goal you'd like to use this energy on?",
        ],
    ),
    Mood.neutral: (
        "Thanks for checking in. How you feel matters, even on an ordinary day.",
        [
            "Is there anything on your mind this week?",
            "Would a quick study or time-management tip help?",
        ],
    ),
    Mood.anxious: (
        "Anxiety can make everything feel bigger than it is. You're not alone in this, "
        "and it's good that you're talking about it.",
        [
            "Try a slow breathing exercise: in for 4, hold for 4, out for 6.",
            "Write down what's worrying you so it's out of your head.",
            "Would it help to talk it through with a counsellor?",
        ],
    ),
    Mood.stressed: (
        "It sounds like you're carrying a lot right now. Let's see if we can lighten it a "
        "little.",
        [
            "What's the one thing stressing you most right now?",
            "Take a short walk or stretch break before your next task.",
            "Write down what's on your plate so you can see it clearly.",
        ],
    ),
    Mood.sad: (
        "I'm sorry you're feeling down. Your feelings are valid, and you don't have to "
        "deal with them alone.",
        [
            "Is there someone you trust you could talk to today?",
            "Do something small and kind for yourself, like a walk or your favourite meal.",
            "Would you like information on talking to a counsellor?",
        ],
    ),
}

GENERIC_RESPONSE = (
    "Thank you for sharing how you're feeling. I'm here to listen, and support is always "
    "available if you need it."
)


# ============================================================
# SIGNALS
# ============================================================

@dataclass
class TriageSignals:
    crisis: bool = False
    hopelessness: bool = False
    distress: int = 0
    themes: List[str] = field(default_factory=list)

    @property
    def urgent(self) -> bool:
        return self.crisis or (self.hopelessness and self.distress >= HOPELESSNESS_THRESHOLD)


def normalize_quotes(text: str) -> str:
    """Phone keyboards type curly apostrophes; patterns expect a straight one."""
    return text.translate(APOSTROPHES)


def extract_signals(message: str, mood: Mood) -> TriageSignals:
    """Detect crisis language, distress intensity and study themes."""
    text = normalize_quotes(message or "")
    distress = sum(1 for p in DISTRESS_PATTERNS if p.search(text))
    return TriageSignals(
        crisis=any(p.search(text) for p in CRISIS_PATTERNS),
        hopelessness=any(p.search(text) for p in HOPELESSNESS_PATTERNS),
        distress=distress + MOOD_DISTRESS.get(mood, 0),
        themes=[name for name, pattern in THEME_PATTERNS.items() if pattern.search(text)],
    )


def _urgent_decision() -> TriageDecision:
    return TriageDecision(urgent=True, response=URGENT_RESPONSE, follow_ups=[])


def template_decision(signals: TriageSignals, mood: Mood) -> TriageDecision:
    """Fixed reply keyed by detected themes, then by mood."""
    if signals.themes:
        # First theme leads the reply; every theme contributes prompts
        return TriageDecision(
            urgent=False,
            response=THEME_TEMPLATES[signals.themes[0]][0],
            follow_ups=_interleave(signals.themes)[:MAX_FOLLOW_UPS]
        )

    if mood in MOOD_TEMPLATES:
        text, prompts = MOOD_TEMPLATES[mood]
        return TriageDecision(urgent=False, response=text, follow_ups=prompts[:MAX_FOLLOW_UPS])
    return TriageDecision(urgent=False, response=GENERIC_RESPONSE, follow_ups=[])


def _interleave(themes: List[str]) -> List[str]:
    """Take prompts round-robin so every detected theme gets at least one."""
    queues = [list(THEME_TEMPLATES[t][1]) for t in themes]
    merged: List[str] = []
    while any(queues):
        for queue in queues:
            if queue:
                prompt = queue.pop(0)
                if prompt not in merged:
                    merged.append(prompt)
    return merged


# ============================================================
# CLASSIFIER
# ============================================================

class RiskTriageClassifier:
    """
    Stateless per call. Built once per process with an optional provider.
    """

    def __init__(
        self,
        client: Optional[DeepSeekClient] = None,
        provider_timeout: float = 8.0,
        runner: Optional[ProviderCallRunner] = None
    ):
        self.client = client
        self.provider_timeout = provider_timeout
        self.runner = runner or ProviderCallRunner()

    def _provider_reply(self, message: str, mood: Mood, signals: TriageSignals) -> Optional[dict]:
        if self.client is None:
            return None
        try:
            return self.runner.call(
                self.client.write_checkin_reply,
                self.provider_timeout,
                message, mood.value, signals.themes
            )
        except Exception as exc:
            logger.warning(
                "Provider check-in reply unavailable (%s: %s); using templates",
                type(exc).__name__, exc
            )
            return None

    def triage(self, message: str, mood: Mood = Mood.neutral) -> TriageDecision:
        """
        Classify a check-in and build the reply.

        The caller must not send a blank message.
        """
        signals = extract_signals(message, mood)
        if signals.urgent:
            logger.info("Check-in triaged as urgent (crisis=%s, distress=%d)",
                        signals.crisis, signals.distress)
            return _urgent_decision()

        reply = self._provider_reply(message, mood, signals)
        if reply is None:
            return template_decision(signals, mood)

        if reply.get("urgent"):
            logger.info("Check-in escalated to urgent by provider")
            return _urgent_decision()

        response = reply.get("response")
        if not isinstance(response, str) or not response.strip():
            return template_decision(signals, mood)

        follow_ups = [q for q in reply.get("followUps", []) if isinstance(q, str) and q.strip()]
        if not follow_ups:
            follow_ups = template_decision(signals, mood).follow_ups
        return TriageDecision(
            urgent=False,
            response=response.strip(),
            follow_ups=follow_ups[:MAX_FOLLOW_UPS]
        )


# ============================================================
# RESPONSE COMPOSER
# ============================================================

def compose_message(decision: TriageDecision) -> str:
    """Reply text followed by bulleted follow-ups, blank-line separated."""
    parts = [decision.response] if decision.response else []
    parts.extend(f"• {q}" for q in (decision.follow_ups or []) if q)
    return "\n\n".join(parts)
