"""
Schemas module - Request/Response schemas for API endpoints.
"""
from unibridge.schemas.schemas import (
    OpportunityType, Mood, StudentProfile, Opportunity, MatchResult,
    MatchRequest, MatchResponse, CheckinRequest, TriageDecision,
    CheckinResponse, Hotline, MessageResponse, HealthResponse
)

__all__ = [
    "OpportunityType", "Mood", "StudentProfile", "Opportunity", "MatchResult",
    "MatchRequest", "MatchResponse", "CheckinRequest", "TriageDecision",
    "CheckinResponse", "Hotline", "MessageResponse", "HealthResponse"
]
