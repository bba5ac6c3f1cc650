"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Field names on the wire follow the portal frontend (camelCase aliases).
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class OpportunityType(str, Enum):
    scholarship = "scholarship"
    bursary = "bursary"
    gig = "gig"
    internship = "internship"
    grant = "grant"


class Mood(str, Enum):
    happy = "happy"
    neutral = "neutral"
    anxious = "anxious"
    stressed = "stressed"
    sad = "sad"


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class StudentProfile(BaseModel):
    """Normalized profile. skills/interests are lower-cased and never missing."""
    skills: List[str] = []
    interests: List[str] = []
    location: Optional[str] = None
    gpa: Optional[float] = Field(None, ge=0, le=5)
    university: Optional[str] = None
    department: Optional[str] = None
    level: Optional[str] = None


# ============================================================
# OPPORTUNITY SCHEMAS
# ============================================================

class Opportunity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: OpportunityType
    title: str
    organization: str = ""
    description: str = ""
    amount: Optional[float] = None
    currency: str = "NGN"
    deadline: date
    requirements: List[str] = []
    skills: List[str] = []
    location: str = "Nigeria"
    is_remote: bool = Field(False, alias="isRemote")
    application_url: str = Field("", alias="applicationUrl")
    tags: List[str] = []
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class MatchResult(BaseModel):
    opportunity: Opportunity
    score: float = Field(..., ge=0, le=1)
    reason: str


class MatchRequest(BaseModel):
    # Raw dict on purpose: the normalizer drops bad fields instead of rejecting them
    profile: Optional[Dict[str, Any]] = None
    opportunities: Optional[List[Opportunity]] = None


class MatchResponse(BaseModel):
    profile: StudentProfile
    total: int
    matches: List[MatchResult]


# ============================================================
# WELLNESS SCHEMAS
# ============================================================

class CheckinRequest(BaseModel):
    message: str
    mood: Mood = Mood.neutral


class TriageDecision(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    urgent: bool
    response: str
    follow_ups: List[str] = Field(default_factory=list, alias="followUps", max_length=4)


class CheckinResponse(TriageDecision):
    content: str


class Hotline(BaseModel):
    name: str
    number: str


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class HealthResponse(BaseModel):
    status: str
    postgres: str
    ai_provider: str
