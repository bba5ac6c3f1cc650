"""
AI Routes

POST /ai/match    - Rank opportunities for a student profile
POST /ai/checkin  - Triage a wellness check-in and reply
GET  /ai/hotlines - Static crisis hotlines (always shown by the portal)

Provider failures never reach these handlers; they are absorbed by the
services. Anything that does escape is a defect and is reported to the
client as a generic error only.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from unibridge.schemas.schemas import (
    CheckinRequest, CheckinResponse, Hotline, MatchRequest, MatchResponse
)
from unibridge.services import Services
from unibridge.services.profile_service import normalize_profile
from unibridge.services.wellness_service import HOTLINES, compose_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])

NO_CATALOG_ERROR = "No active opportunities are available for matching."
RANK_FAILED_ERROR = "Unable to rank opportunities right now."
EMPTY_MESSAGE_ERROR = "Message is required."
CHECKIN_FAILED_ERROR = "Unable to process your check-in right now."


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.post("/match", response_model=MatchResponse)
def match_opportunities(
    payload: MatchRequest,
    request: Request,
    top_n: Optional[int] = Query(None, ge=1, le=50, description="How many matches to return")
):
    """
    Rank opportunities against the student's profile.

    Uses the opportunities in the payload, or the live catalog when none
    are sent. Returns the top N matches plus the total ranked.
    """
    services = get_services(request)
    settings = request.app.state.settings

    opportunities = payload.opportunities or services.catalog.get_live_opportunities()
    if not opportunities:
        raise HTTPException(status_code=400, detail=NO_CATALOG_ERROR)

    try:
        profile = normalize_profile(payload.profile)
        ranked = services.ranking_engine.rank(profile, opportunities)
    except Exception:
        logger.exception("Opportunity ranking failed")
        raise HTTPException(status_code=500, detail=RANK_FAILED_ERROR)

    return MatchResponse(
        profile=profile,
        total=len(ranked),
        matches=ranked[:top_n or settings.match_top_n]
    )


@router.post("/checkin", response_model=CheckinResponse)
def wellness_checkin(payload: CheckinRequest, request: Request):
    """
    Triage a wellness check-in.

    urgent=true means the reply points the student to a counsellor or
    hotline and carries no follow-up prompts.
    """
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail=EMPTY_MESSAGE_ERROR)

    try:
        decision = get_services(request).triage_classifier.triage(message, payload.mood)
        content = compose_message(decision)
    except Exception:
        logger.exception("Wellness check-in triage failed")
        raise HTTPException(status_code=500, detail=CHECKIN_FAILED_ERROR)

    return CheckinResponse(
        urgent=decision.urgent,
        response=decision.response,
        follow_ups=decision.follow_ups,
        content=content
    )


@router.get("/hotlines", response_model=List[Hotline])
def crisis_hotlines():
    """Crisis hotlines shown next to every check-in, whatever the triage outcome."""
    return HOTLINES
