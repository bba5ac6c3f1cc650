from datetime import date, datetime, timedelta
from typing import Any

import pytest

from unibridge.schemas.schemas import Opportunity

TODAY = date(2026, 3, 2)


def make_opportunity(**overrides: Any) -> Opportunity:
    data = {
        "id": "opp-1",
        "type": "internship",
        "title": "Frontend Intern",
        "organization": "Paystack",
        "description": "Build dashboards",
        "deadline": TODAY + timedelta(days=30),
        "requirements": [],
        "skills": [],
        "location": "Lagos, Nigeria",
        "isRemote": False,
        "applicationUrl": "https://example.com/apply",
        "tags": [],
        "createdAt": datetime(2026, 2, 1, 9, 0, 0),
    }
    data.update(overrides)
    return Opportunity(**data)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def opportunity_factory():
    return make_opportunity
