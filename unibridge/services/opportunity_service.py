"""
Live Opportunity Catalog

Read-only access to the `opportunities` table. Used when a match request
arrives without its own catalog. Rows are mapped to the Opportunity
schema with the portal's defaults; rows that still fail validation are
skipped.
"""

import logging
from datetime import date
from functools import partial
from typing import Callable, List, Optional

from pydantic import ValidationError

from unibridge.core.config import Settings
from unibridge.db.postgres import execute_raw_sql
from unibridge.schemas.schemas import Opportunity

logger = logging.getLogger(__name__)

LIVE_OPPORTUNITIES_SQL = """
    SELECT id, title, type, organization, description, amount, currency,
           deadline, requirements, skills, location, is_remote,
           application_url, tags, created_at
    FROM opportunities
    WHERE deadline >= :today
    ORDER BY deadline ASC
    LIMIT :limit
"""


def row_to_opportunity(row: dict, settings: Settings) -> Opportunity:
    """Map a database row (snake_case, nullable columns) to an Opportunity."""
    amount = row.get("amount")
    return Opportunity(
        id=str(row["id"]),
        title=row["title"],
        type=row["type"],
        organization=row.get("organization") or "",
        description=row.get("description") or "",
        amount=float(amount) if amount is not None else None,
        currency=row.get("currency") or settings.default_currency,
        deadline=row["deadline"],
        requirements=row.get("requirements") or [],
        skills=row.get("skills") or [],
        location=row.get("location") or settings.default_location,
        is_remote=bool(row.get("is_remote") or False),
        application_url=row.get("application_url") or "",
        tags=row.get("tags") or [],
        created_at=row.get("created_at")
    )


class OpportunityCatalog:
    """Fetches the active catalog; failures mean "no catalog", never an exception."""

    def __init__(
        self,
        settings: Settings,
        query: Optional[Callable[[str, dict], list]] = None,
        clock: Callable[[], date] = date.today
    ):
        self.settings = settings
        self.query = query or partial(execute_raw_sql, settings)
        self.clock = clock

    def get_live_opportunities(self, limit: Optional[int] = None) -> List[Opportunity]:
        params = {
            "today": self.clock(),
            "limit": limit or self.settings.live_catalog_limit
        }
        try:
            rows = self.query(LIVE_OPPORTUNITIES_SQL, params)
        except Exception as exc:
            logger.error("Failed to fetch live opportunities: %s", exc)
            return []

        opportunities = []
        for row in rows:
            try:
                opportunities.append(row_to_opportunity(row, self.settings))
            except (KeyError, TypeError, ValueError, ValidationError) as exc:
                logger.warning("Skipping malformed opportunity row %r: %s", row.get("id"), exc)
        return opportunities
