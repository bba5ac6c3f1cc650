from datetime import date, datetime
from decimal import Decimal

from unibridge.core.config import Settings
from unibridge.services import opportunity_service
from unibridge.services.opportunity_service import OpportunityCatalog

TODAY = date(2026, 3, 2)


def _row(**overrides) -> dict:
    row = {
        "id": 17,
        "title": "MTN Foundation Scholarship",
        "type": "scholarship",
        "organization": "MTN",
        "description": None,
        "amount": Decimal("200000.00"),
        "currency": None,
        "deadline": date(2026, 4, 1),
        "requirements": None,
        "skills": ["excel"],
        "location": None,
        "is_remote": None,
        "application_url": None,
        "tags": None,
        "created_at": datetime(2026, 2, 1, 12, 0),
    }
    row.update(overrides)
    return row


def _catalog(query) -> OpportunityCatalog:
    return OpportunityCatalog(Settings(_env_file=None), query=query, clock=lambda: TODAY)


def test_rows_are_mapped_with_portal_defaults() -> None:
    calls = []

    def query(sql, params):
        calls.append(params)
        return [_row()]

    [opp] = _catalog(query).get_live_opportunities()

    assert calls == [{"today": TODAY, "limit": 200}]
    assert opp.id == "17"
    assert opp.amount == 200000.0
    assert opp.currency == "NGN"
    assert opp.location == "Nigeria"
    assert opp.is_remote is False
    assert opp.requirements == [] and opp.tags == []
    assert opp.description == ""


def test_malformed_rows_are_skipped() -> None:
    rows = [_row(), _row(id=18, type="lottery"), _row(id=19, deadline=None)]
    opportunities = _catalog(lambda sql, params: rows).get_live_opportunities()
    assert [o.id for o in opportunities] == ["17"]


def test_database_failure_means_empty_catalog() -> None:
    def query(sql, params):
        raise ConnectionError("database is down")

    assert _catalog(query).get_live_opportunities(limit=10) == []


def test_default_query_uses_the_catalog_settings(monkeypatch) -> None:
    seen = []

    def fake_execute(settings, sql, params=None):
        seen.append((settings, params))
        return [_row()]

    monkeypatch.setattr(opportunity_service, "execute_raw_sql", fake_execute)
    settings = Settings(postgres_host="catalog-db", postgres_db="portal", live_catalog_limit=25, _env_file=None)

    [opp] = OpportunityCatalog(settings, clock=lambda: TODAY).get_live_opportunities()

    assert opp.id == "17"
    assert seen == [(settings, {"today": TODAY, "limit": 25})]
    assert "catalog-db" in seen[0][0].postgres_url
