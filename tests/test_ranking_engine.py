import time
from datetime import datetime, timedelta

import pytest

from tests.conftest import TODAY
from unibridge.core.errors import ProviderUnavailableError
from unibridge.services.matching_service import (
    HeuristicScorer,
    ProviderRanker,
    RankingEngine,
)


class StaticProvider:
    name = "static"

    def __init__(self, scores):
        self.scores = scores

    def score_all(self, profile, opportunities):
        return self.scores


class FailingProvider:
    name = "failing"

    def score_all(self, profile, opportunities):
        raise ProviderUnavailableError("boom")


class SlowProvider:
    name = "slow"

    def score_all(self, profile, opportunities):
        time.sleep(1.0)
        return [(1.0, "too late") for _ in opportunities]


class FakeDeepSeek:
    def __init__(self, items):
        self.items = items

    def rank_opportunities(self, profile, opportunities):
        return self.items


def _engine(provider=None, timeout=1.0) -> RankingEngine:
    return RankingEngine(HeuristicScorer(clock=lambda: TODAY), provider, provider_timeout=timeout)


@pytest.fixture
def catalog(opportunity_factory):
    return [
        opportunity_factory(id="a", skills=["react", "sql"], deadline=TODAY + timedelta(days=40)),
        opportunity_factory(id="b", isRemote=True, deadline=TODAY + timedelta(days=3)),
        opportunity_factory(id="c", deadline=TODAY - timedelta(days=2)),
        opportunity_factory(id="d", type="scholarship", tags=["stem"], deadline=TODAY + timedelta(days=120)),
    ]


def _assert_well_formed(matches, catalog) -> None:
    assert len(matches) == len(catalog)
    assert {m.opportunity.id for m in matches} == {o.id for o in catalog}
    assert all(0.0 <= m.score <= 1.0 for m in matches)
    scores = [m.score for m in matches]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.parametrize("raw_profile", [None, {}, {"skills": [], "interests": []},
                                         {"skills": ["React"], "interests": ["stem"], "gpa": "bad"}])
def test_heuristic_ranking_is_complete_bounded_and_sorted(catalog, raw_profile) -> None:
    _assert_well_formed(_engine().rank(raw_profile, catalog), catalog)


def test_ranking_is_idempotent_without_provider(catalog) -> None:
    engine = _engine()
    first = engine.rank({"skills": ["react"]}, catalog)
    second = engine.rank({"skills": ["react"]}, catalog)
    assert [(m.opportunity.id, m.score, m.reason) for m in first] == \
        [(m.opportunity.id, m.score, m.reason) for m in second]


def test_provider_scores_are_used_when_complete(catalog) -> None:
    scores = [(0.1, "meh"), (0.9, "great"), (0.5, "ok"), (0.7, "good")]
    matches = _engine(StaticProvider(scores)).rank({}, catalog)

    assert [m.opportunity.id for m in matches] == ["b", "d", "c", "a"]
    assert matches[0].reason == "great"


@pytest.mark.parametrize("provider", [
    FailingProvider(),
    StaticProvider([(0.9, "partial")]),
    StaticProvider([(1.7, "x"), (0.1, "x"), (0.1, "x"), (0.1, "x")]),
    StaticProvider(None),
])
def test_provider_problems_fall_back_to_heuristic_for_every_item(catalog, provider) -> None:
    expected = _engine().rank({"skills": ["react"]}, catalog)
    matches = _engine(provider).rank({"skills": ["react"]}, catalog)

    _assert_well_formed(matches, catalog)
    assert [(m.opportunity.id, m.score) for m in matches] == \
        [(m.opportunity.id, m.score) for m in expected]


def test_provider_timeout_falls_back_without_waiting(catalog) -> None:
    started = time.monotonic()
    matches = _engine(SlowProvider(), timeout=0.05).rank({}, catalog)
    elapsed = time.monotonic() - started

    _assert_well_formed(matches, catalog)
    assert all(m.reason != "too late" for m in matches)
    assert elapsed < 0.8


def test_ties_break_by_deadline_then_recency(opportunity_factory) -> None:
    older = opportunity_factory(id="older", deadline=TODAY + timedelta(days=5),
                                createdAt=datetime(2026, 1, 1))
    newer = opportunity_factory(id="newer", deadline=TODAY + timedelta(days=5),
                                createdAt=datetime(2026, 2, 1))
    undated = opportunity_factory(id="undated", deadline=TODAY + timedelta(days=5), createdAt=None)
    sooner = opportunity_factory(id="sooner", deadline=TODAY + timedelta(days=2))
    provider = StaticProvider([(0.5, "tie")] * 4)

    matches = _engine(provider).rank({}, [older, undated, newer, sooner])

    assert [m.opportunity.id for m in matches] == ["sooner", "newer", "older", "undated"]


def test_expired_opportunity_never_outranks_identical_future_one(opportunity_factory) -> None:
    future = opportunity_factory(id="future", deadline=TODAY + timedelta(days=10))
    expired = opportunity_factory(id="expired", deadline=TODAY - timedelta(days=10))

    matches = _engine().rank({}, [expired, future])

    assert [m.opportunity.id for m in matches] == ["future", "expired"]
    assert matches[0].score > matches[1].score


def test_provider_ranker_accepts_complete_answer(catalog) -> None:
    items = [{"id": o.id, "score": 0.5, "reason": f"fits {o.id}"} for o in reversed(catalog)]
    ranker = ProviderRanker(FakeDeepSeek(items))

    scores = ranker.score_all(None, catalog)

    assert scores == [(0.5, f"fits {o.id}") for o in catalog]


@pytest.mark.parametrize("mutate", [
    lambda items: items[:-1],
    lambda items: items + [dict(items[0])],
    lambda items: [dict(items[0], id="unknown")] + items[1:],
    lambda items: [dict(items[0], score="high")] + items[1:],
    lambda items: [dict(items[0], score=True)] + items[1:],
    lambda items: [dict(items[0], reason="  ")] + items[1:],
    lambda items: ["not-a-dict"] + items[1:],
])
def test_provider_ranker_rejects_malformed_answers(catalog, mutate) -> None:
    items = [{"id": o.id, "score": 0.5, "reason": "fits"} for o in catalog]
    ranker = ProviderRanker(FakeDeepSeek(mutate(items)))

    with pytest.raises(ProviderUnavailableError):
        ranker.score_all(None, catalog)


def test_malformed_provider_answer_falls_back_in_engine(catalog) -> None:
    ranker = ProviderRanker(FakeDeepSeek([{"id": "a", "score": 0.99, "reason": "only one"}]))
    matches = _engine(ranker).rank({}, catalog)

    _assert_well_formed(matches, catalog)
    assert all(m.reason != "only one" for m in matches)
