"""Ranking calculator ordering and tie-breaks."""

import random

from league_engine.data_models.league import GroupMember
from league_engine.database.models import LeagueTier
from league_engine.utils.ranking import RankingCalculator


def member(user_id, weekly, lifetime=0):
    return GroupMember(
        user_id=user_id,
        tier=LeagueTier.GOLD,
        division=1,
        weekly_score=weekly,
        lifetime_score=lifetime,
    )


def test_ranks_are_contiguous_from_one():
    members = [member(f"u{i:02d}", weekly=random.randint(0, 50), lifetime=random.randint(0, 5000))
               for i in range(37)]
    ranked = RankingCalculator.rank(members)
    assert [e.rank for e in ranked] == list(range(1, 38))
    assert {e.user_id for e in ranked} == {m.user_id for m in members}


def test_orders_by_weekly_score_descending():
    ranked = RankingCalculator.rank([member("a", 10), member("b", 30), member("c", 20)])
    assert [e.user_id for e in ranked] == ["b", "c", "a"]


def test_weekly_tie_broken_by_lifetime_score():
    ranked = RankingCalculator.rank([member("low", 50, lifetime=100), member("high", 50, lifetime=900)])
    assert ranked[0].user_id == "high"
    assert ranked[0].rank == 1
    assert ranked[1].rank == 2


def test_full_tie_broken_by_user_id():
    ranked = RankingCalculator.rank([member("zed", 5, 5), member("amy", 5, 5), member("max", 5, 5)])
    assert [e.user_id for e in ranked] == ["amy", "max", "zed"]
    assert [e.rank for e in ranked] == [1, 2, 3]


def test_identical_input_yields_identical_order():
    members = [member(f"user-{i}", weekly=i % 3, lifetime=i % 2) for i in range(20)]
    shuffled = list(members)
    random.shuffle(shuffled)
    assert RankingCalculator.rank(members) == RankingCalculator.rank(shuffled)


def test_empty_group():
    assert RankingCalculator.rank([]) == []


def test_single_member_group():
    ranked = RankingCalculator.rank([member("solo", 0)])
    assert len(ranked) == 1
    assert ranked[0].rank == 1
    assert ranked[0].tier == LeagueTier.GOLD
