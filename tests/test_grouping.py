"""Division grouper partitioning."""

import logging
from types import SimpleNamespace

from league_engine.database.models import LeagueTier
from league_engine.utils.grouping import DivisionGrouper


def state(user_id, tier=LeagueTier.SILVER, division=1, lifetime=0):
    return SimpleNamespace(user_id=user_id, tier=tier, division=division,
                           lifetime_score=lifetime, display_name=None)


def entry(user_id, score):
    return SimpleNamespace(user_id=user_id, score=score)


def test_every_user_lands_in_exactly_one_group(registry):
    states = [
        state("a", LeagueTier.SILVER, 1),
        state("b", LeagueTier.SILVER, 2),
        state("c", LeagueTier.GOLD, 1),
        state("d", LeagueTier.SILVER, 1),
    ]
    groups = DivisionGrouper(registry).group(states, [entry("a", 10), entry("c", 5)])

    assert set(groups) == {(LeagueTier.SILVER, 1), (LeagueTier.SILVER, 2), (LeagueTier.GOLD, 1)}
    all_ids = [m.user_id for members in groups.values() for m in members]
    assert sorted(all_ids) == ["a", "b", "c", "d"]


def test_inactive_users_get_zero(registry):
    groups = DivisionGrouper(registry).group([state("idle"), state("busy")], [entry("busy", 40)])
    scores = {m.user_id: m.weekly_score for m in groups[(LeagueTier.SILVER, 1)]}
    assert scores == {"idle": 0, "busy": 40}


def test_ledger_entry_without_state_is_excluded(registry, caplog):
    with caplog.at_level(logging.WARNING):
        groups = DivisionGrouper(registry).group([state("known")], [entry("known", 3), entry("ghost", 99)])
    ids = [m.user_id for m in groups[(LeagueTier.SILVER, 1)]]
    assert ids == ["known"]
    assert "ghost" in caplog.text


def test_excluded_users_are_omitted(registry):
    groups = DivisionGrouper(registry).group(
        [state("done"), state("todo")], [entry("todo", 1)], exclude_user_ids={"done"}
    )
    assert [m.user_id for m in groups[(LeagueTier.SILVER, 1)]] == ["todo"]


def test_overfull_group_is_kept_whole(registry, caplog):
    limit = registry.config(LeagueTier.DIAMOND).max_division_size
    states = [state(f"u{i}", LeagueTier.DIAMOND, 1, lifetime=20000) for i in range(limit + 3)]
    with caplog.at_level(logging.WARNING):
        groups = DivisionGrouper(registry).group(states, [])
    assert len(groups[(LeagueTier.DIAMOND, 1)]) == limit + 3
    assert "above the maximum" in caplog.text


def test_lifetime_score_is_carried(registry):
    groups = DivisionGrouper(registry).group([state("a", lifetime=777)], [])
    assert groups[(LeagueTier.SILVER, 1)][0].lifetime_score == 777
