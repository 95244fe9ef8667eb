"""Unit tests for the badge rule engine (src/gamification/badge_system.py)"""
import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from src.db.store import USER_BADGES, USERS, XP_ACTIONS
from src.exceptions import StoreUnavailableError
from src.gamification.badge_system import (
    REQUIREMENT_CHECKS,
    BadgeEngine,
    EvaluationContext,
    badge_requirements_met,
)
from src.gamification.catalog import BADGES
from src.gamification.progress import ProgressAggregator
from src.models.badge import (
    Badge,
    BadgeCategory,
    Comparison,
    ConsecutiveGamesRequirement,
    RequirementType,
    StatSingleGameRequirement,
    TriggerContext,
)
from src.models.xp import XPAwardResult


@pytest.fixture
def engine(store, ledger, clock):
    return BadgeEngine(store, ledger, ProgressAggregator(store), clock=clock)


def _ids(badges):
    return [b.id for b in badges]


# ============================================================================
# Requirement checks
# ============================================================================

def test_every_requirement_type_has_a_check():
    assert set(REQUIREMENT_CHECKS) == set(RequirementType)


def test_single_game_requirement_needs_trigger_game(make_game):
    badge = Badge(
        id="b", title="B", description="", icon_name="x", category=BadgeCategory.MILESTONES,
        requirements=(StatSingleGameRequirement(stat="goals", target=1),),
    )
    assert not badge_requirements_met(badge, EvaluationContext(trigger_game=None, games=[make_game(goals=5)]))
    assert badge_requirements_met(badge, EvaluationContext(trigger_game=make_game(goals=1)))


def test_lte_comparison(make_game):
    requirement = StatSingleGameRequirement(stat="goals_allowed", target=0, comparison=Comparison.LTE)
    check = REQUIREMENT_CHECKS[RequirementType.STAT_SINGLE_GAME]
    assert check(requirement, EvaluationContext(trigger_game=make_game(goals_allowed=0, shots_against=5)))
    assert not check(requirement, EvaluationContext(trigger_game=make_game(goals_allowed=1)))


def test_all_requirements_must_hold(make_game):
    badge = Badge(
        id="b", title="B", description="", icon_name="x", category=BadgeCategory.MILESTONES,
        requirements=(
            StatSingleGameRequirement(stat="goals", target=3),
            ConsecutiveGamesRequirement(target=2),
        ),
    )
    trigger = make_game(goals=3)
    assert not badge_requirements_met(badge, EvaluationContext(trigger_game=trigger, games=[trigger]))
    assert badge_requirements_met(badge, EvaluationContext(trigger_game=trigger, games=[trigger, make_game()]))


def test_requirement_union_parses_from_dict():
    badge = Badge.model_validate({
        "id": "b", "title": "B", "description": "", "icon_name": "x", "category": "special",
        "requirements": [
            {"type": "stat_total", "stat": "saves", "target": 10},
            {"type": "season_goals_completed", "target": 1},
        ],
    })
    assert [r.type for r in badge.requirements] == [
        RequirementType.STAT_TOTAL,
        RequirementType.SEASON_GOALS_COMPLETED,
    ]


# ============================================================================
# evaluate
# ============================================================================

@pytest.mark.asyncio
async def test_hat_trick_unlocks_and_awards_xp(engine, store, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=3))

    new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game, event_id=game.id))

    assert _ids(new_badges) == ["first_hat_trick"]
    row = await store.get_by_id(USER_BADGES, f"{test_user_id}_first_hat_trick")
    assert row["triggering_event_id"] == game.id

    user = await store.get_by_id(USERS, test_user_id)
    assert user["total_xp"] == 75  # common badge
    assert user["last_badge_unlocked"] is not None


@pytest.mark.asyncio
async def test_evaluate_twice_unlocks_once(engine, store, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=4))

    first = await engine.evaluate(test_user_id, TriggerContext(game=game))
    second = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert _ids(first) == ["first_hat_trick"]
    assert second == []
    assert store.count(USER_BADGES) == 1
    assert store.count(XP_ACTIONS) == 1


@pytest.mark.asyncio
async def test_two_requirement_badge_needs_both(engine, store, make_game, save_game, set_position, test_user_id):
    """.700 save percentage badge also needs five games"""
    await set_position(test_user_id, "goalie")

    for _ in range(4):
        game = await save_game(make_game(saves=8, shots_against=10, goals_allowed=2))
        assert "elite_save_percentage" not in _ids(
            await engine.evaluate(test_user_id, TriggerContext(game=game))
        )

    game = await save_game(make_game(saves=8, shots_against=10, goals_allowed=2))
    new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert _ids(new_badges) == ["elite_save_percentage"]
    assert (await store.get_by_id(USERS, test_user_id))["total_xp"] == 150  # epic


@pytest.mark.asyncio
async def test_percentage_below_target_blocks_badge(engine, make_game, save_game, set_position, test_user_id):
    await set_position(test_user_id, "goalie")
    for _ in range(5):
        game = await save_game(make_game(saves=6, shots_against=10, goals_allowed=4))

    new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert "elite_save_percentage" not in _ids(new_badges)


@pytest.mark.asyncio
async def test_concurrent_evaluations_unlock_once(engine, store, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=3))
    trigger = TriggerContext(game=game)

    results = await asyncio.gather(
        engine.evaluate(test_user_id, trigger),
        engine.evaluate(test_user_id, trigger),
    )

    assert sorted(len(r) for r in results) == [0, 1]
    assert store.count(USER_BADGES) == 1
    assert (await store.get_by_id(USERS, test_user_id))["total_xp"] == 75


@pytest.mark.asyncio
async def test_position_scope_filters_badges(engine, make_game, save_game, test_user_id):
    """Default position is midfielder, so goalie badges are never candidates"""
    game = await save_game(make_game(saves=25, shots_against=26, goals_allowed=1))

    new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert "wall_of_saves" not in _ids(new_badges)


@pytest.mark.asyncio
async def test_goalie_shutout(engine, make_game, save_game, set_position, test_user_id):
    await set_position(test_user_id, "goalie")
    game = await save_game(make_game(saves=12, shots_against=12, goals_allowed=0))

    assert _ids(await engine.evaluate(test_user_id, TriggerContext(game=game))) == ["first_shutout"]


@pytest.mark.asyncio
async def test_unsaved_trigger_game_is_counted(engine, make_game, test_user_id):
    game = make_game(goals=3)

    new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert _ids(new_badges) == ["first_hat_trick"]


@pytest.mark.asyncio
async def test_season_goals_completed_badge(engine, make_game, save_game, save_goal, test_user_id):
    await save_goal(test_user_id, "g1", "Goals", "goals", 2)
    await save_goal(test_user_id, "g2", "Assists", "assists", 2)
    await save_goal(test_user_id, "g3", "Ground balls", "ground_balls", 2)
    game = await save_game(make_game(goals=2, assists=2, ground_balls=2))

    new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert "goal_achiever" in _ids(new_badges)


@pytest.mark.asyncio
async def test_rejected_xp_keeps_unlock(engine, ledger, store, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=3))

    with patch.object(
        ledger, "award",
        AsyncMock(return_value=XPAwardResult.rejected("daily_action_cap", "Daily XP limit reached")),
    ):
        new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert _ids(new_badges) == ["first_hat_trick"]
    assert store.count(USER_BADGES) == 1


@pytest.mark.asyncio
async def test_failed_xp_award_keeps_unlock(engine, ledger, store, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=3))

    with patch.object(ledger, "award", AsyncMock(side_effect=StoreUnavailableError())):
        new_badges = await engine.evaluate(test_user_id, TriggerContext(game=game))

    assert _ids(new_badges) == ["first_hat_trick"]


@pytest.mark.asyncio
async def test_unlock_write_failure_raises(engine, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=3))

    with patch(
        "src.gamification.badge_system.queries.insert_user_badge",
        AsyncMock(side_effect=OSError("network down")),
    ):
        with pytest.raises(StoreUnavailableError):
            await engine.evaluate(test_user_id, TriggerContext(game=game))


# ============================================================================
# Catalog reads
# ============================================================================

@pytest.mark.asyncio
async def test_get_user_badges_attaches_catalog(engine, make_game, save_game, test_user_id):
    game = await save_game(make_game(goals=3))
    await engine.evaluate(test_user_id, TriggerContext(game=game))

    badges = await engine.get_user_badges(test_user_id)

    assert len(badges) == 1
    assert badges[0].badge.title == "First Hat Trick"


def test_get_available_badges_by_position():
    goalie_ids = _ids(BadgeEngine.get_available_badges("goalie"))

    assert "first_shutout" in goalie_ids
    assert "first_hat_trick" in goalie_ids
    assert "faceoff_specialist" not in goalie_ids
    assert len(BadgeEngine.get_available_badges()) == len([b for b in BADGES if not b.is_secret])


def test_get_badge_by_id():
    assert BadgeEngine.get_badge_by_id("iron_man").title == "Iron Man"
    assert BadgeEngine.get_badge_by_id("missing") is None
