"""Global test fixtures and utilities for gamification engine tests"""
import pytest
import itertools
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from src.cache.action_cache import ActionCache
from src.db import queries
from src.db.store import InMemoryDocumentStore
from src.gamification.rate_limiter import RateLimitConfig, RateLimiter
from src.gamification.xp_system import XPLedger
from src.models.game import GameRecord, SeasonGoal
from src.services.container import ServiceContainer
from src.utils.datetime_helpers import FrozenClock


# Wednesday afternoon, so local-day boundaries are far away in UTC
FROZEN_NOW = datetime(2024, 5, 15, 15, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Infrastructure Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory document store"""
    return InMemoryDocumentStore()


@pytest.fixture
def clock():
    """Clock frozen at FROZEN_NOW, day boundaries in UTC"""
    return FrozenClock(FROZEN_NOW, tz=ZoneInfo("UTC"))


@pytest.fixture
def action_cache():
    return ActionCache()


@pytest.fixture
def limits():
    """Default rate limits, independent of the environment"""
    return RateLimitConfig()


@pytest.fixture
def rate_limiter(store, clock, action_cache, limits):
    return RateLimiter(store, clock=clock, action_cache=action_cache, limits=limits, session_id="test-session")


@pytest.fixture
def ledger(store, rate_limiter, clock):
    return XPLedger(store, rate_limiter, clock=clock)


@pytest.fixture
def container(store, clock, action_cache):
    """Service container wired to the in-memory store and frozen clock"""
    return ServiceContainer(
        store=store,
        clock=clock,
        action_cache=action_cache,
        limits=RateLimitConfig(),
        session_id="test-session",
    )


# ============================================================================
# User & Game Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "player-1"


@pytest.fixture
def make_game(clock):
    """Factory for game records; each call is one minute after the previous"""
    counter = itertools.count(1)

    def _make(user_id="player-1", position=None, **stats):
        n = next(counter)
        return GameRecord(
            id=f"game-{n}",
            user_id=user_id,
            created_at=clock.now() - timedelta(days=30) + timedelta(minutes=n),
            position=position,
            stats=stats,
        )

    return _make


@pytest.fixture
def save_game(store):
    """Persist a game record"""
    async def _save(game: GameRecord) -> GameRecord:
        await queries.add_game(store, game)
        return game

    return _save


@pytest.fixture
def save_goal(store):
    """Persist a season goal"""
    async def _save(user_id, goal_id, title, stat_type, target) -> SeasonGoal:
        goal = SeasonGoal(id=goal_id, user_id=user_id, title=title, stat_type=stat_type, target=target)
        await queries.add_season_goal(store, goal)
        return goal

    return _save


@pytest.fixture
def set_position(store):
    """Set a player's position on the user document"""
    async def _set(user_id, position):
        await store.update_set("users", user_id, {"position": position})

    return _set
