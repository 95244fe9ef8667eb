"""
Service Container - Dependency Injection Container

Simple DI container for the gamification engine. Every component shares one
store, one clock and one action cache; components are lazy-loaded on first
access.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from src.cache.action_cache import ActionCache
from src.db.store import DocumentStore
from src.gamification.rate_limiter import RateLimitConfig
from src.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, clock, action cache) are injected.
    """

    # Infrastructure dependencies (injected)
    store: DocumentStore
    clock: Clock = field(default_factory=Clock)
    action_cache: ActionCache = field(default_factory=ActionCache)
    limits: Optional[RateLimitConfig] = None
    session_id: Optional[str] = None

    # Components (lazy-loaded via properties)
    _rate_limiter: Optional[object] = field(default=None, init=False, repr=False)
    _xp_ledger: Optional[object] = field(default=None, init=False, repr=False)
    _streaks: Optional[object] = field(default=None, init=False, repr=False)
    _progress: Optional[object] = field(default=None, init=False, repr=False)
    _badges: Optional[object] = field(default=None, init=False, repr=False)
    _achievements: Optional[object] = field(default=None, init=False, repr=False)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def rate_limiter(self):
        """Get RateLimiter instance (lazy-loaded)"""
        if self._rate_limiter is None:
            from src.gamification.rate_limiter import RateLimiter
            self._rate_limiter = RateLimiter(
                self.store,
                clock=self.clock,
                action_cache=self.action_cache,
                limits=self.limits,
                session_id=self.session_id,
            )
            logger.debug("RateLimiter instantiated")
        return self._rate_limiter

    @property
    def xp_ledger(self):
        """Get XPLedger instance (lazy-loaded)"""
        if self._xp_ledger is None:
            from src.gamification.xp_system import XPLedger
            self._xp_ledger = XPLedger(self.store, self.rate_limiter, clock=self.clock)
            logger.debug("XPLedger instantiated")
        return self._xp_ledger

    @property
    def streaks(self):
        """Get StreakCalculator instance (lazy-loaded)"""
        if self._streaks is None:
            from src.gamification.streak_system import StreakCalculator
            self._streaks = StreakCalculator(self.store, clock=self.clock)
            logger.debug("StreakCalculator instantiated")
        return self._streaks

    @property
    def progress(self):
        """Get ProgressAggregator instance (lazy-loaded)"""
        if self._progress is None:
            from src.gamification.progress import ProgressAggregator
            self._progress = ProgressAggregator(self.store)
            logger.debug("ProgressAggregator instantiated")
        return self._progress

    @property
    def badges(self):
        """Get BadgeEngine instance (lazy-loaded)"""
        if self._badges is None:
            from src.gamification.badge_system import BadgeEngine
            self._badges = BadgeEngine(self.store, self.xp_ledger, self.progress, clock=self.clock)
            logger.debug("BadgeEngine instantiated")
        return self._badges

    @property
    def achievements(self):
        """Get AchievementSystem instance (lazy-loaded)"""
        if self._achievements is None:
            from src.gamification.achievement_system import AchievementSystem
            self._achievements = AchievementSystem(
                self.store, self.xp_ledger, self.streaks, clock=self.clock
            )
            logger.debug("AchievementSystem instantiated")
        return self._achievements

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from src.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(
                self.store,
                self.xp_ledger,
                self.streaks,
                self.badges,
                self.achievements,
                self.progress,
                clock=self.clock,
            )
            logger.debug("GamificationService instantiated")
        return self._gamification_service


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() in main.py before using services."
        )
    return _container


def init_container(
    store: DocumentStore,
    clock: Optional[Clock] = None,
    action_cache: Optional[ActionCache] = None
) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once in main.py after infrastructure setup.

    Args:
        store: Document store shared by every component
        clock: Time source, defaults to the wall clock
        action_cache: In-process cooldown cache

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(
        store=store,
        clock=clock or Clock(),
        action_cache=action_cache if action_cache is not None else ActionCache(),
    )

    logger.info("Service container initialized")
    return _container
