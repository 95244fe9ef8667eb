"""
Service Layer Package

Business logic services that sit between the app's game/activity logging
flows and the gamification engine.

Core Services:
- GamificationService: XP, streaks, badges, achievements, goal progress
"""

from src.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
