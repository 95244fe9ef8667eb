"""
Game stat aggregation

One implementation shared by the badge rule engine and the season-goal
progress aggregator, so a goal that reads complete also counts as complete
for "season goals completed" badges.
"""

import logging
from typing import Iterable

from src.models.game import GameRecord

logger = logging.getLogger(__name__)

# Ratio stats: (numerator, denominator), reported as a percentage
PERCENTAGE_STATS = {
    "save_percentage": ("saves", "shots_against"),
    "faceoff_percentage": ("faceoff_wins", "faceoffs_taken"),
}

# Stats computed from other counting stats
DERIVED_TOTALS = {
    "points": ("goals", "assists"),
}

# Field names used by older app builds
STAT_ALIASES = {
    "groundBalls": "ground_balls",
    "shotsAgainst": "shots_against",
    "goalsAllowed": "goals_allowed",
    "causedTurnovers": "caused_turnovers",
    "faceoffWins": "faceoff_wins",
    "faceoffsTaken": "faceoffs_taken",
    "savePercentage": "save_percentage",
    "faceoffPercentage": "faceoff_percentage",
}


def normalize_stat(stat: str) -> str:
    return STAT_ALIASES.get(stat, stat)


def _raw(game: GameRecord, field: str) -> float:
    value = game.stats.get(field)
    if value is None:
        # Legacy camelCase key
        for alias, canonical in STAT_ALIASES.items():
            if canonical == field and alias in game.stats:
                value = game.stats[alias]
                break
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric stat {field}={value!r} on game {game.id}")
        return 0.0


def stat_from_game(game: GameRecord, stat: str) -> float:
    """Value of one stat in a single game (0 when not recorded)"""
    stat = normalize_stat(stat)
    if stat in DERIVED_TOTALS:
        return sum(_raw(game, part) for part in DERIVED_TOTALS[stat])
    if stat in PERCENTAGE_STATS:
        numerator, denominator = PERCENTAGE_STATS[stat]
        total = _raw(game, denominator)
        return _raw(game, numerator) / total * 100 if total > 0 else 0.0
    return _raw(game, stat)


def season_stat_total(games: Iterable[GameRecord], stat: str) -> float:
    """Sum of a stat over the given games"""
    return sum(stat_from_game(game, stat) for game in games)


def season_stat_percentage(games: Iterable[GameRecord], stat: str) -> float:
    """
    Ratio stat over the given games, e.g. total saves / total shots × 100

    Returns 0 for stats that are not ratios or when the denominator is 0.
    """
    stat = normalize_stat(stat)
    if stat not in PERCENTAGE_STATS:
        return 0.0
    games = list(games)
    numerator, denominator = PERCENTAGE_STATS[stat]
    total = sum(_raw(g, denominator) for g in games)
    if total <= 0:
        return 0.0
    return sum(_raw(g, numerator) for g in games) / total * 100


def aggregate_stat(games: Iterable[GameRecord], stat: str) -> float:
    """Season value of a stat: a ratio for percentage stats, otherwise a sum"""
    if normalize_stat(stat) in PERCENTAGE_STATS:
        return season_stat_percentage(games, stat)
    return season_stat_total(games, stat)
