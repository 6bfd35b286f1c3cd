"""
Level Progression Engine
========================
Maps scores to mastery levels F (lowest) through A (highest) and decides
whether a student advances. A is the ceiling: advancing from A routes to
enrichment content instead of a higher level.
"""
import logging

from diagnostic_engine.services.score_records import timestamp_sort_key, validate_score

logger = logging.getLogger(__name__)

LEVEL_ORDER = ("F", "E", "D", "C", "B", "A")

LEVEL_VALUES = {level: idx + 1 for idx, level in enumerate(LEVEL_ORDER)}  # F=1 .. A=6

# Highest threshold first; the first one the score reaches wins.
LEVEL_THRESHOLDS = (
    ("A", 95),
    ("B", 85),
    ("C", 75),
    ("D", 65),
    ("E", 55),
)
FLOOR_LEVEL = "F"

LEVEL_DESCRIPTIONS = {
    "A": "Advanced Mastery - Ready for enrichment",
    "B": "Proficient - Strong understanding",
    "C": "Developing - Building competency",
    "D": "Approaching - Needs reinforcement",
    "E": "Beginning - Requires intervention",
    "F": "Foundational - Needs intensive support",
}

CEILING_LEVEL = LEVEL_ORDER[-1]
ENRICHMENT = "enrichment"
ADVANCE_SCORE = 100


def _check_level(level):
    if level not in LEVEL_VALUES:
        raise ValueError(f"Unknown mastery level {level!r}; expected one of {', '.join(LEVEL_ORDER)}")
    return level


def score_to_level(score):
    """Total mapping from any numeric score to a level letter."""
    for level, threshold in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return FLOOR_LEVEL


def next_level(current_level):
    """Next-higher level, or None at the ceiling."""
    idx = LEVEL_ORDER.index(_check_level(current_level))
    if idx < len(LEVEL_ORDER) - 1:
        return LEVEL_ORDER[idx + 1]
    return None


def can_advance(latest_score, current_level):
    """Only a perfect score advances; a student already at A always may."""
    _check_level(current_level)
    latest_score = validate_score(latest_score, "latest_score")
    return latest_score == ADVANCE_SCORE or current_level == CEILING_LEVEL


def level_value(level):
    return LEVEL_VALUES[_check_level(level)]


def level_from_value(value):
    """Inverse of level_value, clamped to the F..A range."""
    idx = max(1, min(len(LEVEL_ORDER), int(value))) - 1
    return LEVEL_ORDER[idx]


def level_description(level):
    return LEVEL_DESCRIPTIONS[_check_level(level)]


def _trend_direction(values):
    """Compare first-half and second-half mean level values."""
    if len(values) < 2:
        return "insufficient_data"
    first_half = values[:len(values) // 2] or values[:1]
    second_half = values[len(values) // 2:] or values[-1:]
    diff = sum(second_half) / len(second_half) - sum(first_half) / len(first_half)
    if diff >= 1:
        return "improving"
    elif diff <= -1:
        return "declining"
    return "stable"


def evaluate_progression(history):
    """Evaluate a student's score history.

    Args:
        history: list of {"score", "timestamp"?} dicts or bare scores, in any
            order; entries are ordered by timestamp (stable for ties/missing)

    Returns:
        dict with current_level, description, next_level, can_advance,
        route_to_enrichment, trajectory and trend.
    """
    entries = []
    for idx, item in enumerate(history or []):
        if isinstance(item, dict):
            score, timestamp = item.get("score"), item.get("timestamp")
        else:
            score, timestamp = item, None
        entries.append((timestamp, idx, validate_score(score)))
    entries.sort(key=lambda e: (timestamp_sort_key(e[0]), e[1]))

    if not entries:
        return {
            "current_level": None,
            "description": None,
            "next_level": None,
            "can_advance": False,
            "route_to_enrichment": False,
            "latest_score": None,
            "trajectory": [],
            "trend": "insufficient_data",
        }

    trajectory = [
        {"timestamp": None if ts == "" else ts, "score": score, "level": score_to_level(score)}
        for ts, _, score in entries
    ]
    latest = trajectory[-1]
    current = latest["level"]
    advancing = can_advance(latest["score"], current)

    result = {
        "current_level": current,
        "description": LEVEL_DESCRIPTIONS[current],
        "next_level": next_level(current),
        "can_advance": advancing,
        "route_to_enrichment": advancing and current == CEILING_LEVEL,
        "latest_score": latest["score"],
        "trajectory": trajectory,
        "trend": _trend_direction([LEVEL_VALUES[t["level"]] for t in trajectory]),
    }
    logger.debug("Progression: level %s, advance=%s", current, advancing)
    return result
