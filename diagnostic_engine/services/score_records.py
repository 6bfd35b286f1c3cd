"""
Score record intake helpers.

Raw grade rows from the record store are loosely typed; these helpers turn
them into ScoreRecord dicts and enforce the [0, 100] score contract.
"""
import math


def round_half_up(value):
    """Round to the nearest integer with .5 going up (dashboard display rounding)."""
    return int(math.floor(value + 0.5))


def clamp_score(value):
    """Coerce a raw store value to an integer percentage in [0, 100].

    Missing or unparseable values become 0.
    """
    if value is None or value == "" or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return max(0, min(100, round_half_up(number)))


def validate_score(value, field="score"):
    """Return the score as a float, raising ValueError outside [0, 100]."""
    if isinstance(value, bool):
        raise ValueError(f"{field} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be numeric, got {value!r}")
    if math.isnan(number) or number < 0 or number > 100:
        raise ValueError(f"{field} must be within [0, 100], got {value!r}")
    return number


def score_percent(earned, possible):
    """Rounded percentage of points earned, 0 when nothing was possible."""
    try:
        earned = float(earned or 0)
        possible = float(possible or 0)
    except (TypeError, ValueError):
        return 0
    if possible <= 0:
        return 0
    return clamp_score(earned / possible * 100)


def _first(raw, *keys):
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def normalize_score_record(raw):
    """Build a ScoreRecord dict from a raw grade row.

    Accepts snake_case, camelCase and the grade-history column names
    (grade, topic_name, nys_standard, grade_justification, created_at).
    """
    score = _first(raw, "score", "grade")
    if score is None:
        score = score_percent(_first(raw, "raw_score_earned", "rawScoreEarned"),
                              _first(raw, "raw_score_possible", "rawScorePossible"))
    return {
        "topic_label": str(_first(raw, "topic_label", "topicLabel", "topic_name", "topic") or ""),
        "standard_label": _first(raw, "standard_label", "standardLabel", "nys_standard", "standard"),
        "score": clamp_score(score),
        "justification_text": _first(raw, "justification_text", "justificationText", "grade_justification"),
        "timestamp": _first(raw, "timestamp", "created_at", "createdAt"),
    }


def timestamp_sort_key(timestamp):
    """Sort key for record timestamps: missing first, numbers numerically,
    anything else (ISO strings, dates) by its string form."""
    if timestamp is None or timestamp == "":
        return (0, 0, "")
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        return (1, timestamp, "")
    return (2, 0, str(timestamp))
