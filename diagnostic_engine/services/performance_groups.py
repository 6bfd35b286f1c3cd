"""
Performance Grouper
===================
Buckets students into four fixed performance bands and finds the topics
each band is weak on, relative to the band's own midpoint.
"""
import logging
from collections import OrderedDict

from diagnostic_engine.config import MAX_WEAK_TOPICS
from diagnostic_engine.services.score_records import clamp_score, round_half_up, validate_score

logger = logging.getLogger(__name__)

UNKNOWN_TOPIC_NAME = "Unknown"

# Scanned in this order; ranges are closed and contiguous so at most one matches.
PERFORMANCE_BANDS = (
    {"level": "advanced", "label": "Advanced", "description": "Ready for enrichment",
     "min_score": 85, "max_score": 100},
    {"level": "proficient", "label": "Proficient", "description": "Meeting expectations",
     "min_score": 70, "max_score": 84},
    {"level": "developing", "label": "Developing", "description": "Making progress",
     "min_score": 55, "max_score": 69},
    {"level": "needs-support", "label": "Needs Support", "description": "Requires intervention",
     "min_score": 0, "max_score": 54},
)

BAND_LEVELS = tuple(b["level"] for b in PERFORMANCE_BANDS)


def validate_bands(bands):
    """Raise ValueError unless the bands tile [0, 100] with no gaps or overlaps."""
    ordered = sorted(bands, key=lambda b: b["min_score"])
    if not ordered:
        raise ValueError("At least one performance band is required")
    if ordered[0]["min_score"] != 0 or ordered[-1]["max_score"] != 100:
        raise ValueError("Performance bands must cover 0-100")
    for band in ordered:
        if band["min_score"] > band["max_score"]:
            raise ValueError(f"Band {band['level']} has min above max")
    for lower, upper in zip(ordered, ordered[1:]):
        if upper["min_score"] != lower["max_score"] + 1:
            raise ValueError(
                f"Bands {lower['level']} and {upper['level']} overlap or leave a gap"
            )
    return bands


validate_bands(PERFORMANCE_BANDS)


def band_midpoint(band):
    return (band["min_score"] + band["max_score"]) / 2


def band_for_score(score, bands=PERFORMANCE_BANDS):
    """Return the band whose closed range holds the (rounded) score, else None."""
    rounded = round_half_up(validate_score(score, "overall_mastery"))
    for band in bands:
        if band["min_score"] <= rounded <= band["max_score"]:
            return band
    return None


def _topic_names(topics):
    return {t.get("id"): t.get("name") for t in topics or []}


def weak_topics_for(members, topic_names, band, max_topics=MAX_WEAK_TOPICS):
    """Topics whose band-average is strictly below the band midpoint, lowest first.

    Only students with at least one attempt on a topic count toward its mean.
    """
    totals = OrderedDict()
    for student in members:
        for topic in student.get("topics") or []:
            if (topic.get("total_attempts") or 0) <= 0:
                continue
            score = validate_score(topic.get("avg_score"), "avg_score")
            bucket = totals.setdefault(topic.get("topic_id"), {"total": 0.0, "count": 0})
            bucket["total"] += score
            bucket["count"] += 1

    midpoint = band_midpoint(band)
    weak = []
    for topic_id, data in totals.items():
        average = round_half_up(data["total"] / data["count"])
        if average < midpoint:
            weak.append({
                "topic_id": topic_id,
                "topic_name": topic_names.get(topic_id) or UNKNOWN_TOPIC_NAME,
                "average_score": average,
            })
    weak.sort(key=lambda t: t["average_score"])
    return weak[:max_topics]


def group_students(students, topics=None, max_weak_topics=MAX_WEAK_TOPICS):
    """Group students into the four performance bands.

    Args:
        students: list of {"student_id", "student_name", "overall_mastery",
            "topics": [{"topic_id", "avg_score", "total_attempts"}]}
        topics: list of {"id", "name"} used to name weak topics

    Returns:
        list of four band dicts (fixed order) each with "students" and
        "weak_topics". Students with overall_mastery 0 have no data and are
        left out of every band.
    """
    groups = [dict(band, students=[], weak_topics=[]) for band in PERFORMANCE_BANDS]
    by_level = {g["level"]: g for g in groups}

    skipped = 0
    for student in students or []:
        mastery = validate_score(student.get("overall_mastery"), "overall_mastery")
        if mastery == 0:
            skipped += 1
            continue
        band = band_for_score(mastery)
        by_level[band["level"]]["students"].append(student)

    names = _topic_names(topics)
    for group in groups:
        if group["students"]:
            group["weak_topics"] = weak_topics_for(group["students"], names, group, max_weak_topics)

    logger.debug("Grouped %d student(s), skipped %d with no data",
                 sum(len(g["students"]) for g in groups), skipped)
    return groups


def build_student_mastery(students, attempts, topics):
    """Aggregate per-attempt scores into the per-student mastery shape.

    Args:
        students: list of {"id", "name"}
        attempts: list of {"student_id", "topic_id", "score"} (score in percent)
        topics: list of {"id", "name"}

    Returns:
        list of {"student_id", "student_name", "overall_mastery", "topics"}.
        overall_mastery is the rounded mean of attempted topic averages, 0
        when the student has no attempts.
    """
    per_student = {}
    for attempt in attempts or []:
        topic_map = per_student.setdefault(attempt.get("student_id"), {})
        bucket = topic_map.setdefault(attempt.get("topic_id"), {"total": 0, "count": 0})
        bucket["total"] += clamp_score(attempt.get("score"))
        bucket["count"] += 1

    result = []
    for student in students or []:
        topic_map = per_student.get(student.get("id"), {})
        topic_rows = []
        for topic in topics or []:
            data = topic_map.get(topic.get("id"))
            topic_rows.append({
                "topic_id": topic.get("id"),
                "topic_name": topic.get("name"),
                "total_attempts": data["count"] if data else 0,
                "avg_score": round_half_up(data["total"] / data["count"]) if data else 0,
            })
        attempted = [t["avg_score"] for t in topic_rows if t["total_attempts"] > 0]
        overall = round_half_up(sum(attempted) / len(attempted)) if attempted else 0
        result.append({
            "student_id": student.get("id"),
            "student_name": student.get("name", ""),
            "overall_mastery": overall,
            "topics": topic_rows,
        })
    return result
