"""
Report Pipelines
================
Composes the engine pieces into the structures the dashboard screens use:
gradebook rows, differentiation groups and the per-student diagnostic report.
"""
from diagnostic_engine.config import MAX_MISCONCEPTIONS, MAX_WEAK_TOPICS, REMEDIATION_BUDGET
from diagnostic_engine.services.level_progression import evaluate_progression, score_to_level
from diagnostic_engine.services.misconceptions import (
    SEVERITY_RANK, deduplicate, extract_misconceptions, severity_counts,
)
from diagnostic_engine.services.performance_groups import group_students
from diagnostic_engine.services.remediation import plan_all_groups
from diagnostic_engine.services.score_records import normalize_score_record, timestamp_sort_key
from diagnostic_engine.services.standard_codes import extract_standard_code
from diagnostic_engine.services.topic_resolver import ALL_SUBJECTS, resolve_topic_name


def gradebook_row(record, subject=ALL_SUBJECTS, catalog=None):
    """Display-ready fields for one raw grade record."""
    record = normalize_score_record(record)
    return {
        "score": record["score"],
        "standard_code": extract_standard_code(record["topic_label"], record["standard_label"]),
        "topic_name": resolve_topic_name(record["topic_label"], record["standard_label"], subject, catalog),
        "level": score_to_level(record["score"]),
        "timestamp": record["timestamp"],
    }


def gradebook_rows(records, subject=ALL_SUBJECTS, catalog=None):
    return [gradebook_row(r, subject, catalog) for r in records or []]


def differentiation_report(students, topics, budget=REMEDIATION_BUDGET,
                           max_weak_topics=MAX_WEAK_TOPICS):
    """Group students into bands and attach a budgeted recommendation list to each."""
    groups = group_students(students, topics, max_weak_topics)
    planned = plan_all_groups(groups, budget)
    return {
        "groups": planned,
        "grouped_students": sum(len(g["students"]) for g in planned),
        "excluded_students": len(students or []) - sum(len(g["students"]) for g in planned),
    }


def student_diagnostic_report(records, subject=ALL_SUBJECTS, catalog=None,
                              limit=MAX_MISCONCEPTIONS):
    """Gradebook rows, ranked misconceptions and level progression for one student.

    Misconceptions are mined per record (newest record first), tagged with
    that record's topic and date, then deduplicated and ranked together.
    """
    normalized = [normalize_score_record(r) for r in records or []]
    rows = [gradebook_row(r, subject, catalog) for r in normalized]

    newest_first = sorted(
        zip(normalized, rows),
        key=lambda pair: timestamp_sort_key(pair[0]["timestamp"]),
        reverse=True,
    )
    mined = []
    for record, row in newest_first:
        for entry in extract_misconceptions(record["justification_text"], limit=limit):
            mined.append(dict(entry, topic_name=row["topic_name"], timestamp=record["timestamp"]))
    misconceptions = sorted(deduplicate(mined), key=lambda e: SEVERITY_RANK[e["severity"]])[:limit]

    return {
        "gradebook": rows,
        "misconceptions": misconceptions,
        "severity_counts": severity_counts(misconceptions),
        "progression": evaluate_progression(
            [{"score": r["score"], "timestamp": r["timestamp"]} for r in normalized]
        ),
    }
