"""
Remediation Allocator
=====================
Turns a band's weak topics into a practice recommendation list whose total
unit count never exceeds the per-group budget.

Also builds the hand-off payloads for the external assessment-creation and
question-generation collaborators. Nothing here performs I/O.
"""
import logging

from diagnostic_engine.config import REMEDIATION_BUDGET

logger = logging.getLogger(__name__)

DIFFICULTY_LABELS = {
    "advanced": "On-level practice",
    "proficient": "Reinforcement practice",
    "developing": "Foundational practice",
    "needs-support": "Scaffolded practice",
}
DEFAULT_DIFFICULTY_LABEL = "Practice"

INSTRUCTION_TOPIC_LIMIT = 3


def difficulty_label(band_level):
    return DIFFICULTY_LABELS.get(band_level, DEFAULT_DIFFICULTY_LABEL)


def _check_budget(budget):
    if isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0:
        raise ValueError(f"budget must be a positive integer, got {budget!r}")


def allocate(weak_topics, band_level, budget=REMEDIATION_BUDGET):
    """Allocate practice units to weak topics, weakest first.

    Tentative counts descend from the budget (5, 4, 3, ...). A second pass
    clamps each count to what is left of the budget and drops zero entries,
    so sum(unit_count) <= budget always holds. Topics after the budget runs
    out are dropped, not given a minimum of one unit.

    Args:
        weak_topics: list of {"topic_name", ...} already sorted lowest score first
        band_level: performance band level key
        budget: total unit budget for the group (must be > 0)

    Returns:
        list of {"topic_name", "difficulty_label", "unit_count"}
    """
    _check_budget(budget)
    label = difficulty_label(band_level)

    tentative = [
        (topic.get("topic_name"), min(budget - idx, budget))
        for idx, topic in enumerate(weak_topics or [])
    ]

    allocation = []
    running_total = 0
    for topic_name, count in tentative:
        count = max(0, min(count, budget - running_total))
        running_total += count
        if count > 0:
            allocation.append({
                "topic_name": topic_name,
                "difficulty_label": label,
                "unit_count": count,
            })

    dropped = len(tentative) - len(allocation)
    if dropped:
        logger.debug("Budget %d exhausted; dropped %d weak topic(s)", budget, dropped)
    return allocation


def plan_group_remediation(group, budget=REMEDIATION_BUDGET):
    """Return a copy of a performance group with "suggested_questions" attached."""
    planned = dict(group)
    planned["suggested_questions"] = allocate(group.get("weak_topics", []), group.get("level"), budget)
    return planned


def plan_all_groups(groups, budget=REMEDIATION_BUDGET):
    return [plan_group_remediation(g, budget) for g in groups]


# ═══════════════════════════════════════════════════════
# COLLABORATOR PAYLOADS
# ═══════════════════════════════════════════════════════

def build_assessment_request(group):
    """Payload for the assessment-creation service for one planned group.

    Raises ValueError when the group has no weak topics to target.
    """
    weak_topics = group.get("weak_topics") or []
    if not weak_topics:
        raise ValueError("No weak topics identified for this group")

    suggested = group.get("suggested_questions")
    if suggested is None:
        suggested = allocate(weak_topics, group.get("level"))

    topic_names = ", ".join(t.get("topic_name", "") for t in weak_topics[:INSTRUCTION_TOPIC_LIMIT])
    return {
        "name": f"Remediation - {group.get('label', 'Student')} Group",
        "instructions": (
            f"This remediation assessment targets the following areas for improvement: {topic_names}. "
            f"Students in this group scored between {group.get('min_score')}-{group.get('max_score')}% overall."
        ),
        "topic_ids": [t.get("topic_id") for t in weak_topics],
        "difficulty_label": difficulty_label(group.get("level")),
        "units": [
            {"topic_name": s["topic_name"], "unit_count": s["unit_count"]} for s in suggested
        ],
        "total_units": sum(s["unit_count"] for s in suggested),
    }


def build_question_generation_request(misconceptions, topic_name, level=None,
                                      budget=REMEDIATION_BUDGET):
    """Payload for the remote question-generation service.

    Only misconception text is sent, in ranked order; the question count is
    bounded by the budget.
    """
    _check_budget(budget)
    texts = [m["text"] if isinstance(m, dict) else str(m) for m in misconceptions or []]
    return {
        "topic_name": topic_name,
        "student_level": level,
        "misconceptions": texts,
        "question_count": min(budget, max(1, len(texts))),
    }
