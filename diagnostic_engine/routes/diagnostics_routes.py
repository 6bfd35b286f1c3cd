"""
Diagnostics API routes.
Thin JSON adapter over the diagnostic services for the reporting dashboard.
"""
import logging
from flask import Blueprint, request, jsonify

from diagnostic_engine.config import config
from diagnostic_engine.services.level_progression import (
    LEVEL_DESCRIPTIONS, can_advance, evaluate_progression, next_level, score_to_level,
)
from diagnostic_engine.services.misconceptions import (
    extract_misconceptions, severity_counts, summarize_class_misconceptions,
)
from diagnostic_engine.services.performance_groups import PERFORMANCE_BANDS
from diagnostic_engine.services.remediation import allocate, build_assessment_request
from diagnostic_engine.services.reports import (
    differentiation_report, gradebook_rows, student_diagnostic_report,
)
from diagnostic_engine.services.score_records import validate_score
from diagnostic_engine.services.standard_codes import extract_standard_code
from diagnostic_engine.services.topic_resolver import (
    ALL_SUBJECTS, load_catalog, resolve_topic_name, subject_from_class_name,
)

logger = logging.getLogger(__name__)

diagnostics_bp = Blueprint('diagnostics', __name__)


def _subject_from(data):
    """Explicit subject wins; otherwise infer it from the class name."""
    subject = data.get('subject')
    if subject:
        return subject
    return subject_from_class_name(data.get('class_name'))


def _budget_from(data):
    return data.get('budget', config.remediation_budget)


def _text_error(data, *fields):
    """Error message for the first field that is present but not a string."""
    for field in fields:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            return f"{field} must be a string"
    return None


@diagnostics_bp.errorhandler(ValueError)
def _contract_violation(e):
    logger.warning("Rejected diagnostics request %s: %s", request.path, e)
    return jsonify({"error": str(e)}), 400


@diagnostics_bp.route('/api/diagnostics/standard-code', methods=['POST'])
def standard_code():
    data = request.get_json(silent=True) or {}
    error = _text_error(data, 'text', 'standard_label')
    if error:
        return jsonify({"error": error}), 400
    if not data.get('text') and not data.get('standard_label'):
        return jsonify({"error": "text or standard_label is required"}), 400
    code = extract_standard_code(data.get('text'), data.get('standard_label'))
    return jsonify({"standard_code": code})


@diagnostics_bp.route('/api/diagnostics/topic', methods=['POST'])
def topic_name():
    data = request.get_json(silent=True) or {}
    error = _text_error(data, 'text', 'standard_label', 'subject', 'class_name')
    if error:
        return jsonify({"error": error}), 400
    subject = _subject_from(data)
    name = resolve_topic_name(data.get('text', ''), data.get('standard_label'), subject,
                              load_catalog(config.topic_catalog_file))
    return jsonify({"topic_name": name, "subject": subject})


@diagnostics_bp.route('/api/diagnostics/misconceptions', methods=['POST'])
def misconceptions():
    data = request.get_json(silent=True) or {}
    error = _text_error(data, 'text')
    if error:
        return jsonify({"error": error}), 400
    entries = extract_misconceptions(data.get('text', ''), limit=config.max_misconceptions)
    return jsonify({"misconceptions": entries, "severity_counts": severity_counts(entries)})


@diagnostics_bp.route('/api/diagnostics/class-misconceptions', methods=['POST'])
def class_misconceptions():
    data = request.get_json(silent=True) or {}
    justifications = data.get('justifications')
    if not isinstance(justifications, list):
        return jsonify({"error": "justifications array is required"}), 400
    summary = summarize_class_misconceptions(justifications, limit=config.max_misconceptions)
    return jsonify({"categories": summary, "category_count": len(summary)})


@diagnostics_bp.route('/api/diagnostics/groups', methods=['POST'])
def groups():
    data = request.get_json(silent=True) or {}
    students = data.get('students')
    if not isinstance(students, list):
        return jsonify({"error": "students array is required"}), 400
    report = differentiation_report(students, data.get('topics', []), _budget_from(data),
                                    config.max_weak_topics)
    return jsonify(report)


@diagnostics_bp.route('/api/diagnostics/remediation', methods=['POST'])
def remediation():
    data = request.get_json(silent=True) or {}
    if not data.get('band_level'):
        return jsonify({"error": "band_level is required"}), 400
    suggestions = allocate(data.get('weak_topics', []), data['band_level'], _budget_from(data))
    return jsonify({
        "suggested_questions": suggestions,
        "total_units": sum(s["unit_count"] for s in suggestions),
    })


@diagnostics_bp.route('/api/diagnostics/assessment-request', methods=['POST'])
def assessment_request():
    data = request.get_json(silent=True) or {}
    group = data.get('group')
    if not isinstance(group, dict):
        return jsonify({"error": "group is required"}), 400
    return jsonify(build_assessment_request(group))


@diagnostics_bp.route('/api/diagnostics/level', methods=['POST'])
def level():
    data = request.get_json(silent=True) or {}
    if 'history' in data:
        return jsonify(evaluate_progression(data['history']))
    if 'score' not in data:
        return jsonify({"error": "history or score is required"}), 400

    score = validate_score(data['score'])
    current = data.get('current_level') or score_to_level(score)
    return jsonify({
        "current_level": current,
        "description": LEVEL_DESCRIPTIONS.get(current),
        "next_level": next_level(current),
        "can_advance": can_advance(score, current),
    })


@diagnostics_bp.route('/api/diagnostics/gradebook', methods=['POST'])
def gradebook():
    data = request.get_json(silent=True) or {}
    records = data.get('records')
    if not isinstance(records, list):
        return jsonify({"error": "records array is required"}), 400
    rows = gradebook_rows(records, _subject_from(data), load_catalog(config.topic_catalog_file))
    return jsonify({"rows": rows})


@diagnostics_bp.route('/api/diagnostics/student-report', methods=['POST'])
def student_report():
    data = request.get_json(silent=True) or {}
    records = data.get('records')
    if not isinstance(records, list):
        return jsonify({"error": "records array is required"}), 400
    report = student_diagnostic_report(records, _subject_from(data),
                                       load_catalog(config.topic_catalog_file),
                                       config.max_misconceptions)
    return jsonify(report)


@diagnostics_bp.route('/api/diagnostics/bands')
def bands():
    return jsonify({"bands": list(PERFORMANCE_BANDS)})


@diagnostics_bp.route('/api/diagnostics/catalog/<subject>')
def catalog(subject):
    catalog_data = load_catalog(config.topic_catalog_file)
    if subject not in catalog_data:
        return jsonify({"error": f"Unknown subject: {subject}"}), 404
    entries = [
        {"standard_code": e["standard_code"], "topic_name": e["canonical_topic_name"]}
        for e in catalog_data[subject]
    ]
    return jsonify({"subject": subject, "topics": entries, "count": len(entries)})


@diagnostics_bp.route('/api/diagnostics/subjects')
def subjects():
    catalog_data = load_catalog(config.topic_catalog_file)
    return jsonify({"subjects": sorted(k for k in catalog_data if k != ALL_SUBJECTS)})
