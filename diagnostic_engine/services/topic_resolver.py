"""
Topic Resolver
==============
Maps noisy topic text (AI justifications, loosely formatted labels) to a
canonical topic name from the subject-scoped curriculum catalog.

Resolution order, first success wins:
1. Standard code lookup (subject catalog, then the pooled "all" catalog)
2. Keyword scoring against every catalog entry
3. Short clean text passes through unchanged
4. A bolded **span** pulled out of the text
5. Truncated fallback label
"""
import json
import logging
import re

from diagnostic_engine.config import TOPIC_CATALOG_FILE
from diagnostic_engine.services.standard_codes import (
    extract_standard_code, looks_like_standard_code,
)

logger = logging.getLogger(__name__)

ALL_SUBJECTS = "all"
UNKNOWN_TOPIC = "Unknown Topic"
FALLBACK_TOPIC = "Topic"

EXACT_NAME_BONUS = 100
MIN_KEYWORD_SCORE = 5
MIN_KEYWORD_LENGTH = 3
CLEAN_TEXT_MAX_LENGTH = 40
FALLBACK_MAX_LENGTH = 35
FALLBACK_TRUNCATE_AT = 32

_BOLD_SPAN_RE = re.compile(r'\*\*([^*]{3,40})\*\*')
_LEADING_FILLER_RE = re.compile(r'^(The student|Based on|This).{0,20}', re.IGNORECASE)

_catalog_cache = {}


# ═══════════════════════════════════════════════════════
# CATALOG
# ═══════════════════════════════════════════════════════

def _keywords_for(name):
    return frozenset(w for w in name.lower().split() if len(w) >= MIN_KEYWORD_LENGTH)


def build_catalog(subjects):
    """Build subject-scoped catalog entries plus the pooled "all" scope.

    Args:
        subjects: mapping of subject key -> list of {"name", "standard"} dicts

    Returns:
        dict of subject key -> tuple of entries. Each entry is a dict with
        standard_code, canonical_topic_name, keywords (frozenset) and subject.
    """
    catalog = {}
    pooled = []
    for subject, topics in subjects.items():
        entries = []
        for topic in topics:
            name = topic.get("name", "").strip()
            if not name:
                continue
            entries.append({
                "standard_code": (topic.get("standard") or "").strip().upper(),
                "canonical_topic_name": name,
                "keywords": _keywords_for(name),
                "subject": subject,
            })
        catalog[subject] = tuple(entries)
        pooled.extend(entries)
    catalog[ALL_SUBJECTS] = tuple(pooled)
    return catalog


def load_catalog(path=None):
    """Load the topic catalog JSON once per path and return the built catalog."""
    path = str(path or TOPIC_CATALOG_FILE)
    if path not in _catalog_cache:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        _catalog_cache[path] = build_catalog(data.get("subjects", {}))
        logger.debug("Loaded topic catalog %s (%d entries)", path, len(_catalog_cache[path][ALL_SUBJECTS]))
    return _catalog_cache[path]


def _scope(catalog, subject):
    return catalog.get(subject) or catalog.get(ALL_SUBJECTS, ())


def subject_from_class_name(class_name):
    """Guess the subject scope from a class name like 'Period 3 Alg 1'."""
    if not class_name:
        return ALL_SUBJECTS
    lower = class_name.lower()

    if 'geometry' in lower or 'geo' in lower:
        return 'geometry'
    if any(k in lower for k in ('algebra 2', 'algebra ii', 'alg 2', 'alg2')):
        return 'algebra2'
    if any(k in lower for k in ('algebra 1', 'algebra i', 'alg 1', 'alg1', 'algebra')):
        return 'algebra1'
    if 'precalc' in lower or 'pre-calc' in lower:
        return 'precalculus'
    return ALL_SUBJECTS


# ═══════════════════════════════════════════════════════
# RESOLUTION STEPS
# ═══════════════════════════════════════════════════════

def resolve_standard_topic(code, subject=ALL_SUBJECTS, catalog=None):
    """Look up a standard code in the subject scope, then in the pooled scope."""
    if not code:
        return None
    catalog = catalog if catalog is not None else load_catalog()
    code = code.upper()

    for entry in _scope(catalog, subject):
        if entry["standard_code"] == code:
            return entry["canonical_topic_name"]
    if subject != ALL_SUBJECTS:
        for entry in catalog.get(ALL_SUBJECTS, ()):
            if entry["standard_code"] == code:
                return entry["canonical_topic_name"]
    return None


def score_entry(entry, lower_text):
    """Keyword score for one catalog entry against lower-cased text."""
    score = sum(len(k) for k in entry["keywords"] if k in lower_text)
    if entry["canonical_topic_name"].lower() in lower_text:
        score += EXACT_NAME_BONUS
    return score


def best_keyword_match(raw_text, subject=ALL_SUBJECTS, catalog=None):
    """Return (name, score) of the highest-scoring entry, or (None, 0).

    Ties keep the earlier catalog entry.
    """
    catalog = catalog if catalog is not None else load_catalog()
    lower_text = raw_text.lower()
    best_name, best_score = None, 0
    for entry in _scope(catalog, subject):
        score = score_entry(entry, lower_text)
        if score > best_score:
            best_name, best_score = entry["canonical_topic_name"], score
    return best_name, best_score


def _looks_like_sentence(text):
    lower = text.lower()
    return '**' in text or 'the student' in lower or 'based on' in lower


def _bold_span(text):
    match = _BOLD_SPAN_RE.search(text)
    if not match:
        return None
    extracted = match.group(1).strip()
    if looks_like_standard_code(extracted) or ' is ' in extracted or ' the ' in extracted:
        return None
    return extracted


def fallback_label(text):
    """Strip markdown and leading filler, then truncate. Lossy by nature."""
    cleaned = text.replace('**', '')
    cleaned = _LEADING_FILLER_RE.sub('', cleaned, count=1).strip()
    if len(cleaned) > FALLBACK_MAX_LENGTH:
        return cleaned[:FALLBACK_TRUNCATE_AT] + '...'
    return cleaned or FALLBACK_TOPIC


def resolve_topic_name(raw_text, standard_label=None, subject=ALL_SUBJECTS, catalog=None):
    """Resolve noisy topic text to a canonical topic name. Always returns a string."""
    if not raw_text:
        return UNKNOWN_TOPIC
    catalog = catalog if catalog is not None else load_catalog()

    code = extract_standard_code(raw_text, standard_label)
    if code:
        name = resolve_standard_topic(code, subject, catalog)
        if name:
            logger.debug("Topic resolved by standard code %s", code)
            return name

    name, score = best_keyword_match(raw_text, subject, catalog)
    if name and score >= MIN_KEYWORD_SCORE:
        logger.debug("Topic resolved by keywords (score=%d)", score)
        return name

    if len(raw_text) <= CLEAN_TEXT_MAX_LENGTH and not _looks_like_sentence(raw_text):
        return raw_text

    bold = _bold_span(raw_text)
    if bold:
        return bold

    return fallback_label(raw_text)
