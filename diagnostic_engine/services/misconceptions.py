"""
Misconception Extractor
=======================
Mines free-text grade justifications for misconception statements.

Lexical only: sentences are kept when they carry an issue indicator,
classified by a HIGH > LOW > MEDIUM priority cascade, normalized,
deduplicated on a 30-character prefix rule and ranked by severity.
Each call is independent; nothing is carried between justifications.
"""
import logging
import re

from diagnostic_engine.config import MAX_MISCONCEPTIONS

logger = logging.getLogger(__name__)

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

SEVERITY_RANK = {HIGH: 0, MEDIUM: 1, LOW: 2}

MIN_SENTENCE_LENGTH = 10
MIN_BULLET_LENGTH = 15
OVERLAP_PREFIX_LENGTH = 30

ISSUE_INDICATOR_RE = re.compile(
    r"error|mistake|incorrect|wrong|missing|forgot|failed|did not|didn't|omitted|"
    r"lost|deducted|issue|problem|misconception|confused|misunderstand",
    re.IGNORECASE,
)

# Order matters: HIGH is checked before LOW, MEDIUM is the default.
SEVERITY_RULES = (
    (HIGH, (
        re.compile(r"\b(?:major|critical|significant|serious)\s+errors?\b", re.IGNORECASE),
        re.compile(r"\b(?:completely|entirely|totally)\s+wrong\b", re.IGNORECASE),
        re.compile(r"\b(?:fundamental|basic)\s+misunderstanding", re.IGNORECASE),
        re.compile(r"\b(?:did not|didn't|failed to)\s+understand", re.IGNORECASE),
        re.compile(r"\b(?:no|zero)\s+credit\b", re.IGNORECASE),
    )),
    (LOW, (
        re.compile(r"\b(?:minor|small|slight)\s+errors?\b", re.IGNORECASE),
        re.compile(r"\b(?:rounding|notation|formatting)\s+errors?\b", re.IGNORECASE),
        re.compile(r"\b(?:could have|should consider)\b", re.IGNORECASE),
        re.compile(r"\b(?:almost|nearly)\s+correct\b", re.IGNORECASE),
    )),
)

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")
_BULLET_BREAK_RE = re.compile(r"\n(?=[ \t]*[-•*][ \t])")
_BULLET_LINE_RE = re.compile(r"^\s*[-•*]\s*(.{15,})$", re.MULTILINE)
_LEADING_MARKER_RE = re.compile(r"^\s*(?:[-•*]+|\(?\d+[.)]|\(?[a-z][)])\s*", re.IGNORECASE)
_TRANSITION_RE = re.compile(
    r"^(?:however|also|additionally|furthermore|moreover|unfortunately|"
    r"overall|finally|but|and|then|still)\b[,:]?\s*",
    re.IGNORECASE,
)


# ═══════════════════════════════════════════════════════
# CLASSIFICATION
# ═══════════════════════════════════════════════════════

def has_issue_indicator(text):
    return bool(ISSUE_INDICATOR_RE.search(text or ""))


def classify_severity(text):
    """Return the severity for a statement: first matching tier wins, else MEDIUM."""
    for severity, patterns in SEVERITY_RULES:
        if any(p.search(text) for p in patterns):
            return severity
    return MEDIUM


def normalize_statement(text):
    """Strip bullets/numbering, markdown and leading transitions; tidy the ends."""
    cleaned = text.replace("**", "").strip()
    cleaned = _LEADING_MARKER_RE.sub("", cleaned, count=1)
    # Transitions can stack ("But also, ...")
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _TRANSITION_RE.sub("", cleaned, count=1).strip()
    if not cleaned:
        return ""
    cleaned = cleaned[0].upper() + cleaned[1:]
    if cleaned[-1] not in ".!?":
        cleaned += "."
    return cleaned


def overlaps(a, b):
    """True when either statement contains the other's lower-cased 30-char prefix."""
    a_lower, b_lower = a.lower(), b.lower()
    return (b_lower[:OVERLAP_PREFIX_LENGTH] in a_lower
            or a_lower[:OVERLAP_PREFIX_LENGTH] in b_lower)


def _shares_prefix(a, b):
    return a.casefold()[:OVERLAP_PREFIX_LENGTH] == b.casefold()[:OVERLAP_PREFIX_LENGTH]


def deduplicate(entries):
    """Drop entries that overlap an earlier one. First seen wins."""
    kept = []
    for entry in entries:
        if any(overlaps(entry["text"], k["text"]) or _shares_prefix(entry["text"], k["text"])
               for k in kept):
            continue
        kept.append(entry)
    return kept


# ═══════════════════════════════════════════════════════
# EXTRACTION
# ═══════════════════════════════════════════════════════

def _sentence_candidates(text):
    candidates = []
    # Unpunctuated bullet items would otherwise run together into one sentence
    raws = [raw for chunk in _BULLET_BREAK_RE.split(text) for raw in _SENTENCE_RE.findall(chunk)]
    for raw in raws:
        body = raw.strip()
        if len(body.rstrip(".!?").strip()) < MIN_SENTENCE_LENGTH:
            continue
        if not has_issue_indicator(body):
            continue
        statement = normalize_statement(body)
        if statement:
            candidates.append({"text": statement, "severity": classify_severity(body)})
    return candidates


def _bullet_candidates(text, existing):
    added = []
    for match in _BULLET_LINE_RE.finditer(text):
        line = match.group(1).strip()
        if len(line) < MIN_BULLET_LENGTH or not has_issue_indicator(line):
            continue
        statement = normalize_statement(line)
        if not statement:
            continue
        if any(overlaps(statement, e["text"]) for e in existing + added):
            continue
        added.append({"text": statement, "severity": classify_severity(line)})
    return added


def extract_misconceptions(justification_text, limit=MAX_MISCONCEPTIONS):
    """Extract ranked misconception entries from a justification.

    Returns:
        list of {"text", "severity"} dicts, at most `limit` long, HIGH first,
        then MEDIUM, then LOW; text order is kept within a severity.
    """
    if not justification_text or not justification_text.strip():
        return []

    entries = _sentence_candidates(justification_text)
    entries.extend(_bullet_candidates(justification_text, entries))
    entries = deduplicate(entries)

    # sorted() is stable so text order survives within a tier
    ranked = sorted(entries, key=lambda e: SEVERITY_RANK[e["severity"]])
    logger.debug("Extracted %d misconception(s), keeping %d", len(ranked), min(len(ranked), limit))
    return ranked[:limit]


def severity_counts(entries):
    counts = {HIGH: 0, MEDIUM: 0, LOW: 0}
    for entry in entries:
        counts[entry["severity"]] = counts.get(entry["severity"], 0) + 1
    return counts


# ═══════════════════════════════════════════════════════
# CATEGORIES & CLASS SUMMARY
# ═══════════════════════════════════════════════════════

MISCONCEPTION_CATEGORIES = (
    (r"sign|negative|positive|minus|plus", "Sign Errors", "Incorrect handling of positive/negative signs"),
    (r"order.*operation|pemdas|bedmas", "Order of Operations", "PEMDAS/order of operations confusion"),
    (r"fraction|numerator|denominator", "Fraction Operations", "Misunderstanding fraction operations"),
    (r"decimal|place.*value", "Decimal Operations", "Decimal place value errors"),
    (r"variable|substitut|expression|algebraic", "Algebraic Expressions", "Variable and expression errors"),
    (r"equation|solve|isolate|both.*side", "Equation Solving", "Equation solving procedural errors"),
    (r"graph|coordinate|plot|slope|intercept", "Graphing", "Graphing and coordinate errors"),
    (r"exponent|power|squared|cubed", "Exponents", "Exponent rule misconceptions"),
    (r"area|perimeter|volume|surface", "Measurement", "Area/perimeter/volume calculation errors"),
    (r"angle|triangle|polygon|parallel|perpendicular", "Geometry Concepts", "Geometric relationship misunderstandings"),
    (r"proportion|ratio|percent|rate", "Ratios & Proportions", "Ratio and proportion errors"),
    (r"calculation|arithmetic|compute|multipl|divi|subtract", "Arithmetic", "Basic calculation errors"),
    (r"formula|use.*wrong", "Formula Application", "Incorrect formula usage"),
    (r"\bunits?\b|convert|measurement", "Unit Conversion", "Unit conversion errors"),
    (r"incomplete|missing.*work|show.*work|justify", "Incomplete Work", "Missing work or justification"),
    (r"setup|set up|translate|word.*problem|interpret", "Problem Setup", "Incorrect problem interpretation"),
    (r"concept|understand|confus", "Conceptual Understanding", "Fundamental concept misunderstanding"),
)
_CATEGORY_RULES = tuple((re.compile(p, re.IGNORECASE), c, t) for p, c, t in MISCONCEPTION_CATEGORIES)

OTHER_CATEGORY = "Other Errors"

CATEGORY_REMEDIES = {
    "Sign Errors": ["Number line practice with signed operations", "Color-coded positive/negative exercises", "Real-world temperature/elevation problems"],
    "Order of Operations": ["PEMDAS step-by-step practice", "Expression evaluation with grouping symbols", "Error analysis exercises"],
    "Fraction Operations": ["Visual fraction models", "Fraction bar manipulatives", "Cross-multiplication practice"],
    "Decimal Operations": ["Place value charts", "Money-based decimal problems", "Grid models for decimals"],
    "Algebraic Expressions": ["Variable substitution drills", "Like terms sorting activities", "Expression building exercises"],
    "Equation Solving": ["Balance method visualization", "Inverse operation practice", "Equation verification checks"],
    "Graphing": ["Coordinate plotting practice", "Slope calculation from points", "Interactive graphing tools"],
    "Exponents": ["Exponent rules flashcards", "Pattern recognition with powers", "Scientific notation practice"],
    "Measurement": ["Formula reference sheets", "Unit analysis practice", "Real-world measurement applications"],
    "Geometry Concepts": ["Geometric constructions", "Angle relationship practice", "Visual proofs"],
    "Ratios & Proportions": ["Proportion tables", "Cross-multiplication practice", "Real-world ratio problems"],
    "Arithmetic": ["Timed basic facts practice", "Mental math strategies", "Error checking techniques"],
    "Formula Application": ["Formula derivation activities", "When-to-use decision trees", "Formula matching exercises"],
    "Unit Conversion": ["Conversion factor practice", "Dimensional analysis", "Unit relationship charts"],
    "Incomplete Work": ["Structured solution templates", "Justification sentence starters", "Work verification checklists"],
    "Problem Setup": ["Problem translation exercises", "Key word identification", "Diagram drawing practice"],
    "Conceptual Understanding": ["Concept mapping", "Explain-to-a-friend activities", "Multiple representation tasks"],
    OTHER_CATEGORY: ["Targeted practice problems", "One-on-one review", "Error analysis journals"],
}

MAX_CATEGORY_EXAMPLES = 3


def categorize_misconception(text):
    """Map a statement to {"category", "title"}; first matching rule wins."""
    for pattern, category, title in _CATEGORY_RULES:
        if pattern.search(text or ""):
            return {"category": category, "title": title}
    return {"category": OTHER_CATEGORY, "title": "Mathematical error"}


def remedies_for_category(category):
    return list(CATEGORY_REMEDIES.get(category, CATEGORY_REMEDIES[OTHER_CATEGORY]))


def summarize_class_misconceptions(justifications, limit=MAX_MISCONCEPTIONS):
    """Aggregate misconceptions across a class by category.

    Args:
        justifications: iterable of {"student_id", "student_name"?, "topic"?,
            "justification_text"} dicts, one per graded record

    Returns:
        list of category summaries sorted by affected students (desc),
        then worst severity, then category name.
    """
    groups = {}
    for item in justifications:
        student_id = item.get("student_id")
        for entry in extract_misconceptions(item.get("justification_text"), limit=limit):
            cat = categorize_misconception(entry["text"])
            group = groups.setdefault(cat["category"], {
                "category": cat["category"],
                "title": cat["title"],
                "severity": entry["severity"],
                "student_ids": [],
                "students": [],
                "occurrences": 0,
                "topics": [],
                "examples": [],
            })
            group["occurrences"] += 1
            if SEVERITY_RANK[entry["severity"]] < SEVERITY_RANK[group["severity"]]:
                group["severity"] = entry["severity"]
            if student_id is not None and student_id not in group["student_ids"]:
                group["student_ids"].append(student_id)
                group["students"].append(item.get("student_name") or str(student_id))
            topic = item.get("topic")
            if topic and topic not in group["topics"]:
                group["topics"].append(topic)
            if len(group["examples"]) < MAX_CATEGORY_EXAMPLES and not any(
                    overlaps(entry["text"], ex) for ex in group["examples"]):
                group["examples"].append(entry["text"])

    summaries = []
    for group in groups.values():
        group["student_count"] = len(group["student_ids"])
        group["suggested_remedies"] = remedies_for_category(group["category"])
        summaries.append(group)

    summaries.sort(key=lambda g: (-g["student_count"], SEVERITY_RANK[g["severity"]], g["category"]))
    return summaries
