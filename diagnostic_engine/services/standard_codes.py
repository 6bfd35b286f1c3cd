"""
Standard Code Normalizer
========================
Pulls a canonical curriculum-standard code (e.g. G.GMD.B.4, A-REI.B.4,
7.G.B.6) out of noisy grading text.
"""
import re

CCSS_PREFIX = "CCSS.MATH.CONTENT."

# Checked in order; the first family that matches anywhere in the text wins.
STANDARD_CODE_PATTERNS = (
    re.compile(r'\b[A-Z]\.[A-Z]{1,3}\.[A-Z]\.\d+\b'),        # G.GMD.B.4
    re.compile(r'\b[A-Z]-[A-Z]{2,3}\.[A-Z]\.\d+\b'),         # A-REI.B.4
    re.compile(r'\b\d\.[A-Z]{1,3}\.[A-Z]\.\d+\b'),           # 7.G.B.6
    re.compile(r'\bCCSS\.MATH\.CONTENT\.\d\.[A-Z]+\.[A-Z]\.\d+\b', re.IGNORECASE),
)

_BARE_CODE_RE = re.compile(r'^[A-Z0-9.\-]+$', re.IGNORECASE)
_BARE_CODE_MAX_LENGTH = 15


def _strip_ccss_prefix(code):
    if code.upper().startswith(CCSS_PREFIX):
        return code[len(CCSS_PREFIX):]
    return code


def find_standard_code(text):
    """Scan a single piece of text for a standard code. Returns None if absent."""
    if not text:
        return None

    for pattern in STANDARD_CODE_PATTERNS:
        match = pattern.search(text)
        if match:
            return _strip_ccss_prefix(match.group(0)).upper()

    # Short text made only of code characters is taken as already canonical
    trimmed = text.strip()
    if trimmed and len(trimmed) <= _BARE_CODE_MAX_LENGTH and _BARE_CODE_RE.match(trimmed):
        return trimmed.upper()

    return None


def extract_standard_code(text, standard_label=None):
    """Extract a standard code, preferring the dedicated standard label.

    The label is checked first; if it is None or empty the free text is used
    instead. A missing code is a valid result and comes back as None.
    """
    source = standard_label if standard_label else text
    return find_standard_code(source)


def looks_like_standard_code(text):
    """True when the whole string is a dotted standard code such as G.CO.A.1."""
    return bool(re.match(r'^[A-Z]\.[A-Z]+\.[A-Z]\.\d+$', text or ''))
