"""
Diagnostic Engine Services
==========================

Pure, synchronous business logic. No service performs I/O beyond reading
the bundled topic catalog once.

Services:
- standard_codes: curriculum standard code extraction
- topic_resolver: noisy text to canonical topic names
- misconceptions: ranked misconception statements from justifications
- performance_groups: performance bands and per-band weak topics
- remediation: budgeted practice allocation and collaborator payloads
- level_progression: score-to-level mapping and advancement
- score_records: record intake and score validation
- reports: pipelines composing the above for the dashboard
"""

# Services are imported directly when needed
# Example: from diagnostic_engine.services.remediation import allocate

__all__ = [
    'standard_codes',
    'topic_resolver',
    'misconceptions',
    'performance_groups',
    'remediation',
    'level_progression',
    'score_records',
    'reports',
]
