"""
Diagnostic Engine Package
=========================

Rule-based diagnostic extraction and remediation allocation for the
teacher reporting dashboard.

Structure:
- services/: Pure text-extraction, grouping and allocation logic
- routes/: Flask blueprint exposing the services as JSON endpoints
- data/: Static curriculum data (topic catalog)
- config.py: Configuration management
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']
