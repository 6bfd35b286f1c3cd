"""
Configuration management for the diagnostic engine.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
PACKAGE_DIR = Path(__file__).parent
DATA_DIR = PACKAGE_DIR / "data"


def _env_int(name, default):
    """Read a positive integer from the environment, falling back on bad values."""
    raw = os.getenv(name, "")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


# Topic catalog
TOPIC_CATALOG_FILE = os.getenv("TOPIC_CATALOG_FILE", str(DATA_DIR / "topics_nys_math.json"))

# Output budgets
REMEDIATION_BUDGET = _env_int("REMEDIATION_BUDGET", 5)
MAX_WEAK_TOPICS = _env_int("MAX_WEAK_TOPICS", 5)
MAX_MISCONCEPTIONS = _env_int("MAX_MISCONCEPTIONS", 8)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "json" or "text"

# Server configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 3000)
DEBUG = os.getenv("DEBUG", "false").lower() == "true"


class Config:
    """Application configuration class."""

    def __init__(self):
        self.topic_catalog_file = TOPIC_CATALOG_FILE
        self.remediation_budget = REMEDIATION_BUDGET
        self.max_weak_topics = MAX_WEAK_TOPICS
        self.max_misconceptions = MAX_MISCONCEPTIONS
        self.log_level = LOG_LEVEL
        self.log_format = LOG_FORMAT

    def to_dict(self):
        return {
            "topic_catalog_file": self.topic_catalog_file,
            "remediation_budget": self.remediation_budget,
            "max_weak_topics": self.max_weak_topics,
            "max_misconceptions": self.max_misconceptions,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    def update(self, data: dict):
        budget = data.get("remediation_budget")
        if budget is not None and (isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0):
            raise ValueError(f"remediation_budget must be a positive integer, got {budget!r}")
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)


# Global config instance
config = Config()
