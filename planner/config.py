"""Environment driven settings for the planner."""
from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def get_log_level() -> str:
    return os.getenv("PLANNER_LOG_LEVEL", "INFO").upper()


def get_allowed_origins() -> List[str]:
    """CORS origins for the HTTP surface; ``*`` when unset or blank."""
    raw_origins = os.getenv("PLANNER_ALLOWED_ORIGINS") or "*"
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    return origins or ["*"]


def get_vocabulary_path() -> str | None:
    """Optional JSON file replacing the built-in tag vocabulary."""
    path = os.getenv("PLANNER_TAG_VOCABULARY", "").strip()
    return path or None
