# occupancy_collector/config.py
"""
Collector configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from datetime import time
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from occupancy_collector.schemas.occupancy import AFFLUENCE_LEVELS


class Settings(BaseSettings):
    # ── Endpoint ──────────────────────────────────────────────────────────
    OCCUPANCY_URL: str = (
        "https://apps.dur.ac.uk/study-spaces/library/bill-bryson/occupancy/display?json&affluence"
    )
    USER_AGENT: str = "oli-bot/1.0 (+https://oli.mcinnes.cc)"
    REQUEST_TIMEOUT_SECONDS: float = Field(10.0, gt=0)

    # ── Polling ───────────────────────────────────────────────────────────
    POLL_INTERVAL_SECONDS: int = Field(30, gt=0)

    # ── Occupancy log ─────────────────────────────────────────────────────
    LOG_PATH: str = "logs/occupancy.csv"
    AFFLUENCE_LEVELS: List[str] = list(AFFLUENCE_LEVELS)

    # ── Rotation ──────────────────────────────────────────────────────────
    ROTATION_WEEKDAY: int = Field(0, ge=0, le=6)   # Monday=0 ... Sunday=6
    ROTATION_TIME: time = time(0, 0, 0)

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None   # Set to also write logs to a rotating file

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
