# tests/conftest.py
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from occupancy_collector.schemas.occupancy import OccupancyReading


def level(free, total, free_pct, used_pct):
    return {"free": free, "total": total, "freePercentage": free_pct, "usedPercentage": used_pct}


@pytest.fixture
def payload():
    return {
        "telepen": level(120, 500, 24.0, 76.0),
        "affluence": {
            "Level1": level(10, 50, 20.0, 80.0),
            "Level2e": level(5, 40, 12.5, 87.5),
            "Level3e": level(0, 30, 0.0, 100.0),
            "Level3nsw": level(8, 60, 13.3, 86.7),
            "Level4e": level(12, 45, 26.7, 73.3),
            "Level4nsw": level(20, 80, 25.0, 75.0),
        },
    }


@pytest.fixture
def reading(payload):
    return OccupancyReading.model_validate(payload)
