# occupancy_collector/schemas/occupancy.py
"""
Occupancy payload returned by the study-spaces display endpoint.

    {"telepen": {...}, "affluence": {"Level1": {...}, "Level2e": {...}, ...}}
"""

from typing import Dict

from pydantic import BaseModel, Field, model_validator

# Header and row columns are written in this order, never in the order the
# endpoint happens to return its affluence mapping.
AFFLUENCE_LEVELS = ("Level1", "Level2e", "Level3e", "Level3nsw", "Level4e", "Level4nsw")


class LevelReading(BaseModel):
    free: int = Field(ge=0)
    total: int = Field(ge=0)
    free_percentage: float = Field(alias="freePercentage", ge=0, le=100)
    used_percentage: float = Field(alias="usedPercentage", ge=0, le=100)

    class Config:
        frozen = True
        populate_by_name = True

    @model_validator(mode="after")
    def _free_within_total(self):
        if self.free > self.total:
            raise ValueError(f"free ({self.free}) exceeds total ({self.total})")
        return self

    @classmethod
    def empty(cls) -> "LevelReading":
        return cls(free=0, total=0, free_percentage=0.0, used_percentage=0.0)


class OccupancyReading(BaseModel):
    telepen: LevelReading
    affluence: Dict[str, LevelReading]

    class Config:
        frozen = True

    def level(self, name: str) -> LevelReading:
        """Reading for a named affluence level, zero-valued if the endpoint omitted it."""
        return self.affluence.get(name) or LevelReading.empty()
