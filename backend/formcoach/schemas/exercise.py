"""Exercise configuration schemas."""

import math
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DetectionConfig(BaseModel):
    """Per-exercise detection parameters."""
    phases: List[str] = Field(default_factory=list, description="Phase names; the first is the fallback phase")
    key_landmarks: List[str] = Field(default_factory=list)
    thresholds: Dict[str, float] = Field(default_factory=dict, description="Overrides for analyzer defaults")

    @field_validator("thresholds")
    @classmethod
    def validate_thresholds(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, value in v.items():
            if not math.isfinite(value):
                raise ValueError(f"threshold {name!r} must be a finite number, got {value}")
        return v


class ExerciseConfig(BaseModel):
    """Exercise identity plus its detection configuration."""
    id: str
    slug: Optional[str] = None
    name: Optional[str] = None
    detection_config: DetectionConfig = Field(default_factory=DetectionConfig)

    @property
    def thresholds(self) -> Dict[str, float]:
        return self.detection_config.thresholds

    @property
    def fallback_phase(self) -> str:
        phases = self.detection_config.phases
        return phases[0] if phases else "neutral"
