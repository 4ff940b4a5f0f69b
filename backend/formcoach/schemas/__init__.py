"""Pydantic schemas for exercise configuration."""

from formcoach.schemas.exercise import (
    DetectionConfig,
    ExerciseConfig,
)

__all__ = [
    "DetectionConfig",
    "ExerciseConfig",
]
