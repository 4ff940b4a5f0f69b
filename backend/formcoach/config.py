"""Engine configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Application
    app_name: str = "FormCoach Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Telemetry (threshold tuning only, off in production)
    telemetry_enabled: bool = False

    # Pose input
    landmark_count: int = 33  # MediaPipe Pose convention

    # Velocity tracking
    velocity_window_seconds: float = 0.2  # Larger frame gaps are tracking gaps, not motion

    # Trajectory comparison (DTW)
    dtw_target_length: int = 20  # Buffers longer than this are resampled down
    dtw_min_length: int = 5      # Buffers shorter than this are too short to analyze

    # Camera positioning
    camera_visibility_threshold: float = 0.6

    # Landmark smoothing
    smoother_window_size: int = 11
    smoother_alpha: float = 0.3  # EMA alpha for short histories

    class Config:
        env_file = ".env"
        env_prefix = "FORMCOACH_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
