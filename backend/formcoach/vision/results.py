"""Per-frame analysis result types."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from formcoach.vision.geometry import clamp


class Severity(str, Enum):
    """Finding severity, in increasing order of urgency."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class FormFinding:
    """A discrete, named form-quality violation."""
    type: str
    message: str
    severity: Severity
    timestamp: float
    body_part: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp,
            "body_part": self.body_part,
        }


@dataclass
class FormDebug:
    """
    Raw signal values for threshold tuning.

    Targets developer tooling, not end-user display. Every analyzer fills
    in only the fields it computes.
    """
    knee_angle: Optional[float] = None
    trunk_lean: Optional[float] = None
    knee_forward: Optional[float] = None
    descent_speed: Optional[float] = None
    min_depth: Optional[float] = None
    hip_angle: Optional[float] = None
    spine_depth: Optional[float] = None
    depth_change: Optional[float] = None
    baseline: Optional[float] = None
    baseline_samples: Optional[int] = None
    shoulder_tilt: Optional[float] = None
    bending_side: Optional[str] = None
    left_thigh_angle: Optional[float] = None
    right_thigh_angle: Optional[float] = None
    best_depth_angle: Optional[float] = None
    shin_angle: Optional[float] = None
    torsion: Optional[float] = None
    shoulder_yaw: Optional[float] = None
    hip_yaw: Optional[float] = None
    queued_errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class AnalysisResult:
    """Output of one analyzed frame."""
    phase: str
    form_score: float
    findings: List[FormFinding] = field(default_factory=list)
    feedback: Optional[str] = None
    rep_completed: bool = False
    confidence: float = 0.0
    debug: Optional[FormDebug] = None

    def __post_init__(self):
        self.form_score = clamp(self.form_score, 0, 100)
        self.confidence = clamp(self.confidence, 0.0, 1.0)

    @property
    def is_correct(self) -> bool:
        return not self.findings

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for downstream progress and voice consumers."""
        return {
            "phase": self.phase,
            "form_score": self.form_score,
            "findings": [f.to_dict() for f in self.findings],
            "feedback": self.feedback,
            "is_correct": self.is_correct,
            "rep_completed": self.rep_completed,
            "confidence": self.confidence,
            "debug": self.debug.to_dict() if self.debug else None,
        }


def create_finding(
    finding_type: str,
    message: str,
    severity: Severity,
    timestamp: float,
    body_part: Optional[str] = None
) -> FormFinding:
    return FormFinding(
        type=finding_type,
        message=message,
        severity=severity,
        timestamp=timestamp,
        body_part=body_part,
    )


def add_orientation_finding(
    findings: List[FormFinding],
    orientation_message: Optional[str],
    timestamp: float
) -> None:
    """Append a camera-orientation warning when the user faces the wrong way."""
    if orientation_message:
        findings.append(create_finding(
            "orientation", orientation_message, Severity.WARNING, timestamp, "body"
        ))
