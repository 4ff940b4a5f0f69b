"""
Per-rep error accumulation and flush.

While a repetition is in progress the analyzer runs its checklist every
frame and queues the codes of failing rules. Codes are deduplicated, so a
rule failing on twenty consecutive frames is still one finding. At the
frame the rep completes the queue is flushed into FormFindings exactly
once; mid-rep frames expose the queue only through debug telemetry.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, NamedTuple

from formcoach.vision.results import FormFinding, Severity, create_finding


class FormErrorCode:
    """Form error codes shared across analyzers."""
    FORWARD_LEAN = "forward_lean"
    KNEE_FORWARD = "knee_forward"
    UPPER_BACK_ROUND = "upper_back_round"
    HANDS_ON_LEGS = "hands_on_legs"
    SPEED_TOO_FAST = "speed_too_fast"
    INSUFFICIENT_DEPTH = "insufficient_depth"
    HIP_ALIGNMENT = "hip_alignment"
    OVEREXTENSION = "overextension"
    ELBOW_LOCK = "elbow_lock"
    KNEE_BEND = "knee_bend"
    KNEE_LOCK = "knee_lock"
    NECK_ALIGNMENT = "neck_alignment"
    POOR_HINGE = "poor_hinge"
    BAR_DRIFT = "bar_drift"
    ORIENTATION = "orientation"


class ErrorSpec(NamedTuple):
    """How a queued code is reported."""
    message: str
    severity: Severity
    body_part: str


@dataclass
class RepErrorQueue:
    """Ordered set of error codes for the repetition in progress."""
    _codes: Dict[str, None] = field(default_factory=dict)

    def add(self, code: str) -> None:
        self._codes.setdefault(code, None)

    def __contains__(self, code: str) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)

    @property
    def codes(self) -> List[str]:
        """Queued codes in first-seen order."""
        return list(self._codes)

    def reset(self) -> None:
        self._codes.clear()

    def flush(
        self,
        catalog: Mapping[str, ErrorSpec],
        timestamp: float
    ) -> List[FormFinding]:
        """
        Convert queued codes into findings and empty the queue.

        Args:
            catalog: Message, severity and body part per code
            timestamp: Completion frame timestamp

        Returns:
            One finding per distinct queued code
        """
        findings = []
        for code in self._codes:
            entry = catalog.get(code)
            if entry is None:
                findings.append(create_finding(code, code, Severity.WARNING, timestamp))
            else:
                findings.append(create_finding(
                    code, entry.message, entry.severity, timestamp, entry.body_part
                ))
        self._codes.clear()
        return findings

