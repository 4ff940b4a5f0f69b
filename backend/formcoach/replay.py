"""
Offline replay of recorded landmark frames through a FormEngine.

Developer tool for threshold tuning: record a session once, then replay it
with different threshold overrides and compare the rep summaries.

Input is JSON, either a list of frames or {"frames": [...]}, where each
frame is {"timestamp": seconds, "landmarks": [[x, y, z, visibility], ...]}.

Examples:
  python -m formcoach.replay session.json --exercise squat
  python -m formcoach.replay session.json --exercise squat \\
      --threshold min_depth_angle=65 --smooth --out reps.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from formcoach.config import get_settings
from formcoach.vision.form_engine import FormEngine
from formcoach.vision.landmark_smoother import LandmarkSmoother
from formcoach.vision.landmarks import PoseFrame
from formcoach.vision.telemetry import LoggingTelemetry

logger = logging.getLogger(__name__)


def load_frames(path: Path) -> List[PoseFrame]:
    """Read recorded frames from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("frames", [])

    frames = []
    for i, item in enumerate(data):
        frames.append(PoseFrame.from_array(
            item["landmarks"],
            timestamp=float(item.get("timestamp", i / 30.0)),
            frame_number=item.get("frame_number", i),
        ))
    return frames


def parse_thresholds(values: Optional[Sequence[str]]) -> Dict[str, float]:
    """Parse repeated name=value overrides."""
    thresholds = {}
    for value in values or []:
        name, sep, raw = value.partition("=")
        if not sep or not name:
            raise ValueError(f"Threshold override must look like name=value, got {value!r}")
        thresholds[name.strip()] = float(raw)
    return thresholds


def replay(
    frames: Sequence[PoseFrame],
    exercise: str,
    thresholds: Optional[Dict[str, float]] = None,
    smooth: bool = False
) -> Dict[str, Any]:
    """
    Feed frames through a fresh engine and collect per-rep summaries.

    Returns:
        Dictionary with the exercise, the analyzer used, and one entry per rep
    """
    engine = FormEngine(
        {
            "id": exercise,
            "slug": exercise,
            "detection_config": {"thresholds": thresholds or {}},
        },
        telemetry=LoggingTelemetry(),
    )
    smoother = LandmarkSmoother() if smooth else None

    reps = []
    for frame in frames:
        if smoother is not None:
            frame = smoother.smooth_frame(frame)
        result = engine.process_frame(frame)
        if result.rep_completed:
            reps.append({
                "rep": engine.rep_count,
                "frame_number": frame.frame_number,
                "timestamp": frame.timestamp,
                "feedback": result.feedback,
                "findings": [f.to_dict() for f in result.findings],
                "debug": result.debug.to_dict() if result.debug else None,
            })

    return {
        "exercise": exercise,
        "analyzer": engine.analyzer.name,
        "frames": len(frames),
        "rep_count": engine.rep_count,
        "reps": reps,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Replay recorded landmark frames through the form engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument("frames", type=Path, help="Path to recorded frames JSON.")
    ap.add_argument("--exercise", required=True, help="Exercise slug, e.g. squat.")
    ap.add_argument("--threshold", action="append", metavar="NAME=VALUE",
                    help="Threshold override, repeatable.")
    ap.add_argument("--smooth", action="store_true", help="Smooth landmarks before analysis.")
    ap.add_argument("--out", type=Path, default=None, help="Write the summary as JSON.")
    ap.add_argument("--debug", action="store_true", help="Log per-frame telemetry.")
    args = ap.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if (settings.debug or args.debug) else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        thresholds = parse_thresholds(args.threshold)
    except ValueError as e:
        ap.error(str(e))

    frames = load_frames(args.frames)
    logger.info(f"Loaded {len(frames)} frames from {args.frames}")

    summary = replay(frames, args.exercise, thresholds, smooth=args.smooth)

    print(f"{summary['exercise']} ({summary['analyzer']}): "
          f"{summary['rep_count']} reps over {summary['frames']} frames")
    for rep in summary["reps"]:
        types = ", ".join(f["type"] for f in rep["findings"]) or "clean"
        print(f"  rep {rep['rep']} @ {rep['timestamp']:.2f}s: {rep['feedback']} [{types}]")

    if args.out:
        with open(args.out, "w") as f:
            json.dump(summary, f, indent=2)
        logger.info(f"Summary written to {args.out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
