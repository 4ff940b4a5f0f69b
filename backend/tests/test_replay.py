"""Tests for the offline replay tool."""

import json
import logging

import pytest

from formcoach.replay import load_frames, main, parse_thresholds, replay


@pytest.fixture
def session_file(tmp_path, make_squat_frame):
    """Two recorded squat reps, the second too shallow."""
    angles = [10, 30, 50, 75, 50, 30, 10, 10, 30, 50, 60, 50, 30, 10]
    frames = []
    for i, angle in enumerate(angles):
        frame = make_squat_frame(angle, i / 30.0)
        frames.append({
            "timestamp": frame.timestamp,
            "landmarks": frame.to_array().tolist(),
        })
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"frames": frames}))
    return path


class TestParseThresholds:

    def test_parses_pairs(self):
        assert parse_thresholds(["min_depth_angle=65", " max_trunk_lean = 50.5"]) == {
            "min_depth_angle": 65.0,
            "max_trunk_lean": 50.5,
        }

    def test_empty(self):
        assert parse_thresholds(None) == {}

    @pytest.mark.parametrize("value", ["min_depth_angle", "=65", "min_depth_angle=deep"])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_thresholds([value])


class TestReplay:

    def test_load_frames(self, session_file):
        frames = load_frames(session_file)
        assert len(frames) == 14
        assert len(frames[0]) == 33
        assert frames[3].frame_number == 3
        assert frames[1].timestamp == pytest.approx(1 / 30.0)

    def test_load_plain_list(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([{"landmarks": [[0.5, 0.5, 0.0, 0.9]] * 33}]))
        (frame,) = load_frames(path)
        assert frame.timestamp == 0.0
        assert frame.landmarks[0].visibility == pytest.approx(0.9)

    def test_replay_summary(self, session_file):
        summary = replay(load_frames(session_file), "squat")

        assert summary["analyzer"] == "squat"
        assert summary["frames"] == 14
        assert summary["rep_count"] == 2
        first, second = summary["reps"]
        assert first["findings"] == []
        assert [f["type"] for f in second["findings"]] == ["insufficient_depth"]
        assert second["frame_number"] == 13

    def test_threshold_override_changes_outcome(self, session_file):
        summary = replay(load_frames(session_file), "squat", {"min_depth_angle": 55.0})
        assert all(rep["findings"] == [] for rep in summary["reps"])

    def test_smoothing_keeps_reps(self, session_file):
        summary = replay(load_frames(session_file), "squat", smooth=True)
        assert summary["rep_count"] >= 1


class TestMain:

    def test_prints_and_writes_summary(self, session_file, tmp_path, capsys):
        out = tmp_path / "reps.json"
        code = main([str(session_file), "--exercise", "squat", "--out", str(out)])

        assert code == 0
        assert "squat (squat): 2 reps over 14 frames" in capsys.readouterr().out
        assert json.loads(out.read_text())["rep_count"] == 2

    def test_bad_threshold_exits(self, session_file):
        with pytest.raises(SystemExit):
            main([str(session_file), "--exercise", "squat", "--threshold", "oops"])

    def test_log_level_from_settings(self, session_file, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        monkeypatch.setenv("FORMCOACH_LOG_LEVEL", "warning")

        main([str(session_file), "--exercise", "squat"])
        assert calls[0]["level"] == "WARNING"

        main([str(session_file), "--exercise", "squat", "--debug"])
        assert calls[1]["level"] == logging.DEBUG
