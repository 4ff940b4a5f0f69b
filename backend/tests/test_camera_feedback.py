"""Tests for camera positioning hints."""

from formcoach.vision.camera_feedback import get_camera_feedback
from formcoach.vision.landmarks import Landmark, PoseLandmark as P


def hide(landmarks, *indices):
    out = list(landmarks)
    for i in indices:
        lm = out[i]
        out[i] = Landmark(x=lm.x, y=lm.y, z=lm.z, visibility=0.0)
    return out


class TestCameraFeedback:

    def test_well_framed_user(self, standing_landmarks):
        assert get_camera_feedback(standing_landmarks) is None

    def test_nobody_detected(self):
        assert get_camera_feedback([]).message == "No person detected"
        assert get_camera_feedback(None).message == "No person detected"

    def test_nothing_visible_is_too_far(self, make_landmarks):
        feedback = get_camera_feedback(make_landmarks(visibility=0.3))
        assert feedback.message == "Too far, move closer"
        assert feedback.type == "warning"

    def test_visibility_threshold_override(self, make_landmarks):
        assert get_camera_feedback(make_landmarks(visibility=0.3), visibility_threshold=0.2) is None

    def test_cannot_see_head(self, standing_landmarks):
        landmarks = hide(standing_landmarks, P.NOSE, P.LEFT_SHOULDER)
        assert get_camera_feedback(landmarks).message == "Cannot see head"

    def test_cannot_see_body(self, standing_landmarks):
        landmarks = hide(standing_landmarks, P.LEFT_HIP, P.RIGHT_HIP)
        assert get_camera_feedback(landmarks).message == "Cannot see body"

    def test_too_close_to_top(self, make_landmarks):
        landmarks = make_landmarks({P.NOSE: (0.5, 0.01)})
        assert get_camera_feedback(landmarks).message == "Too close to top"

    def test_feet_cut_off_at_bottom(self, make_landmarks):
        landmarks = make_landmarks({P.LEFT_ANKLE: (0.55, 0.99), P.RIGHT_ANKLE: (0.45, 0.99)})
        assert get_camera_feedback(landmarks).message == "Too close to bottom"

        hidden = hide(landmarks, P.LEFT_ANKLE, P.RIGHT_ANKLE)
        assert get_camera_feedback(hidden).message == "Cannot see feet"

    def test_too_close_to_edge(self, make_landmarks):
        landmarks = make_landmarks({P.LEFT_SHOULDER: (0.99, 0.3)})
        assert get_camera_feedback(landmarks).message == "Too close to edge"

    def test_too_close_to_camera(self, make_landmarks):
        landmarks = make_landmarks({P.NOSE: (0.5, 0.03), P.LEFT_FOOT_INDEX: (0.56, 0.97)})
        assert get_camera_feedback(landmarks).message == "Too close, move back"

    def test_tall_subject_without_feet(self, standing_landmarks):
        landmarks = hide(standing_landmarks, P.LEFT_ANKLE, P.RIGHT_ANKLE)
        assert get_camera_feedback(landmarks).message == "Cannot see feet"
