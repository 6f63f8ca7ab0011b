"""Shared fakes for the camera, the face model and the display."""

import numpy as np
import pytest

from detector import Detection

DIM = 128


def make_descriptor(seed: int, dim: int = DIM) -> np.ndarray:
    rng = np.random.default_rng(seed)
    vec = rng.normal(size=dim).astype(np.float32)
    return vec / np.linalg.norm(vec)


def make_detection(descriptor, age=30.0, gender="male", gender_probability=1.0,
                   bbox=(40, 40, 120, 140), score=0.9) -> Detection:
    return Detection(
        bbox=np.array(bbox, dtype=np.float32),
        landmarks=np.array([[60, 80], [100, 80], [80, 110]], dtype=np.float32),
        descriptor=np.asarray(descriptor, dtype=np.float32),
        age=age,
        gender=gender,
        gender_probability=gender_probability,
        score=score,
    )


class FakeCapture:
    def __init__(self, frames):
        self.frames = list(frames)
        self.released = False

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


class FakeDetector:
    """Returns a scripted list of detections per call."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0

    def detect_all(self, image):
        self.calls += 1
        if not self.script:
            return []
        return self.script.pop(0)


class RecordingDisplay:
    def __init__(self, keep_running=True):
        self.frames = []
        self.keep_running = keep_running

    def __call__(self, canvas):
        self.frames.append(canvas)
        return self.keep_running


@pytest.fixture
def frame():
    return np.full((240, 320, 3), 64, dtype=np.uint8)
