"""Tests for camera acquisition."""

import pytest

import camera
from camera import CameraUnavailableError, normalize_source, open_camera


class FakeVideoCapture:
    available = set()
    opened = []

    def __init__(self, source):
        self.source = source
        self.released = False
        FakeVideoCapture.opened.append(self)

    def isOpened(self):
        return self.source in FakeVideoCapture.available

    def get(self, prop):
        return 640.0

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    FakeVideoCapture.available = set()
    FakeVideoCapture.opened = []
    monkeypatch.setattr(camera.cv2, "VideoCapture", FakeVideoCapture)
    return FakeVideoCapture


class TestOpenCamera:
    def test_preferred_source(self, fake_capture):
        fake_capture.available = {1, 0}
        cap = open_camera("1", 0)

        assert cap.source == 1
        assert len(fake_capture.opened) == 1

    def test_falls_back_once(self, fake_capture):
        fake_capture.available = {0}
        cap = open_camera(1, 0)

        assert cap.source == 0
        assert fake_capture.opened[0].released
        assert len(fake_capture.opened) == 2

    def test_no_source_is_fatal(self, fake_capture):
        with pytest.raises(CameraUnavailableError):
            open_camera(1, 0)
        assert all(cap.released for cap in fake_capture.opened)
        assert len(fake_capture.opened) == 2


def test_normalize_source():
    assert normalize_source("2") == 2
    assert normalize_source(3) == 3
    assert normalize_source("video.mp4") == "video.mp4"
