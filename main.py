#!/usr/bin/env python3
"""
Live Face Recognition Demo
==========================

Streams webcam video, runs InsightFace (detection, landmarks, age/gender and
ArcFace descriptors) on every frame and draws the results over the video.

Features:
- Camera acquisition with fallback to the default device
- Face landmarks drawn on every detected face
- Recognition against a labeled descriptor file (see prepare_descriptors.py)
- Rolling age/gender average for each recognized person
- Optional read-only status API (FastAPI)

Usage:
------
1. Build the descriptor file from labeled training images:
   ```bash
   python prepare_descriptors.py --data-dir data --output assets/descriptors.json
   ```

2. Run the demo:
   ```bash
   python main.py
   ```

3. Optionally expose the tracked identities:
   ```bash
   python main.py --api-port 8000
   curl http://localhost:8000/identities
   ```

Press 'q' in the video window to quit.
"""

import argparse
import logging
import signal
import sys
from dataclasses import dataclass, field
from enum import Enum
from threading import Thread
from typing import Callable, List, Optional

import cv2
import numpy as np
import uvicorn

from api import app
from camera import CameraUnavailableError, open_camera
from config import (
    API_PORT,
    CAMERA_SOURCE,
    DESCRIPTORS_SOURCE,
    DISPLAY_WIDTH,
    HISTORY_SIZE,
    KEEP_ALL_DESCRIPTORS,
    MATCH_DISTANCE_THRESHOLD,
    MODELS_ROOT,
    WINDOW_NAME,
)
from descriptors import LabeledDescriptors, load_reference_set_async
from detector import Detection, FaceDetector, ModelLoadError
from matcher import Matcher, MatchResult
from overlay import (
    KNOWN_BOX_COLOR,
    draw_box,
    draw_identity_panel,
    draw_landmarks,
    draw_text_field,
    format_gender_age,
    match_dimensions,
)
from smoother import IdentitySmoother

logger = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    DETECTING = "detecting"
    DRAWING = "drawing"
    STOPPED = "stopped"


@dataclass
class FrameResult:
    canvas: np.ndarray
    detections: List[Detection] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)


def show_frame(canvas: np.ndarray) -> bool:
    """Display the canvas and wait for the next refresh. False means quit."""
    cv2.imshow(WINDOW_NAME, canvas)
    key = cv2.waitKey(1) & 0xFF
    return key != ord('q')


class FrameLoop:
    """
    Detect -> draw cycle over a live video source.

    Only one detection pass runs at a time: the next frame is read after the
    previous one has been drawn and displayed, so slow inference lowers the
    frame rate instead of queueing frames.
    """

    def __init__(self, detector_factory: Callable[[], FaceDetector],
                 camera_factory: Callable[[], object] = open_camera,
                 display: Callable[[np.ndarray], bool] = show_frame,
                 display_width: int = DISPLAY_WIDTH,
                 history_size: int = HISTORY_SIZE,
                 threshold: float = MATCH_DISTANCE_THRESHOLD):
        self.detector_factory = detector_factory
        self.camera_factory = camera_factory
        self.display = display
        self.display_width = display_width
        self.threshold = threshold

        self.state = LoopState.IDLE
        self.identities = IdentitySmoother(history_size)
        self.matcher: Optional[Matcher] = None
        self._matcher_installed = False
        self.detector = None
        self.cap = None
        self.frame_count = 0

    def set_matcher(self, matcher: Matcher):
        """Install the matcher once; later calls are ignored."""
        if self._matcher_installed:
            logger.warning("Matcher already set, ignoring new reference set")
            return
        self._matcher_installed = True
        self.matcher = matcher

    def set_reference_set(self, reference_set: List[LabeledDescriptors]):
        self.set_matcher(Matcher(reference_set, threshold=self.threshold))

    def start(self):
        """Acquire the camera and load the model. Either failure is fatal."""
        if self.state is not LoopState.IDLE:
            raise RuntimeError(f"Cannot start frame loop in state {self.state.value}")

        self.state = LoopState.INITIALIZING
        try:
            self.cap = self.camera_factory()
            self.detector = self.detector_factory()
        except (CameraUnavailableError, ModelLoadError):
            self.stop()
            self.release()
            raise

        logger.info("Initialized")
        self.state = LoopState.DETECTING

    def stop(self):
        if self.state is not LoopState.STOPPED:
            logger.info("Stopping frame loop")
        self.state = LoopState.STOPPED

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def step(self) -> Optional[FrameResult]:
        """Run one detection pass and display its result"""
        if self.state is not LoopState.DETECTING:
            return None

        ret, frame = self.cap.read()
        if not ret:
            logger.warning("Failed to read frame")
            self.stop()
            return None
        self.frame_count += 1

        detections = self.detector.detect_all(frame)
        if detections:
            self.state = LoopState.DRAWING
            result = self.draw(frame, detections)
            if self.state is LoopState.DRAWING:
                self.state = LoopState.DETECTING
        else:
            # Nothing found: show the frame without overlay
            size, _, _ = match_dimensions(frame.shape, self.display_width)
            result = FrameResult(canvas=_fit(frame, size))

        if self.display(result.canvas) is False:
            self.stop()
        return result

    def draw(self, frame: np.ndarray, detections: List[Detection]) -> FrameResult:
        """Draw landmarks, labels and the identity panel for one frame"""
        size, sx, sy = match_dimensions(frame.shape, self.display_width)
        canvas = _fit(frame, size)
        resized = [detection.scaled(sx, sy) for detection in detections]

        for detection in resized:
            draw_landmarks(canvas, detection)

        labels = []
        for detection in resized:
            match = self._match(detection.descriptor)

            if match is not None and match.is_known:
                if detection.age is not None:
                    self.identities.update(match.label, detection.age,
                                           detection.gender, detection.gender_probability)
                text = match.label
                draw_box(canvas, detection, KNOWN_BOX_COLOR)
            else:
                text = format_gender_age(detection.gender, detection.age)
                draw_box(canvas, detection)

            draw_text_field(canvas, [text], detection.bottom_center)
            labels.append(text)

        draw_identity_panel(canvas, self.identities.summaries())
        return FrameResult(canvas=canvas, detections=resized, labels=labels)

    def _match(self, descriptor: np.ndarray) -> Optional[MatchResult]:
        """Match against the reference set, or None while it is unavailable"""
        matcher = self.matcher
        if matcher is None:
            return None
        if matcher.dimension and len(descriptor) != matcher.dimension:
            # Descriptor file built with a different embedding model
            logger.warning(f"Reference descriptors have {matcher.dimension} values but the model "
                           f"produces {len(descriptor)}, face recognition disabled")
            self.matcher = None
            return None
        return matcher.match(descriptor)

    def run(self):
        self.start()
        logger.info("Press 'q' to quit")
        try:
            while self.state is not LoopState.STOPPED:
                self.step()
        finally:
            self.stop()
            self.release()


def _fit(frame: np.ndarray, size) -> np.ndarray:
    height, width = frame.shape[:2]
    if (width, height) == tuple(size):
        return frame.copy()
    return cv2.resize(frame, tuple(size), interpolation=cv2.INTER_AREA)


def run_api(port: int):
    """Run the status API (blocking, meant for a daemon thread)"""
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Live face detection and recognition demo")
    parser.add_argument('--camera', default=CAMERA_SOURCE,
                        help='Preferred video source: device index, file or URL (falls back to device 0)')
    parser.add_argument('--descriptors', default=DESCRIPTORS_SOURCE,
                        help='Descriptor JSON file or http(s) URL')
    parser.add_argument('--models-root', default=MODELS_ROOT,
                        help='Directory containing the InsightFace model packs')
    parser.add_argument('--threshold', type=float, default=MATCH_DISTANCE_THRESHOLD,
                        help='Euclidean distance below which a face is recognized')
    parser.add_argument('--keep-all-descriptors', action='store_true', default=KEEP_ALL_DESCRIPTORS,
                        help='Use every descriptor per label instead of only the first one')
    parser.add_argument('--display-width', type=int, default=DISPLAY_WIDTH,
                        help='Overlay width in pixels (0 keeps the camera frame size)')
    parser.add_argument('--api-port', type=int, default=API_PORT,
                        help='Serve the status API on this port (0 disables it)')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point"""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    args = parse_args(argv)

    loop = FrameLoop(
        detector_factory=lambda: FaceDetector(models_root=args.models_root),
        camera_factory=lambda: open_camera(args.camera),
        display_width=args.display_width,
        threshold=args.threshold,
    )

    def signal_handler(sig, frame):
        logger.info("Shutting down...")
        loop.stop()

    signal.signal(signal.SIGINT, signal_handler)

    # Descriptors load concurrently with camera and model initialization
    load_reference_set_async(args.descriptors, loop.set_reference_set,
                             keep_all=args.keep_all_descriptors)

    if args.api_port:
        app.state.loop = loop
        Thread(target=run_api, args=(args.api_port,), daemon=True).start()
        logger.info(f"Status API started at http://localhost:{args.api_port}/identities")

    try:
        loop.run()
    except (CameraUnavailableError, ModelLoadError) as e:
        logger.error(f"Fatal: {e}")
        return 1
    finally:
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    sys.exit(main())
