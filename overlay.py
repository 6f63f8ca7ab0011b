"""Overlay drawing: landmarks, face labels and the tracked identity panel."""

from typing import Iterable, Sequence, Tuple

import cv2
import numpy as np

from detector import Detection
from smoother import IdentitySummary

FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.6
LINE_HEIGHT = 22
TEXT_COLOR = (255, 255, 255)
TEXT_BACKGROUND = (0, 0, 0)
LANDMARK_COLOR = (0, 255, 255)
BOX_COLOR = (255, 0, 0)  # Blue for unrecognized faces
KNOWN_BOX_COLOR = (0, 255, 0)  # Green for recognized faces


def match_dimensions(frame_shape: Sequence[int], display_width: int = 0) -> Tuple[Tuple[int, int], float, float]:
    """
    Size of the overlay surface for a frame, and the scale factors from
    frame coordinates to overlay coordinates. Aspect ratio is kept.
    """
    height, width = frame_shape[:2]
    if display_width <= 0 or display_width == width:
        return (width, height), 1.0, 1.0
    scale = display_width / width
    size = (display_width, max(1, int(round(height * scale))))
    return size, size[0] / width, size[1] / height


def format_gender_age(gender, age) -> str:
    if age is None:
        return gender or ""
    return f"{gender}, ~{int(round(age))} years"


def draw_landmarks(canvas: np.ndarray, detection: Detection, color=LANDMARK_COLOR):
    for x, y in detection.landmarks:
        cv2.circle(canvas, (int(x), int(y)), 1, color, -1)


def draw_box(canvas: np.ndarray, detection: Detection, color=BOX_COLOR):
    x1, y1, x2, y2 = map(int, detection.bbox)
    cv2.rectangle(canvas, (x1, y1), (x2, y2), color, 2)


def draw_text_field(canvas: np.ndarray, lines: Sequence[str], anchor: Tuple[int, int]):
    """Draw text lines on a filled box whose top-left corner is ``anchor``"""
    if not lines:
        return
    widths = [cv2.getTextSize(line, FONT, FONT_SCALE, 1)[0][0] for line in lines]
    x, y = anchor
    pad = 4
    cv2.rectangle(canvas, (x, y), (x + max(widths) + 2 * pad, y + LINE_HEIGHT * len(lines) + pad),
                  TEXT_BACKGROUND, -1)
    for i, line in enumerate(lines):
        cv2.putText(canvas, line, (x + pad, y + LINE_HEIGHT * (i + 1) - 5),
                    FONT, FONT_SCALE, TEXT_COLOR, 1, cv2.LINE_AA)


def draw_identity_panel(canvas: np.ndarray, summaries: Iterable[IdentitySummary]):
    lines = [summary.describe() for summary in summaries]
    draw_text_field(canvas, lines, (10, 10))
