"""Camera acquisition with a single fallback to the default device."""

import logging
from typing import Union

import cv2

from config import CAMERA_SOURCE, FALLBACK_CAMERA_SOURCE

logger = logging.getLogger(__name__)

Source = Union[int, str]


class CameraUnavailableError(RuntimeError):
    """No video source could be opened."""


def normalize_source(source: Source) -> Source:
    """Numeric strings are device indices, anything else is a path or URL"""
    if isinstance(source, str) and source.strip().isdigit():
        return int(source)
    return source


def _try_open(source: Source):
    cap = cv2.VideoCapture(source)
    if cap.isOpened():
        return cap
    cap.release()
    return None


def open_camera(preferred: Source = CAMERA_SOURCE, fallback: Source = FALLBACK_CAMERA_SOURCE):
    """
    Open the preferred video source, retrying once with the fallback.

    Raises CameraUnavailableError when neither can be opened.
    """
    preferred = normalize_source(preferred)
    fallback = normalize_source(fallback)

    cap = _try_open(preferred)
    if cap is None:
        logger.warning(f"Failed to open preferred video source {preferred!r}, falling back to {fallback!r}")
        cap = _try_open(fallback)
        if cap is None:
            logger.error(f"Failed to open video source: {fallback!r}")
            raise CameraUnavailableError(f"No video source available ({preferred!r}, {fallback!r})")

    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
    logger.info(f"Stream size: {width}x{height}")
    return cap
