"""
Face Detection
==============

Thin adapter over InsightFace's ``FaceAnalysis``. It loads the model pack,
runs detection + landmarks + age/gender + ArcFace embedding on an image,
and converts each InsightFace ``Face`` into a ``Detection``.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np
from insightface.app import FaceAnalysis

from config import DET_SIZE, EXECUTION_PROVIDERS, MIN_CONFIDENCE, MODEL_NAME, MODELS_ROOT
from smoother import male_probability

logger = logging.getLogger(__name__)

# Model modules needed by the live demo and by the descriptor preparation tool
LIVE_MODULES = ['detection', 'landmark_2d_106', 'genderage', 'recognition']
DESCRIPTOR_MODULES = ['detection', 'recognition']


class ModelLoadError(RuntimeError):
    """The face analysis model could not be loaded."""


@dataclass
class Detection:
    bbox: np.ndarray  # x1, y1, x2, y2
    landmarks: np.ndarray  # (N, 2)
    descriptor: np.ndarray
    age: Optional[float] = None
    gender: Optional[str] = None  # 'male' or 'female'
    gender_probability: float = 1.0
    score: float = 1.0

    @property
    def male_probability(self) -> float:
        return male_probability(self.gender, self.gender_probability)

    @property
    def bottom_center(self) -> Tuple[int, int]:
        x1, _, x2, y2 = self.bbox
        return int((x1 + x2) / 2), int(y2)

    def scaled(self, sx: float, sy: float) -> "Detection":
        """Copy with box and landmarks resized by the given factors"""
        factors = np.array([sx, sy], dtype=np.float32)
        return replace(
            self,
            bbox=np.asarray(self.bbox, dtype=np.float32) * np.tile(factors, 2),
            landmarks=np.asarray(self.landmarks, dtype=np.float32).reshape(-1, 2) * factors,
        )


def detection_from_face(face) -> Detection:
    """
    Convert an InsightFace ``Face``.

    InsightFace reports gender as a hard class (1 = male, 0 = female), so
    the reported gender always carries probability 1.0.
    """
    landmarks = face.landmark_2d_106 if face.landmark_2d_106 is not None else face.kps
    if landmarks is None:
        landmarks = np.empty((0, 2), dtype=np.float32)

    gender = None
    if face.gender is not None:
        gender = "male" if int(face.gender) == 1 else "female"

    return Detection(
        bbox=np.asarray(face.bbox, dtype=np.float32),
        landmarks=np.asarray(landmarks, dtype=np.float32).reshape(-1, 2),
        descriptor=np.asarray(face.normed_embedding, dtype=np.float32),
        age=float(face.age) if face.age is not None else None,
        gender=gender,
        score=float(face.det_score) if face.det_score is not None else 1.0,
    )


class FaceDetector:
    """Loads the InsightFace model pack and runs it on BGR images"""

    def __init__(self, model_name: str = MODEL_NAME, models_root: str = MODELS_ROOT,
                 allowed_modules: Optional[Sequence[str]] = None,
                 det_thresh: float = MIN_CONFIDENCE, det_size: Tuple[int, int] = DET_SIZE,
                 providers: Sequence[str] = EXECUTION_PROVIDERS):
        modules = list(allowed_modules or LIVE_MODULES)
        try:
            self.face_app = FaceAnalysis(
                name=model_name,
                root=models_root,
                allowed_modules=modules,
                providers=list(providers)
            )
            self.face_app.prepare(ctx_id=0, det_thresh=det_thresh, det_size=det_size)
        except Exception as e:
            logger.error(f"Failed to load face analysis model '{model_name}' from {models_root}: {e}")
            raise ModelLoadError(f"Could not load model '{model_name}'") from e
        logger.info(f"Face analyzer initialized successfully ({', '.join(modules)})")

    def detect_all(self, image: np.ndarray) -> List[Detection]:
        faces = self.face_app.get(image)
        return [detection_from_face(face) for face in faces if face.embedding is not None]

    def detect_single(self, image: np.ndarray) -> Optional[Detection]:
        """Return the highest-scoring face, or None when no face is found"""
        detections = self.detect_all(image)
        if not detections:
            return None
        return max(detections, key=lambda d: d.score)
