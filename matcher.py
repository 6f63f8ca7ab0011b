"""
Face Matcher
============

Finds the closest labeled reference descriptor for a live face descriptor.
A face is recognized when its Euclidean distance to the nearest reference
descriptor is below the threshold, otherwise it is reported as "unknown".
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from config import MATCH_DISTANCE_THRESHOLD
from descriptors import LabeledDescriptors

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"


@dataclass(frozen=True)
class MatchResult:
    label: str
    distance: float

    @property
    def is_known(self) -> bool:
        return self.label != UNKNOWN_LABEL


class Matcher:
    """Nearest-descriptor matching against an immutable reference set."""

    def __init__(self, reference_set: Sequence[LabeledDescriptors],
                 threshold: float = MATCH_DISTANCE_THRESHOLD):
        self.threshold = threshold

        labels: List[str] = []
        vectors: List[np.ndarray] = []
        for group in reference_set:
            for descriptor in group.descriptors:
                labels.append(group.label)
                vectors.append(np.asarray(descriptor, dtype=np.float32))

        self._labels = labels
        self._matrix = np.stack(vectors) if vectors else np.empty((0, 0), dtype=np.float32)
        self._label_set = list(dict.fromkeys(g.label for g in reference_set))

        logger.info(f"Matcher ready: {len(self._label_set)} labels, "
                    f"{len(labels)} descriptors, threshold {threshold}")

    @property
    def labels(self) -> List[str]:
        return list(self._label_set)

    @property
    def dimension(self) -> int:
        return self._matrix.shape[1] if len(self._labels) else 0

    def match(self, descriptor: np.ndarray) -> MatchResult:
        """Return the closest label, or UNKNOWN_LABEL if no reference is close enough."""
        if not self._labels:
            return MatchResult(UNKNOWN_LABEL, float("inf"))

        query = np.asarray(descriptor, dtype=np.float32).reshape(-1)
        if query.shape[0] != self.dimension:
            raise ValueError(f"Descriptor has {query.shape[0]} values, expected {self.dimension}")

        distances = np.linalg.norm(self._matrix - query, axis=1)
        best = int(np.argmin(distances))
        best_distance = float(distances[best])

        if best_distance < self.threshold:
            return MatchResult(self._labels[best], best_distance)
        return MatchResult(UNKNOWN_LABEL, best_distance)
