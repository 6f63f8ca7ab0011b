"""
Per-identity age/gender smoothing.

Each recognized label keeps its most recent age and male-probability
samples (newest first) so the overlay can show a steadier estimate than a
single frame gives.
"""

from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Deque, Dict, List

from config import HISTORY_SIZE


@dataclass
class IdentityHistory:
    label: str
    max_samples: int = HISTORY_SIZE
    ages: Deque[float] = field(init=False)
    male_probabilities: Deque[float] = field(init=False)

    def __post_init__(self):
        self.ages = deque(maxlen=self.max_samples)
        self.male_probabilities = deque(maxlen=self.max_samples)

    def push(self, age: float, male_probability: float):
        # appendleft on a bounded deque drops the oldest sample from the right
        self.ages.appendleft(float(age))
        self.male_probabilities.appendleft(float(male_probability))


@dataclass(frozen=True)
class IdentitySummary:
    label: str
    avg_age: float
    avg_male_probability: float
    samples: int = 0

    @property
    def gender(self) -> str:
        return "male" if self.avg_male_probability > 0.5 else "female"

    @property
    def rounded_age(self) -> int:
        return int(round(self.avg_age))

    def describe(self) -> str:
        return f"{self.label}: {self.gender}, ~{self.rounded_age} years"


def male_probability(gender: str, gender_probability: float) -> float:
    """Probability of 'male' given the reported gender and its probability"""
    if gender == "female":
        return 1.0 - gender_probability
    return gender_probability


class IdentitySmoother:
    """
    Rolling age/gender averages keyed by recognized label.

    Updated from the frame loop and read by the status API, so access goes
    through a lock.
    """

    def __init__(self, max_samples: int = HISTORY_SIZE):
        self.max_samples = max_samples
        self._histories: Dict[str, IdentityHistory] = {}
        self._lock = Lock()

    def update(self, label: str, age: float, gender: str, gender_probability: float) -> IdentityHistory:
        with self._lock:
            history = self._histories.get(label)
            if history is None:
                history = self._histories[label] = IdentityHistory(label, self.max_samples)
            history.push(age, male_probability(gender, gender_probability))
            return history

    def history(self, label: str) -> IdentityHistory:
        with self._lock:
            return self._histories[label]

    def summarize(self, label: str) -> IdentitySummary:
        with self._lock:
            return self._summarize(self._histories[label])

    def summaries(self) -> List[IdentitySummary]:
        with self._lock:
            return [self._summarize(history) for history in self._histories.values()]

    @staticmethod
    def _summarize(history: IdentityHistory) -> IdentitySummary:
        return IdentitySummary(
            label=history.label,
            avg_age=sum(history.ages) / len(history.ages),
            avg_male_probability=sum(history.male_probabilities) / len(history.male_probabilities),
            samples=len(history.ages),
        )

    def __contains__(self, label: str) -> bool:
        return label in self._histories

    def __len__(self) -> int:
        return len(self._histories)
