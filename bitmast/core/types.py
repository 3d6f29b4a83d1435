from dataclasses import dataclass
from typing import NewType, Literal

from .errors import InvalidThreshold

Hash256 = NewType("Hash256", bytes)

# Strictly increasing participant indices, one minimal quorum
Combination = tuple[int, ...]

Side = Literal['left', 'right']


@dataclass(frozen=True)
class Threshold:
    m: int
    n: int

    def __post_init__(self):
        if self.n < 1:
            raise InvalidThreshold(f"Participant count must be at least 1, got {self.n}")
        if self.m < 1:
            raise InvalidThreshold(f"Threshold must be at least 1, got {self.m}")
        if self.m > self.n:
            raise InvalidThreshold(f"Threshold {self.m} exceeds participant count {self.n}")

    def __str__(self):
        return f"{self.m}-of-{self.n}"
