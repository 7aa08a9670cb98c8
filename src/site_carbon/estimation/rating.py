"""Letter-grade classification of per-visit emissions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

from site_carbon.models import Rating

__all__ = ["GRADES", "RatingScale", "classify"]

GRADES: Final[tuple[Rating, ...]] = ("A+", "A", "B", "C", "D", "E")
FAIL_GRADE: Final[Rating] = "F"


@dataclass(frozen=True, slots=True)
class RatingScale:
    """Ordered upper bounds (grams CO2e per visit) for grades ``A+`` to ``E``.

    Attributes:
        bounds: Six strictly ascending, finite, non-negative upper bounds.
        inclusive: Compare with ``<=`` when ``True``, with ``<`` otherwise.
            A value equal to a bound gets the better grade only when
            inclusive.
        green_gate: Force ``F`` for hosting that is not green-certified.
    """

    bounds: tuple[float, float, float, float, float, float]
    inclusive: bool = True
    green_gate: bool = False

    def __post_init__(self) -> None:
        if len(self.bounds) != len(GRADES):
            raise ValueError(f"bounds must hold {len(GRADES)} values")
        previous = -1.0
        for bound in self.bounds:
            if not math.isfinite(bound) or bound < 0:
                raise ValueError("bounds must be finite and non-negative")
            if bound <= previous:
                raise ValueError("bounds must be strictly ascending")
            previous = bound


def classify(emission_g: float, is_green: bool, scale: RatingScale) -> Rating:
    """Map an emission value to a letter grade.

    Args:
        emission_g: Grams CO2e per visit.
        is_green: Whether the hosting is green-certified.
        scale: Bounds, comparison operator and green-gate policy.

    Returns:
        One of ``A+``, ``A``, ``B``, ``C``, ``D``, ``E`` or ``F``.
    """

    if scale.green_gate and not is_green:
        return FAIL_GRADE
    for grade, bound in zip(GRADES, scale.bounds):
        if emission_g < bound or (scale.inclusive and emission_g == bound):
            return grade
    return FAIL_GRADE
