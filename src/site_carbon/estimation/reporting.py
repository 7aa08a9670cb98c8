"""Reporting and equivalence helpers separate from core estimation."""

from __future__ import annotations

from typing import Final

GRAMS_PER_KM_DRIVEN: Final[float] = 404.0
GRAMS_PER_TREE_YEAR: Final[float] = 21000.0


def compare_carbon_equivalents(emission_g: float) -> dict[str, str]:
    """Convert grams CO2e into human-friendly equivalents."""

    if emission_g < 0:
        raise ValueError("emission_g must be non-negative")
    return {
        "km": f"{emission_g / GRAMS_PER_KM_DRIVEN:.2f}",
        "arvores": f"{emission_g / GRAMS_PER_TREE_YEAR:.3f}",
    }
