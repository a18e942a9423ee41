"""
Similarity functions and score normalization.

The engine scores candidates with the k-NN scoring script, whose raw scale
depends on the space type:

    cosinesimil  raw = 1 + cos(a, b)          range [0, 2]
    l1           raw = 1 / (1 + sum|a - b|)   range (0, 1]
    l2           raw = 1 / (1 + sum(a - b)^2) range (0, 1]
    linf         raw = 1 / (1 + max|a - b|)   range (0, 1]

Every raw score is mapped onto [0, 1] (higher is more similar) before it is
compared with a similarity threshold or exposed to callers.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Sequence

from knnstore.core.exceptions import ConfigurationError

# Float slack for engine scores (float32 on the OpenSearch side)
SCORE_TOLERANCE = 1e-6


class SimilarityFunction(str, Enum):
    """Vector space types understood by the k-NN plugin."""

    COSINE = "cosinesimil"
    L1 = "l1"
    L2 = "l2"
    LINF = "linf"

    @classmethod
    def parse(cls, value: "SimilarityFunction | str") -> "SimilarityFunction":
        """
        Resolve a similarity function from its engine name or a common alias.

        Raises:
            ConfigurationError: If the name is unknown
        """
        if isinstance(value, SimilarityFunction):
            return value
        key = str(value).strip().lower()
        try:
            return _ALIASES[key]
        except KeyError:
            raise ConfigurationError(
                f"Unsupported similarity function: {value}. "
                f"Supported: {', '.join(f.value for f in cls)}"
            ) from None


_ALIASES: dict[str, SimilarityFunction] = {
    "cosinesimil": SimilarityFunction.COSINE,
    "cosine": SimilarityFunction.COSINE,
    "l1": SimilarityFunction.L1,
    "manhattan": SimilarityFunction.L1,
    "l2": SimilarityFunction.L2,
    "euclidean": SimilarityFunction.L2,
    "linf": SimilarityFunction.LINF,
    "l_inf": SimilarityFunction.LINF,
    "l-infinity": SimilarityFunction.LINF,
    "chebyshev": SimilarityFunction.LINF,
}


def raw_score(
    function: SimilarityFunction,
    a: Sequence[float],
    b: Sequence[float],
) -> float:
    """Compute the engine-scale score between two vectors."""
    if function is SimilarityFunction.COSINE:
        dot = sum(x * y for x, y in zip(a, b))
        norm_a = math.sqrt(sum(x * x for x in a))
        norm_b = math.sqrt(sum(y * y for y in b))
        if norm_a == 0.0 or norm_b == 0.0:
            return 1.0
        return 1.0 + dot / (norm_a * norm_b)
    if function is SimilarityFunction.L1:
        distance = sum(abs(x - y) for x, y in zip(a, b))
    elif function is SimilarityFunction.L2:
        distance = sum((x - y) ** 2 for x, y in zip(a, b))
    else:
        distance = max((abs(x - y) for x, y in zip(a, b)), default=0.0)
    return 1.0 / (1.0 + distance)


def normalize_score(function: SimilarityFunction, raw: float) -> float:
    """
    Convert a raw engine score to a similarity in [0, 1].

    Scores within SCORE_TOLERANCE of 1.0 are reported as exactly 1.0, so an
    exact match survives float rounding in the engine.
    """
    if function is SimilarityFunction.COSINE:
        score = raw / 2.0
    else:
        score = raw
    if score >= 1.0 - SCORE_TOLERANCE:
        return 1.0
    return max(0.0, score)


def threshold_to_raw(function: SimilarityFunction, threshold: float) -> float:
    """
    Raw-scale floor for min_score pushdown.

    Lowered by SCORE_TOLERANCE so the engine never drops a hit that the
    normalized post-filter would keep.
    """
    floor = max(0.0, threshold - SCORE_TOLERANCE)
    if function is SimilarityFunction.COSINE:
        return floor * 2.0
    return floor
