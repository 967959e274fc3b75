# ABOUTME: Division and rounding helpers shared by every aggregator.
# ABOUTME: A zero denominator yields 0 rather than an error, NaN or infinity.

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float]


def safe_ratio(numerator: Number, denominator: Number) -> float:
    """Return numerator / denominator, or 0.0 when the denominator is zero."""

    if not denominator:
        return 0.0
    result = numerator / denominator
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return float(result)


def percentage(part: Number, whole: Number) -> float:
    return safe_ratio(part, whole) * 100.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero (built-in round() rounds half to even)."""

    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_half_up_int(value: float) -> int:
    return int(round_half_up(value, 0))
