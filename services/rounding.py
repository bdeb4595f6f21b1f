from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties toward positive infinity."""
    return math.floor(value + 0.5)
