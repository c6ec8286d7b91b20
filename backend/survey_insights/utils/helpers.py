import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` places with halves rounded up (52.5 -> 53)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
