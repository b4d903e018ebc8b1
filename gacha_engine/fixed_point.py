from decimal import Decimal, ROUND_HALF_UP

from gacha_engine.errors import ScalingOverflowError
from gacha_engine.validation_rules import SCALE, MAX_SAFE_INTEGER


def to_scaled(value: float, path: str | None = None) -> int:
    """Convert a probability or weight to an integer count of 1/SCALE units."""
    # str() keeps the shortest repr, so 0.3 scales to 300000 and not 299999
    raw = Decimal(str(value)) * SCALE
    if abs(raw) > MAX_SAFE_INTEGER:
        raise ScalingOverflowError(
            f"{value!r} exceeds {MAX_SAFE_INTEGER} once scaled by {SCALE}", path
        )
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_scaled(value: int) -> float:
    return value / SCALE


def scaled_share(weight: int, rate: int, total: int) -> int:
    """Round-half-up ``weight * rate / total`` without leaving the integer domain."""
    if total <= 0:
        raise ValueError("total must be positive")
    return (2 * weight * rate + total) // (2 * total)
