"""
Angle helpers shared by the orientation estimator and the projection engine.

Azimuth and heading are circular (wrap at 360), altitude and pitch are linear.
"""

import math


def normalize360(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    result = angle % 360.0
    # -1e-20 % 360.0 rounds to 360.0
    if result >= 360.0:
        result = 0.0
    return result


def normalize180(angle: float) -> float:
    """Wrap an angle into (-180, 180]."""
    result = normalize360(angle)
    if result > 180.0:
        result -= 360.0
    return result


def shortest_delta(current: float, target: float) -> float:
    """Signed shortest rotation from current to target, in (-180, 180]."""
    return normalize180(target - current)


def smooth_heading(current: float, target: float, factor: float) -> float:
    """
    Exponentially smooth a circular angle.

    Moves `factor` of the way along the shorter arc, so 350 -> 10 passes
    through 0 instead of 180.

    Args:
        current: Current smoothed heading (degrees)
        target: New sample (degrees)
        factor: Weight of the new sample (0-1)

    Returns:
        Smoothed heading in [0, 360)
    """
    return normalize360(current + shortest_delta(current, target) * factor)


def smooth_linear(current: float, target: float, factor: float) -> float:
    """Exponentially smooth a linear quantity (pitch, roll)."""
    return current + (target - current) * factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def is_finite_angle(value) -> bool:
    """True for a real, finite number."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False
