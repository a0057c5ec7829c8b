from __future__ import annotations

from decimal import Decimal, InvalidOperation
from math import isqrt

from bassball.contracts import Vec

FIXED_ONE = 1000
PERMILLE = 1000
TRIG_SCALE = 10_000


def to_fixed(value: int | float | str | Decimal) -> int:
    """Convert a user-facing number to thousandths, refusing finer precision."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    try:
        scaled = Decimal(str(value)) * FIXED_ONE
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc
    if not scaled.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value!r} has more than three decimal places")
    return int(scaled)


def from_fixed(value: int) -> int | float:
    if value % FIXED_ONE == 0:
        return value // FIXED_ONE
    return value / FIXED_ONE


def fdiv(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    if denominator == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def scale(value: int, permille: int) -> int:
    return fdiv(value * permille, PERMILLE)


def clamp(value: int, low: int, high: int) -> int:
    if value < low:
        return low
    if value > high:
        return high
    return value


def _half_turn_sine(degrees: int) -> int:
    # Bhaskara I approximation, exact at 0/30/90/150/180 degrees.
    product = degrees * (180 - degrees)
    return (4 * product * TRIG_SCALE) // (40500 - product)


def sin_deg(degrees: int) -> int:
    normalized = degrees % 360
    if normalized <= 180:
        return _half_turn_sine(normalized)
    return -_half_turn_sine(normalized - 180)


def cos_deg(degrees: int) -> int:
    return sin_deg(degrees + 90)


def distance_sq(a: Vec, b: Vec) -> int:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def distance(a: Vec, b: Vec) -> int:
    return isqrt(distance_sq(a, b))


def step_toward(origin: Vec, target: Vec, max_step: int) -> Vec:
    if max_step <= 0:
        return origin
    dx = target.x - origin.x
    dy = target.y - origin.y
    length_sq = dx * dx + dy * dy
    if length_sq <= max_step * max_step:
        return target
    length = isqrt(length_sq)
    return Vec(origin.x + fdiv(dx * max_step, length), origin.y + fdiv(dy * max_step, length))


def heading(origin: Vec, target: Vec, speed: int) -> Vec:
    """Velocity of magnitude ``speed`` pointing from origin to target."""
    dx = target.x - origin.x
    dy = target.y - origin.y
    length = isqrt(dx * dx + dy * dy)
    if length == 0:
        return Vec(0, 0)
    return Vec(fdiv(dx * speed, length), fdiv(dy * speed, length))


def polar(speed: int, degrees: int) -> Vec:
    return Vec(fdiv(speed * cos_deg(degrees), TRIG_SCALE), fdiv(speed * sin_deg(degrees), TRIG_SCALE))
