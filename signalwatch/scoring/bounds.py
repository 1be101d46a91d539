"""Rounding/clamping shared by every scorer (outputs never leave their range)."""

from __future__ import annotations

import math


def round_half_up(x: float) -> int:
    # round() is banker's rounding; scores must round .5 upwards
    return int(math.floor(x + 0.5))


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def clamp_int(x: float, lo: int = 0, hi: int = 100) -> int:
    return int(clamp(round_half_up(x), lo, hi))
