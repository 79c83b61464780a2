"""
Small numeric helpers shared by the analysis modules.

Key concepts for learning:
    - Python's built-in round() uses banker's rounding (round(0.125, 2)
      gives 0.12); prices here are rounded half away from zero instead
    - Population standard deviation divides by N, not N-1 — pandas
      defaults to N-1, so we pass ddof=0
"""

import math

import pandas as pd


def round2(value: float) -> float:
    """Round to 2 decimals, halves away from zero (0.125 → 0.13, -1.375 → -1.38)."""
    scaled = math.floor(abs(value) * 100 + 0.5)
    return math.copysign(scaled, value) / 100 if scaled else 0.0


def population_std(prices: pd.Series) -> float:
    """Standard deviation dividing by N. Returns 0.0 for an empty series."""
    if prices.empty:
        return 0.0
    return float(prices.std(ddof=0))


def format_date(value) -> str:
    return pd.Timestamp(value).strftime("%Y-%m-%d")


def rank_changes(changes: list[dict], key: str, positive: bool, limit: int) -> list[dict]:
    """
    Keep strictly positive (or strictly negative) changes and rank them by `key`.

    Largest first for increases, most negative first for decreases.
    Zero changes never appear; equal values keep their original order.
    """
    if positive:
        picked = [c for c in changes if c[key] > 0]
        return sorted(picked, key=lambda c: -c[key])[:limit]
    picked = [c for c in changes if c[key] < 0]
    return sorted(picked, key=lambda c: c[key])[:limit]
