"""
Cross-commodity correlation and grade premiums.

Correlations tell you how two markets move relative to each other:
    - +1.0: move perfectly together (when onion goes up, potato goes up)
    -  0.0: no relationship
    - -1.0: move perfectly opposite

Key concepts for learning:
    - Onion and potato share buyers, transport, and weather, so they often
      move together — but their harvest calendars differ, which can pull
      them apart for months at a time
    - Only dates where BOTH commodities were traded can be compared;
      everything else is dropped before the calculation
    - The FAQ (fair average quality) premium shows how much more the
      market pays for the better grade
"""

import logging
import math

import pandas as pd

from analysis.stats import round2
from config import MODERATE_CORRELATION, STRONG_CORRELATION

logger = logging.getLogger(__name__)


def pearson(xs, ys) -> float | None:
    """
    Pearson correlation of two equal-length price lists.

    Returns None when there are fewer than two pairs or either list has
    no variance (a flat line correlates with nothing).
    """
    n = len(xs)
    if n < 2:
        return None

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)
    sum_yy = sum(y * y for y in ys)

    variance_product = (n * sum_xx - sum_x * sum_x) * (n * sum_yy - sum_y * sum_y)
    if variance_product <= 0:
        return None

    r = (n * sum_xy - sum_x * sum_y) / math.sqrt(variance_product)
    # Float noise can push a perfect correlation a hair past 1
    return max(-1.0, min(1.0, r))


def correlation_strength(r: float) -> str:
    if abs(r) > STRONG_CORRELATION:
        return "Strong"
    if abs(r) > MODERATE_CORRELATION:
        return "Moderate"
    return "Weak"


def interpret_correlation(r: float) -> str:
    if r > 0.5:
        return "Onion and potato prices tend to move strongly in the same direction"
    if r > 0.3:
        return "Onion and potato prices show moderate positive correlation"
    if r > -0.3:
        return "Onion and potato prices show weak correlation"
    return "Onion and potato prices tend to move in opposite directions"


def _prices_by_date(df: pd.DataFrame) -> pd.Series:
    # Several grades can share a date; the last record loaded for that date wins
    return df.groupby("date", sort=True)["modal_price"].last()


def cross_commodity_correlation(onion_df: pd.DataFrame, potato_df: pd.DataFrame) -> dict | None:
    """
    Correlate onion and potato modal prices on the dates both were traded.

    Parameters
    ----------
    onion_df, potato_df : pd.DataFrame
        Filtered records for each commodity over the same date range.

    Returns
    -------
    dict or None
        {coefficient, strength, direction, dataPoints, interpretation},
        or None when there are fewer than two common dates or the
        correlation is undefined.
    """
    if onion_df.empty or potato_df.empty:
        return None

    aligned = pd.DataFrame({
        "onion": _prices_by_date(onion_df),
        "potato": _prices_by_date(potato_df),
    }).dropna()

    if len(aligned) < 2:
        logger.info("Only %d common dates — no correlation available", len(aligned))
        return None

    r = pearson(aligned["onion"].tolist(), aligned["potato"].tolist())
    if r is None:
        logger.info("Correlation undefined — one of the series is flat")
        return None

    return {
        "coefficient": round2(r),
        "strength": correlation_strength(r),
        "direction": "Positive" if r > 0 else "Negative",
        "dataPoints": len(aligned),
        "interpretation": interpret_correlation(r),
    }


def grade_premiums(analytics: list[dict | None]) -> dict:
    """
    FAQ-over-non-FAQ premium for each commodity that has both grades.

    Parameters
    ----------
    analytics : list
        Per-commodity results from trend.commodity_analytics (None entries
        are skipped).
    """
    premiums = {}
    for block in analytics:
        if not block:
            continue
        grades = block["gradeAnalysis"]
        if "faq" not in grades or "non-faq" not in grades:
            continue

        faq_price = grades["faq"]["averagePrice"]
        non_faq_price = grades["non-faq"]["averagePrice"]
        if non_faq_price == 0:
            continue

        premium = faq_price - non_faq_price
        premiums[block["commodity"]] = {
            "absolutePremium": round2(premium),
            "percentPremium": round2(premium / non_faq_price * 100),
            "faqPrice": faq_price,
            "nonFaqPrice": non_faq_price,
        }
    return premiums
