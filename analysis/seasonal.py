"""
Seasonal pattern analysis for onion and potato prices.

Both crops follow a strong harvest calendar:
    - Onion: the rabi crop arrives Mar-May and is stored through the
      summer; prices usually climb Aug-Nov as storage stocks run down
      and before the kharif arrivals land
    - Potato: cold-store stocks are released through the year, so prices
      tend to firm up from Aug until the new crop arrives in Dec-Jan
    - These patterns repeat year after year, though individual years vary

Key concepts for learning:
    - Grouping by calendar month (ignoring the year) gives the "typical"
      price for that time of year
    - The month with the widest min-max range is the riskiest to buy in;
      the narrowest is the most predictable
"""

import pandas as pd

from analysis.stats import format_date, round2
from config import MONTH_NAMES, SEASONAL_RANK_SIZE


def monthly_seasonal(df: pd.DataFrame) -> list[dict]:
    """
    Modal price statistics by calendar month across all years.

    Parameters
    ----------
    df : pd.DataFrame
        Price records with 'date' and 'modal_price' columns.

    Returns
    -------
    list[dict]
        One entry per month that has data, January first:
        month (1-12), monthName, averagePrice (rounded), minPrice and
        maxPrice (raw modal prices), priceRange, dataPoints.
    """
    if df.empty:
        return []

    seasonal = (
        df.assign(month=df["date"].dt.month)
        .groupby("month")["modal_price"]
        .agg(avg_price="mean", min_price="min", max_price="max", points="size")
        .sort_index()
    )

    return [
        {
            "month": int(month),
            "monthName": MONTH_NAMES[int(month) - 1],
            "averagePrice": round2(row["avg_price"]),
            "minPrice": float(row["min_price"]),
            "maxPrice": float(row["max_price"]),
            "priceRange": round2(row["max_price"] - row["min_price"]),
            "dataPoints": int(row["points"]),
        }
        for month, row in seasonal.iterrows()
    ]


def seasonal_insights(patterns: list[dict]) -> dict:
    """
    Cheapest and dearest months, plus the most and least volatile.

    Returns
    -------
    dict with keys:
        - cheapestMonths: up to 3 months with the lowest averagePrice,
          cheapest first
        - expensiveMonths: up to 3 months with the highest averagePrice,
          dearest first
        - mostVolatileMonth / mostStableMonth: widest / narrowest
          priceRange; on a tie the earlier month wins
    """
    if not patterns:
        return {
            "cheapestMonths": [],
            "expensiveMonths": [],
            "mostVolatileMonth": None,
            "mostStableMonth": None,
        }

    by_price = sorted(patterns, key=lambda m: m["averagePrice"])

    most_volatile = patterns[0]
    most_stable = patterns[0]
    for month in patterns[1:]:
        if month["priceRange"] > most_volatile["priceRange"]:
            most_volatile = month
        if month["priceRange"] < most_stable["priceRange"]:
            most_stable = month

    return {
        "cheapestMonths": by_price[:SEASONAL_RANK_SIZE],
        "expensiveMonths": by_price[-SEASONAL_RANK_SIZE:][::-1],
        "mostVolatileMonth": most_volatile,
        "mostStableMonth": most_stable,
    }


def seasonal_patterns(df: pd.DataFrame) -> dict:
    """
    Seasonal patterns plus insights and the date span actually covered.

    Returns an empty dict when there is no data.
    """
    if df.empty:
        return {}

    patterns = monthly_seasonal(df)
    return {
        "dateRange": {
            "start": format_date(df["date"].min()),
            "end": format_date(df["date"].max()),
        },
        "totalDataPoints": len(df),
        "seasonalPatterns": patterns,
        "insights": seasonal_insights(patterns),
    }
