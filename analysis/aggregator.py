"""
Monthly, year-over-year, and period-to-period price aggregation.

Daily mandi prices are noisy — a single truckload of poor-quality onions
can drag the modal price down for a day.  Averaging by month smooths
that noise out and makes the real movements visible:
    - Month-over-month: is this month dearer than the last?
    - Year-over-year: is this October dearer than last October?
      (comparing the same month removes the harvest cycle from the picture)

Key concepts for learning:
    - groupby on a derived "YYYY-MM" key buckets daily rows into months
    - Changes are computed on the rounded monthly averages, so the numbers
      a user sees always add up
    - A grade missing from the previous month gets no change entry at all —
      "no comparison" is different from "no change"
"""

import logging

import pandas as pd

from analysis.stats import rank_changes, round2
from config import MONTH_NAMES, TOP_PERIOD_CHANGES, TOP_YOY_CHANGES

logger = logging.getLogger(__name__)


def _change(current: float, previous: float) -> dict | None:
    """Absolute and percent change, or None when there is no base to compare to."""
    if previous == 0:
        return None
    change = current - previous
    return {
        "absoluteChange": round2(change),
        "percentChange": round2(change / previous * 100),
    }


# ---------------------------------------------------------------------------
# Monthly averages with month-over-month changes
# ---------------------------------------------------------------------------
def monthly_averages(df: pd.DataFrame, grade: str | None = None) -> list[dict]:
    """
    Average min/max/modal price per calendar month and grade.

    Parameters
    ----------
    df : pd.DataFrame
        Filtered records (columns: date, grade, min_price, max_price,
        modal_price).
    grade : str or None
        If given, every record is bucketed under this grade instead of
        its own.

    Returns
    -------
    list[dict]
        One entry per "YYYY-MM", oldest first.  Each has `grades`
        ({grade: averageModalPrice, averageMinPrice, averageMaxPrice,
        dataPoints, priceRange}) and `changes` ({grade: absoluteChange,
        percentChange}) versus the previous month in the list.  The first
        month's `changes` is always empty.
    """
    if df.empty:
        return []

    working = df.assign(
        month=df["date"].dt.strftime("%Y-%m"),
        grade_key=grade if grade else df["grade"],
    )
    grouped = working.groupby(["month", "grade_key"], sort=False).agg(
        avg_modal=("modal_price", "mean"),
        avg_min=("min_price", "mean"),
        avg_max=("max_price", "mean"),
        count=("modal_price", "size"),
    )

    months: dict[str, dict] = {}
    for (month_key, grade_key), row in grouped.iterrows():
        months.setdefault(month_key, {})[grade_key] = {
            "averageModalPrice": round2(row["avg_modal"]),
            "averageMinPrice": round2(row["avg_min"]),
            "averageMaxPrice": round2(row["avg_max"]),
            "dataPoints": int(row["count"]),
            "priceRange": round2(row["avg_max"] - row["avg_min"]),
        }

    result = []
    previous = None
    for month_key in sorted(months):
        grades = months[month_key]
        year, month = month_key.split("-")

        changes = {}
        if previous is not None:
            for grade_key, stats in grades.items():
                if grade_key not in previous:
                    continue
                change = _change(
                    stats["averageModalPrice"], previous[grade_key]["averageModalPrice"]
                )
                if change is not None:
                    changes[grade_key] = change

        result.append({
            "month": month_key,
            "year": int(year),
            "monthName": MONTH_NAMES[int(month) - 1],
            "grades": grades,
            "changes": changes,
        })
        previous = grades

    return result


# ---------------------------------------------------------------------------
# Year-over-year
# ---------------------------------------------------------------------------
def year_over_year(df: pd.DataFrame) -> dict:
    """
    Compare each calendar month against the same month in earlier years.

    For every month (1-12), the years present in the data are compared
    pairwise in order — 2022 vs 2023, 2023 vs 2024 — even if a year in
    between is missing.

    Returns
    -------
    dict with keys:
        - monthlyAverages: [{year, month, monthName, averagePrice, dataPoints}]
          sorted by year then month
        - yoyComparisons: [{month, monthName, comparisons}] for months
          seen in at least two years
        - insights: top 5 largestIncreases / largestDecreases /
          largestPercentIncreases / largestPercentDecreases across all
          months, each ranked independently
    """
    empty_insights = {
        "largestIncreases": [],
        "largestDecreases": [],
        "largestPercentIncreases": [],
        "largestPercentDecreases": [],
    }
    if df.empty:
        return {"monthlyAverages": [], "yoyComparisons": [], "insights": empty_insights}

    grouped = (
        df.assign(year=df["date"].dt.year, month=df["date"].dt.month)
        .groupby(["year", "month"])["modal_price"]
        .agg(average="mean", points="size")
        .reset_index()
        .sort_values(["year", "month"])
    )

    monthly = [
        {
            "year": int(row.year),
            "month": int(row.month),
            "monthName": MONTH_NAMES[int(row.month) - 1],
            "averagePrice": round2(row.average),
            "dataPoints": int(row.points),
        }
        for row in grouped.itertuples(index=False)
    ]

    comparisons_by_month = []
    all_changes = []
    for month in range(1, 13):
        month_data = [m for m in monthly if m["month"] == month]
        if len(month_data) < 2:
            continue

        month_name = MONTH_NAMES[month - 1]
        comparisons = []
        for previous, current in zip(month_data, month_data[1:]):
            change = _change(current["averagePrice"], previous["averagePrice"])
            if change is None:
                logger.debug("Skipping %s %d: previous average is zero", month_name, previous["year"])
                continue
            comparison = {
                "previousYear": previous["year"],
                "currentYear": current["year"],
                "previousPrice": previous["averagePrice"],
                "currentPrice": current["averagePrice"],
                **change,
                "monthName": month_name,
            }
            comparisons.append(comparison)
            all_changes.append(comparison)

        comparisons_by_month.append({
            "month": month,
            "monthName": month_name,
            "comparisons": comparisons,
        })

    return {
        "monthlyAverages": monthly,
        "yoyComparisons": comparisons_by_month,
        "insights": {
            "largestIncreases": rank_changes(all_changes, "absoluteChange", True, TOP_YOY_CHANGES),
            "largestDecreases": rank_changes(all_changes, "absoluteChange", False, TOP_YOY_CHANGES),
            "largestPercentIncreases": rank_changes(all_changes, "percentChange", True, TOP_YOY_CHANGES),
            "largestPercentDecreases": rank_changes(all_changes, "percentChange", False, TOP_YOY_CHANGES),
        },
    }


# ---------------------------------------------------------------------------
# Period-to-period (consecutive months, all grades pooled)
# ---------------------------------------------------------------------------
def period_changes(df: pd.DataFrame) -> dict:
    """
    Month-to-month changes of the average modal price, all grades pooled.

    Returns
    -------
    dict with keys:
        - periodChanges: [{currentPeriod, previousPeriod, currentPrice,
          previousPrice, absoluteChange, percentChange, changeType}]
        - insights: {largestIncreases, largestDecreases, averageMonthlyChange}
          where averageMonthlyChange is the mean size of the monthly moves
    """
    changes = []
    if not df.empty:
        monthly = (
            df.assign(month=df["date"].dt.strftime("%Y-%m"))
            .groupby("month")["modal_price"]
            .mean()
            .sort_index()
        )
        averages = [(month, round2(price)) for month, price in monthly.items()]

        for (prev_month, prev_price), (cur_month, cur_price) in zip(averages, averages[1:]):
            change = _change(cur_price, prev_price)
            if change is None:
                continue
            delta = cur_price - prev_price
            changes.append({
                "currentPeriod": cur_month,
                "previousPeriod": prev_month,
                "currentPrice": cur_price,
                "previousPrice": prev_price,
                **change,
                "changeType": "increase" if delta > 0 else "decrease" if delta < 0 else "stable",
            })

    if changes:
        average_change = round2(sum(abs(c["absoluteChange"]) for c in changes) / len(changes))
    else:
        average_change = 0

    return {
        "periodChanges": changes,
        "insights": {
            "largestIncreases": rank_changes(changes, "absoluteChange", True, TOP_PERIOD_CHANGES),
            "largestDecreases": rank_changes(changes, "absoluteChange", False, TOP_PERIOD_CHANGES),
            "averageMonthlyChange": average_change,
        },
    }
