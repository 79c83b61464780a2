"""
Price records, big daily moves, and sustained high/low periods.

Answers the questions a trader asks when looking back over a season:
    - What was the highest and lowest price ever paid?
    - Which days saw the biggest jumps or crashes?
    - When did prices stay well above (or below) normal for days on end?

Key concepts for learning:
    - "Daily" changes compare each record with the previous one in date
      order — if the market was closed for a week, that whole week counts
      as one step
    - A sustained period is a run of at least 3 consecutive records more
      than 20% away from the average price
    - Ties go to whichever record comes first in date order
"""

import logging

import pandas as pd

from analysis.stats import format_date, population_std, rank_changes, round2
from config import MIN_STREAK_LENGTH, STREAK_THRESHOLD_PCT, TOP_DAILY_CHANGES, TOP_STREAKS

logger = logging.getLogger(__name__)

PRICE_TYPES = (("modal", "modal_price"), ("min", "min_price"), ("max", "max_price"))


def _record_dict(row) -> dict:
    return {
        "date": format_date(row["date"]),
        "grade": row["grade"],
        "minPrice": row["min_price"],
        "maxPrice": row["max_price"],
        "modalPrice": row["modal_price"],
        "variety": row["variety"],
    }


# ---------------------------------------------------------------------------
# All-time records
# ---------------------------------------------------------------------------
def all_time_records(df: pd.DataFrame) -> dict:
    """
    Highest and lowest prices, overall and for the modal price alone.

    The overall extremes look at modal, min and max prices together and
    report which one produced the extreme.  They are scanned as three
    series one after another — every modal price, then every min, then
    every max — and the first value reaching the extreme wins.  So a
    modal price ties ahead of an equal max price.

    Parameters
    ----------
    df : pd.DataFrame
        Date-sorted records for a single grade.  Must not be empty.
    """
    tagged = pd.concat(
        [
            pd.DataFrame({"price": df[col].to_numpy(), "priceType": label, "row": range(len(df))})
            for label, col in PRICE_TYPES
        ],
        ignore_index=True,
    )

    def _overall(position) -> dict:
        hit = tagged.loc[position]
        row = df.iloc[int(hit["row"])]
        return {
            "price": float(hit["price"]),
            "priceType": hit["priceType"],
            "date": format_date(row["date"]),
            "record": _record_dict(row),
        }

    def _modal(position) -> dict:
        row = df.loc[position]
        return {
            "price": float(row["modal_price"]),
            "date": format_date(row["date"]),
            "record": _record_dict(row),
        }

    # idxmax/idxmin return the first position holding the extreme
    return {
        "highestOverall": _overall(tagged["price"].idxmax()),
        "lowestOverall": _overall(tagged["price"].idxmin()),
        "highestModal": _modal(df["modal_price"].idxmax()),
        "lowestModal": _modal(df["modal_price"].idxmin()),
    }


# ---------------------------------------------------------------------------
# Day-over-day changes
# ---------------------------------------------------------------------------
def daily_changes(df: pd.DataFrame) -> dict:
    """
    Largest moves between consecutive records.

    Returns
    -------
    dict
        largestIncreases / largestDecreases (by absolute change) and
        largestPercentIncreases / largestPercentDecreases, top 10 each.
        Days with no change are left out of every list.
    """
    changes = []
    dates = df["date"].tolist()
    prices = df["modal_price"].tolist()

    for i in range(1, len(prices)):
        previous_price = prices[i - 1]
        if previous_price == 0:
            logger.debug("Skipping change on %s: previous price is zero", format_date(dates[i]))
            continue
        change = prices[i] - previous_price
        changes.append({
            "date": format_date(dates[i]),
            "previousDate": format_date(dates[i - 1]),
            "currentPrice": prices[i],
            "previousPrice": previous_price,
            "absoluteChange": round2(change),
            "percentChange": round2(change / previous_price * 100),
        })

    return {
        "largestIncreases": rank_changes(changes, "absoluteChange", True, TOP_DAILY_CHANGES),
        "largestDecreases": rank_changes(changes, "absoluteChange", False, TOP_DAILY_CHANGES),
        "largestPercentIncreases": rank_changes(changes, "percentChange", True, TOP_DAILY_CHANGES),
        "largestPercentDecreases": rank_changes(changes, "percentChange", False, TOP_DAILY_CHANGES),
    }


# ---------------------------------------------------------------------------
# Sustained high / low periods
# ---------------------------------------------------------------------------
def _find_runs(df: pd.DataFrame, condition: pd.Series, high: bool) -> list[dict]:
    """
    Walk the records in order and collect maximal runs where `condition` holds.

    Only runs of MIN_STREAK_LENGTH or more records are kept.  Each run
    tracks its most extreme price (peak for high runs, trough for low),
    keeping the first date that reached it.
    """
    extreme_key, extreme_date_key = ("peakPrice", "peakDate") if high else ("lowestPrice", "lowestDate")
    runs = []
    current = None

    for date, price, inside in zip(df["date"], df["modal_price"], condition):
        if inside:
            day = format_date(date)
            if current is None:
                current = {
                    "startDate": day,
                    "endDate": day,
                    "startPrice": price,
                    "endPrice": price,
                    extreme_key: price,
                    extreme_date_key: day,
                    "duration": 1,
                }
            else:
                current["endDate"] = day
                current["endPrice"] = price
                current["duration"] += 1
                beats = price > current[extreme_key] if high else price < current[extreme_key]
                if beats:
                    current[extreme_key] = price
                    current[extreme_date_key] = day
            continue

        if current is not None and current["duration"] >= MIN_STREAK_LENGTH:
            runs.append(current)
        current = None

    # A run still open at the end of the data counts too
    if current is not None and current["duration"] >= MIN_STREAK_LENGTH:
        runs.append(current)

    return runs


def sustained_periods(df: pd.DataFrame) -> dict:
    """
    Runs of records priced well above or well below the average.

    A high period is 3+ consecutive records with modal price above
    average * 1.2; a low period is 3+ below average * 0.8.  Gaps in the
    calendar don't break a run — only a record back inside the band does.

    Returns
    -------
    dict
        highPeriods (top 5 by peakPrice, highest first) and lowPeriods
        (top 5 by lowestPrice, lowest first).
    """
    if df.empty:
        return {"highPeriods": [], "lowPeriods": []}

    average = df["modal_price"].mean()
    threshold = average * STREAK_THRESHOLD_PCT

    high = _find_runs(df, df["modal_price"] > average + threshold, high=True)
    low = _find_runs(df, df["modal_price"] < average - threshold, high=False)

    return {
        "highPeriods": sorted(high, key=lambda p: -p["peakPrice"])[:TOP_STREAKS],
        "lowPeriods": sorted(low, key=lambda p: p["lowestPrice"])[:TOP_STREAKS],
    }


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------
def price_statistics(df: pd.DataFrame) -> dict:
    """Average, range, and volatility (population std dev) of the modal price."""
    prices = df["modal_price"]
    return {
        "averagePrice": round2(prices.mean()),
        "totalDataPoints": len(df),
        "priceRange": round2(prices.max() - prices.min()),
        "volatility": round2(population_std(prices)),
    }


def price_records(df: pd.DataFrame, grade: str | None = None) -> dict:
    """
    Full records analysis, one block per grade.

    Parameters
    ----------
    df : pd.DataFrame
        Filtered, date-sorted records.
    grade : str or None
        If given, all records are analysed together under this grade.

    Returns
    -------
    dict
        {grade: {allTimeRecords, dailyChanges, sustainedPeriods, statistics}}
        in the order grades first appear.
    """
    if df.empty:
        return {}

    keys = pd.Series(grade, index=df.index) if grade else df["grade"]

    result = {}
    for grade_key, group in df.groupby(keys, sort=False):
        group = group.sort_values("date", kind="mergesort")
        result[grade_key] = {
            "allTimeRecords": all_time_records(group),
            "dailyChanges": daily_changes(group),
            "sustainedPeriods": sustained_periods(group),
            "statistics": price_statistics(group),
        }
    return result
