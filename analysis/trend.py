"""
Trend estimation, short-term forecasts, and per-commodity analytics.

A straight line through the last ~90 prices is the simplest possible
forecast — it won't catch a monsoon failure or an export ban, but it
says which way the market has been drifting and how fast.

Key concepts for learning:
    - Ordinary least squares: the line y = slope * x + intercept that
      minimises the squared distance to every point
    - x is just the position in the window (0, 1, 2, ...), not the
      calendar date — market holidays don't stretch the line
    - Volatility (standard deviation) over the last 30 records gives a
      rough band of where prices might land
"""

import logging
import math

import pandas as pd

from analysis.stats import population_std, round2
from config import FORECAST_HORIZON, MIN_TREND_POINTS, RECENT_VOLATILITY_WINDOW, TREND_WINDOW

logger = logging.getLogger(__name__)


def fit_linear_trend(prices) -> tuple[float, float]:
    """
    Least-squares line through (index, price) pairs.

    Parameters
    ----------
    prices : sequence of float
        Prices in date order; the first one sits at x = 0.

    Returns
    -------
    tuple
        (slope, intercept).  A degenerate fit (fewer than two points)
        gives a flat line through the mean.
    """
    y = pd.Series(prices, dtype=float).reset_index(drop=True)
    n = len(y)
    if n == 0:
        return 0.0, 0.0

    x = pd.Series(range(n), dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        slope = 0.0
    else:
        slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def trend_direction(slope: float) -> str:
    if slope > 0:
        return "Increasing"
    if slope < 0:
        return "Decreasing"
    return "Stable"


def trend_forecast(prices, horizon: int = FORECAST_HORIZON) -> dict | None:
    """
    Fit a trend over the most recent TREND_WINDOW prices and project it forward.

    The projected points sit at x = n+1 ... n+horizon, where n is the
    number of prices in the window.

    Returns
    -------
    dict or None
        {slope, intercept, windowSize, predictions} — None when the
        window holds fewer than MIN_TREND_POINTS prices.
    """
    window = list(prices)[-TREND_WINDOW:]
    n = len(window)
    if n < MIN_TREND_POINTS:
        return None

    slope, intercept = fit_linear_trend(window)
    predictions = [round2(slope * (n + i) + intercept) for i in range(1, horizon + 1)]
    return {
        "slope": slope,
        "intercept": intercept,
        "windowSize": n,
        "predictions": predictions,
    }


def price_distribution(prices: pd.Series, average: float, volatility: float) -> dict:
    """
    Count prices in five bands built from the mean, std dev, and quartiles.

    Q1 and Q3 are the sorted prices at positions floor(n/4) and
    floor(3n/4).  The bands are not forced to partition the data — a
    wide std dev can leave a price in no band at all.
    """
    ordered = prices.sort_values().reset_index(drop=True)
    n = len(ordered)
    q1 = ordered[math.floor(n * 0.25)]
    q3 = ordered[math.floor(n * 0.75)]

    low_edge = average - volatility
    high_edge = average + volatility
    return {
        "Very Low": int((prices < low_edge).sum()),
        "Low": int(((prices >= low_edge) & (prices < q1)).sum()),
        "Average": int(((prices >= q1) & (prices <= q3)).sum()),
        "High": int(((prices > q3) & (prices <= high_edge)).sum()),
        "Very High": int((prices > high_edge).sum()),
    }


def commodity_analytics(df: pd.DataFrame, commodity: str) -> dict | None:
    """
    Volatility, grade breakdown, price distribution, and trend forecast.

    Parameters
    ----------
    df : pd.DataFrame
        Date-sorted records for one commodity (all grades).
    commodity : str
        Name echoed back in the result.

    Returns
    -------
    dict or None
        None when df is empty.  Otherwise a dict with volatility,
        recentVolatility, averagePrice, gradeAnalysis, priceDistribution,
        totalDataPoints, priceRange, trendDirection, and predictions
        (plus trendStrength when there is enough data for a trend).
    """
    if df.empty:
        return None

    prices = df["modal_price"]
    average = prices.mean()
    volatility = population_std(prices)
    recent_volatility = population_std(prices.tail(RECENT_VOLATILITY_WINDOW))

    grade_analysis = {
        grade: {"averagePrice": round2(group.mean()), "dataPoints": len(group)}
        for grade, group in prices.groupby(df["grade"], sort=False)
    }

    result = {
        "commodity": commodity,
        "volatility": round2(volatility),
        "recentVolatility": round2(recent_volatility),
        "averagePrice": round2(average),
        "gradeAnalysis": grade_analysis,
        "priceDistribution": price_distribution(prices, average, volatility),
        "totalDataPoints": len(df),
        "priceRange": round2(prices.max() - prices.min()),
    }

    forecast = trend_forecast(prices.tolist())
    if forecast is None:
        logger.info("Not enough %s data for a trend (%d records)", commodity, len(df))
        result["trendDirection"] = "Insufficient data"
        result["predictions"] = None
        return result

    result["trendDirection"] = trend_direction(forecast["slope"])
    result["trendStrength"] = abs(forecast["slope"])
    result["predictions"] = {
        "next30Days": forecast["predictions"],
        "volatilityRange": {
            "lower": round2(average - recent_volatility),
            "upper": round2(average + recent_volatility),
        },
    }
    return result
