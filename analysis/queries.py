"""
Query layer — the single entry point the API and dashboard call.

Each method validates its inputs, fills in a default date window,
pulls the matching records from the RecordStore, and hands them to the
analysis modules.  The results are plain dicts ready for JSON.

Key concepts for learning:
    - Validation happens before the store is touched, so a bad request
      never costs a scan of the data
    - "No data" (NoDataFound) is a different outcome from "bad request"
      (InvalidArgument) — the caller shows an empty state for one and an
      error for the other
    - The store is passed in, not imported as a global, so tests can
      build a tiny store of their own
"""

import logging
from datetime import date, datetime, timezone

import pandas as pd

from analysis import aggregator, records, seasonal, trend
from analysis.correlations import cross_commodity_correlation, grade_premiums
from analysis.errors import InvalidArgument, NoDataFound
from analysis.stats import format_date
from config import (
    ADVANCED_WINDOW_YEARS,
    FULL_HISTORY_START,
    HISTORICAL_WINDOW_YEARS,
    MONTHLY_WINDOW_YEARS,
    PERIOD_WINDOW_YEARS,
    SUPPORTED_COMMODITIES,
)
from processing.loader import parse_date
from processing.store import RecordStore

logger = logging.getLogger(__name__)


def validate_commodity(commodity: str | None) -> str:
    """Return the lower-cased commodity, or raise InvalidArgument."""
    if not commodity:
        raise InvalidArgument(
            "Commodity parameter is required",
            "Please specify commodity (onion or potato)",
        )
    if commodity.lower() not in SUPPORTED_COMMODITIES:
        raise InvalidArgument(
            "Invalid commodity",
            "Commodity must be either onion or potato",
        )
    return commodity.lower()


def _coerce_date(value, name: str) -> date | None:
    if value is None or value == "":
        return None
    try:
        return parse_date(value)
    except ValueError:
        raise InvalidArgument(
            "Invalid date",
            f"{name} must be a date in YYYY-MM-DD format",
        ) from None


def _years_before(day: date, years: int) -> date:
    return (pd.Timestamp(day) - pd.DateOffset(years=years)).date()


class PriceQueries:
    """
    Named analytics queries over a RecordStore.

    Parameters
    ----------
    store : RecordStore
        The loaded, read-only record snapshot.
    today : date or None
        Fixes "today" for default date windows.  None means the real
        current date, looked up on every call.
    """

    def __init__(self, store: RecordStore, today: date | None = None):
        self.store = store
        self._fixed_today = today

    def today(self) -> date:
        return self._fixed_today or date.today()

    def _window(self, start_date, end_date, years: int) -> tuple[date, date]:
        """Caller's dates where given, else [today - years, today]."""
        today = self.today()
        start = _coerce_date(start_date, "startDate") or _years_before(today, years)
        end = _coerce_date(end_date, "endDate") or today
        return start, end

    def _full_history(self) -> tuple[date, date]:
        return FULL_HISTORY_START, self.today()

    def _fetch(self, commodity: str, start: date, end: date, grade: str | None,
               empty_message: str) -> pd.DataFrame:
        df = self.store.filter(commodity, start, end, grade)
        logger.debug("%s %s..%s grade=%s → %d records", commodity, start, end, grade, len(df))
        if df.empty:
            raise NoDataFound(empty_message)
        return df

    @staticmethod
    def _date_range(start: date, end: date) -> dict:
        return {"start": format_date(start), "end": format_date(end)}

    # ── Latest snapshot ──────────────────────────────────────────────
    def latest_prices(self, commodity: str | None) -> dict:
        commodity = validate_commodity(commodity)
        latest = self.store.latest(commodity)
        if latest is None:
            raise NoDataFound(f"No price data available for {commodity}")
        return latest

    # ── Historical trend ─────────────────────────────────────────────
    def historical_trends(self, commodity: str | None, start_date=None, end_date=None,
                          grade: str | None = None) -> dict:
        """
        Raw price points over a window (default: last 3 years).

        With a grade, `trends` is a flat list; without one it is a dict
        of lists keyed by grade.
        """
        commodity = validate_commodity(commodity)
        start, end = self._window(start_date, end_date, HISTORICAL_WINDOW_YEARS)
        df = self._fetch(
            commodity, start, end, grade,
            f"No historical data available for {commodity} in the specified date range",
        )

        points = [
            {
                "date": format_date(row.date),
                "minPrice": row.min_price,
                "maxPrice": row.max_price,
                "modalPrice": row.modal_price,
            }
            for row in df.itertuples(index=False)
        ]

        if grade:
            return {
                "commodity": commodity,
                "grade": grade,
                "dateRange": self._date_range(start, end),
                "dataPoints": len(points),
                "trends": points,
            }

        grouped = {}
        for point, row_grade in zip(points, df["grade"]):
            grouped.setdefault(row_grade, []).append(point)

        return {
            "commodity": commodity,
            "dateRange": self._date_range(start, end),
            "totalDataPoints": len(points),
            "trends": grouped,
        }

    # ── Monthly averages ─────────────────────────────────────────────
    def monthly_averages(self, commodity: str | None, start_date=None, end_date=None,
                         grade: str | None = None) -> dict:
        commodity = validate_commodity(commodity)
        start, end = self._window(start_date, end_date, MONTHLY_WINDOW_YEARS)
        df = self._fetch(
            commodity, start, end, grade,
            f"No data available for {commodity} in the specified date range",
        )

        months = aggregator.monthly_averages(df, grade)
        return {
            "commodity": commodity,
            "dateRange": self._date_range(start, end),
            "totalMonths": len(months),
            "totalDataPoints": len(df),
            "monthlyAverages": months,
        }

    # ── Records & streaks ────────────────────────────────────────────
    def price_records(self, commodity: str | None, start_date=None, end_date=None,
                      grade: str | None = None) -> dict:
        commodity = validate_commodity(commodity)
        today = self.today()
        start = _coerce_date(start_date, "startDate") or FULL_HISTORY_START
        end = _coerce_date(end_date, "endDate") or today
        df = self._fetch(
            commodity, start, end, grade,
            f"No data available for {commodity} in the specified date range",
        )

        return {
            "commodity": commodity,
            "dateRange": self._date_range(start, end),
            "totalDataPoints": len(df),
            "records": records.price_records(df, grade),
        }

    # ── Seasonal ─────────────────────────────────────────────────────
    def seasonal_patterns(self, commodity: str | None, grade: str | None = None) -> dict:
        """Seasonal statistics over all history since FULL_HISTORY_START."""
        commodity = validate_commodity(commodity)
        start, end = self._full_history()
        df = self._fetch(commodity, start, end, grade, f"No data available for {commodity}")
        return {"commodity": commodity, **seasonal.seasonal_patterns(df)}

    # ── Year-over-year ───────────────────────────────────────────────
    def year_over_year(self, commodity: str | None, grade: str | None = None) -> dict:
        commodity = validate_commodity(commodity)
        start, end = self._full_history()
        df = self._fetch(commodity, start, end, grade, f"No data available for {commodity}")

        return {
            "commodity": commodity,
            "dateRange": {
                "start": format_date(df["date"].min()),
                "end": format_date(df["date"].max()),
            },
            "totalDataPoints": len(df),
            **aggregator.year_over_year(df),
        }

    # ── Period-to-period ─────────────────────────────────────────────
    def period_analysis(self, commodity: str | None, start_date=None, end_date=None,
                        grade: str | None = None) -> dict:
        commodity = validate_commodity(commodity)
        start, end = self._window(start_date, end_date, PERIOD_WINDOW_YEARS)
        df = self._fetch(
            commodity, start, end, grade,
            f"No data available for {commodity} in the specified date range",
        )
        logger.debug(
            "Period analysis %s: %s to %s", commodity,
            format_date(df["date"].iloc[0]), format_date(df["date"].iloc[-1]),
        )

        return {
            "commodity": commodity,
            "dateRange": self._date_range(start, end),
            **aggregator.period_changes(df),
        }

    # ── Advanced analytics (both commodities) ────────────────────────
    def advanced_analytics(self, start_date=None, end_date=None, grade: str | None = None) -> dict:
        """
        Volatility, distribution, forecast and correlation for onion AND potato.

        Never raises NoDataFound — a commodity with no data simply comes
        back as None.
        """
        start, end = self._window(start_date, end_date, ADVANCED_WINDOW_YEARS)
        onion_df = self.store.filter("onion", start, end, grade)
        potato_df = self.store.filter("potato", start, end, grade)

        onion = trend.commodity_analytics(onion_df, "onion")
        potato = trend.commodity_analytics(potato_df, "potato")

        return {
            "dateRange": self._date_range(start, end),
            "crossCommodityCorrelation": cross_commodity_correlation(onion_df, potato_df),
            "onionAnalytics": onion,
            "potatoAnalytics": potato,
            "gradePremiums": grade_premiums([onion, potato]),
            "marketSummary": {
                "totalDataPoints": len(onion_df) + len(potato_df),
                "analysisType": "Advanced Analytics",
                "commoditiesAnalyzed": [
                    name for name, block in (("onion", onion), ("potato", potato)) if block
                ],
            },
        }

    # ── Health ───────────────────────────────────────────────────────
    def health(self) -> dict:
        return {
            "status": "healthy",
            "totalRecords": len(self.store),
            "droppedRecords": self.store.dropped,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
