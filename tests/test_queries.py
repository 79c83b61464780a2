"""Tests for the PriceQueries facade: validation, default windows, composition."""

from datetime import date
from unittest.mock import Mock

import pytest

from analysis.errors import InvalidArgument, NoDataFound
from analysis.queries import PriceQueries, validate_commodity
from conftest import daily_series, make_record
from processing.store import RecordStore

TODAY = date(2024, 6, 30)


@pytest.fixture
def queries(sample_store):
    return PriceQueries(sample_store, today=TODAY)


class TestValidation:

    @pytest.mark.parametrize("commodity", [None, ""])
    def test_missing_commodity(self, commodity):
        with pytest.raises(InvalidArgument) as excinfo:
            validate_commodity(commodity)
        assert excinfo.value.error == "Commodity parameter is required"

    def test_unknown_commodity(self):
        with pytest.raises(InvalidArgument) as excinfo:
            validate_commodity("tomato")
        assert excinfo.value.error == "Invalid commodity"
        assert excinfo.value.message == "Commodity must be either onion or potato"

    def test_case_insensitive(self):
        assert validate_commodity("PoTaTo") == "potato"

    def test_store_untouched_on_bad_input(self):
        store = Mock(spec=RecordStore)
        queries = PriceQueries(store, today=TODAY)
        with pytest.raises(InvalidArgument):
            queries.monthly_averages("garlic")
        store.filter.assert_not_called()

    def test_bad_date(self, queries):
        with pytest.raises(InvalidArgument) as excinfo:
            queries.historical_trends("onion", start_date="2024-13-45")
        assert excinfo.value.error == "Invalid date"


class TestLatest:

    def test_latest(self, queries):
        latest = queries.latest_prices("ONION")
        assert latest["latestDate"] == "2024-02-01"
        assert list(latest["data"]) == ["faq"]

    def test_no_data(self):
        with pytest.raises(NoDataFound) as excinfo:
            PriceQueries(RecordStore([]), today=TODAY).latest_prices("onion")
        assert excinfo.value.error == "No data found"
        assert "onion" in excinfo.value.message


class TestHistoricalTrends:

    def test_default_window_is_three_years(self, queries):
        result = queries.historical_trends("onion")
        assert result["dateRange"] == {"start": "2021-06-30", "end": "2024-06-30"}
        assert result["totalDataPoints"] == 3
        assert [p["date"] for p in result["trends"]["faq"]] == ["2024-01-01", "2024-02-01"]
        assert result["trends"]["non-faq"] == [
            {"date": "2024-01-15", "minPrice": 5.0, "maxPrice": 15.0, "modalPrice": 10.0},
        ]

    def test_with_grade_is_flat(self, queries):
        result = queries.historical_trends("onion", grade="faq")
        assert result["grade"] == "faq"
        assert result["dataPoints"] == 2
        assert isinstance(result["trends"], list)

    def test_timestamps_are_trimmed_to_dates(self, queries):
        result = queries.historical_trends(
            "onion", start_date="2024-01-15T18:00:00Z", end_date="2024-01-15T01:00:00Z",
        )
        assert result["totalDataPoints"] == 1

    def test_empty_range(self, queries):
        with pytest.raises(NoDataFound):
            queries.historical_trends("onion", "2020-01-01", "2020-12-31")


def test_window_defaults_differ_per_query():
    store = RecordStore([make_record("onion", "2022-01-10", "faq", 1, 3, 2)])
    queries = PriceQueries(store, today=TODAY)

    assert queries.historical_trends("onion")["totalDataPoints"] == 1
    assert queries.price_records("onion")["dateRange"]["start"] == "2022-01-01"
    assert queries.period_analysis("onion")["periodChanges"] == []
    with pytest.raises(NoDataFound):
        queries.monthly_averages("onion")


def test_monthly_averages(queries):
    result = queries.monthly_averages("onion", grade="faq")
    assert result["dateRange"] == {"start": "2022-06-30", "end": "2024-06-30"}
    assert result["totalMonths"] == 2
    assert result["monthlyAverages"][1]["changes"]["faq"] == {
        "absoluteChange": 10.0, "percentChange": 66.67,
    }


def test_price_records(queries):
    result = queries.price_records("onion")
    assert result["totalDataPoints"] == 3
    assert set(result["records"]) == {"faq", "non-faq"}


def test_seasonal_uses_full_history_only():
    store = RecordStore([
        make_record("potato", "2021-05-01", "faq", 1, 3, 2),
        make_record("potato", "2023-05-01", "faq", 1, 5, 4),
    ])
    result = PriceQueries(store, today=TODAY).seasonal_patterns("potato")
    assert result["commodity"] == "potato"
    assert result["totalDataPoints"] == 1
    assert result["dateRange"] == {"start": "2023-05-01", "end": "2023-05-01"}


def test_year_over_year():
    store = RecordStore([
        make_record("onion", "2022-08-01", "faq", 1, 30, 20),
        make_record("onion", "2023-08-01", "faq", 1, 30, 25),
    ])
    result = PriceQueries(store, today=TODAY).year_over_year("onion")
    assert result["dateRange"] == {"start": "2022-08-01", "end": "2023-08-01"}
    assert result["insights"]["largestPercentIncreases"][0]["percentChange"] == 25.0


class TestAdvancedAnalytics:

    def test_both_commodities(self):
        prices = [100 + (x % 7) * 3 for x in range(30)]
        store = RecordStore(
            daily_series("onion", "faq", prices, start="2024-03-01")
            + daily_series("potato", "faq", prices, start="2024-03-01")
        )
        result = PriceQueries(store, today=TODAY).advanced_analytics()

        assert result["dateRange"] == {"start": "2022-06-30", "end": "2024-06-30"}
        assert result["crossCommodityCorrelation"]["coefficient"] == 1.0
        assert result["onionAnalytics"]["commodity"] == "onion"
        assert result["potatoAnalytics"]["totalDataPoints"] == 30
        assert result["marketSummary"] == {
            "totalDataPoints": 60,
            "analysisType": "Advanced Analytics",
            "commoditiesAnalyzed": ["onion", "potato"],
        }

    def test_missing_commodity_is_none(self):
        result = PriceQueries(
            RecordStore(daily_series("onion", "faq", [1, 2, 3], start="2024-01-01")), today=TODAY,
        ).advanced_analytics()
        assert result["potatoAnalytics"] is None
        assert result["crossCommodityCorrelation"] is None
        assert result["marketSummary"]["commoditiesAnalyzed"] == ["onion"]

    def test_grade_premium(self):
        store = RecordStore([
            make_record("onion", "2024-01-01", "faq", 1, 2000, 1500),
            make_record("onion", "2024-01-01", "non-faq", 1, 2000, 1200),
        ])
        result = PriceQueries(store, today=TODAY).advanced_analytics()
        assert result["gradePremiums"]["onion"]["percentPremium"] == 25.0


def test_repeat_calls_are_identical(queries):
    assert queries.price_records("onion") == queries.price_records("onion")
    assert queries.seasonal_patterns("onion") == queries.seasonal_patterns("onion")

    assert queries.advanced_analytics() == queries.advanced_analytics()


def test_health(sample_store):
    health = PriceQueries(sample_store).health()
    assert health["status"] == "healthy"
    assert health["totalRecords"] == 5
    assert health["droppedRecords"] == 0
