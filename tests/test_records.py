"""Tests for all-time records, daily moves, and sustained periods."""

from datetime import date

import pytest

from analysis.records import (
    all_time_records,
    daily_changes,
    price_records,
    price_statistics,
    sustained_periods,
)
from conftest import daily_series, make_record
from processing.store import RecordStore


def frame(records):
    return RecordStore(records).filter("onion", date(2000, 1, 1), date(2100, 1, 1))


class TestSustainedPeriods:

    def test_four_day_high_run(self):
        prices = [100] * 8 + [200] * 4 + [100] * 8
        periods = sustained_periods(frame(daily_series("onion", "faq", prices)))

        assert len(periods["highPeriods"]) == 1
        run = periods["highPeriods"][0]
        assert run["duration"] == 4
        assert run["startDate"] == "2024-01-09"
        assert run["endDate"] == "2024-01-12"
        assert run["peakPrice"] == 200
        assert periods["lowPeriods"] == []

    def test_two_day_run_is_excluded(self):
        prices = [100] * 9 + [200] * 2 + [100] * 9
        periods = sustained_periods(frame(daily_series("onion", "faq", prices)))
        assert periods["highPeriods"] == []

    def test_run_open_at_end_counts(self):
        prices = [100] * 10 + [200, 210, 205]
        run = sustained_periods(frame(daily_series("onion", "faq", prices)))["highPeriods"][0]
        assert run["duration"] == 3
        assert run["peakPrice"] == 210
        assert run["peakDate"] == "2024-01-12"
        assert run["endPrice"] == 205

    def test_low_run_tracks_lowest(self):
        prices = [100] * 10 + [40, 30, 35, 30] + [100] * 6
        run = sustained_periods(frame(daily_series("onion", "faq", prices)))["lowPeriods"][0]
        assert run["duration"] == 4
        assert run["lowestPrice"] == 30
        assert run["lowestDate"] == "2024-01-12"

    def test_calendar_gaps_do_not_break_a_run(self):
        records = daily_series("onion", "faq", [100] * 10) + [
            make_record("onion", "2024-03-01", "faq", 190, 210, 200),
            make_record("onion", "2024-03-15", "faq", 190, 210, 200),
            make_record("onion", "2024-04-30", "faq", 190, 210, 200),
        ]
        run = sustained_periods(frame(records))["highPeriods"][0]
        assert (run["startDate"], run["endDate"], run["duration"]) == ("2024-03-01", "2024-04-30", 3)

    def test_ranked_by_peak(self):
        prices = [100] * 20 + [300] * 3 + [100] * 5 + [400] * 3 + [100] * 20
        highs = sustained_periods(frame(daily_series("onion", "faq", prices)))["highPeriods"]
        assert [p["peakPrice"] for p in highs] == [400, 300]


class TestAllTimeRecords:

    def test_overall_reports_price_type(self):
        df = frame([
            make_record("onion", "2024-01-01", "faq", 8, 30, 15),
            make_record("onion", "2024-01-02", "faq", 5, 25, 20),
        ])
        result = all_time_records(df)

        assert result["highestOverall"]["price"] == 30
        assert result["highestOverall"]["priceType"] == "max"
        assert result["highestOverall"]["date"] == "2024-01-01"
        assert result["lowestOverall"]["priceType"] == "min"
        assert result["lowestOverall"]["date"] == "2024-01-02"
        assert result["highestModal"]["price"] == 20
        assert result["lowestModal"]["date"] == "2024-01-01"

    def test_ties_go_to_first_in_scan_order(self):
        df = frame([
            make_record("onion", "2024-01-01", "faq", 10, 20, 20),
            make_record("onion", "2024-01-02", "faq", 10, 20, 20),
        ])
        result = all_time_records(df)

        # modal prices are scanned before max prices
        assert result["highestOverall"]["priceType"] == "modal"
        assert result["highestOverall"]["date"] == "2024-01-01"
        assert result["highestModal"]["date"] == "2024-01-01"
        assert result["lowestModal"]["date"] == "2024-01-01"


class TestDailyChanges:

    def test_rankings_skip_zero_changes(self):
        prices = [100, 110, 110, 99, 120]
        changes = daily_changes(frame(daily_series("onion", "faq", prices)))

        assert [c["absoluteChange"] for c in changes["largestIncreases"]] == [21, 10]
        assert [c["absoluteChange"] for c in changes["largestDecreases"]] == [-11]
        assert [c["percentChange"] for c in changes["largestPercentIncreases"]] == [21.21, 10.0]
        assert changes["largestPercentDecreases"][0]["percentChange"] == -10.0

        top = changes["largestIncreases"][0]
        assert (top["date"], top["previousDate"]) == ("2024-01-05", "2024-01-04")
        assert (top["previousPrice"], top["currentPrice"]) == (99, 120)

    def test_top_ten_only(self):
        prices = [100 + i * i for i in range(15)]
        changes = daily_changes(frame(daily_series("onion", "faq", prices)))
        assert len(changes["largestIncreases"]) == 10
        assert changes["largestIncreases"][0]["absoluteChange"] == 27

    def test_gaps_are_not_filled(self):
        df = frame([
            make_record("onion", "2024-01-01", "faq", 1, 200, 100),
            make_record("onion", "2024-01-20", "faq", 1, 200, 150),
        ])
        change = daily_changes(df)["largestIncreases"][0]
        assert (change["previousDate"], change["date"]) == ("2024-01-01", "2024-01-20")


def test_statistics_use_population_std():
    stats = price_statistics(frame(daily_series("onion", "faq", [10, 20, 30, 40])))
    assert stats["averagePrice"] == 25.0
    assert stats["priceRange"] == 30.0
    assert stats["volatility"] == pytest.approx(11.18)
    assert stats["totalDataPoints"] == 4


def test_price_records_groups_by_grade():
    records = daily_series("onion", "faq", [10, 12, 14]) + daily_series("onion", "non-faq", [5, 6, 7])
    result = price_records(frame(records))
    assert list(result) == ["faq", "non-faq"]
    assert result["non-faq"]["statistics"]["averagePrice"] == 6.0

    pooled = price_records(frame(records), grade="faq")
    assert list(pooled) == ["faq"]
    assert pooled["faq"]["statistics"]["totalDataPoints"] == 6


def test_price_records_empty():
    assert price_records(frame([])) == {}


def test_daily_change_after_zero_price_is_skipped():
    changes = daily_changes(frame(daily_series("onion", "faq", [0, 10, 15], spread=0)))

    assert [c["date"] for c in changes["largestIncreases"]] == ["2024-01-03"]
    assert changes["largestIncreases"][0]["percentChange"] == 50.0
    assert changes["largestPercentIncreases"][0]["previousPrice"] == 10.0
