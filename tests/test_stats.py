"""Tests for the shared numeric helpers."""

import pandas as pd
import pytest

from analysis.stats import format_date, population_std, rank_changes, round2


class TestRound2:

    @pytest.mark.parametrize("value, expected", [
        (0.125, 0.13),
        (0.625, 0.63),
        (1.375, 1.38),
        (-0.125, -0.13),
        (-1.375, -1.38),
        (2.5, 2.5),
        (66.666666, 66.67),
        (-33.333333, -33.33),
    ])
    def test_halves_round_away_from_zero(self, value, expected):
        assert round2(value) == expected

    def test_differs_from_builtin_round(self):
        # round() rounds halves to even
        assert round(0.625, 2) == 0.62
        assert round2(0.625) == 0.63

    @pytest.mark.parametrize("value", [0, 0.0, -0.001, 0.004])
    def test_tiny_values_round_to_positive_zero(self, value):
        result = round2(value)
        assert result == 0.0
        assert str(result) == "0.0"


def test_population_std_divides_by_n():
    assert population_std(pd.Series([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])) == 2.0
    assert population_std(pd.Series([], dtype=float)) == 0.0


def test_format_date():
    assert format_date(pd.Timestamp("2024-03-05 13:45")) == "2024-03-05"


def test_rank_changes_strict_sign_and_stable_order():
    changes = [
        {"id": "a", "absoluteChange": 5.0},
        {"id": "b", "absoluteChange": 0.0},
        {"id": "c", "absoluteChange": -3.0},
        {"id": "d", "absoluteChange": 5.0},
        {"id": "e", "absoluteChange": 8.0},
    ]
    assert [c["id"] for c in rank_changes(changes, "absoluteChange", True, 2)] == ["e", "a"]
    assert [c["id"] for c in rank_changes(changes, "absoluteChange", True, 10)] == ["e", "a", "d"]
    assert [c["id"] for c in rank_changes(changes, "absoluteChange", False, 10)] == ["c"]
