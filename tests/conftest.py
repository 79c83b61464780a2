"""Shared fixtures: small synthetic record stores."""

from datetime import date, timedelta

import pytest

from processing.loader import PriceRecord
from processing.store import RecordStore


def make_record(commodity, day, grade, min_price, max_price, modal_price, variety=""):
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return PriceRecord(
        commodity=commodity,
        date=day,
        grade=grade,
        min_price=float(min_price),
        max_price=float(max_price),
        modal_price=float(modal_price),
        variety=variety,
    )


def daily_series(commodity, grade, prices, start="2024-01-01", spread=10):
    """One record per consecutive day with the given modal prices."""
    first = date.fromisoformat(start)
    return [
        make_record(commodity, first + timedelta(days=i), grade, p - spread, p + spread, p)
        for i, p in enumerate(prices)
    ]


@pytest.fixture
def sample_records():
    return [
        make_record("onion", "2024-01-01", "faq", 10, 20, 15, "Red"),
        make_record("onion", "2024-02-01", "faq", 20, 30, 25, "Red"),
        make_record("onion", "2024-01-15", "non-faq", 5, 15, 10),
        make_record("potato", "2024-01-01", "faq", 8, 12, 10, "Jyoti"),
        make_record("potato", "2024-02-01", "faq", 9, 13, 11, "Jyoti"),
    ]


@pytest.fixture
def sample_store(sample_records):
    return RecordStore(sample_records, metadata={"source": "test"})


@pytest.fixture
def empty_store():
    return RecordStore([])
