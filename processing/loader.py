"""
Price data loader.

The price file is produced by an upstream scraper and arrives as JSON —
either an envelope {"metadata": {...}, "priceData": [...]} or a bare list
of records.  This module cleans it with pandas and turns the rows that
survive into PriceRecord objects before anything downstream does
arithmetic on them.

Key concepts for learning:
    - Validate at the boundary: a record with a missing date or a string
      where a price should be gets dropped here, not halfway through a
      regression
    - pd.to_numeric(errors="coerce") turns anything that isn't a number
      into NaN, so one .dropna()-style mask removes every bad price
    - NaN and infinity are floats too; the finite-value check keeps them
      out of the averages
    - Bad input never crashes startup — an empty record set keeps the
      validation and "no data" responses reachable
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import date, datetime

import pandas as pd

from config import SUPPORTED_COMMODITIES

logger = logging.getLogger(__name__)

# Source field -> PriceRecord field
PRICE_FIELDS = {
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "modalPrice": "modal_price",
}
RAW_COLUMNS = ["commodity", "date", "grade", *PRICE_FIELDS, "variety"]

# YYYY-MM-DD, optionally followed by a "T" or space and a time of day
ISO_DATE_PATTERN = r"^\s*(\d{4}-\d{2}-\d{2})(?:[T ].*)?$"


@dataclass(frozen=True)
class PriceRecord:
    """One daily price observation for a commodity grade."""

    commodity: str
    date: date
    grade: str
    min_price: float
    max_price: float
    modal_price: float
    variety: str = ""


@dataclass
class LoadResult:
    """Records that passed validation, plus what came along with them."""

    records: list = field(default_factory=list)
    metadata: dict | None = None
    dropped: int = 0


def parse_date(value) -> date:
    """
    Normalise a single date value to a plain calendar date.

    Accepts "YYYY-MM-DD" or a full ISO timestamp; a timestamp keeps only
    its date part (no timezone conversion is applied).  Anything else,
    such as "20240101" or "2024-01-01garbage", raises ValueError.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = re.match(ISO_DATE_PATTERN, value)
        if match:
            try:
                return pd.to_datetime(match.group(1), format="%Y-%m-%d").date()
            except ValueError:
                pass
    raise ValueError(f"invalid date: {value!r}")


# ---------------------------------------------------------------------------
# Column coercion
# ---------------------------------------------------------------------------
def _text(values: pd.Series) -> pd.Series:
    """Strings pass through; anything else becomes None."""
    return values.map(lambda v: v if isinstance(v, str) else None)


def _coerce_dates(values: pd.Series) -> pd.Series:
    day = _text(values).str.extract(ISO_DATE_PATTERN, expand=False)
    return pd.to_datetime(day, format="%Y-%m-%d", errors="coerce")


def _coerce_prices(values: pd.Series) -> pd.Series:
    # bool is a subclass of int, so mask it out before coercing
    numeric_like = values.map(
        lambda v: isinstance(v, (int, float, str)) and not isinstance(v, bool)
    )
    return pd.to_numeric(values.astype(object).where(numeric_like), errors="coerce")


def clean_price_frame(raw_records: list) -> pd.DataFrame:
    """
    Clean a list of raw JSON entries into a typed DataFrame.

    Steps:
        1. Drop entries that are not JSON objects.
        2. Lower-case commodity and keep only supported ones.
        3. Coerce date to a calendar date and prices to numbers.
        4. Drop rows with a bad date, missing grade, or a price that is
           missing, non-numeric, NaN or infinite.

    Returns
    -------
    pd.DataFrame
        Columns commodity, date (datetime64), grade, min_price,
        max_price, modal_price, variety, in input order.
    """
    entries = [entry for entry in raw_records if isinstance(entry, dict)]
    if len(entries) < len(raw_records):
        logger.warning("%d price entries are not JSON objects",
                       len(raw_records) - len(entries))
    if not entries:
        return pd.DataFrame(columns=["commodity", "date", "grade", *PRICE_FIELDS.values(), "variety"])

    df =pd.DataFrame(entries).reindex(columns=RAW_COLUMNS)
    clean = pd.DataFrame({
        "commodity": _text(df["commodity"]).str.lower(),
        "date": _coerce_dates(df["date"]),
        "grade": _text(df["grade"]),
    })
    for source, target in PRICE_FIELDS.items():
        clean[target] = _coerce_prices(df[source])
    clean["variety"] = _text(df["variety"]).fillna("")

    price_cols = list(PRICE_FIELDS.values())
    checks = {
        "unknown commodity": ~clean["commodity"].isin(SUPPORTED_COMMODITIES),
        "invalid date": clean["date"].isna(),
        "missing grade": clean["grade"].isna() | (clean["grade"] == ""),
        # NaN compares False, so this also catches missing prices
        "non-finite or non-numeric price": ~(clean[price_cols].abs() < float("inf")).all(axis=1),
    }

    bad = pd.Series(False, index=clean.index)
    for reason, mask in checks.items():
        if mask.any():
            logger.warning("%d price records: %s", int(mask.sum()), reason)
        bad |= mask

    return clean[~bad].reset_index(drop=True)


def parse_records(raw_records: list) -> tuple[list[PriceRecord], int]:
    """
    Parse a list of raw entries, dropping the malformed ones.

    Returns
    -------
    tuple
        (valid records in input order, number of dropped entries)
    """
    clean = clean_price_frame(raw_records)
    records = [
        PriceRecord(
            commodity=row.commodity,
            date=row.date.date(),
            grade=row.grade,
            min_price=float(row.min_price),
            max_price=float(row.max_price),
            modal_price=float(row.modal_price),
            variety=row.variety,
        )
        for row in clean.itertuples(index=False)
    ]

    dropped = len(raw_records) - len(records)
    if dropped:
        logger.warning(
            "Dropped %d of %d price records that failed validation",
            dropped, len(raw_records),
        )
    return records, dropped


def load_price_data(payload) -> LoadResult:
    """
    Build a LoadResult from an already-decoded JSON payload.

    Supports both the {metadata, priceData} envelope and a bare list.
    Anything else gives an empty result.
    """
    if isinstance(payload, dict) and isinstance(payload.get("priceData"), list):
        records, dropped = parse_records(payload["priceData"])
        metadata = payload.get("metadata")
        logger.info("Loaded %d price records", len(records))
        if metadata:
            logger.info("Metadata: %s", metadata)
        return LoadResult(records=records, metadata=metadata, dropped=dropped)

    if isinstance(payload, list):
        records, dropped = parse_records(payload)
        logger.info("Loaded %d price records (flat structure)", len(records))
        return LoadResult(records=records, dropped=dropped)

    logger.error(
        "Price data has no valid structure — expected a list or an object "
        "with a 'priceData' list"
    )
    return LoadResult()


def load_price_file(path: str) -> LoadResult:
    """
    Read the price JSON file from disk.

    A missing, empty, or unparseable file gives an empty LoadResult —
    the service still starts and answers "no data".
    """
    logger.info("Loading price data from %s", path)

    if not os.path.exists(path):
        logger.error("Price data file does not exist: %s", path)
        return LoadResult()

    with open(path, encoding="utf-8") as f:
        text = f.read()

    if not text.strip():
        logger.error("Price data file is empty: %s", path)
        return LoadResult()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Could not parse price data file %s: %s", path, e)
        return LoadResult()

    return load_price_data(payload)
