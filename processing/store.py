"""
In-memory record store.

The price file is loaded once at startup into a RecordStore, which is
then handed to the query layer and never modified.  Every query gets a
fresh, filtered DataFrame back, so nothing a request does can leak into
the next one.

Key concepts for learning:
    - An immutable snapshot needs no locking — many requests can read it
      at the same time
    - Stable sorting (kind="mergesort") keeps records that share a date in
      the order they were loaded
    - Filters return an empty DataFrame, not an error, when nothing matches
"""

import logging
from datetime import date

import pandas as pd

from processing.loader import PriceRecord

logger = logging.getLogger(__name__)

COLUMNS = ["commodity", "date", "grade", "min_price", "max_price", "modal_price", "variety"]


def records_to_frame(records) -> pd.DataFrame:
    """Convert PriceRecord objects into the DataFrame shape analysis expects."""
    df = pd.DataFrame(
        [
            (r.commodity, r.date, r.grade, r.min_price, r.max_price, r.modal_price, r.variety)
            for r in records
        ],
        columns=COLUMNS,
    )
    df["date"] = pd.to_datetime(df["date"])
    for col in ("min_price", "max_price", "modal_price"):
        df[col] = df[col].astype(float)
    return df


class RecordStore:
    """
    Read-only snapshot of every loaded price record.

    Parameters
    ----------
    records : iterable of PriceRecord
        Validated records, in load order.
    metadata : dict or None
        Whatever metadata the source file carried.
    dropped : int
        How many raw entries were rejected while loading.
    """

    def __init__(self, records=(), metadata: dict | None = None, dropped: int = 0):
        self._records = tuple(records)
        self._frame = records_to_frame(self._records)
        self.metadata = metadata
        self.dropped = dropped

    @classmethod
    def from_load_result(cls, result) -> "RecordStore":
        return cls(result.records, metadata=result.metadata, dropped=result.dropped)

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> tuple[PriceRecord, ...]:
        return self._records

    def filter(
        self,
        commodity: str,
        start: date,
        end: date,
        grade: str | None = None,
    ) -> pd.DataFrame:
        """
        Records for one commodity between start and end (both inclusive).

        Commodity matching ignores case; grade must match exactly when
        given.  The result is sorted by date, ties keep load order.
        """
        df = self._frame
        mask = (
            (df["commodity"] == commodity.lower())
            & (df["date"] >= pd.Timestamp(start))
            & (df["date"] <= pd.Timestamp(end))
        )
        if grade:
            mask &= df["grade"] == grade

        return df[mask].sort_values("date", kind="mergesort").reset_index(drop=True)

    def latest(self, commodity: str) -> dict | None:
        """
        Snapshot of every grade at the most recent date for a commodity.

        Returns None when the commodity has no records.  If two records
        share the latest date and grade, the one loaded last wins.
        """
        df = self._frame[self._frame["commodity"] == commodity.lower()]
        if df.empty:
            return None

        latest_date = df["date"].max()
        latest_rows = df[df["date"] == latest_date]

        data = {}
        for row in latest_rows.itertuples(index=False):
            data[row.grade] = {
                "minPrice": row.min_price,
                "maxPrice": row.max_price,
                "modalPrice": row.modal_price,
                "variety": row.variety,
            }

        logger.debug("Latest %s date: %s (%d grades)", commodity, latest_date.date(), len(data))

        return {
            "commodity": commodity.lower(),
            "latestDate": latest_date.strftime("%Y-%m-%d"),
            "data": data,
        }
