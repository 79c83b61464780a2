"""
Mandi Pulse — main entry point.

Run this script to:
    1. Load the onion/potato price file (once — it is never reloaded)
    2. Validate every record and drop the malformed ones
    3. Build the read-only RecordStore
    4. Serve the analytics API over HTTP

Usage:
    python main.py
    PRICE_DATA_PATH=/path/to/market-prices.json PORT=9000 python main.py

Key concepts for learning:
    - The data is loaded before the server starts, so no request ever
      sees a half-loaded store
    - A missing or broken data file doesn't stop startup — the API still
      answers, just with "no data"
    - logging replaces print() for professional, filterable output
"""

import logging

import uvicorn

from config import API_HOST, API_PORT, PRICE_DATA_PATH, setup_logging
from analysis.queries import PriceQueries
from app.api import create_app
from processing.loader import load_price_file
from processing.store import RecordStore

logger = logging.getLogger(__name__)


def build_queries(path: str = PRICE_DATA_PATH) -> PriceQueries:
    """Load the price file and wrap it in a PriceQueries."""
    result = load_price_file(path)
    store = RecordStore.from_load_result(result)

    logger.info("=" * 60)
    logger.info("  Mandi Pulse — Price Data Summary")
    logger.info("=" * 60)
    logger.info("  Records loaded : %d", len(store))
    logger.info("  Records dropped: %d", store.dropped)
    for commodity in ("onion", "potato"):
        latest = store.latest(commodity)
        if latest:
            logger.info("  %-7s latest : %s (%d grades)",
                        commodity, latest["latestDate"], len(latest["data"]))
        else:
            logger.warning("  %-7s        : no records", commodity)
    logger.info("=" * 60)

    return PriceQueries(store)


def run():
    setup_logging()
    app = create_app(build_queries())
    logger.info("Server starting on %s:%d", API_HOST, API_PORT)
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_config=None)


if __name__ == "__main__":
    run()
