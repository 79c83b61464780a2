"""
Mandi Pulse configuration.

Data paths, server settings, and analysis thresholds live here so every
module can import them from one place.
"""

import logging
import os
from datetime import date


# ---------------------------------------------------------------------------
# Logging — call setup_logging() once at startup (in main.py)
# ---------------------------------------------------------------------------
def setup_logging(level=None):
    """
    Configure the root logger with a clean, timestamped format.

    Every module that does `logger = logging.getLogger(__name__)` will
    inherit this format automatically — no per-file setup needed.
    """
    if level is None:
        level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s — %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Data source — a JSON file loaded once at startup
#
# Either {"metadata": {...}, "priceData": [...]} or a bare list of records.
# ---------------------------------------------------------------------------
DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
PRICE_DATA_PATH = os.getenv(
    "PRICE_DATA_PATH", os.path.join(DATA_DIR, "market-prices.json")
)

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("PORT", "8000"))

# ---------------------------------------------------------------------------
# Commodities
# ---------------------------------------------------------------------------
SUPPORTED_COMMODITIES = ("onion", "potato")

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# ---------------------------------------------------------------------------
# Default date windows (applied when the caller omits startDate/endDate)
# ---------------------------------------------------------------------------
HISTORICAL_WINDOW_YEARS = 3
MONTHLY_WINDOW_YEARS = 2
PERIOD_WINDOW_YEARS = 3
ADVANCED_WINDOW_YEARS = 2

# Records, seasonal and year-over-year look at everything since this date
FULL_HISTORY_START = date(2022, 1, 1)

# ---------------------------------------------------------------------------
# Analysis thresholds
# ---------------------------------------------------------------------------

# Sustained periods: modal price more than 20% away from the average
STREAK_THRESHOLD_PCT = 0.2
MIN_STREAK_LENGTH = 3

# How many entries each ranked list keeps
TOP_DAILY_CHANGES = 10
TOP_STREAKS = 5
TOP_YOY_CHANGES = 5
TOP_PERIOD_CHANGES = 5
SEASONAL_RANK_SIZE = 3

# Linear trend + forecast
TREND_WINDOW = 90               # most recent records used for the fit
MIN_TREND_POINTS = 10           # below this the trend is "Insufficient data"
FORECAST_HORIZON = 30           # points predicted past the window
RECENT_VOLATILITY_WINDOW = 30   # records used for the volatility band

# Correlation strength labels
STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.3
