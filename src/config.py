"""
Centralized configuration for the restaurant demand forecasting engine.
All tunable constants and file paths in one place.
"""

import os
import logging

# ── Project paths ──
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(PROJECT_ROOT, "data", "sample")

# ── Data file paths ──
FILES = {
    "demo_sales": os.path.join(DATA_DIR, "demo_sales.csv"),
}

# ── Random seed for reproducibility ──
RANDOM_SEED = 42

# ── Demand forecasting ensemble ──
# Fixed configuration, not fitted from data. Ensemble weights must sum to 1.0.
FORECAST = {
    "recency_bias": 0.7,
    "wma_sharpness": 3,
    "dow_sharpness": 2,
    "smoothing_alpha": 0.3,
    "ensemble_weights": {
        "weighted_moving_average": 0.30,
        "exponential_smoothing": 0.30,
        "day_of_week": 0.25,
        "linear_trend": 0.15,
    },
    "simple_window": 7,
}

# ── Sales record ingestion ──
INGEST = {
    "required_columns": ["date", "item", "quantity"],
    "column_aliases": {
        "day": "date",
        "timestamp": "date",
        "product": "item",
        "product_name": "item",
        "qty": "quantity",
        "units": "quantity",
    },
    "supported_formats": "YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY, YYYYMMDD",
}

# ── Forecast vs actual reporting ──
REPORTS = {
    "backtest_days": 7,
    "accuracy_bands": {"good": 80, "fair": 60},
}

# ── Forecast delivery ──
DELIVERY = {
    "default_restaurant": "Demo Restaurant",
    "unit_label": "units",
}

# ── Calendar names (locale independent) ──
MONTH_ORDER = {
    "January": 1, "February": 2, "March": 3, "April": 4,
    "May": 5, "June": 6, "July": 7, "August": 8,
    "September": 9, "October": 10, "November": 11, "December": 12,
}
MONTH_NAMES = {v: k for k, v in MONTH_ORDER.items()}
WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday",
]


# ── Logging setup ──
def get_logger(name):
    """Get a configured logger for a module."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "[%(asctime)s] %(name)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def validate_dataframe(df, required_columns, source_name):
    """Validate that a DataFrame has the expected columns."""
    missing = set(required_columns) - set(df.columns)
    if missing:
        raise ValueError(
            f"Data source '{source_name}' is missing required columns: {missing}. "
            f"Found columns: {list(df.columns)}"
        )
    return True
