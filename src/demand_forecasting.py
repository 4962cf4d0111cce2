"""
Demand Forecasting by Item
Predicts next-day quantity per menu item from a restaurant's sales history.

Built from scratch using numpy/pandas (no sklearn/statsmodels/scipy dependency).

Data inputs:
- Sales records: one row per (date, item, quantity), already retrieved for
  one location / one catalog. Duplicate (date, item) rows are not merged here.

Models implemented (pure numpy):
1. Weighted Moving Average with exponential recency weights
2. Single Exponential Smoothing
3. Day-of-Week Pattern (recency-weighted same-weekday average)
4. Linear Trend (closed-form OLS on days since first sale)
5. Fixed-weight ensemble of all 4 models

Key outputs:
- {item: predicted quantity} for the target date (defaults to tomorrow)
- Per-item component breakdown for inspection
- Human-readable forecast message, items sorted by predicted quantity

No input shape raises: sparse, single-point and duplicate-date histories all
fall back to a number (0, the series mean, or the single observation).
"""

from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd

# ── Config imports ──
from config import (
    get_logger,
    FILES,
    FORECAST,
    DELIVERY,
    MONTH_NAMES,
    WEEKDAY_NAMES,
)
from sales_records import load_sales_csv, frame_to_records

# ── Initialize logger ──
logger = get_logger("demand_forecasting")

RECORD_COLUMNS = ["date", "item", "quantity"]
SERIES_COLUMNS = ["date", "quantity", "day_of_week", "days_since_start"]
COMPONENTS = [
    "weighted_moving_average",
    "exponential_smoothing",
    "day_of_week",
    "linear_trend",
]


def default_target_date(today=None):
    """Tomorrow, as a calendar date."""
    today = today or date.today()
    return today + timedelta(days=1)


def resolve_target_date(target_date=None):
    """Coerce a target date (None, date, datetime, or ISO string) to a calendar day."""
    if target_date is None:
        return default_target_date()
    if isinstance(target_date, datetime):
        return target_date.date()
    if isinstance(target_date, date):
        return target_date
    return pd.Timestamp(target_date).date()


def _round_half_up(value):
    return int(np.floor(value + 0.5))


# ═══════════════════════════════════════════════════
# Record grouping & time-series preparation
# ═══════════════════════════════════════════════════

def _to_calendar_day(value):
    """
    Midnight of the day a single date value falls on, as a naive Timestamp.
    Values are parsed one at a time so a batch may mix formats and UTC offsets;
    timezone-aware values keep their local calendar day.
    """
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def records_to_frame(records):
    """Load sales records (list of dicts or DataFrame) into a date/item/quantity frame."""
    if isinstance(records, pd.DataFrame):
        df = records[RECORD_COLUMNS].copy()
    else:
        df = pd.DataFrame(list(records), columns=RECORD_COLUMNS)

    if df.empty:
        return df

    df["date"] = pd.to_datetime(df["date"].map(_to_calendar_day))
    return df


def group_records(records):
    """
    Partition sales records by item.
    Every record lands in exactly one group; row order inside a group is the
    input order. Nothing is filtered (zero quantities and duplicate dates stay).
    """
    df = records_to_frame(records)
    if df.empty:
        return {}
    return {
        item: item_df.reset_index(drop=True)
        for item, item_df in df.groupby("item", sort=False, dropna=False)
    }


def prepare_time_series(item_df):
    """
    Convert one item's records into a chronologically sorted series.

    Adds day_of_week (Monday=0) and days_since_start, a 1-based day offset
    from the first observation, so the trend regression never sees x <= 0.
    Same-day rows are ordered by quantity so input order never matters.
    """
    if item_df.empty:
        return pd.DataFrame(columns=SERIES_COLUMNS)

    df = item_df.sort_values(["date", "quantity"], kind="mergesort").reset_index(drop=True)
    dates = pd.to_datetime(df["date"].map(_to_calendar_day))

    return pd.DataFrame({
        "date": dates.dt.date,
        "quantity": df["quantity"].astype(float),
        "day_of_week": dates.dt.dayofweek.astype(int),
        "days_since_start": (dates - dates.iloc[0]).dt.days.astype(int) + 1,
    })


# ═══════════════════════════════════════════════════
# Model 1: Weighted Moving Average (recency weighted)
# ═══════════════════════════════════════════════════

def weighted_moving_average(y, recency_bias=None, sharpness=None):
    """
    Weighted average over the full history where the point at index i of n
    gets weight exp((i / n) * recency_bias * sharpness). With the defaults
    (0.7, 3) most of the influence sits on the latest third of the history.
    """
    recency_bias = FORECAST["recency_bias"] if recency_bias is None else recency_bias
    sharpness = FORECAST["wma_sharpness"] if sharpness is None else sharpness

    y = np.asarray(y, dtype=float)
    n = len(y)
    if n == 0:
        return 0.0

    weights = np.exp(np.arange(n) / n * recency_bias * sharpness)
    return float(np.sum(y * weights) / np.sum(weights))


# ═══════════════════════════════════════════════════
# Model 2: Single Exponential Smoothing
# ═══════════════════════════════════════════════════

def exponential_smoothing(y, alpha=None):
    """
    S_0 = y_0, S_i = alpha * y_i + (1 - alpha) * S_{i-1}.
    The final S is the one-step-ahead forecast.
    """
    alpha = FORECAST["smoothing_alpha"] if alpha is None else alpha

    y = np.asarray(y, dtype=float)
    if len(y) == 0:
        return 0.0

    smoothed = y[0]
    for value in y[1:]:
        smoothed = alpha * value + (1 - alpha) * smoothed
    return float(smoothed)


# ═══════════════════════════════════════════════════
# Model 3: Day-of-Week Pattern
# ═══════════════════════════════════════════════════

def day_of_week_pattern(y, weekdays, target_weekday, sharpness=None):
    """
    Recency-weighted average of the observations that fall on the target
    weekday (weight exp((j / m) * sharpness) over the m matching points).
    Falls back to the plain mean of the whole history when the weekday has
    never been observed.
    """
    sharpness = FORECAST["dow_sharpness"] if sharpness is None else sharpness

    y = np.asarray(y, dtype=float)
    weekdays = np.asarray(weekdays, dtype=int)
    if len(y) == 0:
        return 0.0

    same_day = y[weekdays == target_weekday]
    m = len(same_day)
    if m == 0:
        return float(np.mean(y))

    weights = np.exp(np.arange(m) / m * sharpness)
    return float(np.sum(same_day * weights) / np.sum(weights))


# ═══════════════════════════════════════════════════
# Model 4: Linear Trend (closed-form OLS)
# ═══════════════════════════════════════════════════

def linear_trend_forecast(y, x):
    """
    Fit y = m*x + b by ordinary least squares and project one day past the
    last observed offset:

        m = (nΣxy − ΣxΣy) / (nΣx² − (Σx)²),  b = (Σy − mΣx) / n

    Fewer than 2 points returns the single observation (or 0). A zero
    denominator (every x identical) returns the mean.
    """
    y = np.asarray(y, dtype=float)
    x = np.asarray(x, dtype=np.int64)
    n = len(y)
    if n < 2:
        return float(y[0]) if n else 0.0

    sum_x = int(x.sum())
    sum_x2 = int((x * x).sum())
    sum_y = float(y.sum())
    sum_xy = float(np.sum(x * y))

    # Integer arithmetic keeps the zero check exact
    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    next_day = int(x[-1]) + 1
    return float(slope * next_day + intercept)


# ═══════════════════════════════════════════════════
# Ensemble: Combine all models
# ═══════════════════════════════════════════════════

def ensemble_forecast(components, weights=None):
    """
    Weighted sum of the four model outputs, rounded half-up and clamped at 0.
    Uses weights from FORECAST config if not provided.
    """
    weights = weights or FORECAST["ensemble_weights"]
    total_weight = sum(weights.values())
    if abs(total_weight - 1.0) > 1e-9:
        logger.warning(f"Ensemble weights sum to {total_weight:.4f}, expected 1.0")

    combined = sum(components[name] * weights[name] for name in weights)
    if not np.isfinite(combined):
        return 0
    return max(0, _round_half_up(combined))


def forecast_item(series, target_weekday, weights=None):
    """
    Run all four models against one prepared series and combine them.
    Returns the component values, the weights used and the final forecast.
    """
    weights = weights or FORECAST["ensemble_weights"]
    n = len(series)

    if n == 0:
        return {
            "forecast": 0,
            "data_points": 0,
            "components": {name: 0.0 for name in COMPONENTS},
            "weights": dict(weights),
        }

    y = series["quantity"].to_numpy(dtype=float)
    components = {
        "weighted_moving_average": weighted_moving_average(y),
        "exponential_smoothing": exponential_smoothing(y),
        "day_of_week": day_of_week_pattern(y, series["day_of_week"].to_numpy(), target_weekday),
        "linear_trend": linear_trend_forecast(y, series["days_since_start"].to_numpy()),
    }

    return {
        "forecast": ensemble_forecast(components, weights),
        "data_points": n,
        "components": components,
        "weights": dict(weights),
    }


# ═══════════════════════════════════════════════════
# Main forecasting pipeline
# ═══════════════════════════════════════════════════

def forecast_breakdown(records, target_date=None, weights=None):
    """
    Per-item forecast with component detail.
    Returns {item: forecast_item(...) result}.
    """
    target = resolve_target_date(target_date)
    target_weekday = target.weekday()

    grouped = group_records(records)
    n_records = sum(len(item_df) for item_df in grouped.values())
    logger.info(
        f"Forecasting {len(grouped)} items from {n_records} records "
        f"for {target.isoformat()} ({WEEKDAY_NAMES[target_weekday]})"
    )

    results = {}
    for item, item_df in grouped.items():
        series = prepare_time_series(item_df)
        result = forecast_item(series, target_weekday, weights=weights)
        results[item] = result
        parts = ", ".join(f"{k}={v:.2f}" for k, v in result["components"].items())
        logger.debug(f"  → {item}: n={result['data_points']}, {parts}, forecast={result['forecast']}")

    return results


def advanced_forecast(records, target_date=None):
    """
    Ensemble demand forecast per item for target_date (default: tomorrow).

    records: list of {date, item, quantity} dicts or a DataFrame with those columns.
    Returns {item: non-negative int}. Items absent from records are absent
    from the result; an empty batch returns {}.
    """
    breakdown = forecast_breakdown(records, target_date)
    return {item: result["forecast"] for item, result in breakdown.items()}


def simple_forecast(records, window=None):
    """
    Legacy forecast: rounded mean of each item's last `window` quantities,
    in input order (no sorting). Kept for backwards compatibility.
    """
    if window is None:
        window = FORECAST["simple_window"]
    grouped = group_records(records)

    predictions = {}
    for item, item_df in grouped.items():
        recent = item_df["quantity"].astype(float).tail(window)
        mean = recent.mean() if len(recent) else 0.0
        predictions[item] = _round_half_up(mean) if np.isfinite(mean) else 0
    return predictions


# ═══════════════════════════════════════════════════
# Delivery formatting
# ═══════════════════════════════════════════════════

def format_target_date(target):
    return f"{WEEKDAY_NAMES[target.weekday()]}, {MONTH_NAMES[target.month]} {target.day}, {target.year}"


def format_forecast_message(forecast, restaurant=None, target_date=None):
    """Build the chat message for a forecast, items sorted by quantity (highest first)."""
    restaurant = restaurant or DELIVERY["default_restaurant"]
    target = resolve_target_date(target_date)
    unit = DELIVERY["unit_label"]

    lines = [f"📊 *{restaurant} Sales Forecast for {format_target_date(target)}*", ""]
    ranked = sorted(forecast.items(), key=lambda kv: (-kv[1], str(kv[0])))
    if not ranked:
        lines.append("No forecast available for this date.")
    for item, qty in ranked:
        lines.append(f"• {item}: {qty} {unit}")
    lines.append("")
    lines.append("*Based on historical sales analysis*")
    return "\n".join(lines)


# === Agent-callable functions ===

def get_demand_forecast(
    csv_path=FILES["demo_sales"],
    target_date=None,
    item=None,
    restaurant=None,
    detail=False,
):
    """
    Agent-callable function: returns the next-day demand forecast per item
    from a sales CSV (date, item, quantity). Invalid CSV rows are skipped
    and counted.
    """
    try:
        sales, skipped = load_sales_csv(csv_path, errors="skip")
        target = resolve_target_date(target_date)
        breakdown = forecast_breakdown(frame_to_records(sales), target)

        if item:
            if item not in breakdown:
                return {
                    "status": "error",
                    "message": f"Item '{item}' not found. Available: {sorted(breakdown.keys())}",
                }
            breakdown = {item: breakdown[item]}

        forecast = {name: result["forecast"] for name, result in breakdown.items()}
        result = {
            "status": "success",
            "target_date": target.isoformat(),
            "items": len(forecast),
            "records_used": len(sales),
            "skipped_rows": skipped,
            "forecast": forecast,
            "message": format_forecast_message(forecast, restaurant, target),
        }
        if detail:
            result["components"] = {
                name: {
                    "data_points": r["data_points"],
                    **{k: round(v, 2) for k, v in r["components"].items()},
                }
                for name, r in breakdown.items()
            }
        return result

    except Exception as e:
        logger.error(f"Error in get_demand_forecast: {str(e)}", exc_info=True)
        return {"status": "error", "message": str(e)}


def get_simple_forecast(csv_path=FILES["demo_sales"], window=None):
    """Agent-callable legacy forecast (rounded recent average per item)."""
    try:
        sales, skipped = load_sales_csv(csv_path, errors="skip")
        return {
            "status": "success",
            "skipped_rows": skipped,
            "forecast": simple_forecast(frame_to_records(sales), window=window),
        }
    except Exception as e:
        logger.error(f"Error in get_simple_forecast: {str(e)}", exc_info=True)
        return {"status": "error", "message": str(e)}
