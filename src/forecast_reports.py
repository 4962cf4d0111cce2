"""
Forecast vs Actual Reporting
Compares predicted quantities with what was actually sold.

- Accuracy per (date, item): (1 - |forecast - actual| / forecast) * 100,
  clamped to [0, 100]; a zero forecast scores 0.
- Variance per (date, item): actual - forecast.
- Walk-forward backtest: forecast each of the last N sales days from the
  days before it and score the result.
"""

import numpy as np
import pandas as pd

from config import get_logger, FILES, REPORTS
from sales_records import build_sales_frame, aggregate_daily, load_sales_csv
from demand_forecasting import advanced_forecast

logger = get_logger("forecast_reports")

REPORT_COLUMNS = [
    "date", "item", "forecast_quantity", "actual_quantity",
    "variance", "accuracy", "rating",
]


def calculate_accuracy(forecast, actual):
    """Accuracy percentage of a single forecast."""
    if forecast == 0:
        return 0.0
    accuracy = (1 - abs(forecast - actual) / forecast) * 100
    return float(max(0.0, min(100.0, accuracy)))


def accuracy_rating(accuracy):
    bands = REPORTS["accuracy_bands"]
    if accuracy >= bands["good"]:
        return "good"
    if accuracy >= bands["fair"]:
        return "fair"
    return "poor"


def _daily_frame(rows, source_name):
    if isinstance(rows, pd.DataFrame) and rows.empty:
        return rows.iloc[0:0]
    return aggregate_daily(build_sales_frame(rows, source_name=source_name))


def build_accuracy_report(forecasts, actuals):
    """
    Join forecasts and actuals on (date, item).

    Both inputs are sales-record shaped (date, item, quantity). Rows are
    summed per day first; pairs without an actual (or without a forecast)
    are left out. Sorted newest first, then by item.
    """
    forecast_df = _daily_frame(forecasts, "forecasts")
    actual_df = _daily_frame(actuals, "actuals")
    if forecast_df.empty or actual_df.empty:
        return pd.DataFrame(columns=REPORT_COLUMNS)

    report = forecast_df.rename(columns={"quantity": "forecast_quantity"}).merge(
        actual_df.rename(columns={"quantity": "actual_quantity"}),
        on=["date", "item"],
        how="inner",
    )
    if report.empty:
        return pd.DataFrame(columns=REPORT_COLUMNS)

    report["variance"] = report["actual_quantity"] - report["forecast_quantity"]
    report["accuracy"] = [
        calculate_accuracy(f, a)
        for f, a in zip(report["forecast_quantity"], report["actual_quantity"])
    ]
    report["rating"] = report["accuracy"].apply(accuracy_rating)

    report = report.sort_values(["date", "item"], ascending=[False, True]).reset_index(drop=True)
    return report[REPORT_COLUMNS]


def summarize_accuracy(report):
    """Aggregate metrics over an accuracy report."""
    if report.empty:
        return {
            "rows": 0, "mae": 0.0, "rmse": 0.0, "mean_accuracy": 0.0,
            "total_forecast": 0, "total_actual": 0,
        }

    errors = report["variance"].to_numpy(dtype=float)
    return {
        "rows": int(len(report)),
        "mae": round(float(np.mean(np.abs(errors))), 2),
        "rmse": round(float(np.sqrt(np.mean(errors ** 2))), 2),
        "mean_accuracy": round(float(report["accuracy"].mean()), 1),
        "total_forecast": int(report["forecast_quantity"].sum()),
        "total_actual": int(report["actual_quantity"].sum()),
    }


def backtest(records, days=None):
    """
    Walk-forward evaluation of advanced_forecast.

    For each of the last `days` distinct sales dates (never the first date,
    which has no history), forecast that date from strictly earlier records
    and compare against what was sold.

    Returns {"dates": [...], "report": DataFrame, "summary": {...}}.
    """
    if days is None:
        days = REPORTS["backtest_days"]
    sales = aggregate_daily(build_sales_frame(records))
    all_dates = sorted(sales["date"].unique())
    eval_dates = all_dates[1:][-days:] if days > 0 else []

    logger.info(f"Backtesting {len(eval_dates)} days over {sales['item'].nunique()} items")

    rows = []
    for target in eval_dates:
        history = sales[sales["date"] < target]
        forecast = advanced_forecast(history, target_date=target)
        for item, qty in forecast.items():
            rows.append({"date": target, "item": item, "quantity": qty})

    forecasts = pd.DataFrame(rows, columns=["date", "item", "quantity"])
    actuals = sales[sales["date"].isin(eval_dates)]
    report = build_accuracy_report(forecasts, actuals)
    summary = summarize_accuracy(report)

    logger.info(f"  → MAE={summary['mae']}, RMSE={summary['rmse']}, accuracy={summary['mean_accuracy']}%")
    return {"dates": eval_dates, "report": report, "summary": summary}


def report_to_rows(report):
    """JSON-friendly list of report rows (dates as ISO strings)."""
    rows = []
    for row in report.to_dict(orient="records"):
        row["date"] = row["date"].isoformat()
        row["forecast_quantity"] = int(row["forecast_quantity"])
        row["actual_quantity"] = int(row["actual_quantity"])
        row["variance"] = int(row["variance"])
        row["accuracy"] = round(float(row["accuracy"]), 1)
        rows.append(row)
    return rows


# === Agent-callable function ===

def get_forecast_accuracy(csv_path=FILES["demo_sales"], days=None):
    """
    Agent-callable function: walk-forward accuracy of the demand forecast
    over the last `days` days of a sales CSV.
    """
    try:
        sales, skipped = load_sales_csv(csv_path, errors="skip")
        if sales.empty:
            return {"status": "error", "message": f"No valid sales records in {csv_path}"}

        result = backtest(sales, days=days)
        return {
            "status": "success",
            "dates": [d.isoformat() for d in result["dates"]],
            "skipped_rows": skipped,
            "summary": result["summary"],
            "rows": report_to_rows(result["report"]),
        }
    except Exception as e:
        logger.error(f"Error in get_forecast_accuracy: {str(e)}", exc_info=True)
        return {"status": "error", "message": str(e)}
