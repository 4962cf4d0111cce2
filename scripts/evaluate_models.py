#!/usr/bin/env python3
"""
Standalone script to evaluate the demand forecasting ensemble.
Runs a walk-forward backtest on the bundled sample sales and on synthetic
data, then prints the per-model breakdown for the next day.

Usage:
    python3 scripts/evaluate_models.py [days]
"""

import os
import sys
import logging

# Setup path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "src"))
os.chdir(project_root)

# Suppress logger output from modules (we want clean metrics only)
logging.disable(logging.WARNING)

from config import FILES, REPORTS
from sales_records import load_sales_csv
from synthetic_data import generate_item_sales
from demand_forecasting import forecast_breakdown, default_target_date
from forecast_reports import backtest


def header(text):
    print("\n" + "=" * 80)
    print(f"  {text}")
    print("=" * 80)


def subheader(text):
    print(f"\n  {text}")
    print("  " + "-" * 70)


def metric(name, value, width=35):
    if isinstance(value, float):
        print(f"    {name:<{width}}: {value:>15.2f}")
    else:
        print(f"    {name:<{width}}: {str(value):>15}")


def evaluate_backtest(label, sales, days):
    """Print walk-forward accuracy for one sales history."""
    header(f"BACKTEST: {label} (last {days} days)")

    logging.disable(logging.CRITICAL)
    result = backtest(sales, days=days)
    logging.disable(logging.WARNING)

    summary = result["summary"]
    if summary["rows"] == 0:
        print("    Not enough history to backtest")
        return

    subheader("Overall")
    metric("Days evaluated", len(result["dates"]))
    metric("Forecasts scored", summary["rows"])
    metric("MAE (units)", summary["mae"])
    metric("RMSE (units)", summary["rmse"])
    metric("Mean accuracy (%)", summary["mean_accuracy"])
    metric("Total forecast", summary["total_forecast"])
    metric("Total actual", summary["total_actual"])

    subheader("Per item")
    per_item = result["report"].groupby("item").agg(
        mae=("variance", lambda v: v.abs().mean()),
        accuracy=("accuracy", "mean"),
    ).sort_values("accuracy", ascending=False)
    for item, row in per_item.iterrows():
        bar = "█" * int(row["accuracy"] / 5) + "░" * (20 - int(row["accuracy"] / 5))
        print(f"    {item:<30}: MAE {row['mae']:>6.2f}  accuracy {row['accuracy']:>5.1f}%  [{bar}]")


def evaluate_components(label, sales):
    """Print each model's contribution to the next-day forecast."""
    last_day = max(sales["date"])
    target = default_target_date(last_day)
    header(f"ENSEMBLE BREAKDOWN: {label} → {target.isoformat()}")

    logging.disable(logging.CRITICAL)
    breakdown = forecast_breakdown(sales, target)
    logging.disable(logging.WARNING)

    print(f"    {'item':<24}{'WMA':>8}{'ES':>8}{'DOW':>8}{'TREND':>8}{'FINAL':>8}")
    ranked = sorted(breakdown.items(), key=lambda kv: -kv[1]["forecast"])
    for item, r in ranked:
        c = r["components"]
        print(f"    {item:<24}{c['weighted_moving_average']:>8.1f}{c['exponential_smoothing']:>8.1f}"
              f"{c['day_of_week']:>8.1f}{c['linear_trend']:>8.1f}{r['forecast']:>8d}")


def main():
    days = int(sys.argv[1]) if len(sys.argv) > 1 else REPORTS["backtest_days"]

    print("\n")
    print("╔" + "═" * 78 + "╗")
    print("║" + " " * 20 + "RESTAURANT DEMAND FORECAST — EVALUATION" + " " * 19 + "║")
    print("╚" + "═" * 78 + "╝")

    sample, skipped = load_sales_csv(FILES["demo_sales"], errors="skip")
    if skipped:
        print(f"\n  Skipped {skipped} invalid rows in {FILES['demo_sales']}")
    evaluate_backtest("Sample sales", sample, days)
    evaluate_components("Sample sales", sample)

    synthetic = generate_item_sales(days=56)
    evaluate_backtest("Synthetic sales", synthetic, days)
    evaluate_components("Synthetic sales", synthetic)

    header("EVALUATION COMPLETE")
    print("\n  Run individual tools:  python3 scripts/run_tool.py <tool_name>")
    print("  Run unit tests:        python3 -m pytest tests -v")
    print()


if __name__ == "__main__":
    main()
