"""
Synthetic data generator for development and testing.
Generates realistic daily per-item sales for a demo restaurant:
weekend uplift, a mild per-item trend and multiplicative noise.
"""

import numpy as np
import pandas as pd

from config import RANDOM_SEED

DEMO_ITEMS = {
    # item: (base daily quantity, daily trend)
    "Burger": (40, 0.30),
    "Fries": (55, 0.20),
    "Caesar Salad": (18, -0.10),
    "Tomato Soup": (12, 0.00),
    "Chocolate Milkshake": (22, 0.15),
    "Iced Tea": (30, 0.05),
}

WEEKDAY_FACTORS = [0.85, 0.90, 0.95, 1.00, 1.20, 1.35, 1.10]  # Monday..Sunday


def generate_item_sales(items=None, start_date="2025-01-06", days=28, noise=0.08, seed=RANDOM_SEED):
    """
    Generate one row per (date, item) with a non-negative integer quantity.
    Deterministic for a given seed.
    """
    items = items or DEMO_ITEMS
    rng = np.random.RandomState(seed)
    dates = pd.date_range(start_date, periods=days, freq="D")

    records = []
    for t, ts in enumerate(dates):
        dow_factor = WEEKDAY_FACTORS[ts.dayofweek]
        for item, (base, trend) in items.items():
            expected = (base + trend * t) * dow_factor
            quantity = max(int(round(expected * rng.normal(1.0, noise))), 0)
            records.append({
                "date": ts.date(),
                "item": item,
                "quantity": quantity,
            })
    return pd.DataFrame(records, columns=["date", "item", "quantity"])


if __name__ == "__main__":
    print("Generating synthetic sales...")
    sales = generate_item_sales()
    print(f"Sales: {len(sales)} rows, {sales['item'].nunique()} items, "
          f"{sales['date'].min()} → {sales['date'].max()}")
    print(sales.groupby("item")["quantity"].mean().round(1).to_string())
