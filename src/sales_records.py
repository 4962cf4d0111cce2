"""
Sales record construction and CSV ingestion.

Turns raw rows (CSV uploads, API payloads, POS exports) into clean
SalesRecord rows: one calendar date, one item name, one non-negative
integer quantity. This is the layer that rejects structurally invalid
input; the forecasting engine downstream assumes well-typed records.

Supported date formats:
- YYYY-MM-DD (ISO)
- DD/MM/YYYY and D/M/YYYY (always day-first)
- DD-MM-YYYY
- YYYYMMDD
- any other ISO-8601 timestamp, truncated to its date
"""

import re
from datetime import date, datetime

import pandas as pd

from config import get_logger, validate_dataframe, INGEST

logger = get_logger("sales_records")

RECORD_COLUMNS = ["date", "item", "quantity"]

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DASH_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")


# ═══════════════════════════════════════════════════
# Field parsers
# ═══════════════════════════════════════════════════

def _make_date(year, month, day, text):
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month in date: {text}")
    if day < 1 or day > 31:
        raise ValueError(f"Invalid day in date: {text}")
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueError(f"Invalid date: {text}") from None


def parse_date(value):
    """
    Parse a sales date into a datetime.date.
    Raises ValueError for anything that is not a recognisable calendar date.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        raise ValueError("Missing date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _make_date(year, month, day, text)

    match = _SLASH_DATE.match(text) or _DASH_DATE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return _make_date(year, month, day, text)

    match = _COMPACT_DATE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _make_date(year, month, day, text)

    parsed = pd.to_datetime(text, errors="coerce") if text else pd.NaT
    if pd.isna(parsed):
        raise ValueError(
            f"Invalid date format: {text!r}. Supported formats: {INGEST['supported_formats']}"
        )
    return parsed.date()


def parse_quantity(value):
    """Parse a quantity into a non-negative int."""
    if isinstance(value, bool):
        raise ValueError(f"Quantity must be numeric, got {value!r}")
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Quantity must be numeric, got {value!r}") from None
    if pd.isna(number):
        raise ValueError("Missing quantity")
    if number < 0:
        raise ValueError(f"Quantity must be non-negative, got {value!r}")
    if not number.is_integer():
        raise ValueError(f"Quantity must be a whole number, got {value!r}")
    return int(number)


def parse_item(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        raise ValueError("Missing item name")
    name = str(value).strip()
    if not name:
        raise ValueError("Item name is blank")
    return name


def record_key(record_date, item):
    """Lookup key used for duplicate detection: 'YYYY-MM-DD|item name'."""
    return f"{parse_date(record_date).isoformat()}|{str(item).strip().lower()}"


# ═══════════════════════════════════════════════════
# Frame construction
# ═══════════════════════════════════════════════════

def empty_sales_frame():
    return pd.DataFrame(columns=RECORD_COLUMNS)


def _normalize_columns(df):
    aliases = INGEST["column_aliases"]
    renamed = {}
    for col in df.columns:
        key = str(col).strip().lower().replace(" ", "_")
        renamed[col] = aliases.get(key, key)
    return df.rename(columns=renamed)


def parse_sales_rows(rows, source_name="sales records", errors="raise"):
    """
    Build a clean sales frame from rows.

    rows may be a DataFrame or an iterable of mappings with date/item/quantity.
    With errors="raise" the first invalid row raises ValueError; with
    errors="skip" invalid rows are dropped and counted.

    Returns (frame, skipped_count).
    """
    if errors not in ("raise", "skip"):
        raise ValueError(f"errors must be 'raise' or 'skip', got {errors!r}")

    if isinstance(rows, pd.DataFrame):
        df = rows.copy()
    else:
        df = pd.DataFrame(list(rows))

    if df.empty and len(df.columns) == 0:
        return empty_sales_frame(), 0

    df = _normalize_columns(df)
    validate_dataframe(df, INGEST["required_columns"], source_name)

    parsed = []
    skipped = 0
    for idx, (raw_date, raw_item, raw_qty) in enumerate(
        df[RECORD_COLUMNS].itertuples(index=False, name=None)
    ):
        try:
            parsed.append({
                "date": parse_date(raw_date),
                "item": parse_item(raw_item),
                "quantity": parse_quantity(raw_qty),
            })
        except ValueError as e:
            if errors == "raise":
                raise ValueError(f"{source_name}, row {idx + 1}: {e}") from e
            skipped += 1
            logger.warning(f"Skipping {source_name} row {idx + 1}: {e}")

    if skipped:
        logger.warning(f"{source_name}: skipped {skipped} invalid rows out of {len(df)}")

    frame = pd.DataFrame(parsed, columns=RECORD_COLUMNS)
    frame["quantity"] = frame["quantity"].astype(int)
    return frame, skipped


def build_sales_frame(rows, source_name="sales records"):
    """Strict variant of parse_sales_rows: any invalid row raises ValueError."""
    frame, _ = parse_sales_rows(rows, source_name=source_name, errors="raise")
    return frame


def load_sales_csv(path, errors="raise"):
    """
    Load a sales CSV (date, item, quantity) from disk.
    Header names are matched case-insensitively and common aliases
    (product, qty, units, timestamp) are accepted.

    Returns (frame, skipped_count).
    """
    df = pd.read_csv(path, dtype=str, skipinitialspace=True)
    frame, skipped = parse_sales_rows(df, source_name=str(path), errors=errors)
    logger.info(f"Loaded {len(frame)} sales records from {path}")
    return frame, skipped


# ═══════════════════════════════════════════════════
# Upstream cleanup helpers
# ═══════════════════════════════════════════════════

def deduplicate_records(frame, existing=None):
    """
    Drop rows whose (date, item) key is already known.

    existing may be a sales frame or an iterable of record_key strings.
    Item names are compared case-insensitively. Later rows in the same
    batch that repeat an earlier key are dropped too.

    Returns (new_frame, duplicate_count).
    """
    seen = set()
    if existing is not None:
        if isinstance(existing, pd.DataFrame):
            seen.update(record_key(d, i) for d, i in zip(existing["date"], existing["item"]))
        else:
            seen.update(existing)

    keep = []
    for record_date, item in zip(frame["date"], frame["item"]):
        key = record_key(record_date, item)
        keep.append(key not in seen)
        seen.add(key)

    mask = pd.Series(keep, index=frame.index, dtype=bool)
    duplicates = int((~mask).sum())
    if duplicates:
        logger.info(f"Dropped {duplicates} duplicate sales records")
    return frame[mask].reset_index(drop=True), duplicates


def aggregate_daily(frame):
    """Sum quantities per (date, item) so each item has one row per day."""
    if frame.empty:
        return empty_sales_frame()
    daily = frame.groupby(["date", "item"], as_index=False, sort=True)["quantity"].sum()
    daily["quantity"] = daily["quantity"].astype(int)
    return daily[RECORD_COLUMNS]


def frame_to_records(frame):
    """Convert a sales frame to the list-of-dicts form the engine consumes."""
    return [
        {"date": d, "item": i, "quantity": int(q)}
        for d, i, q in zip(frame["date"], frame["item"], frame["quantity"])
    ]
