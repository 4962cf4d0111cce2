#!/usr/bin/env python3
"""
Restaurant Demand Forecasting — Backend API Server

Exposes the forecasting engine over HTTP. The caller (persistence layer,
messaging worker, dashboard) supplies the already-retrieved sales history
and gets back one predicted quantity per item.

Usage:
    python3 backend/server.py
    → Opens http://localhost:8000 (API docs at /docs)
"""

import os
import sys
import asyncio
import datetime as dt
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# ── Paths ────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_PATH = PROJECT_ROOT / "backend" / ".env"
sys.path.insert(0, str(PROJECT_ROOT / "src"))

load_dotenv(ENV_PATH)

from config import get_logger, DELIVERY  # noqa: E402
from demand_forecasting import (  # noqa: E402
    forecast_breakdown,
    format_forecast_message,
    resolve_target_date,
    simple_forecast,
)
from forecast_reports import (  # noqa: E402
    build_accuracy_report,
    summarize_accuracy,
    report_to_rows,
)

logger = get_logger("server")

# ── Config ───────────────────────────────────────────────────────────────
PORT = int(os.getenv("PORT", "8000"))
DEFAULT_RESTAURANT = os.getenv("DEFAULT_RESTAURANT", DELIVERY["default_restaurant"])

# ── App ──────────────────────────────────────────────────────────────────
app = FastAPI(title="Restaurant Demand Forecasting", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request / Response models ────────────────────────────────────────────
class SalesRecord(BaseModel):
    date: dt.date
    item: str = Field(min_length=1)
    quantity: int = Field(ge=0)

class ForecastRequest(BaseModel):
    records: list[SalesRecord] = []
    target_date: Optional[dt.date] = None
    restaurant: Optional[str] = None
    detail: bool = False

class ForecastResponse(BaseModel):
    target_date: dt.date
    forecast: dict[str, int]
    message: str
    components: Optional[dict[str, dict[str, float]]] = None

class SimpleForecastRequest(BaseModel):
    records: list[SalesRecord] = []
    window: Optional[int] = Field(default=None, ge=1)

class AccuracyRequest(BaseModel):
    forecasts: list[SalesRecord] = []
    actuals: list[SalesRecord] = []


def _to_records(records):
    return [
        {"date": r.date, "item": r.item.strip(), "quantity": r.quantity}
        for r in records
    ]


def run_forecast(request: ForecastRequest) -> ForecastResponse:
    target = resolve_target_date(request.target_date)
    breakdown = forecast_breakdown(_to_records(request.records), target)
    forecast = {item: r["forecast"] for item, r in breakdown.items()}
    message = format_forecast_message(forecast, request.restaurant or DEFAULT_RESTAURANT, target)

    components = None
    if request.detail:
        components = {
            item: {**r["components"], "data_points": float(r["data_points"])}
            for item, r in breakdown.items()
        }
    return ForecastResponse(
        target_date=target,
        forecast=forecast,
        message=message,
        components=components,
    )


def run_accuracy(request: AccuracyRequest) -> dict:
    report = build_accuracy_report(_to_records(request.forecasts), _to_records(request.actuals))
    return {"rows": report_to_rows(report), "summary": summarize_accuracy(report)}


# ── API routes ───────────────────────────────────────────────────────────
@app.get("/api/health")
async def health_check():
    """Liveness check."""
    return {"status": "ok", "version": app.version}


@app.post("/api/forecast", response_model=ForecastResponse)
async def forecast(request: ForecastRequest):
    """
    Ensemble next-day forecast per item.
    Items never seen in `records` are not in the response.
    """
    try:
        return await asyncio.to_thread(run_forecast, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Forecast failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Server error: {str(e)}")


@app.post("/api/forecast/simple")
async def forecast_simple(request: SimpleForecastRequest):
    """Legacy rounded-average forecast."""
    try:
        predictions = await asyncio.to_thread(
            simple_forecast, _to_records(request.records), request.window
        )
        return {"forecast": predictions}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Simple forecast failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Server error: {str(e)}")


@app.post("/api/forecast/accuracy")
async def forecast_accuracy(request: AccuracyRequest):
    """Forecast vs actual, per (date, item), with summary metrics."""
    try:
        return await asyncio.to_thread(run_accuracy, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Accuracy report failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Server error: {str(e)}")


# ── Entry point ──────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    print("\n📊 Restaurant Demand Forecasting")
    print(f"   Project:   {PROJECT_ROOT}")
    print(f"   API:       http://localhost:{PORT}")
    print(f"   API docs:  http://localhost:{PORT}/docs\n")

    uvicorn.run(app, host="0.0.0.0", port=PORT)
