#!/usr/bin/env python3
"""
Agent wrapper script for the demand forecasting tools.

Usage:
    python3 scripts/run_tool.py <tool_name> [params_json]

Examples:
    python3 scripts/run_tool.py get_demand_forecast
    python3 scripts/run_tool.py get_demand_forecast '{"target_date": "2025-02-03", "detail": true}'
    python3 scripts/run_tool.py get_forecast_accuracy '{"days": 14}'
"""

import sys
import os
import json

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "src"))
os.chdir(project_root)

from demand_forecasting import get_demand_forecast, get_simple_forecast
from forecast_reports import get_forecast_accuracy


TOOL_MAP = {
    "get_demand_forecast": get_demand_forecast,
    "get_simple_forecast": get_simple_forecast,
    "get_forecast_accuracy": get_forecast_accuracy,
}


def run(tool_name, params=None):
    """Call a tool by name and return its result dict."""
    if tool_name not in TOOL_MAP:
        return {
            "status": "error",
            "message": f"Unknown tool: {tool_name}. Available: {list(TOOL_MAP.keys())}",
        }
    try:
        return TOOL_MAP[tool_name](**(params or {}))
    except TypeError as e:
        return {"status": "error", "message": f"Invalid parameters for {tool_name}: {e}"}


def main():
    if len(sys.argv) < 2:
        print(json.dumps({
            "status": "error",
            "message": f"Usage: python3 scripts/run_tool.py <tool_name> [params_json]\nAvailable tools: {list(TOOL_MAP.keys())}",
        }, indent=2))
        sys.exit(1)

    tool_name = sys.argv[1]
    params = {}

    if len(sys.argv) >= 3:
        try:
            params = json.loads(sys.argv[2])
        except json.JSONDecodeError as e:
            print(json.dumps({
                "status": "error",
                "message": f"Invalid JSON parameters: {e}",
            }, indent=2))
            sys.exit(1)

    result = run(tool_name, params)

    # Output clean JSON
    print(json.dumps(result, indent=2, default=str, ensure_ascii=False))
    if result.get("status") == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
