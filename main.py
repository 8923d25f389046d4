"""Command line entry points for Analytico: database setup, offline forecast, API server."""
from __future__ import annotations

import argparse
import json
import logging

import pandas as pd

from agents import ForecastAgent
from utils.config import FORECAST_HORIZON_DAYS, FORECAST_WINDOW
from utils.data_loader import load_sales_csv
from utils.logging_config import configure_logging
from utils.preprocess import daily_totals

logger = logging.getLogger(__name__)


def run_forecast(csv_path: str) -> dict:
    """Forecast the next days of revenue from a sales CSV without touching the database."""
    sales = load_sales_csv(csv_path)
    daily = daily_totals(sales[["date", "total"]])

    agent = ForecastAgent(window=FORECAST_WINDOW, horizon_days=FORECAST_HORIZON_DAYS)
    points, trend = agent.forecast(daily)
    return {
        "history_days": int(len(daily)),
        "trend": {"slope": round(trend.slope, 2), "direction": trend.direction},
        "forecast": [
            {"date": pd.Timestamp(r.date).date().isoformat(), "predicted_value": round(float(r.predicted_value), 2)}
            for r in points.itertuples(index=False)
        ],
    }


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Analytico command line")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the database tables")

    forecast = sub.add_parser("forecast", help="Forecast revenue from a sales CSV")
    forecast.add_argument("csv", help="Path to sales CSV (date and total columns)")
    forecast.add_argument("--out", default=None, help="Write the JSON result to this path")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "init-db":
        from db.session import init_db

        init_db()
    elif args.command == "forecast":
        result = json.dumps(run_forecast(args.csv), indent=2, ensure_ascii=False)
        if args.out:
            with open(args.out, "w", encoding="utf-8") as fh:
                fh.write(result)
            logger.info("Forecast written to %s", args.out)
        else:
            print(result)
    elif args.command == "serve":
        import uvicorn

        uvicorn.run("api.server:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
