#!/usr/bin/env python3
"""Print the forecast and tracking report for a family."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from family_budget import configure_logging, engine
from family_budget.alerts import LoggingAlertSink
from family_budget.db import LedgerError
from family_budget.formatting import format_currency, format_percent


def print_forecast(result: engine.FamilyForecast) -> None:
    portfolio = result.portfolio
    print(f"Forecast for {result.target_year:04d}-{result.target_month:02d} (as of {result.as_of})")
    if not result.categories:
        print("No spending history in the trailing window.")
        return
    rows = [
        {
            'Category': item.forecast.category_name,
            'Prediction': format_currency(item.forecast.predicted_amount),
            'Confidence': item.forecast.confidence.value,
            'Trend': item.forecast.trend.direction.value,
            'Strategy': item.recommended_strategy.value,
            'Budget': format_currency(item.strategies.get(item.recommended_strategy)),
        }
        for item in result.categories
    ]
    print(pd.DataFrame(rows).to_string(index=False))
    print(f"\nTotal predicted: {format_currency(portfolio.total_predicted_spending)}")
    print(f"Average monthly income: {format_currency(portfolio.average_monthly_income)}")
    for strategy, rate in portfolio.savings_rate_per_strategy.items():
        print(f"  {strategy.value:<13} {format_currency(portfolio.strategy_totals.get(strategy)):>16}"
              f"  savings {format_percent(rate)}")
    print(f"Recommended strategy: {portfolio.recommended_strategy.value}")
    for note in portfolio.recommendations:
        print(f"- [{note.type}] {note.title}: {note.description}")


def print_tracking(result: engine.FamilyTracking) -> None:
    summary = result.summary
    print(f"\nTracking {result.year:04d}-{(result.month or 0):02d}: {summary.total_budgets} budgets")
    for s in result.snapshots:
        flag = 'on track' if s.is_on_track else 'off track'
        print(f"  {s.category_name:<20} {format_percent(s.utilization_rate):>8} {s.alert_level.value:<9} {flag}")
    for alert in summary.critical_alerts:
        print(f"! {alert.category_name}: {alert.message}")


def main(family_id: str, target: Optional[str] = None, as_of: Optional[date] = None,
         db_path: Optional[str] = None, as_json: bool = False) -> int:
    as_of = as_of or date.today()
    period = pd.Period(target, freq='M') if target else pd.Period(as_of, freq='M') + 1
    try:
        tracking = engine.track_family(
            family_id, as_of.year, as_of.month, as_of=as_of, db_path=db_path, on_alert=LoggingAlertSink()
        )
        forecast = engine.forecast_family(
            family_id, period.year, period.month, as_of=as_of, db_path=db_path, snapshots=tracking.snapshots
        )
    except LedgerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps({'forecast': forecast.to_dict(), 'tracking': tracking.to_dict()}, indent=2))
    else:
        print_forecast(forecast)
        print_tracking(tracking)
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Forecast next month and track current budgets.')
    parser.add_argument('--family', default='demo', help='Family identifier')
    parser.add_argument('--target', default=None, help='Target month YYYY-MM (defaults to the month after as-of)')
    parser.add_argument('--as-of', type=date.fromisoformat, default=None, help='As-of date (YYYY-MM-DD)')
    parser.add_argument('--db', default=None, help='Database path (defaults to FAMILY_BUDGET_DB_PATH)')
    parser.add_argument('--json', action='store_true', help='Print JSON instead of tables')
    args = parser.parse_args()
    configure_logging()
    sys.exit(main(args.family, args.target, args.as_of, args.db, args.json))
