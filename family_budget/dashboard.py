"""Streamlit app for the family budget engine.

Tabs render the engine output for one family: the next-month forecast
with its strategies, live tracking of the current budgets, the monthly
budget status report and the day-by-day realization of each budget.

To run the dashboard from the command line::

    streamlit run family_budget/dashboard.py

or use ``run_dashboard.py`` at the project root.
"""

from __future__ import annotations

import os
import sys
from datetime import date

import pandas as pd
import streamlit as st

# Support both ``streamlit run family_budget/dashboard.py`` and package imports.
if __package__:
    from . import configure_logging, db, engine
    from . import visualization as viz
    from .analytics.history import sample_history, window_bounds
    from .formatting import escape_for_markdown, format_currency, format_percent
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from family_budget import configure_logging, db, engine  # type: ignore
    from family_budget import visualization as viz  # type: ignore
    from family_budget.analytics.history import sample_history, window_bounds  # type: ignore
    from family_budget.formatting import escape_for_markdown, format_currency, format_percent  # type: ignore


def _next_month(today: date) -> tuple:
    period = pd.Period(today, freq='M') + 1
    return period.year, period.month


def render_forecast_tab(family_id: str, target_year: int, target_month: int, as_of: date, db_path: str) -> None:
    result = engine.forecast_family(family_id, target_year, target_month, as_of=as_of, db_path=db_path)
    portfolio = result.portfolio

    if not result.categories:
        st.info("No spending history in the last 12 months.")
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Predicted spending", format_currency(portfolio.total_predicted_spending))
    col2.metric("Average monthly income", format_currency(portfolio.average_monthly_income))
    col3.metric("Recommended strategy", portfolio.recommended_strategy.value.replace('_', ' ').title())

    st.plotly_chart(viz.create_strategy_comparison_chart(result.categories, portfolio), use_container_width=True)
    st.plotly_chart(viz.create_savings_rate_chart(portfolio), use_container_width=True)

    for note in portfolio.recommendations:
        message = escape_for_markdown(f"**{note.title}**: {note.description}")
        if note.type == 'opportunity':
            st.success(message)
        elif note.type == 'warning':
            st.warning(message)
        else:
            st.info(message)

    st.subheader("Categories")
    rows = [
        {
            'Category': item.forecast.category_name,
            'Prediction': format_currency(item.forecast.predicted_amount),
            'Confidence': item.forecast.confidence.value,
            'Trend': item.forecast.trend.direction.value,
            'Recommended': item.recommended_strategy.value,
            'Budget': format_currency(item.strategies.get(item.recommended_strategy)),
        }
        for item in result.categories
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

    names = [item.forecast.category_name for item in result.categories]
    selected = st.selectbox("Category details", options=names)
    item = result.categories[names.index(selected)]
    start, end = window_bounds(as_of)
    totals = db.monthly_expense_totals(family_id, start, end, db_path=db_path)
    series = sample_history(totals, item.forecast.category_id, as_of)
    left, right = st.columns(2)
    left.plotly_chart(viz.create_history_chart(series, item.forecast), use_container_width=True)
    right.plotly_chart(viz.create_method_breakdown_chart(item.forecast), use_container_width=True)
    for insight in item.forecast.insights:
        st.markdown(escape_for_markdown(f"- {insight.message}"))


def render_tracking_tab(family_id: str, year: int, month: int, as_of: date, db_path: str) -> None:
    result = engine.track_family(family_id, year, month, as_of=as_of, db_path=db_path)
    summary = result.summary
    if not result.snapshots:
        st.info("No budgets configured for this month.")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Budgeted", format_currency(summary.total_budget_amount))
    col2.metric("Spent", format_currency(summary.total_spent))
    col3.metric("Remaining", format_currency(summary.total_remaining))
    col4.metric("Average utilization", format_percent(summary.average_utilization))

    for alert in summary.critical_alerts:
        st.error(f"{alert.category_name}: {alert.message}")

    st.plotly_chart(viz.create_utilization_chart(result.snapshots), use_container_width=True)
    st.dataframe(
        pd.DataFrame([
            {
                'Category': s.category_name,
                'Budget': format_currency(s.budget_amount),
                'Spent': format_currency(s.spent),
                'Projected': format_currency(s.projected_spending),
                'Alert': s.alert_level.value,
                'On track': s.is_on_track,
                'Forecast': s.forecast_status.value,
            }
            for s in result.snapshots
        ]),
        use_container_width=True,
        hide_index=True,
    )


def render_status_tab(family_id: str, year: int, month: int, db_path: str) -> None:
    report = engine.budget_status_report(family_id, year, month, db_path=db_path)
    st.metric("Overall realization", format_percent(report.overall_percentage))
    for item in report.categories:
        label = f"{item.category_name}: {format_currency(item.realization)}"
        if item.budget:
            label += f" of {format_currency(item.budget)} ({item.status.value})"
            st.progress(item.percentage / 100, text=label)
        else:
            st.write(f"{label} (no budget)")


def render_realization_tab(family_id: str, year: int, month: int, as_of: date, db_path: str) -> None:
    result = engine.realization_report(family_id, year, month, as_of=as_of, db_path=db_path)
    summary = result.summary
    if not result.budgets:
        st.info("No budgets configured for this month.")
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Planned", format_currency(summary.total_planned))
    col2.metric("Actual", format_currency(summary.total_actual))
    col3.metric("Realization", format_percent(summary.overall_realization_rate))

    st.dataframe(
        pd.DataFrame([
            {
                'Category': r.category_name,
                'Grade': r.performance.grade.value,
                'Status': r.status.value,
                'Realization': format_percent(r.realization_rate),
                'Efficiency': format_percent(r.performance.efficiency),
                'Trend': r.performance.trend.value,
                'Transactions': r.metrics.transaction_count,
            }
            for r in result.budgets
        ]),
        use_container_width=True,
        hide_index=True,
    )

    names = [r.category_name for r in result.budgets]
    selected = st.selectbox("Daily progress", options=names)
    st.plotly_chart(viz.create_realization_chart(result.budgets[names.index(selected)]), use_container_width=True)


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(
        page_title="Family Budget",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    st.title("Family Budget")

    st.sidebar.header("Configuration")
    db_path = st.sidebar.text_input("Database path", value=str(db.DB_PATH))
    family_id = st.sidebar.text_input("Family", value="demo")
    as_of = st.sidebar.date_input("As of", value=date.today())
    default_year, default_month = _next_month(as_of)
    target_year = int(st.sidebar.number_input("Forecast year", value=default_year, step=1))
    target_month = int(st.sidebar.number_input("Forecast month", min_value=1, max_value=12, value=default_month))

    if not family_id:
        st.info("Enter a family to begin.")
        st.stop()

    db.init_db(db_path)
    forecast_tab, tracking_tab, status_tab, realization_tab = st.tabs(
        ["Forecast", "Tracking", "Budget status", "Realization"]
    )
    try:
        with forecast_tab:
            render_forecast_tab(family_id, target_year, target_month, as_of, db_path)
        with tracking_tab:
            render_tracking_tab(family_id, as_of.year, as_of.month, as_of, db_path)
        with status_tab:
            render_status_tab(family_id, as_of.year, as_of.month, db_path)
        with realization_tab:
            render_realization_tab(family_id, as_of.year, as_of.month, as_of, db_path)
    except db.LedgerError as exc:  # pragma: no cover - UI display only
        st.error(f"Failed to read the ledger: {exc}")


if __name__ == "__main__":
    main()
