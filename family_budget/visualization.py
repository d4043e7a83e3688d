"""Plotly figures for forecasts and budget tracking.

Each function accepts engine result objects and returns a
``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.  Empty inputs produce an empty figure titled
"No data to display".
"""

from __future__ import annotations

from typing import Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .analytics.models import (
    AlertLevel,
    BudgetRealization,
    CategoryForecast,
    ForecastResult,
    MonthlySeries,
    PortfolioSummary,
    Strategy,
    TrackingSnapshot,
)

ALERT_COLOURS = {
    AlertLevel.NONE: '#2ca02c',
    AlertLevel.INFO: '#1f77b4',
    AlertLevel.WARNING: '#ff7f0e',
    AlertLevel.DANGER: '#d62728',
    AlertLevel.CRITICAL: '#7f0000',
}

STRATEGY_LABELS = {
    Strategy.CONSERVATIVE: 'Conservative',
    Strategy.MODERATE: 'Moderate',
    Strategy.AGGRESSIVE: 'Aggressive',
    Strategy.AI_OPTIMIZED: 'AI optimized',
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_history_chart(series: MonthlySeries, forecast: Optional[ForecastResult] = None) -> go.Figure:
    """Trailing monthly spending with the forecast appended as a marker."""
    if series.is_empty:
        return _empty_figure()
    df = pd.DataFrame({
        'Month': [str(s.period) for s in series.samples],
        'Amount': series.amounts,
    })
    fig = px.line(df, x='Month', y='Amount', markers=True)
    if forecast is not None:
        next_period = str(series.last_period + 1)
        fig.add_trace(go.Scatter(
            x=[next_period],
            y=[forecast.predicted_amount],
            mode='markers',
            marker=dict(size=12, symbol='star'),
            name='Forecast',
        ))
    fig.update_layout(title="Monthly spending", xaxis_title="Month", yaxis_title="Amount")
    return fig


def create_method_breakdown_chart(forecast: ForecastResult) -> go.Figure:
    """Bar chart comparing each method's projection with the ensemble and final prediction."""
    breakdown = forecast.method_breakdown
    df = pd.DataFrame({
        'Method': ['Linear', 'EMA', 'Weighted', 'Ensemble', 'Prediction'],
        'Amount': [
            breakdown.linear,
            breakdown.ema,
            breakdown.weighted,
            breakdown.ensemble,
            forecast.predicted_amount,
        ],
    })
    fig = px.bar(df, x='Method', y='Amount', text_auto='.3s')
    fig.update_layout(
        title=f"{forecast.category_name}: forecast by method",
        xaxis_title="Method",
        yaxis_title="Amount",
    )
    return fig


def create_strategy_comparison_chart(
    category_forecasts: Sequence[CategoryForecast],
    portfolio: Optional[PortfolioSummary] = None,
) -> go.Figure:
    """Grouped bars of every strategy per category, with the monthly income as a line."""
    if not category_forecasts:
        return _empty_figure()
    rows = []
    for item in category_forecasts:
        for strategy, amount in item.strategies.as_mapping().items():
            rows.append({
                'Category': item.forecast.category_name,
                'Strategy': STRATEGY_LABELS[strategy],
                'Amount': amount,
            })
    df = pd.DataFrame(rows)
    fig = px.bar(df, x='Category', y='Amount', color='Strategy', barmode='group')
    if portfolio is not None and portfolio.average_monthly_income > 0:
        fig.add_hline(
            y=portfolio.average_monthly_income,
            line_dash='dash',
            annotation_text='Average monthly income',
        )
    fig.update_layout(title="Budget strategies by category", xaxis_title="Category", yaxis_title="Amount")
    return fig


def create_savings_rate_chart(portfolio: PortfolioSummary) -> go.Figure:
    if portfolio.average_monthly_income <= 0:
        return _empty_figure()
    df = pd.DataFrame({
        'Strategy': [STRATEGY_LABELS[s] for s in Strategy],
        'Savings rate': [portfolio.savings_rate_per_strategy[s] for s in Strategy],
    })
    fig = px.bar(df, x='Strategy', y='Savings rate')
    fig.update_layout(title="Savings rate per strategy", yaxis_title="% of income")
    return fig


def create_utilization_chart(snapshots: Sequence[TrackingSnapshot]) -> go.Figure:
    """Horizontal bars of budget utilization coloured by alert level.

    The expected utilization for the elapsed part of the month is drawn as a
    diamond marker on each bar.
    """
    if not snapshots:
        return _empty_figure()
    labels = [
        f"{s.category_name} ({s.year:04d}-{s.month:02d})" if s.month else s.category_name
        for s in snapshots
    ]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[s.utilization_rate for s in snapshots],
        y=labels,
        orientation='h',
        marker_color=[ALERT_COLOURS[s.alert_level] for s in snapshots],
        text=[f"{s.utilization_rate:.0f}%" for s in snapshots],
        name='Utilization',
    ))
    fig.add_trace(go.Scatter(
        x=[s.expected_utilization for s in snapshots],
        y=labels,
        mode='markers',
        marker=dict(symbol='diamond', size=10, color='black'),
        name='Expected',
    ))
    fig.add_vline(x=100, line_dash='dot')
    fig.update_layout(
        title="Budget utilization",
        xaxis_title="% of budget used",
        yaxis_title="Budget",
        height=max(300, 40 * len(snapshots)),
    )
    return fig


def create_realization_chart(item: BudgetRealization) -> go.Figure:
    """Cumulative spending through the month against the planned amount."""
    if not item.daily_progress:
        return _empty_figure()
    df = pd.DataFrame({
        'Day': [p.day for p in item.daily_progress],
        'Cumulative': [p.cumulative_spent for p in item.daily_progress],
        'Daily': [p.daily_spent for p in item.daily_progress],
    })
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df['Day'], y=df['Daily'], name='Daily'))
    fig.add_trace(go.Scatter(x=df['Day'], y=df['Cumulative'], mode='lines+markers', name='Cumulative'))
    fig.add_hline(y=item.planned, line_dash='dash', annotation_text='Budget')
    fig.update_layout(
        title=f"{item.category_name}: grade {item.performance.grade.value}",
        xaxis_title="Day of month",
        yaxis_title="Amount",
    )
    return fig
