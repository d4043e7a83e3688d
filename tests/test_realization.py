from datetime import date

import pandas as pd
import pytest

from family_budget.analytics.models import RealizationGrade, RealizationStatus, SpendingTrend
from family_budget.analytics.realization import (
    daily_progress,
    grade_for,
    realization,
    status_for,
    summarize_realization,
    transaction_metrics,
)

AFTER_JUNE = date(2024, 7, 5)


def june_transactions():
    return pd.DataFrame([
        {'Transaction Date': pd.Timestamp('2024-06-01'), 'Amount': 100_000.0},
        {'Transaction Date': pd.Timestamp('2024-06-01'), 'Amount': 50_000.0},
        {'Transaction Date': pd.Timestamp('2024-06-10'), 'Amount': 300_000.0},
        {'Transaction Date': pd.Timestamp('2024-06-28'), 'Amount': 200_000.0},
        {'Transaction Date': pd.Timestamp('2024-07-01'), 'Amount': 999.0},
    ])


def test_realization_of_a_finished_month():
    result = realization(1_000_000, june_transactions(), 2024, 6, AFTER_JUNE, category_name='Groceries')
    assert result.actual == 650_000
    assert result.remaining == 350_000
    assert result.realization_rate == pytest.approx(65.0)
    assert result.variance == -350_000
    assert result.variance_percentage == pytest.approx(-35.0)
    assert result.status == RealizationStatus.EXCELLENT

    performance = result.performance
    assert performance.grade == RealizationGrade.A
    assert performance.target_daily_spend == pytest.approx(1_000_000 / 30)
    assert performance.actual_daily_spend == pytest.approx(650_000 / 30)
    assert performance.efficiency == pytest.approx(1_000_000 / 650_000 * 100)
    assert performance.average_last_7_days == pytest.approx(200_000 / 7)
    assert performance.trend == SpendingTrend.DECREASING

    metrics = result.metrics
    assert metrics.transaction_count == 4
    assert metrics.average_transaction == pytest.approx(162_500)
    assert metrics.largest_transaction == 300_000
    assert metrics.smallest_transaction == 50_000


def test_daily_progress_accumulates():
    progress = daily_progress(june_transactions(), 2024, 6, 1_000_000)
    assert len(progress) == 30
    assert progress[0].daily_spent == 150_000
    assert progress[0].transaction_count == 2
    assert progress[0].date == date(2024, 6, 1)
    assert progress[9].cumulative_spent == 450_000
    assert progress[9].cumulative_percentage == pytest.approx(45.0)
    assert progress[-1].cumulative_spent == 650_000
    assert progress[-1].transaction_count == 0


def test_late_spending_is_an_increasing_trend():
    rows = pd.DataFrame([{'Transaction Date': pd.Timestamp('2024-06-30'), 'Amount': 280_000.0}])
    result = realization(300_000, rows, 2024, 6, AFTER_JUNE)
    assert result.performance.trend == SpendingTrend.INCREASING
    assert result.performance.grade == RealizationGrade.C
    assert result.status == RealizationStatus.GOOD
    assert result.category_name == 'Uncategorized'


def test_zero_budget_without_spending():
    empty = pd.DataFrame(columns=['Transaction Date', 'Amount'])
    result = realization(0, empty, 2024, 2, AFTER_JUNE)
    assert result.realization_rate == 0
    assert result.performance.efficiency == 0
    assert result.performance.target_daily_spend == 0
    assert result.metrics == transaction_metrics([])
    assert len(result.daily_progress) == 29
    assert all(p.cumulative_spent == 0 for p in result.daily_progress)


def test_future_month_has_no_daily_spend():
    result = realization(1_000_000, june_transactions(), 2024, 6, date(2024, 5, 20))
    assert result.performance.actual_daily_spend == 0
    assert result.performance.efficiency == 0


@pytest.mark.parametrize('rate, grade', [
    (0.0, RealizationGrade.A),
    (70.0, RealizationGrade.A),
    (70.5, RealizationGrade.B),
    (85.0, RealizationGrade.B),
    (100.0, RealizationGrade.C),
    (120.0, RealizationGrade.D),
    (120.5, RealizationGrade.F),
])
def test_grade_boundaries(rate, grade):
    assert grade_for(rate) == grade


@pytest.mark.parametrize('rate, status', [
    (90.0, RealizationStatus.EXCELLENT),
    (90.5, RealizationStatus.GOOD),
    (100.0, RealizationStatus.GOOD),
    (110.0, RealizationStatus.WARNING),
    (111.0, RealizationStatus.OVER),
])
def test_status_boundaries(rate, status):
    assert status_for(rate) == status


def test_summary_ranks_best_and_worst():
    over = pd.DataFrame([{'Transaction Date': pd.Timestamp('2024-06-15'), 'Amount': 150_000.0}])
    items = [
        realization(1_000_000, june_transactions(), 2024, 6, AFTER_JUNE, category_name='Groceries'),
        realization(100_000, over, 2024, 6, AFTER_JUNE, category_name='Dining'),
        realization(300_000, pd.DataFrame([{'Transaction Date': pd.Timestamp('2024-06-30'), 'Amount': 280_000.0}]),
                    2024, 6, AFTER_JUNE, category_name='Transport'),
    ]
    summary = summarize_realization(items)
    assert summary.total_budgets == 3
    assert summary.total_planned == 1_400_000
    assert summary.total_actual == 1_080_000
    assert summary.overall_realization_rate == pytest.approx(1_080_000 / 1_400_000 * 100)
    assert summary.grade_distribution[RealizationGrade.A] == 1
    assert summary.grade_distribution[RealizationGrade.C] == 1
    assert summary.grade_distribution[RealizationGrade.F] == 1
    assert summary.status_distribution[RealizationStatus.OVER] == 1
    assert [r.category_name for r in summary.best_performers] == ['Groceries', 'Transport', 'Dining']
    assert [r.category_name for r in summary.worst_performers] == ['Dining', 'Transport', 'Groceries']


def test_empty_summary():
    summary = summarize_realization([])
    assert summary.average_efficiency == 0
    assert summary.overall_realization_rate == 0
    assert summary.best_performers == ()


def test_realization_serializes_dates_and_grades():
    data = realization(1_000_000, june_transactions(), 2024, 6, AFTER_JUNE).to_dict()
    assert data['performance']['grade'] == 'A'
    assert data['daily_progress'][0]['date'] == '2024-06-01'
