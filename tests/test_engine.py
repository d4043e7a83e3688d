import logging
import queue
from datetime import date

import pandas as pd
import pytest

from family_budget import db, engine
from family_budget.analytics.models import (
    AlertLevel,
    BudgetStatus,
    Confidence,
    RealizationGrade,
    RealizationStatus,
    Strategy,
)

AS_OF = date(2024, 12, 20)


def seed_ledger(path):
    db.init_db(path)
    db.add_category('fam', 'Dining', db_path=path)
    rows = []
    for month in range(1, 13):
        day = date(2024, month, 5)
        rows.append({'Transaction Date': day, 'Amount': 10_000_000, 'Category': 'Salary', 'Type': 'INCOME'})
        rows.append({'Transaction Date': day, 'Amount': 1_000_000, 'Category': 'Groceries', 'Type': 'EXPENSE'})
        rows.append({'Transaction Date': day, 'Amount': 500_000, 'Category': 'Transport', 'Type': 'EXPENSE'})
    db.add_transactions(pd.DataFrame(rows), 'fam', path)

    categories = db.expense_categories('fam', path).set_index('name')['id']
    db.set_budget('fam', int(categories['Groceries']), 2024, 12, 1_200_000, path)
    db.set_budget('fam', int(categories['Transport']), 2024, 12, 400_000, path)
    return categories


@pytest.fixture
def ledger(tmp_path):
    path = tmp_path / "ledger.db"
    seed_ledger(path)
    return path


def test_forecast_family_skips_empty_categories(ledger):
    result = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger)
    names = [item.forecast.category_name for item in result.categories]
    assert names == ['Groceries', 'Transport']

    groceries = result.categories[0]
    assert groceries.forecast.predicted_amount == pytest.approx(1_000_000)
    assert groceries.forecast.confidence == Confidence.VERY_HIGH
    assert groceries.strategies.ai_optimized == 1_000_000
    assert groceries.recommended_strategy == Strategy.AI_OPTIMIZED


def test_forecast_family_portfolio(ledger):
    result = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger)
    portfolio = result.portfolio
    assert portfolio.average_monthly_income == pytest.approx(10_000_000)
    assert portfolio.total_predicted_spending == pytest.approx(1_500_000)
    assert portfolio.recommended_strategy == Strategy.AI_OPTIMIZED
    assert portfolio.savings_rate_per_strategy[Strategy.AI_OPTIMIZED] == pytest.approx(85.0)
    assert any(r.type == 'opportunity' for r in portfolio.recommendations)
    assert result.metadata['data_points'] == 12
    assert result.metadata['window_start'] == '2024-01'


def test_forecast_portfolio_counts_tracking_of_as_of_month(ledger):
    result = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger)
    portfolio = result.portfolio
    assert portfolio.alert_counts[AlertLevel.INFO] == 1
    assert portfolio.alert_counts[AlertLevel.DANGER] == 1
    assert portfolio.alert_counts[AlertLevel.CRITICAL] == 0
    assert portfolio.on_track_count == 0
    assert portfolio.off_track_count == 2


def test_forecast_portfolio_uses_given_snapshots(ledger):
    tracking = engine.track_family('fam', 2024, 12, as_of=AS_OF, db_path=ledger)
    result = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger, snapshots=tracking.snapshots)
    assert result.portfolio.off_track_count == tracking.summary.off_track_count
    assert result.portfolio.alert_counts == tracking.summary.alert_counts

    untracked = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger, snapshots=())
    assert untracked.portfolio.off_track_count == 0


def test_parallel_forecast_matches_sequential(ledger):
    sequential = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger, max_workers=1)
    parallel = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger, max_workers=4)
    assert parallel.categories == sequential.categories
    assert parallel.portfolio == sequential.portfolio


def test_forecast_result_serializes(ledger):
    data = engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=ledger).to_dict()
    assert data['as_of'] == '2024-12-20'
    assert data['portfolio']['recommended_strategy'] == 'ai_optimized'


def test_forecast_rejects_bad_month(ledger):
    with pytest.raises(ValueError):
        engine.forecast_family('fam', 2025, 13, as_of=AS_OF, db_path=ledger)


def test_track_family_classifies_budgets(ledger):
    result = engine.track_family('fam', 2024, 12, as_of=AS_OF, db_path=ledger)
    by_name = {s.category_name: s for s in result.snapshots}
    assert set(by_name) == {'Groceries', 'Transport'}

    groceries = by_name['Groceries']
    assert groceries.spent == 1_000_000
    assert groceries.days_elapsed == 20
    assert groceries.utilization_rate == pytest.approx(1_000_000 / 1_200_000 * 100)
    assert groceries.alert_level == AlertLevel.INFO
    assert by_name['Transport'].alert_level == AlertLevel.DANGER

    summary = result.summary
    assert summary.total_budgets == 2
    assert [a.category_name for a in summary.critical_alerts] == ['Transport']


def test_track_family_for_whole_year(ledger):
    result = engine.track_family('fam', 2024, as_of=AS_OF, db_path=ledger)
    assert result.month is None
    assert len(result.snapshots) == 2


def test_track_family_sends_alert_events(ledger):
    events = []
    result = engine.track_family('fam', 2024, 12, as_of=AS_OF, db_path=ledger, on_alert=events.append)
    assert [e.category_name for e in events] == ['Transport']
    assert events[0].family_id == 'fam'
    assert result.alerts_dispatched == 1


def test_track_family_accepts_queue_sink(ledger):
    target = queue.Queue()
    engine.track_family('fam', 2024, 12, as_of=AS_OF, db_path=ledger, on_alert=target, alert_threshold=80)
    assert target.qsize() == 2


def test_failing_sink_does_not_break_tracking(ledger, caplog):
    def broken(event):
        raise RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR, logger='family_budget.alerts'):
        result = engine.track_family('fam', 2024, 12, as_of=AS_OF, db_path=ledger, on_alert=broken)
    assert len(result.snapshots) == 2
    assert result.alerts_dispatched == 0
    assert "Alert sink failed" in caplog.text


def test_budget_status_report(ledger):
    report = engine.budget_status_report('fam', 2024, 12, db_path=ledger)
    by_name = {c.category_name: c for c in report.categories}
    assert by_name['Dining'].status == BudgetStatus.NO_BUDGET
    assert by_name['Groceries'].status == BudgetStatus.WARNING
    assert by_name['Transport'].status == BudgetStatus.OVER
    assert report.total_budget == 1_600_000
    assert report.total_realization == 1_500_000


def test_recommend_budgets(ledger):
    result = engine.recommend_budgets('fam', 2024, 12, months_to_analyze=6, as_of=AS_OF, db_path=ledger)
    by_name = {r.category_name: r for r in result.categories}
    assert set(by_name) == {'Groceries', 'Transport'}
    assert by_name['Groceries'].suggested_budget == 1_000_000
    assert by_name['Groceries'].current_budget == 1_200_000
    assert result.total_suggested == 1_500_000
    assert result.average_monthly_income == pytest.approx(10_000_000)


def test_recommend_budgets_orders_by_average_spending(ledger):
    rows = [
        {'Transaction Date': date(2024, month, 9), 'Amount': 2_000_000, 'Category': 'Zakat', 'Type': 'EXPENSE'}
        for month in range(7, 13)
    ]
    db.add_transactions(pd.DataFrame(rows), 'fam', ledger)
    result = engine.recommend_budgets('fam', 2025, 1, months_to_analyze=6, as_of=AS_OF, db_path=ledger)
    assert [r.category_name for r in result.categories] == ['Zakat', 'Groceries', 'Transport']
    spending = [r.average_monthly_spending for r in result.categories]
    assert spending == sorted(spending, reverse=True)


def test_realization_report(ledger):
    result = engine.realization_report('fam', 2024, 12, as_of=AS_OF, db_path=ledger)
    by_name = {r.category_name: r for r in result.budgets}
    assert set(by_name) == {'Groceries', 'Transport'}

    groceries = by_name['Groceries']
    assert groceries.actual == 1_000_000
    assert groceries.performance.grade == RealizationGrade.B
    assert groceries.status == RealizationStatus.EXCELLENT
    assert groceries.performance.actual_daily_spend == pytest.approx(1_000_000 / 20)
    assert groceries.daily_progress[4].transaction_count == 1
    assert by_name['Transport'].performance.grade == RealizationGrade.F

    summary = result.summary
    assert summary.total_planned == 1_600_000
    assert summary.worst_performers[0].category_name == 'Transport'
    assert summary.status_distribution[RealizationStatus.OVER] == 1


def test_realization_report_for_one_category(ledger):
    categories = db.expense_categories('fam', ledger).set_index('name')['id']
    result = engine.realization_report(
        'fam', 2024, 12, category_id=int(categories['Groceries']), as_of=AS_OF, db_path=ledger
    )
    assert [r.category_name for r in result.budgets] == ['Groceries']
    assert result.summary.total_budgets == 1


def test_ledger_failure_fails_the_request(tmp_path):
    with pytest.raises(db.LedgerError):
        engine.forecast_family('fam', 2025, 1, as_of=AS_OF, db_path=tmp_path / "missing.db")
