import pytest

from family_budget.analytics.recommendations import overall_recommendations, recommend_budget


def test_stable_spending_gets_small_buffer():
    rec = recommend_budget(1, 'Groceries', [100_000.0] * 6, months_to_analyze=6, current_budget=120_000)
    assert rec.trend == 'stable'
    assert rec.average_monthly_spending == pytest.approx(100_000)
    assert rec.suggested_budget == 100_000
    assert rec.confidence == 'high'
    assert rec.min_budget == rec.max_budget == 100_000
    assert rec.difference == pytest.approx(20_000)
    assert rec.difference_percentage == pytest.approx(20.0)
    assert 'stable' in rec.reasoning


def test_increasing_spending_adds_half_sigma():
    amounts = [100_000.0] * 3 + [200_000.0] * 3
    rec = recommend_budget(2, 'Transport', amounts, months_to_analyze=6)
    assert rec.trend == 'increasing'
    assert rec.trend_percentage == pytest.approx(100.0)
    assert rec.standard_deviation == pytest.approx(50_000)
    assert rec.suggested_budget == 175_000
    assert rec.confidence == 'medium'
    assert rec.max_budget == 225_000
    assert rec.current_budget is None


def test_decreasing_spending_trims_budget():
    amounts = [200_000.0] * 3 + [100_000.0] * 3
    rec = recommend_budget(3, 'Dining', amounts, months_to_analyze=6)
    assert rec.trend == 'decreasing'
    assert rec.suggested_budget == 135_000


def test_no_transactions_means_no_recommendation():
    assert recommend_budget(1, 'Empty', []) is None


def test_months_must_be_positive():
    with pytest.raises(ValueError):
        recommend_budget(1, 'Groceries', [1.0], months_to_analyze=0)


def test_overall_notes():
    recs = [
        recommend_budget(1, 'Groceries', [100_000.0] * 6),
        recommend_budget(2, 'Transport', [100_000.0] * 3 + [200_000.0] * 3),
    ]
    notes = overall_recommendations(recs, 1_000_000)
    types = {(n.type, n.title) for n in notes}
    assert ('opportunity', 'Room to save more') in types
    assert ('warning', 'Spending is increasing') in types
    opportunity = next(n for n in notes if n.type == 'opportunity')
    assert opportunity.potential_savings == pytest.approx(1_000_000 - 275_000)


def test_overall_notes_flag_high_budget():
    recs = [recommend_budget(1, 'Rent', [900_000.0] * 6)]
    notes = overall_recommendations(recs, 1_000_000)
    assert any(n.title == 'Budget too high' for n in notes)


def test_overall_notes_without_income():
    recs = [recommend_budget(1, 'Rent', [900_000.0] * 6)]
    assert overall_recommendations(recs, 0) == []
