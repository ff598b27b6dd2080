"""
Tests for budget spending statistics and alerts.
"""

from datetime import date

import pytest

from services.budgets import (budget_alerts, budget_overview, budget_stats, budget_status,
                              filter_budgets)

TODAY = date(2024, 3, 15)


def budget(id=1, amount=500, start=date(2024, 3, 1), end=None, period='monthly', category_id=2):
    return {'id': id, 'category_id': category_id, 'amount': amount, 'period': period,
            'start_date': start, 'end_date': end, 'category_name': 'Food'}


def tx(amount, day, tx_type='expense', category_id=2):
    return {'amount': amount, 'date': day, 'type': tx_type, 'category_id': category_id}


class TestBudgetStats:

    def test_only_matching_expenses_in_period_count(self):
        transactions = [
            tx(200, date(2024, 3, 5)),
            tx(100, date(2024, 3, 10)),
            tx(900, date(2024, 2, 28)),             # before the period
            tx(40, date(2024, 3, 6), category_id=3),  # other category
            tx(70, date(2024, 3, 7), tx_type='income'),
        ]
        stats = budget_stats(budget(), transactions, TODAY)

        assert stats['spent_amount'] == 300
        assert stats['transaction_count'] == 2
        assert stats['remaining_amount'] == 200
        assert stats['spent_percentage'] == pytest.approx(60)
        assert stats['end_date'] == date(2024, 3, 31)
        assert stats['status'] == 'active'
        assert not stats['is_over_budget']

    def test_pace_projection(self):
        stats = budget_stats(budget(), [tx(300, date(2024, 3, 5))], TODAY)

        assert stats['days_remaining'] == 16
        assert stats['daily_average'] == 20
        assert stats['projected_spending'] == 620

    def test_over_budget(self):
        stats = budget_stats(budget(amount=100), [tx(150, date(2024, 3, 2))], TODAY)
        assert stats['is_over_budget']
        assert stats['remaining_amount'] == -50

    def test_zero_amount_budget(self):
        stats = budget_stats(budget(amount=0), [], TODAY)
        assert stats['spent_percentage'] == 0


class TestBudgetStatus:

    def test_status_by_window(self):
        assert budget_status(budget(start=date(2024, 4, 1)), TODAY) == 'upcoming'
        assert budget_status(budget(start=date(2024, 2, 1), end=date(2024, 2, 29)), TODAY) == 'expired'
        assert budget_status(budget(start=date(2024, 3, 15), period='weekly'), TODAY) == 'active'

    def test_filter_budgets(self):
        stats = [
            budget_stats(budget(id=1), [tx(600, date(2024, 3, 2))], TODAY),
            budget_stats(budget(id=2, period='weekly', start=date(2024, 3, 10)), [], TODAY),
            budget_stats(budget(id=3, start=date(2024, 1, 1), end=date(2024, 1, 31)), [], TODAY),
        ]
        assert [b['id'] for b in filter_budgets(stats, period='weekly', today=TODAY)] == [2]
        assert [b['id'] for b in filter_budgets(stats, status='expired', today=TODAY)] == [3]
        assert [b['id'] for b in filter_budgets(stats, over_budget=True, today=TODAY)] == [1]
        assert [b['id'] for b in filter_budgets(stats, over_budget=False, today=TODAY)] == [2, 3]


class TestOverviewAndAlerts:

    def test_overview_counts_active_only(self):
        stats = [
            budget_stats(budget(id=1), [tx(600, date(2024, 3, 2))], TODAY),
            budget_stats(budget(id=2, start=date(2024, 1, 1), end=date(2024, 1, 31)), [], TODAY),
        ]
        overview = budget_overview(stats)
        assert overview['active_budgets'] == 1
        assert overview['total_budget_amount'] == 500
        assert overview['total_spent'] == 600
        assert overview['over_budget_count'] == 1

    def test_alerts_sorted_by_severity(self):
        stats = [
            budget_stats(budget(id=1, amount=100), [tx(85, date(2024, 3, 2))], TODAY),
            budget_stats(budget(id=2, amount=100, category_id=3), [tx(130, date(2024, 3, 2), category_id=3)], TODAY),
            budget_stats(budget(id=3, amount=100, category_id=4), [tx(10, date(2024, 3, 2), category_id=4)], TODAY),
        ]
        alerts = budget_alerts(stats)
        assert [(a['budget_id'], a['level']) for a in alerts] == [(2, 'exceeded'), (1, 'warning')]
