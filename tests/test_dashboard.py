"""
Test suite for the dashboard.
Tests cover the current-month summary, budgets, goals and charts.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from tests.conftest import make_mock_connection, login_session


def tx(id, amount, tx_type, day, description, category_id=2, category_name='Groceries'):
    return {
        'id': id, 'amount': Decimal(amount), 'description': description, 'date': day,
        'type': tx_type, 'category_id': category_id, 'created_at': datetime(2024, 1, 1),
        'updated_at': None, 'category_name': category_name, 'category_color': '#ef4444',
        'category_icon': None,
    }


class TestDashboardAccess:
    """Test dashboard access control."""

    def test_dashboard_requires_auth(self, client):
        """Dashboard should require authentication."""
        response = client.get('/')
        assert response.status_code == 302
        assert '/auth/login' in response.headers.get('Location', '')

    def test_dashboard_accessible_when_logged_in(self, client_no_csrf, app_no_csrf):
        """An empty account still renders."""
        login_session(client_no_csrf)

        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [],  # transactions
            [],  # budgets
            [],  # goals
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/')
        assert response.status_code == 200
        assert b'No transactions yet' in response.data
        conn.close.assert_called_once()


class TestDashboardData:
    """Test dashboard data calculations."""

    def test_dashboard_summarizes_current_month(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        today = date.today()
        last_year = today - timedelta(days=400)

        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [
                tx(1, '3000.00', 'income', today, 'Monthly salary', 9, 'Salary'),
                tx(2, '120.50', 'expense', today, 'Weekly shop'),
                tx(3, '999.00', 'expense', last_year, 'Old laptop'),
            ],
            [],
            [],
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/')

        assert response.status_code == 200
        assert b'$3,000.00' in response.data
        assert b'$120.50' in response.data
        assert b'$2,879.50' in response.data
        assert b'$999.00' not in response.data.split(b'Recent transactions')[0]

    def test_dashboard_shows_budget_alert(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        today = date.today()

        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [tx(1, '95.00', 'expense', today, 'Weekly shop')],
            [{
                'id': 4, 'category_id': 2, 'amount': Decimal('100.00'), 'period': 'monthly',
                'start_date': today.replace(day=1), 'end_date': None,
                'created_at': None, 'updated_at': None,
                'category_name': 'Groceries', 'category_color': '#ef4444',
            }],
            [],
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/')

        assert response.status_code == 200
        assert b'Groceries budget almost spent' in response.data

    def test_dashboard_goal_overview(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)

        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [],
            [],
            [{
                'id': 1, 'name': 'Holiday', 'description': None,
                'target_amount': Decimal('2000.00'), 'current_amount': Decimal('500.00'),
                'target_date': None, 'category_id': None, 'status': 'active',
                'created_at': datetime(2024, 1, 1), 'updated_at': None,
                'category_name': None, 'category_color': None,
            }],
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/')

        assert response.status_code == 200
        assert b'1 active, 0 completed' in response.data
        assert b'$500.00 saved of $2,000.00' in response.data
