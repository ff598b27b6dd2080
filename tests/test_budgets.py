"""
Test suite for budget routes.
Tests cover the overview, alerts, filters and budget CRUD.
"""

from datetime import date, datetime
from decimal import Decimal

from tests.conftest import make_mock_connection, login_session, executed_sql


def budget_row(id=1, category_id=2, amount='500.00', start=None, end=None, period='monthly',
               name='Groceries'):
    return {
        'id': id, 'category_id': category_id, 'amount': Decimal(amount), 'period': period,
        'start_date': start or date.today().replace(day=1), 'end_date': end,
        'created_at': None, 'updated_at': None,
        'category_name': name, 'category_color': '#ef4444',
    }


def expense(amount, day=None, category_id=2):
    return {
        'id': 10, 'amount': Decimal(amount), 'description': 'Shop', 'date': day or date.today(),
        'type': 'expense', 'category_id': category_id, 'created_at': datetime(2024, 1, 1),
        'updated_at': None, 'category_name': 'Groceries', 'category_color': '#ef4444',
        'category_icon': None,
    }


VALID_FORM = {
    'category_id': '2',
    'amount': '300',
    'period': 'monthly',
    'start_date': '2024-01-15',
}


class TestBudgetList:
    """Test the budget overview page."""

    def test_budgets_require_auth(self, client):
        response = client.get('/budgets/')
        assert response.status_code == 302
        assert '/auth/login' in response.headers.get('Location', '')

    def test_list_shows_warning_alert(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [budget_row()],                   # budgets
            [expense('450.00')],              # transactions
            [],                               # categories
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/budgets/')

        assert response.status_code == 200
        assert b'Groceries: 90% spent' in response.data
        assert b'$450.00 of $500.00' in response.data

    def test_expired_budget_not_in_overview(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [budget_row(start=date(2020, 1, 1), end=date(2020, 1, 31))],
            [expense('900.00', day=date(2020, 1, 5))],
            [],
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/budgets/')

        assert b'<strong>Active:</strong> 0' in response.data
        assert b'% spent,' not in response.data

    def test_status_filter(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchall.side_effect = [
            [budget_row(id=1, name='Groceries'),
             budget_row(id=2, category_id=3, name='Vacation fund', start=date(2020, 1, 1),
                        end=date(2020, 12, 31))],
            [],
            [],
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/budgets/?status=expired')

        assert b'Vacation fund' in response.data
        assert b'Groceries' not in response.data


class TestBudgetCreate:
    """Test creating budgets."""

    def test_add_page_renders(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchall.return_value = [
            {'id': 2, 'name': 'Groceries', 'type': 'expense', 'color': '#ef4444', 'icon': None},
        ]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/budgets/add')

        assert response.status_code == 200
        assert b'Groceries' in response.data

    def test_add_computes_end_date(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {'id': 2}
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/budgets/add', data=VALID_FORM)

        assert response.status_code == 302
        params = cursor.execute.call_args.args[1]
        assert params == (1, 2, Decimal('300.00'), 'monthly', date(2024, 1, 15), date(2024, 1, 31))

    def test_add_weekly_ends_on_saturday(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {'id': 2}
        app_no_csrf.db_pool.get_connection.return_value = conn

        client_no_csrf.post('/budgets/add', data=dict(VALID_FORM, period='weekly'))

        # 2024-01-15 is a Monday
        assert cursor.execute.call_args.args[1][-1] == date(2024, 1, 20)

    def test_add_explicit_end_date_kept(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {'id': 2}
        app_no_csrf.db_pool.get_connection.return_value = conn

        client_no_csrf.post('/budgets/add', data=dict(VALID_FORM, end_date='2024-03-01'))

        assert cursor.execute.call_args.args[1][-1] == date(2024, 3, 1)

    def test_end_before_start_rejected(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/budgets/add', data=dict(VALID_FORM, end_date='2024-01-01'))

        assert response.status_code == 302
        assert '/budgets/add' in response.headers.get('Location', '')
        conn.commit.assert_not_called()

    def test_zero_amount_rejected(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/budgets/add', data=dict(VALID_FORM, amount='0'))

        assert response.status_code == 302
        cursor.execute.assert_not_called()


class TestBudgetEditDelete:
    """Test editing and deleting budgets."""

    def test_edit_not_found(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = None
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.get('/budgets/edit/8')

        assert response.status_code == 404

    def test_edit_recomputes_end_for_new_start(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.side_effect = [budget_row(id=8), {'id': 2}]
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/budgets/edit/8', data=dict(VALID_FORM, start_date='2024-02-10'))

        assert response.status_code == 302
        assert executed_sql(cursor)[-1].startswith('UPDATE budgets')
        assert cursor.execute.call_args.args[1] == (
            2, Decimal('300.00'), 'monthly', date(2024, 2, 10), date(2024, 2, 29), 8, 1)

    def test_delete(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = {'id': 8}
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/budgets/delete/8')

        assert response.status_code == 302
        assert executed_sql(cursor)[-1].startswith('DELETE FROM budgets')

    def test_delete_not_found(self, client_no_csrf, app_no_csrf):
        login_session(client_no_csrf)
        conn, cursor = make_mock_connection()
        cursor.fetchone.return_value = None
        app_no_csrf.db_pool.get_connection.return_value = conn

        response = client_no_csrf.post('/budgets/delete/8')

        assert response.status_code == 404
