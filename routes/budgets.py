from datetime import date
from flask import Blueprint, render_template, request, redirect, url_for, current_app, session, flash
from auth_utils import login_required
from routes.transactions import category_owned, fetch_categories, fetch_transactions
from services.budgets import budget_alerts, budget_overview, budget_stats, filter_budgets
from services.dates import BUDGET_PERIODS
from services.filters import parse_bool
from validators import validate_budget

budgets_bp = Blueprint('budgets', __name__, url_prefix='/budgets')

BUDGET_SELECT = """
    SELECT b.id, b.category_id, b.amount, b.period, b.start_date, b.end_date,
           b.created_at, b.updated_at,
           c.name AS category_name, c.color AS category_color
    FROM budgets b
    LEFT JOIN categories c ON c.id = b.category_id
    WHERE b.user_id = %s
"""


def fetch_budget_stats(cur, user_id, today=None, transactions=None):
    cur.execute(BUDGET_SELECT + " ORDER BY b.start_date DESC", (user_id,))
    budgets = cur.fetchall()
    if transactions is None:
        transactions = fetch_transactions(cur, user_id)
    expenses = [tx for tx in transactions if tx['type'] == 'expense']
    return [budget_stats(b, expenses, today) for b in budgets]


@budgets_bp.route('/')
@login_required
def index():
    today = date.today()
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            stats = fetch_budget_stats(cur, session['user_id'], today)
            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    budgets = filter_budgets(
        stats,
        period=request.args.get('period') or None,
        category_id=request.args.get('category_id', type=int),
        status=request.args.get('status') or None,
        over_budget=parse_bool(request.args.get('over_budget')),
        today=today,
    )
    return render_template(
        'budgets/index.html',
        budgets=budgets,
        overview=budget_overview(stats),
        alerts=budget_alerts([b for b in stats if b['status'] == 'active']),
        categories=categories,
        periods=BUDGET_PERIODS,
    )


def _save(cur, data, budget_id=None):
    values = (data['category_id'], data['amount'], data['period'], data['start_date'], data['end_date'])
    if budget_id is None:
        cur.execute(
            "INSERT INTO budgets (user_id, category_id, amount, period, start_date, end_date) "
            "VALUES (%s, %s, %s, %s, %s, %s)",
            (session['user_id'],) + values
        )
    else:
        cur.execute(
            "UPDATE budgets SET category_id=%s, amount=%s, period=%s, start_date=%s, end_date=%s "
            "WHERE id=%s AND user_id=%s",
            values + (budget_id, session['user_id'])
        )


@budgets_bp.route('/add', methods=['GET', 'POST'])
@login_required
def add():
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            if request.method == 'POST':
                data, error = validate_budget(request.form)
                if error:
                    flash(error, "error")
                    return redirect(url_for('budgets.add'))
                if not category_owned(cur, data['category_id'], session['user_id']):
                    flash("Invalid category", "error")
                    return redirect(url_for('budgets.add'))
                _save(cur, data)
                conn.commit()
                flash("Budget created", "success")
                return redirect(url_for('budgets.index'))

            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    return render_template('budgets/form.html', budget=None, categories=categories,
                           periods=BUDGET_PERIODS, current_date=date.today())


@budgets_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute(BUDGET_SELECT + " AND b.id = %s", (session['user_id'], id))
            budget = cur.fetchone()
            if not budget:
                return "Budget not found", 404

            if request.method == 'POST':
                data, error = validate_budget(request.form)
                if error:
                    flash(error, "error")
                    return redirect(url_for('budgets.edit', id=id))
                if not category_owned(cur, data['category_id'], session['user_id']):
                    flash("Invalid category", "error")
                    return redirect(url_for('budgets.edit', id=id))
                _save(cur, data, id)
                conn.commit()
                flash("Budget updated", "success")
                return redirect(url_for('budgets.index'))

            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    return render_template('budgets/form.html', budget=budget, categories=categories,
                           periods=BUDGET_PERIODS, current_date=date.today())


@budgets_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT id FROM budgets WHERE id=%s AND user_id=%s", (id, session['user_id']))
            if not cur.fetchone():
                return "Budget not found", 404
            cur.execute("DELETE FROM budgets WHERE id=%s AND user_id=%s", (id, session['user_id']))
            conn.commit()
    finally:
        conn.close()
    flash("Budget deleted", "success")
    return redirect(url_for('budgets.index'))
