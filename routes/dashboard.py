from datetime import date
from flask import Blueprint, render_template, current_app, session
from auth_utils import login_required
from routes.budgets import fetch_budget_stats
from routes.goals import fetch_goals
from routes.transactions import fetch_transactions
from services.analytics import expense_breakdown, monthly_totals
from services.budgets import budget_alerts, budget_overview
from services.dates import as_date, date_range, shift_months
from services.filters import summarize
from services.goals import goal_overview

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='')

RECENT_TRANSACTIONS = 5
TREND_MONTHS = 6


@dashboard_bp.route('/')
@login_required
def index():
    today = date.today()
    start, end = date_range('month', today)

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            transactions = fetch_transactions(cur, session['user_id'])
            budgets = fetch_budget_stats(cur, session['user_id'], today, transactions)
            goals = fetch_goals(cur, session['user_id'], today)
    finally:
        conn.close()

    this_month = [tx for tx in transactions if start <= as_date(tx['date']) <= end]
    trend_start = shift_months(start, -(TREND_MONTHS - 1))
    recent_months = [tx for tx in transactions if trend_start <= as_date(tx['date']) <= end]

    breakdown = expense_breakdown(this_month)
    monthly = monthly_totals(recent_months)
    active_budgets = [b for b in budgets if b['status'] == 'active']

    return render_template(
        "dashboard.html",
        summary=summarize(this_month),
        recent=transactions[:RECENT_TRANSACTIONS],
        pie_labels=[name for name, _ in breakdown],
        pie_values=[total for _, total in breakdown],
        month_labels=[m['month'] for m in monthly],
        income_values=[m['income'] for m in monthly],
        expense_values=[m['expenses'] for m in monthly],
        budget_overview=budget_overview(budgets),
        alerts=budget_alerts(active_budgets),
        goal_overview=goal_overview(goals, today),
        month_start=start,
    )
