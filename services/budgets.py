from datetime import date

from services.dates import as_date, days_inclusive, period_end

WARNING_PERCENTAGE = 80


def budget_period_range(budget):
    start = as_date(budget['start_date'])
    end = as_date(budget.get('end_date')) or period_end(start, budget.get('period') or 'monthly')
    return start, end


def budget_status(budget, today=None):
    today = today or date.today()
    start, end = budget_period_range(budget)
    if today < start:
        return 'upcoming'
    if today > end:
        return 'expired'
    return 'active'


def budget_stats(budget, transactions, today=None):
    """Spending figures for one budget.

    Only expense transactions in the budget's category and inside its
    period count towards ``spent_amount``.
    """
    today = today or date.today()
    start, end = budget_period_range(budget)

    spent = 0.0
    count = 0
    for tx in transactions:
        if tx['type'] != 'expense' or tx.get('category_id') != budget['category_id']:
            continue
        if start <= as_date(tx['date']) <= end:
            spent += float(tx['amount'])
            count += 1

    amount = float(budget['amount'])
    total_days = days_inclusive(start, end)
    days_remaining = max(0, (end - today).days)
    days_passed = total_days - days_remaining
    daily_average = spent / days_passed if days_passed > 0 else 0.0

    stats = dict(budget)
    stats.update({
        'start_date': start,
        'end_date': end,
        'status': budget_status(budget, today),
        'spent_amount': spent,
        'remaining_amount': amount - spent,
        'spent_percentage': (spent / amount * 100) if amount > 0 else 0.0,
        'transaction_count': count,
        'is_over_budget': spent > amount,
        'days_remaining': days_remaining,
        'daily_average': daily_average,
        'projected_spending': daily_average * total_days,
    })
    return stats


def filter_budgets(budgets, period=None, category_id=None, status=None,
                   over_budget=None, today=None):
    result = []
    for budget in budgets:
        if period and budget.get('period') != period:
            continue
        if category_id and budget.get('category_id') != category_id:
            continue
        if status and budget_status(budget, today) != status:
            continue
        if over_budget is not None and bool(budget.get('is_over_budget')) != over_budget:
            continue
        result.append(budget)
    return result


def budget_overview(stats_list):
    active = [b for b in stats_list if b['status'] == 'active']
    return {
        'total_budgets': len(active),
        'total_budget_amount': sum(float(b['amount']) for b in active),
        'total_spent': sum(b['spent_amount'] for b in active),
        'over_budget_count': sum(1 for b in active if b['is_over_budget']),
        'active_budgets': len(active),
    }


def budget_alerts(stats_list):
    alerts = []
    for budget in stats_list:
        if budget['is_over_budget']:
            level = 'exceeded'
        elif budget['spent_percentage'] >= WARNING_PERCENTAGE:
            level = 'warning'
        else:
            continue
        alerts.append({
            'level': level,
            'budget_id': budget['id'],
            'category_name': budget.get('category_name') or 'Uncategorized',
            'spent_percentage': budget['spent_percentage'],
            'remaining_amount': budget['remaining_amount'],
        })
    alerts.sort(key=lambda a: a['spent_percentage'], reverse=True)
    return alerts
