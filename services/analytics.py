"""
Period analytics over already-fetched transaction rows.

``current`` and ``previous`` are lists of transaction dicts (amount, type,
date and, where relevant, category_id/category_name/category_color). The
caller chooses the windows; see services.dates for the helpers.
"""

from collections import OrderedDict
from datetime import timedelta

from services.dates import as_date, days_inclusive
from services.filters import summarize

STABLE_TREND_PERCENT = 5
EMERGENCY_FUND_MONTHS = 3
EMERGENCY_FUND_CAP = 2


def _growth(current, previous):
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def _percent_change(change, base):
    return change / base * 100 if base > 0 else 0.0


def health_score(savings_rate, income_growth, expense_growth, emergency_fund_ratio):
    score = 50

    if savings_rate > 20:
        score += 30
    elif savings_rate > 10:
        score += 20
    elif savings_rate > 0:
        score += 10
    else:
        score -= 20

    if income_growth > 0:
        score += 10
    elif income_growth < -10:
        score -= 15

    if expense_growth < 0:
        score += 10
    elif expense_growth > 20:
        score -= 15

    if emergency_fund_ratio >= 1:
        score += 10
    elif emergency_fund_ratio < 0.1:
        score -= 10

    return max(0, min(100, score))


def top_spending_category(transactions):
    totals = OrderedDict()
    for tx in transactions:
        if tx['type'] != 'expense' or not tx.get('category_id'):
            continue
        entry = totals.setdefault(tx['category_id'], {'name': tx.get('category_name'), 'amount': 0.0})
        entry['amount'] += float(tx['amount'])
    if not totals:
        return None

    top = None
    for entry in totals.values():
        if top is None or entry['amount'] > top['amount']:
            top = entry
    expenses = summarize(transactions)['total_expenses']
    return {
        'name': top['name'],
        'amount': top['amount'],
        'percentage': top['amount'] / expenses * 100 if expenses > 0 else 0.0,
    }


def financial_kpis(current, previous, start, end):
    now = summarize(current)
    before = summarize(previous)

    income = now['total_income']
    expenses = now['total_expenses']
    net = now['net_amount']

    income_growth = _growth(income, before['total_income'])
    expense_growth = _growth(expenses, before['total_expenses'])

    days = days_inclusive(start, end)
    monthly_multiplier = 30 / days
    monthly_income = income * monthly_multiplier
    monthly_expenses = expenses * monthly_multiplier

    savings_rate = net / income * 100 if income > 0 else 0.0
    emergency_fund_ratio = (
        max(0.0, net) / (monthly_expenses * EMERGENCY_FUND_MONTHS) if monthly_expenses > 0 else 0.0
    )

    return {
        'net_worth': net,
        'monthly_income': monthly_income,
        'monthly_expenses': monthly_expenses,
        'monthly_net': monthly_income - monthly_expenses,
        'savings_rate': savings_rate,
        'spending_velocity': expenses / days,
        'financial_health_score': health_score(savings_rate, income_growth,
                                               expense_growth, emergency_fund_ratio),
        'emergency_fund_ratio': min(emergency_fund_ratio, EMERGENCY_FUND_CAP),
        'top_spending_category': top_spending_category(current),
        'income_growth': income_growth,
        'expense_growth': expense_growth,
    }


def _period_totals(transactions):
    totals = summarize(transactions)
    return {
        'income': totals['total_income'],
        'expenses': totals['total_expenses'],
        'net': totals['net_amount'],
        'transaction_count': totals['transaction_count'],
    }


def period_comparison(current, previous):
    now = _period_totals(current)
    before = _period_totals(previous)

    income_change = now['income'] - before['income']
    expense_change = now['expenses'] - before['expenses']
    net_change = now['net'] - before['net']

    return {
        'current_period': now,
        'previous_period': before,
        'changes': {
            'income_change': income_change,
            'expense_change': expense_change,
            'net_change': net_change,
            'transaction_count_change': now['transaction_count'] - before['transaction_count'],
            'income_percent_change': _percent_change(income_change, before['income']),
            'expense_percent_change': _percent_change(expense_change, before['expenses']),
            'net_percent_change': _percent_change(net_change, abs(before['net'])),
        },
    }


def spending_trends(transactions, start, end):
    daily = {}
    for tx in transactions:
        day = daily.setdefault(as_date(tx['date']), {'income': 0.0, 'expenses': 0.0})
        if tx['type'] == 'income':
            day['income'] += float(tx['amount'])
        else:
            day['expenses'] += float(tx['amount'])

    trends = []
    cumulative_income = 0.0
    cumulative_expenses = 0.0
    day = start
    while day <= end:
        totals = daily.get(day, {'income': 0.0, 'expenses': 0.0})
        cumulative_income += totals['income']
        cumulative_expenses += totals['expenses']
        trends.append({
            'date': day,
            'income': totals['income'],
            'expenses': totals['expenses'],
            'net': totals['income'] - totals['expenses'],
            'cumulative_income': cumulative_income,
            'cumulative_expenses': cumulative_expenses,
            'cumulative_net': cumulative_income - cumulative_expenses,
        })
        day += timedelta(days=1)
    return trends


def _trend(percentage):
    if abs(percentage) < STABLE_TREND_PERCENT:
        return 'stable'
    return 'up' if percentage > 0 else 'down'


def category_insights(current, previous, start, end, tx_type='all'):
    def wanted(tx):
        return tx.get('category_id') and (tx_type == 'all' or tx['type'] == tx_type)

    categories = OrderedDict()
    for tx in current:
        if not wanted(tx):
            continue
        entry = categories.setdefault(tx['category_id'], {
            'category_id': tx['category_id'],
            'category_name': tx.get('category_name'),
            'category_color': tx.get('category_color'),
            'total_amount': 0.0,
            'transaction_count': 0,
        })
        entry['total_amount'] += float(tx['amount'])
        entry['transaction_count'] += 1

    previous_totals = {}
    for tx in previous:
        if wanted(tx):
            previous_totals[tx['category_id']] = previous_totals.get(tx['category_id'], 0.0) + float(tx['amount'])

    grand_total = sum(c['total_amount'] for c in categories.values())
    monthly_multiplier = 30 / days_inclusive(start, end)

    insights = []
    for entry in categories.values():
        trend_percentage = _growth(entry['total_amount'], previous_totals.get(entry['category_id'], 0.0))
        insight = dict(entry)
        insight.update({
            'average_transaction': entry['total_amount'] / entry['transaction_count'],
            'percentage': entry['total_amount'] / grand_total * 100 if grand_total > 0 else 0.0,
            'monthly_average': entry['total_amount'] * monthly_multiplier,
            'trend': _trend(trend_percentage),
            'trend_percentage': trend_percentage,
        })
        insights.append(insight)

    insights.sort(key=lambda i: i['total_amount'], reverse=True)
    return insights


def expense_breakdown(transactions):
    """Expense totals per category name, largest first (uncategorised grouped)."""
    totals = {}
    for tx in transactions:
        if tx['type'] != 'expense':
            continue
        name = tx.get('category_name') or 'Uncategorized'
        totals[name] = totals.get(name, 0.0) + float(tx['amount'])
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def monthly_totals(transactions):
    months = {}
    for tx in transactions:
        key = as_date(tx['date']).strftime("%Y-%m")
        month = months.setdefault(key, {'month': key, 'income': 0.0, 'expenses': 0.0})
        if tx['type'] == 'income':
            month['income'] += float(tx['amount'])
        else:
            month['expenses'] += float(tx['amount'])
    result = [months[k] for k in sorted(months)]
    for month in result:
        month['net'] = month['income'] - month['expenses']
    return result
