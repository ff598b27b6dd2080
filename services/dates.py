from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

RANGE_PRESETS = {
    'today': 'Today',
    'week': 'This Week',
    'month': 'This Month',
    'year': 'This Year',
    'last7days': 'Last 7 Days',
    'last30days': 'Last 30 Days',
    'lastMonth': 'Last Month',
    'last3months': 'Last 3 Months',
}

BUDGET_PERIODS = ('weekly', 'monthly', 'yearly')


def parse_iso_date(value):
    """Parse YYYY-MM-DD, returning None for blank or malformed input."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = (value or '').strip()
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def month_end(d):
    return d + relativedelta(day=31)


def shift_months(d, months):
    return d + relativedelta(months=months)


def period_end(start, period):
    # Weekly budgets close on Saturday (weeks start on Sunday).
    if period == 'weekly':
        return start + timedelta(days=(5 - start.weekday()) % 7)
    if period == 'yearly':
        return date(start.year, 12, 31)
    return month_end(start)


def date_range(preset, today=None):
    today = today or date.today()

    if preset == 'today':
        return today, today
    if preset == 'week':
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=6)
    if preset == 'year':
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if preset == 'last7days':
        return today - timedelta(days=7), today
    if preset == 'last30days':
        return today - timedelta(days=30), today
    if preset == 'lastMonth':
        last = shift_months(today, -1)
        return last.replace(day=1), month_end(last)
    if preset == 'last3months':
        return shift_months(today, -3), today
    return today.replace(day=1), month_end(today)


def range_label(preset):
    return RANGE_PRESETS.get(preset, preset)


def days_inclusive(start, end):
    return (end - start).days + 1


def previous_range(start, end):
    """Window of the same length ending the day before ``start``."""
    length = end - start
    prev_end = start - timedelta(days=1)
    return prev_end - length, prev_end


def year_over_year(start, end):
    # Feb 29 maps to Feb 28.
    last_year = relativedelta(years=-1)
    return start + last_year, end + last_year


def format_transaction_date(value, today=None):
    d = as_date(value)
    if d is None:
        return ''
    today = today or date.today()
    if d == today:
        return 'Today'
    if d == today - timedelta(days=1):
        return 'Yesterday'
    return d.strftime("%b %d, %Y")
