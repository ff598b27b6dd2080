"""
Filtering, sorting, paging and selection over a user's transaction list.

The list is fetched once per request and narrowed in memory, so every
function here works on plain row dicts as returned by
``cursor(dictionary=True)``.
"""

import math
from datetime import date, datetime, timedelta

from services.dates import as_date, parse_iso_date

SORT_FIELDS = ('date', 'amount', 'description', 'category')
SORT_ORDERS = ('asc', 'desc')

FILTER_PRESETS = {
    'this-week': 'This Week',
    'this-month': 'This Month',
    'income-only': 'Income Only',
    'expenses-only': 'Expenses Only',
}

EMPTY_FILTERS = {
    'type': 'all',
    'category_ids': [],
    'date_from': None,
    'date_to': None,
    'search': '',
    'amount_from': None,
    'amount_to': None,
}


def _float_or_none(raw):
    raw = (raw or '').strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_bool(raw):
    """Read a true/false query value; anything else means the filter is unset."""
    raw = (raw or '').strip().lower()
    if raw in ('true', '1', 'yes'):
        return True
    if raw in ('false', '0', 'no'):
        return False
    return None


def parse_id_list(raw):
    ids = []
    for part in (raw or '').split(','):
        part = part.strip()
        if part.isdigit():
            ids.append(int(part))
    return ids


def preset_filters(name, today=None):
    today = today or date.today()
    if name == 'this-week':
        return {'date_from': today - timedelta(days=7), 'date_to': today}
    if name == 'this-month':
        return {'date_from': today.replace(day=1), 'date_to': today}
    if name == 'income-only':
        return {'type': 'income'}
    if name == 'expenses-only':
        return {'type': 'expense'}
    return {}


def parse_filters(args, today=None):
    """Build a filter dict from query-string arguments."""
    filters = dict(EMPTY_FILTERS)

    tx_type = (args.get('type') or 'all').strip()
    filters['type'] = tx_type if tx_type in ('income', 'expense') else 'all'

    category_ids = parse_id_list(args.get('category'))
    if hasattr(args, 'getlist'):
        for raw in args.getlist('category_id'):
            category_ids.extend(parse_id_list(raw))
    filters['category_ids'] = sorted(set(category_ids))

    filters['date_from'] = parse_iso_date(args.get('date_from'))
    filters['date_to'] = parse_iso_date(args.get('date_to'))
    filters['search'] = (args.get('search') or '').strip()
    filters['amount_from'] = _float_or_none(args.get('amount_from'))
    filters['amount_to'] = _float_or_none(args.get('amount_to'))

    preset = args.get('preset')
    if preset in FILTER_PRESETS:
        filters.update(preset_filters(preset, today))

    return filters


def has_active_filters(filters):
    return any(filters.get(k) != v for k, v in EMPTY_FILTERS.items())


def matches(tx, filters):
    if filters.get('type', 'all') != 'all' and tx['type'] != filters['type']:
        return False

    category_ids = filters.get('category_ids')
    if category_ids and tx.get('category_id') not in category_ids:
        return False

    tx_date = as_date(tx['date'])
    if filters.get('date_from') and tx_date < filters['date_from']:
        return False
    if filters.get('date_to') and tx_date > filters['date_to']:
        return False

    search = (filters.get('search') or '').lower()
    if search and search not in (tx.get('description') or '').lower():
        return False

    amount = float(tx['amount'])
    if filters.get('amount_from') is not None and amount < filters['amount_from']:
        return False
    if filters.get('amount_to') is not None and amount > filters['amount_to']:
        return False

    return True


def apply_filters(transactions, filters):
    return [tx for tx in transactions if matches(tx, filters)]


def _created_key(tx):
    created = tx.get('created_at')
    if isinstance(created, datetime):
        return created
    if isinstance(created, date):
        return datetime(created.year, created.month, created.day)
    return datetime.min


def sort_transactions(transactions, sort_by='date', order='desc'):
    if sort_by not in SORT_FIELDS:
        sort_by = 'date'
    reverse = order != 'asc'

    # Newest-created first among equal keys, regardless of direction.
    ordered = sorted(transactions, key=_created_key, reverse=True)

    if sort_by == 'category':
        named = [tx for tx in ordered if tx.get('category_name')]
        unnamed = [tx for tx in ordered if not tx.get('category_name')]
        named.sort(key=lambda tx: tx['category_name'].lower(), reverse=reverse)
        return named + unnamed

    if sort_by == 'amount':
        key = lambda tx: float(tx['amount'])
    elif sort_by == 'description':
        key = lambda tx: (tx.get('description') or '').lower()
    else:
        key = lambda tx: as_date(tx['date'])
    return sorted(ordered, key=key, reverse=reverse)


def paginate(items, page=1, per_page=25):
    total = len(items)
    pages = max(1, math.ceil(total / per_page)) if per_page > 0 else 1
    page = min(max(1, page), pages)
    start = (page - 1) * per_page
    return {
        'items': items[start:start + per_page],
        'page': page,
        'pages': pages,
        'total': total,
        'has_prev': page > 1,
        'has_next': page < pages,
    }


def select_transactions(transactions, ids):
    wanted = set(ids)
    return [tx for tx in transactions if tx['id'] in wanted]


def summarize(transactions):
    income = sum(float(tx['amount']) for tx in transactions if tx['type'] == 'income')
    expenses = sum(float(tx['amount']) for tx in transactions if tx['type'] != 'income')
    return {
        'total_income': income,
        'total_expenses': expenses,
        'net_amount': income - expenses,
        'transaction_count': len(transactions),
    }
