"""
Report and export builders.

CSV and JSON payloads are produced here as text; the printable HTML report
is rendered by the ``reports/financial_report.html`` template from the
dict returned by ``build_report``.
"""

import csv
import io
import json
from collections import namedtuple
from datetime import date, datetime
from decimal import Decimal

from services.dates import as_date

Column = namedtuple('Column', ['key', 'label', 'default'])

TRANSACTION_COLUMNS = [
    Column('date', 'Date', True),
    Column('description', 'Description', True),
    Column('amount', 'Amount', True),
    Column('type', 'Type', True),
    Column('category_name', 'Category', True),
    Column('category_color', 'Category Color', False),
    Column('created_at', 'Created At', False),
    Column('updated_at', 'Updated At', False),
]

REPORT_TYPES = ('financial-summary', 'transaction-detail', 'category-analysis')
REPORT_FORMATS = ('csv', 'json', 'html')
EXPORT_SCOPES = ('all', 'filtered', 'selected')

UNCATEGORIZED = 'Uncategorized'
DEFAULT_CATEGORY_COLOR = '#94a3b8'


def default_columns():
    return [c.key for c in TRANSACTION_COLUMNS if c.default]


def resolve_columns(keys):
    known = {c.key: c for c in TRANSACTION_COLUMNS}
    columns = [known[k] for k in keys if k in known]
    return columns or [known[k] for k in default_columns()]


def _timestamp(value):
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return '' if value is None else str(value)


def _cell(tx, key):
    if key == 'date':
        return as_date(tx['date']).isoformat()
    if key == 'description':
        return tx.get('description') or ''
    if key == 'amount':
        return f"{float(tx['amount']):.2f}"
    if key == 'type':
        return tx['type']
    if key == 'category_name':
        return tx.get('category_name') or UNCATEGORIZED
    if key == 'category_color':
        return tx.get('category_color') or DEFAULT_CATEGORY_COLOR
    return _timestamp(tx.get(key))


def _write_csv(header, rows):
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def transactions_csv(transactions, column_keys=None):
    columns = resolve_columns(column_keys or default_columns())
    rows = [[_cell(tx, c.key) for c in columns] for tx in transactions]
    return _write_csv([c.label for c in columns], rows)


def category_insights_csv(insights):
    header = ['category', 'totalAmount', 'transactionCount', 'averageTransaction',
              'percentage', 'trend', 'trendPercentage']
    rows = [
        [
            i['category_name'],
            f"{i['total_amount']:.2f}",
            i['transaction_count'],
            f"{i['average_transaction']:.2f}",
            f"{i['percentage']:.1f}",
            i['trend'],
            f"{i['trend_percentage']:.1f}",
        ]
        for i in insights
    ]
    return _write_csv(header, rows)


def financial_summary_csv(kpis):
    rows = []
    for key, value in (kpis or {}).items():
        if key == 'top_spending_category':
            value = value['name'] if value else ''
        elif isinstance(value, float):
            value = f"{value:.2f}"
        rows.append([key, value])
    return _write_csv(['metric', 'value'], rows)


def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload):
    return json.dumps(payload, default=_json_default, indent=2)


def build_report(config, kpis=None, transactions=None, insights=None, limit=100):
    """Collect the sections selected in ``config`` into one report dict."""
    transactions = transactions or []
    report = {
        'config': config,
        'kpis': kpis if config.get('include_kpis') else None,
        'category_insights': (insights or []) if config.get('include_categories') else [],
        'transactions': transactions if config.get('include_transactions') else [],
    }
    report['transaction_rows'] = report['transactions'][:limit]
    report['hidden_transactions'] = max(0, len(report['transactions']) - limit)
    return report


def report_json(report):
    payload = {k: v for k, v in report.items() if k not in ('transaction_rows', 'hidden_transactions')}
    return to_json(payload)


def export_filename(prefix, ext, now=None, fmt="%Y-%m-%d"):
    now = now or datetime.now()
    return f"{prefix}-{now.strftime(fmt)}.{ext}"


def transactions_export_filename(scope, now=None):
    now = now or datetime.now()
    return f"transactions_{scope}_{now.strftime('%Y-%m-%d_%H-%M-%S')}.csv"
