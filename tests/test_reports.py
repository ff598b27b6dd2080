"""
Tests for CSV/JSON report builders and export file names.
"""

import json
from datetime import date, datetime
from decimal import Decimal

from services.reports import (build_report, category_insights_csv, default_columns,
                              export_filename, financial_summary_csv, report_json,
                              resolve_columns, to_json, transactions_csv,
                              transactions_export_filename)

ROWS = [
    {'id': 1, 'date': date(2024, 3, 1), 'description': 'Lunch, with team', 'amount': Decimal('18.5'),
     'type': 'expense', 'category_name': None, 'category_color': None,
     'created_at': datetime(2024, 3, 1, 12, 30, 0), 'updated_at': None},
    {'id': 2, 'date': date(2024, 3, 2), 'description': 'Refund', 'amount': Decimal('40'),
     'type': 'income', 'category_name': 'Shopping', 'category_color': '#ec4899',
     'created_at': datetime(2024, 3, 2, 8, 0, 0), 'updated_at': None},
]


class TestTransactionsCsv:

    def test_default_columns(self):
        lines = transactions_csv(ROWS).splitlines()
        assert lines[0] == 'Date,Description,Amount,Type,Category'
        assert lines[1] == '2024-03-01,"Lunch, with team",18.50,expense,Uncategorized'
        assert lines[2] == '2024-03-02,Refund,40.00,income,Shopping'

    def test_selected_columns_in_request_order(self):
        lines = transactions_csv(ROWS, ['amount', 'category_color', 'created_at']).splitlines()
        assert lines[0] == 'Amount,Category Color,Created At'
        assert lines[1] == '18.50,#94a3b8,2024-03-01 12:30:00'

    def test_unknown_columns_fall_back_to_defaults(self):
        assert [c.key for c in resolve_columns(['password_hash'])] == default_columns()

    def test_empty_list_has_header_only(self):
        assert transactions_csv([]) == 'Date,Description,Amount,Type,Category\n'


class TestSummaryCsv:

    def test_kpi_rows(self):
        csv_text = financial_summary_csv({
            'net_worth': 1234.5,
            'financial_health_score': 70,
            'top_spending_category': {'name': 'Rent', 'amount': 900.0, 'percentage': 50.0},
        })
        assert csv_text.splitlines() == [
            'metric,value',
            'net_worth,1234.50',
            'financial_health_score,70',
            'top_spending_category,Rent',
        ]

    def test_category_rows(self):
        csv_text = category_insights_csv([{
            'category_name': 'Rent', 'total_amount': 900.0, 'transaction_count': 1,
            'average_transaction': 900.0, 'percentage': 50.0, 'trend': 'stable',
            'trend_percentage': 0.0,
        }])
        assert csv_text.splitlines()[1] == 'Rent,900.00,1,900.00,50.0,stable,0.0'


class TestReportBuilder:

    def config(self, **sections):
        base = {'include_kpis': True, 'include_transactions': True, 'include_categories': True,
                'start_date': date(2024, 3, 1)}
        base.update(sections)
        return base

    def test_limit_hides_extra_rows(self):
        report = build_report(self.config(), kpis={'net_worth': 1}, transactions=ROWS, limit=1)
        assert len(report['transaction_rows']) == 1
        assert report['hidden_transactions'] == 1
        assert len(report['transactions']) == 2

    def test_excluded_sections_are_empty(self):
        report = build_report(self.config(include_kpis=False, include_transactions=False),
                              kpis={'net_worth': 1}, transactions=ROWS, insights=[{'x': 1}])
        assert report['kpis'] is None
        assert report['transactions'] == []
        assert report['category_insights'] == [{'x': 1}]

    def test_json_serializes_dates_and_decimals(self):
        report = build_report(self.config(), transactions=ROWS)
        payload = json.loads(report_json(report))
        assert payload['config']['start_date'] == '2024-03-01'
        assert payload['transactions'][0]['amount'] == 18.5
        assert 'transaction_rows' not in payload

    def test_to_json_is_indented(self):
        assert to_json({'a': 1}) == '{\n  "a": 1\n}'


class TestFileNames:

    def test_export_filename(self):
        assert export_filename('financial-summary', 'csv', datetime(2024, 3, 5, 9, 0)) == \
            'financial-summary-2024-03-05.csv'

    def test_transactions_export_filename(self):
        assert transactions_export_filename('filtered', datetime(2024, 3, 5, 9, 4, 7)) == \
            'transactions_filtered_2024-03-05_09-04-07.csv'
