"""
Tests for the bundled MySQL schema.
"""

from init_db import schema_statements


class TestSchema:

    def test_every_table_is_created(self):
        statements = schema_statements()
        tables = [s.split()[5] for s in statements if s.upper().startswith('CREATE TABLE IF NOT EXISTS')]
        assert tables == ['users', 'categories', 'transactions', 'budgets', 'saving_goals']

    def test_statements_are_split(self):
        assert all(';' not in s for s in schema_statements())

    def test_user_rows_cascade(self):
        sql = ' '.join(schema_statements())
        assert sql.count('REFERENCES users(id) ON DELETE CASCADE') == 4

    def test_budgeted_categories_cannot_be_dropped(self):
        budgets = next(s for s in schema_statements() if 'TABLE IF NOT EXISTS budgets' in s)
        assert 'REFERENCES categories(id) ON DELETE RESTRICT' in budgets
