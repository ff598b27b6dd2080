"""
Moneytor Test Suite

Route tests (mocked connection pool):

- test_auth.py: Signup, login, logout, profile and avatar
- test_dashboard.py: Dashboard summary, charts, budget and goal overviews
- test_transactions.py: Transaction CRUD, filters, bulk actions and CSV export
- test_categories.py: Category management and the in-use delete guard
- test_budgets.py: Budget CRUD, status filters and alerts
- test_goals.py: Goal CRUD, contributions and the detail view
- test_analytics.py: Analytics page and report downloads
- test_settings.py: Preferences, data export and account deletion
- test_security.py: Security-focused tests (CSRF, headers, user scoping)

Service tests (plain functions, fixed dates):

- test_currency.py, test_dates.py, test_filters.py, test_budget_stats.py,
  test_goal_progress.py, test_analytics_service.py, test_reports.py,
  test_validators.py, test_schema.py

Run all tests:
    pytest tests/

Run specific test file:
    pytest tests/test_auth.py

Run with verbose output:
    pytest tests/ -v
"""
