import json
import logging

from services.currency import DEFAULT_CURRENCY

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    # Currency & regional
    'currency': DEFAULT_CURRENCY,
    'date_format': 'MM/DD/YYYY',
    'number_format': 'US',
    'timezone': 'UTC',

    # App preferences
    'theme': 'system',
    'default_transaction_type': 'expense',
    'dashboard_layout': 'comfortable',
    'start_of_week': 'monday',

    # Notifications
    'budget_alerts': True,
    'goal_milestones': True,
    'email_notifications': True,
    'push_notifications': True,
    'weekly_reports': False,
    'monthly_reports': True,

    # Privacy & security
    'data_retention_days': 2555,
    'analytics_consent': False,
    'marketing_consent': False,
    'two_factor_enabled': False,
    'session_timeout': 480,

    # Advanced
    'auto_categorization_enabled': True,
    'duplicate_detection_enabled': True,
    'export_format': 'CSV',
    'backup_frequency': 'monthly',
}

PREFERENCE_CHOICES = {
    'date_format': ('MM/DD/YYYY', 'DD/MM/YYYY', 'YYYY-MM-DD'),
    'number_format': ('US', 'EU', 'UK'),
    'theme': ('light', 'dark', 'system'),
    'default_transaction_type': ('income', 'expense'),
    'dashboard_layout': ('compact', 'comfortable', 'detailed'),
    'start_of_week': ('monday', 'sunday'),
    'export_format': ('CSV', 'JSON', 'PDF'),
    'backup_frequency': ('daily', 'weekly', 'monthly', 'never'),
}

BOOLEAN_PREFERENCES = (
    'budget_alerts',
    'goal_milestones',
    'email_notifications',
    'push_notifications',
    'weekly_reports',
    'monthly_reports',
    'analytics_consent',
    'marketing_consent',
)

TIMEZONES = (
    'UTC',
    'America/New_York',
    'America/Chicago',
    'America/Denver',
    'America/Los_Angeles',
    'America/Toronto',
    'America/Vancouver',
    'Europe/London',
    'Europe/Paris',
    'Europe/Berlin',
    'Asia/Jerusalem',
    'Asia/Tokyo',
    'Australia/Sydney',
)

# Stored as dedicated columns on the users table rather than in the JSON blob.
COLUMN_SETTINGS = ('currency', 'timezone')

# Tables holding a user's data, children first.
USER_DATA_TABLES = ('transactions', 'budgets', 'saving_goals', 'categories')


def timezone_options():
    return [
        {'value': tz, 'label': tz.replace('_', ' ').replace('/', ' / ')}
        for tz in TIMEZONES
    ]


def load_stored_preferences(raw):
    if not raw:
        return {}
    try:
        stored = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring unreadable stored preferences")
        return {}
    if not isinstance(stored, dict):
        return {}
    return {k: v for k, v in stored.items() if k in DEFAULT_SETTINGS}


def merge_preferences(user_row):
    """Defaults, overlaid with the stored JSON, overlaid with column values."""
    settings = dict(DEFAULT_SETTINGS)
    if not user_row:
        return settings
    settings.update(load_stored_preferences(user_row.get('preferences')))
    for key in COLUMN_SETTINGS:
        if user_row.get(key):
            settings[key] = user_row[key]
    return settings


def split_updates(updates):
    """Separate column-backed settings from those kept in the JSON blob."""
    columns = {k: v for k, v in updates.items() if k in COLUMN_SETTINGS}
    blob = {k: v for k, v in updates.items() if k not in COLUMN_SETTINGS}
    return columns, blob


def dump_preferences(settings):
    return json.dumps(
        {k: v for k, v in settings.items() if k not in COLUMN_SETTINGS},
        sort_keys=True,
    )
