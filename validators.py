"""
Server-side form validation.

Every validator takes a mapping (usually ``request.form``) and returns a
``(clean, error)`` pair: ``clean`` is a dict of typed values when the input
is acceptable, otherwise ``clean`` is None and ``error`` is the message to
flash back to the user.
"""

import re
from decimal import Decimal, InvalidOperation

from services.currency import is_valid_currency_code
from services.dates import parse_iso_date, period_end, BUDGET_PERIODS
from services.preferences import BOOLEAN_PREFERENCES, PREFERENCE_CHOICES, TIMEZONES

TRANSACTION_TYPES = ('income', 'expense')
GOAL_STATUSES = ('active', 'paused', 'completed', 'cancelled')

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
MAX_EMAIL_LENGTH = 254
MAX_DESCRIPTION_LENGTH = 255
MAX_NAME_LENGTH = 100
# Largest value a DECIMAL(12,2) column holds.
MAX_AMOUNT = Decimal('9999999999.99')
DEFAULT_CATEGORY_COLOR = '#6366f1'

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
FULL_NAME_RE = re.compile(r"^[a-zA-Z\s'\-\.]*$")
COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')
PASSWORD_STRENGTH_RE = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)')


def _text(data, key):
    return (data.get(key) or '').strip()


def _amount(raw):
    """Parse a money amount, returning None when it is not a number."""
    try:
        value = Decimal(str(raw).strip())
        if not value.is_finite():
            return None
        return value.quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError):
        return None


def _positive_int(raw):
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _email(data):
    email = _text(data, 'email').lower()
    if not email:
        return None, "Email is required"
    if len(email) > MAX_EMAIL_LENGTH:
        return None, "Email address is too long"
    if not EMAIL_RE.match(email):
        return None, "Please enter a valid email address"
    return email, None


def _strong_password(data):
    password = data.get('password') or ''
    if len(password) < MIN_PASSWORD_LENGTH:
        return None, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if len(password) > MAX_PASSWORD_LENGTH:
        return None, f"Password must be less than {MAX_PASSWORD_LENGTH} characters"
    if not PASSWORD_STRENGTH_RE.match(password):
        return None, ("Password must contain at least one uppercase letter, "
                      "one lowercase letter, and one number")
    if password != (data.get('confirm_password') or ''):
        return None, "Passwords do not match"
    return password, None


def _full_name(data):
    name = _text(data, 'full_name')
    if len(name) < 2:
        return None, "Full name must be at least 2 characters"
    if len(name) > 50:
        return None, "Full name must be less than 50 characters"
    if not FULL_NAME_RE.match(name):
        return None, "Full name contains invalid characters"
    return name, None


def validate_signup(data):
    full_name, error = _full_name(data)
    if error:
        return None, error
    email, error = _email(data)
    if error:
        return None, error
    password, error = _strong_password(data)
    if error:
        return None, error
    return {'full_name': full_name, 'email': email, 'password': password}, None


def validate_login(data):
    email, error = _email(data)
    if error:
        return None, error
    password = data.get('password') or ''
    if len(password) < 6:
        return None, "Password must be at least 6 characters"
    if len(password) > MAX_PASSWORD_LENGTH:
        return None, f"Password must be less than {MAX_PASSWORD_LENGTH} characters"
    return {'email': email, 'password': password}, None


def validate_profile(data):
    full_name, error = _full_name(data)
    if error:
        return None, error
    return {'full_name': full_name}, None


def validate_transaction(data):
    amount = _amount(data.get('amount', ''))
    if amount is None:
        return None, "Amount must be a positive number"
    if amount <= 0:
        return None, "Amount must be positive"
    if amount > MAX_AMOUNT:
        return None, "Amount is too large"

    description = _text(data, 'description')
    if not description:
        return None, "Description is required"
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return None, f"Description must be less than {MAX_DESCRIPTION_LENGTH} characters"

    category_id = _positive_int(data.get('category_id'))
    if category_id is None:
        return None, "Category is required"

    tx_date = parse_iso_date(data.get('date'))
    if tx_date is None:
        return None, "Date is required (YYYY-MM-DD)"

    tx_type = _text(data, 'type')
    if tx_type not in TRANSACTION_TYPES:
        return None, "Transaction type is required"

    return {
        'amount': amount,
        'description': description,
        'category_id': category_id,
        'date': tx_date,
        'type': tx_type,
    }, None


def validate_category(data):
    name = _text(data, 'name')
    if not name:
        return None, "Category name is required"
    if len(name) > MAX_NAME_LENGTH:
        return None, f"Category name must be less than {MAX_NAME_LENGTH} characters"

    cat_type = _text(data, 'type')
    if cat_type not in TRANSACTION_TYPES:
        return None, "Category type is required"

    color = _text(data, 'color') or DEFAULT_CATEGORY_COLOR
    if not COLOR_RE.match(color):
        return None, "Invalid color format"

    icon = _text(data, 'icon') or None
    return {'name': name, 'type': cat_type, 'color': color, 'icon': icon}, None


def validate_budget(data):
    category_id = _positive_int(data.get('category_id'))
    if category_id is None:
        return None, "Invalid category"

    amount = _amount(data.get('amount', ''))
    if amount is None or amount <= 0:
        return None, "Budget amount must be positive"
    if amount > MAX_AMOUNT:
        return None, "Budget amount is too large"

    period = _text(data, 'period') or 'monthly'
    if period not in BUDGET_PERIODS:
        return None, "Budget period is required"

    start_date = parse_iso_date(data.get('start_date'))
    if start_date is None:
        return None, "Start date is required (YYYY-MM-DD)"

    end_raw = _text(data, 'end_date')
    if end_raw:
        end_date = parse_iso_date(end_raw)
        if end_date is None:
            return None, "End date must be a valid date (YYYY-MM-DD)"
        if end_date < start_date:
            return None, "End date cannot be before start date"
    else:
        end_date = period_end(start_date, period)

    return {
        'category_id': category_id,
        'amount': amount,
        'period': period,
        'start_date': start_date,
        'end_date': end_date,
    }, None


def validate_goal(data):
    name = _text(data, 'name')
    if not name:
        return None, "Goal name is required"
    if len(name) > MAX_NAME_LENGTH:
        return None, "Goal name too long"

    target = _amount(data.get('target_amount', ''))
    if target is None or target <= 0:
        return None, "Target amount must be positive"
    if target > MAX_AMOUNT:
        return None, "Target amount is too large"

    current_raw = _text(data, 'current_amount') or '0'
    current = _amount(current_raw)
    if current is None or current < 0:
        return None, "Current amount cannot be negative"
    if current > MAX_AMOUNT:
        return None, "Current amount is too large"

    target_raw = _text(data, 'target_date')
    target_date = None
    if target_raw:
        target_date = parse_iso_date(target_raw)
        if target_date is None:
            return None, "Target date must be a valid date (YYYY-MM-DD)"

    category_raw = _text(data, 'category_id')
    category_id = None
    if category_raw:
        category_id = _positive_int(category_raw)
        if category_id is None:
            return None, "Invalid category ID"

    status = _text(data, 'status') or 'active'
    if status not in GOAL_STATUSES:
        return None, "Goal status is required"

    return {
        'name': name,
        'description': _text(data, 'description') or None,
        'target_amount': target,
        'current_amount': current,
        'target_date': target_date,
        'category_id': category_id,
        'status': status,
    }, None


def validate_contribution(data):
    amount = _amount(data.get('amount', ''))
    if amount is None or amount <= 0:
        return None, "Contribution amount must be positive"
    if amount > MAX_AMOUNT:
        return None, "Contribution amount is too large"
    return {'amount': amount, 'description': _text(data, 'description') or None}, None


def validate_preferences(data):
    clean = {}

    currency = _text(data, 'currency')
    if currency:
        if not is_valid_currency_code(currency):
            return None, "Unsupported currency"
        clean['currency'] = currency

    timezone = _text(data, 'timezone')
    if timezone:
        if timezone not in TIMEZONES:
            return None, "Unsupported timezone"
        clean['timezone'] = timezone

    for key, choices in PREFERENCE_CHOICES.items():
        value = _text(data, key)
        if not value:
            continue
        if value not in choices:
            return None, f"Invalid value for {key.replace('_', ' ')}"
        clean[key] = value

    # Unchecked boxes are absent from the submitted form.
    for key in BOOLEAN_PREFERENCES:
        clean[key] = (data.get(key) or '').lower() in ('on', 'true', '1', 'yes')

    return clean, None
