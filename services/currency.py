"""
Currency table and amount formatting.

Right-positioned currencies (ILS, CZK, HUF) render the symbol after the
number; every other currency renders it before.
"""

import math
import re
from collections import namedtuple

Currency = namedtuple('Currency', ['code', 'symbol', 'name', 'position', 'locale'])

CURRENCIES = [
    Currency('USD', '$', 'US Dollar', 'left', 'en-US'),
    Currency('EUR', '€', 'Euro', 'left', 'en-GB'),
    Currency('GBP', '£', 'British Pound', 'left', 'en-GB'),
    Currency('CAD', 'C$', 'Canadian Dollar', 'left', 'en-CA'),
    Currency('AUD', 'A$', 'Australian Dollar', 'left', 'en-AU'),
    Currency('JPY', '¥', 'Japanese Yen', 'left', 'ja-JP'),
    Currency('CHF', 'CHF', 'Swiss Franc', 'left', 'de-CH'),
    Currency('ILS', '₪', 'Israeli Shekel', 'right', 'en-US'),
    Currency('SEK', 'kr', 'Swedish Krona', 'left', 'sv-SE'),
    Currency('NOK', 'kr', 'Norwegian Krone', 'left', 'nb-NO'),
    Currency('DKK', 'kr', 'Danish Krone', 'left', 'da-DK'),
    Currency('PLN', 'zł', 'Polish Złoty', 'left', 'pl-PL'),
    Currency('CZK', 'Kč', 'Czech Koruna', 'right', 'cs-CZ'),
    Currency('HUF', 'Ft', 'Hungarian Forint', 'right', 'hu-HU'),
    Currency('SGD', 'S$', 'Singapore Dollar', 'left', 'en-SG'),
    Currency('HKD', 'HK$', 'Hong Kong Dollar', 'left', 'en-HK'),
    Currency('NZD', 'NZ$', 'New Zealand Dollar', 'left', 'en-NZ'),
]

_BY_CODE = {c.code: c for c in CURRENCIES}

DEFAULT_CURRENCY = 'USD'

_COMPACT_UNITS = ['', 'K', 'M', 'B', 'T']


def get_currency(code):
    return _BY_CODE.get(code)


def is_valid_currency_code(code):
    return code in _BY_CODE


def get_currency_symbol(code):
    currency = get_currency(code)
    return currency.symbol if currency else code


def get_currency_options():
    return [
        {
            'value': c.code,
            'label': f"{c.symbol} {c.name} ({c.code})",
            'symbol': c.symbol,
            'position': c.position,
        }
        for c in CURRENCIES
    ]


def _number(amount, decimals):
    return f"{abs(amount):,.{decimals}f}"


def _place_symbol(currency, number, negative):
    sign = '-' if negative else ''
    if currency.position == 'right':
        return f"{sign}{number}{currency.symbol}"
    return f"{sign}{currency.symbol}{number}"


def format_currency(amount, code=DEFAULT_CURRENCY, show_symbol=True, decimals=2):
    amount = float(amount or 0)
    negative = amount < 0
    number = _number(amount, decimals)

    currency = get_currency(code)
    if currency is None:
        sign = '-' if negative else ''
        return f"{sign}{code} {number}"

    if not show_symbol:
        return f"-{number}" if negative else number
    return _place_symbol(currency, number, negative)


def format_currency_compact(amount, code=DEFAULT_CURRENCY):
    """Short form for chart axes: 1500 -> $1.5K, 950 -> $950."""
    amount = float(amount or 0)
    currency = get_currency(code)
    if currency is None:
        return str(amount)

    if abs(amount) >= 1000:
        unit_index = min(int(math.log10(abs(amount)) // 3), len(_COMPACT_UNITS) - 1)
        scaled = abs(amount) / (1000 ** unit_index)
        number = f"{scaled:.1f}{_COMPACT_UNITS[unit_index]}"
        return _place_symbol(currency, number, amount < 0)

    return format_currency(amount, code, decimals=0)


def parse_currency(value, code=DEFAULT_CURRENCY):
    if not value:
        return 0.0

    cleaned = str(value)
    currency = get_currency(code)
    if currency is not None:
        cleaned = cleaned.replace(currency.symbol, '')
    cleaned = re.sub(r'\s', '', cleaned).replace(',', '')

    negative = '-' in cleaned
    cleaned = cleaned.replace('-', '')

    try:
        parsed = float(cleaned)
    except ValueError:
        return 0.0
    if not math.isfinite(parsed):
        return 0.0
    return -parsed if negative else parsed
