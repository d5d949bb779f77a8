"""Currency display helpers and decimal amount parsing."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings
from django.db import models

from mainapps.common.exceptions import ValidationError


class Currency(models.TextChoices):
    USD = 'USD', 'US Dollar'
    ZAR = 'ZAR', 'South African Rand'
    GBP = 'GBP', 'British Pound'
    EUR = 'EUR', 'Euro'


CURRENCY_SYMBOLS = {
    'USD': '$',
    'ZAR': 'R',
    'GBP': '£',
    'EUR': '€',
}
DEFAULT_SYMBOL = '$'

CENT = Decimal('0.01')

# Largest value a PositiveBigIntegerField column holds
DEFAULT_MAX_CENTS = 2 ** 63 - 1


def currency_symbol(currency):
    return CURRENCY_SYMBOLS.get(currency, DEFAULT_SYMBOL)


def currency_name(currency):
    if currency in Currency.values:
        return Currency(currency).label
    return currency


def format_amount(cents, currency):
    """Format minor units for display, e.g. 234600 ZAR -> 'R2,346.00'."""
    amount = Decimal(int(cents)).scaleb(-2).quantize(CENT)
    return f"{currency_symbol(currency)}{amount:,.2f}"


def parse_amount_to_cents(value):
    """
    Convert a major-unit amount typed by a donor ("25.5") into integer cents.

    Raises ValidationError when the input is not a number, is not positive,
    or exceeds MAX_DONATION_CENTS.
    """
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({'amount': 'Please enter a valid amount'})

    if not amount.is_finite() or amount <= 0:
        raise ValidationError({'amount': 'Please enter a valid amount'})

    max_cents = min(getattr(settings, 'MAX_DONATION_CENTS', DEFAULT_MAX_CENTS), DEFAULT_MAX_CENTS)
    if amount > Decimal(max_cents).scaleb(-2):
        raise ValidationError({'amount': 'Amount is too large'})

    cents = int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    if cents <= 0:
        raise ValidationError({'amount': 'Please enter a valid amount'})
    return cents
