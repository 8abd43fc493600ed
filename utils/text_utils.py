"""
Display formatting for prices and margins.
"""

CURRENCY_SYMBOLS = {
    "AUD": "$",
    "USD": "US$",
    "NZD": "NZ$",
    "EUR": "€",
    "GBP": "£",
}


def format_currency(value: float, currency: str = "AUD") -> str:
    """
    Format an amount with two decimals and thousands separators.

    - 1234.5 -> "$1,234.50"
    - -5 -> "-$5.00"
    - 10 with "CAD" -> "CAD 10.00"
    """
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_margin(margin: float) -> str:
    """Format a margin percentage with one decimal: 12.345 -> "12.3%"."""
    return f"{margin:.1f}%"
