"""Formatting utilities for currency and text display."""

from __future__ import annotations

from typing import Optional, Union

from .settings import get_config_value

CURRENCY_SYMBOLS = {
    'IDR': 'Rp',
    'USD': '$',
    'EUR': '€',
}

# Currencies written with '.' as the thousands separator.
DOT_GROUPED = {'IDR', 'EUR'}

DECIMALS = {
    'IDR': 0,
}


def default_currency() -> str:
    return str(get_config_value('engine', 'currency', 'code', default='IDR'))


def format_currency(
    amount: Union[float, int],
    currency: Optional[str] = None,
    include_symbol: bool = True,
) -> str:
    """Format a currency amount with grouping for the configured currency.

    Args:
        amount: The amount to format
        currency: ISO code; defaults to ``currency.code`` in the engine settings
        include_symbol: Whether to prefix the currency symbol

    Returns:
        Formatted currency string

    Example:
        >>> format_currency(1234567, 'IDR')
        'Rp 1.234.567'
        >>> format_currency(1234.5, 'USD', include_symbol=False)
        '1,234.50'
    """
    code = (currency or default_currency()).upper()
    decimals = DECIMALS.get(code, 2)
    formatted = f"{abs(amount):,.{decimals}f}"
    if code in DOT_GROUPED:
        formatted = formatted.replace(',', '_').replace('.', ',').replace('_', '.')
    if include_symbol:
        symbol = CURRENCY_SYMBOLS.get(code, code)
        formatted = f"{symbol} {formatted}" if symbol.isalpha() else f"{symbol}{formatted}"
    return f"-{formatted}" if amount < 0 else formatted


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def escape_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown does not treat them as LaTeX.

    Example:
        >>> escape_for_markdown('$1,234.56')
        '\\\\$1,234.56'
    """
    return text.replace("$", "\\$")
