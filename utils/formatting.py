"""
Formatting utilities.

Amounts are shown the Spanish way: whole euros, "." as thousands
separator, symbol after the number ("245.000 €").
"""


def format_price(amount: float, currency: str = "EUR") -> str:
    """
    Format an amount as whole currency units.

    Args:
        amount: The amount in euros; decimals are rounded away.
        currency: Currency code (default EUR).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "EUR": "€",
        "GBP": "£",
        "USD": "$",
    }
    symbol = symbols.get(currency, currency)
    grouped = f"{int(round(amount)):,}".replace(",", ".")
    return f"{grouped} {symbol}"


def format_price_range(low: float, high: float, currency: str = "EUR") -> str:
    """Format a price range, e.g. "220.500 € - 269.500 €"."""
    return f"{format_price(low, currency)} - {format_price(high, currency)}"


def format_area(surface: float) -> str:
    return f"{int(round(surface))} m²"
