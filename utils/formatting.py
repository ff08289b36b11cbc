"""
Formatting utilities.
"""


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Format an amount as currency.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "USD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{amount:,.0f}"


def format_match_count(count: int, noun: str = "match", plural: str = "matches") -> str:
    """
    Badge text for a match count, e.g. "12 matches" or "1 match".
    """
    return f"{count} {noun if count == 1 else plural}"


def format_remainder(total: int, shown: int, noun: str = "property", plural: str = "properties") -> str:
    """
    Trailer for a truncated preview, e.g. "And 3 more properties...".

    Returns an empty string when nothing was held back.
    """
    remaining = total - shown
    if remaining <= 0:
        return ""
    return f"And {remaining} more {noun if remaining == 1 else plural}..."
