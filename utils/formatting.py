"""
Log and display formatting for dollar amounts and percentages.
"""


def format_currency(amount: float) -> str:
    """
    Format a dollar amount rounded to whole dollars.

    The sign goes before the symbol: -60000 -> "-$60,000".
    """
    rounded = round(amount or 0)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,}"


def format_percent(value: float, decimals: int = 1, signed: bool = False) -> str:
    """
    Format a percentage value.

    Args:
        value: Percentage, already scaled (12.0 means 12%).
        decimals: Number of decimal places.
        signed: Prefix positive values with "+".

    Returns:
        Formatted percentage string.
    """
    if signed:
        return f"{value:+.{decimals}f}%"
    return f"{value:.{decimals}f}%"
