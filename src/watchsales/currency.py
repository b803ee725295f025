CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "AUD": "A$",
    "CAD": "C$",
    "CHF": "CHF",
    "SEK": "kr",
    "NZD": "NZ$",
}


def symbol_for(code: str) -> str:
    """Display symbol for a currency code; unknown codes are returned unchanged."""
    if not code:
        return "USD"
    return CURRENCY_SYMBOLS.get(code, code)
