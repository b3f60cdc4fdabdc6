"""
Currency-amount parsing for price text.

A price token is a currency marker followed by digits with optional "," or
"." separators, e.g. "MXN 1,234", "MXN$ 980", "$1.250,50", "EUR 99.90".

Numeric locale rules used by PriceToken.amount():
- no separator: integer amount
- both "," and ".": the right-most one is the decimal separator
- a single kind of separator followed by exactly three digits in every
  group is ambiguous ("1,234" may be 1234 or 1.234) and yields None
- a single separator followed by one or two digits is a decimal separator
The raw token is always preserved; callers that need a number must handle
None.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

# Marker as it appears on the page -> ISO code
CURRENCY_SYMBOLS: Dict[str, str] = {
    "MXN$": "MXN",
    "MXN": "MXN",
    "USD": "USD",
    "EUR": "EUR",
    "$": "$",
}

PRICE_RE = re.compile(r"(MXN\s*\$?|\$|USD|EUR)\s*([\d.,]*\d)")


@dataclass(frozen=True)
class PriceToken:
    raw: str
    currency_raw: str
    currency: str
    amount_text: str

    def amount(self) -> Optional[Decimal]:
        """Numeric value, or None when separators are ambiguous."""
        return parse_amount(self.amount_text)


def find_price(text: Optional[str]) -> Optional[PriceToken]:
    """
    First price token in text.

    Example:
        >>> find_price("Only 2 left  MXN 1,234 per night").raw
        'MXN 1,234'
        >>> find_price("Sold out") is None
        True
    """
    if not text:
        return None
    m = PRICE_RE.search(text)
    if not m:
        return None
    marker = re.sub(r"\s+", "", m.group(1))
    return PriceToken(
        raw=m.group(0).strip(),
        currency_raw=m.group(1).strip(),
        currency=CURRENCY_SYMBOLS.get(marker, marker),
        amount_text=m.group(2),
    )


def parse_amount(amount_text: str) -> Optional[Decimal]:
    """
    Apply the locale rules in the module docstring.

    Example:
        >>> parse_amount("1,234.50")
        Decimal('1234.50')
        >>> parse_amount("1.234,50")
        Decimal('1234.50')
        >>> parse_amount("1,234") is None
        True
    """
    text = (amount_text or "").strip()
    if not text:
        return None

    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        decimal_sep = "," if text.rfind(",") > text.rfind(".") else "."
        group_sep = "." if decimal_sep == "," else ","
        normalized = text.replace(group_sep, "").replace(decimal_sep, ".")
    elif has_comma or has_dot:
        sep = "," if has_comma else "."
        groups = text.split(sep)
        tail = groups[-1]
        if len(groups) == 2 and len(tail) in (1, 2):
            normalized = groups[0] + "." + tail
        else:
            # "1,234" or "1.234.567": grouping vs decimal is undecidable
            return None
    else:
        normalized = text

    try:
        return Decimal(normalized)
    except InvalidOperation:
        return None
