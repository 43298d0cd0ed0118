"""Indonesian shorthand amount notation.

Handles magnitude suffixes (``15rb``, ``15ribu``, ``15k``, ``1.5jt``,
``1,5juta``), grouped thousands (``15.000``, ``1,500,000``), plain digits
and short decimals (``15.5``). In Indonesian notation both ``.`` and ``,``
group thousands, so a separator followed by exactly three digits is read
as grouping before it is ever read as a decimal point.
"""

import re

MILLION_PATTERN = re.compile(r"(\d+)(?:[.,](\d+))?\s*(?:jt|juta)")
THOUSAND_PATTERN = re.compile(r"(\d+)(?:[.,](\d+))?\s*(?:rb|ribu|k)")
GROUPED_PATTERN = re.compile(r"\d{1,3}(?:[.,]\d{3})+")
PLAIN_PATTERN = re.compile(r"\d+")
DECIMAL_PATTERN = re.compile(r"(\d+)[.,](\d+)")

_SEPARATORS = re.compile(r"[.,]")


def _scale(whole: str, fraction: str | None, multiplier: int) -> int:
    """Return ``whole.fraction * multiplier`` rounded half-up, without floats."""
    if not fraction:
        return int(whole) * multiplier
    denominator = 10 ** len(fraction)
    numerator = (int(whole) * denominator + int(fraction)) * multiplier
    quotient, remainder = divmod(numerator, denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return quotient


def _strip_separators(token: str) -> int:
    return int(_SEPARATORS.sub("", token))


def parse_amount(token: str | None) -> int | float | None:
    """Parse a single amount token into Rupiah.

    Returns ``None`` when the token is empty or not numeric. The whole token
    must match one grammar; partial matches are rejected. Only a short
    decimal such as ``15.5`` yields a float.
    """
    if not token or not isinstance(token, str):
        return None

    cleaned = token.strip().lower()
    if not cleaned:
        return None

    match = MILLION_PATTERN.fullmatch(cleaned)
    if match:
        return _scale(match.group(1), match.group(2), 1_000_000)

    match = THOUSAND_PATTERN.fullmatch(cleaned)
    if match:
        return _scale(match.group(1), match.group(2), 1_000)

    if GROUPED_PATTERN.fullmatch(cleaned):
        return _strip_separators(cleaned)

    if PLAIN_PATTERN.fullmatch(cleaned):
        return int(cleaned)

    match = DECIMAL_PATTERN.fullmatch(cleaned)
    if match:
        if len(match.group(2)) < 3:
            return float(cleaned.replace(",", "."))
        # Three or more digits after the separator: a mistyped group separator.
        return _strip_separators(cleaned)

    return None
