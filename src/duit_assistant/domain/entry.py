import re

from duit_assistant.domain.amount import parse_amount
from duit_assistant.logger import get_logger
from duit_assistant.models import ParsedInput

logger = get_logger(__name__)

# Tried in order; the first extractor with any match supplies the amount.
AMOUNT_EXTRACTORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\d+[.,]?\d*\s*(?:jt|juta)", re.IGNORECASE),
    re.compile(r"\d+[.,]?\d*\s*(?:rb|ribu|k)", re.IGNORECASE),
    re.compile(r"\d{1,3}(?:[.,]\d{3})+"),
    # At least two digits so stray single digits in words stay in the description.
    re.compile(r"\b\d{2,}\b"),
)

_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = re.compile(r"^[,.\-:]+|[,.\-:]+$")


def find_amount_token(text: str) -> re.Match[str] | None:
    for pattern in AMOUNT_EXTRACTORS:
        match = pattern.search(text)
        if match:
            return match
    return None


def clean_description(text: str, match: re.Match[str]) -> str:
    """Cut the matched span out of ``text`` and tidy what is left."""
    description = (text[:match.start()] + text[match.end():]).strip()
    description = _WHITESPACE.sub(" ", description)
    description = _EDGE_PUNCTUATION.sub("", description)
    return description.strip()


def split_input(raw: str | None) -> ParsedInput | None:
    """Split a free-text entry such as ``"bakso 15rb"`` into description and amount.

    The amount may sit anywhere in the text. Returns ``None`` when no amount
    is found, the amount is not positive, or nothing is left to describe it.
    """
    if not raw or not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    match = find_amount_token(text)
    if match is None:
        logger.debug("No amount found in '%s'.", text)
        return None

    token = match.group(0)
    amount = parse_amount(token)
    if amount is None or amount <= 0:
        logger.debug("Amount token '%s' in '%s' is not a positive number.", token, text)
        return None
    amount = round(amount)
    if amount <= 0:
        return None

    description = clean_description(text, match)
    if not description:
        logger.debug("Entry '%s' has no description besides the amount.", text)
        return None

    return ParsedInput(description=description, amount=amount)
