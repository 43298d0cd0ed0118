"""Keyword rules for single words and whole descriptions.

A word is resolved by four tiers, strongest first: learned mappings,
exact keyword, substring keyword, fuzzy keyword. A description is resolved
tier by tier across all of its words, so an exact hit on the last word
beats a substring hit on the first.
"""

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from duit_assistant.classifiers.fuzzy import DEFAULT_THRESHOLD, find_best_match
from duit_assistant.classifiers.memory import MappingStore
from duit_assistant.models import Category

MIN_PARTIAL_LENGTH = 3

# Insertion order is the tie-break for substring matches; keep groups stable.
DEFAULT_KEYWORDS: Mapping[str, Category] = MappingProxyType({
    # Food
    "bakso": Category.FOOD,
    "mie": Category.FOOD,
    "nasi": Category.FOOD,
    "kopi": Category.FOOD,
    "gofood": Category.FOOD,
    "grabfood": Category.FOOD,
    "makan": Category.FOOD,
    "ayam": Category.FOOD,
    "sate": Category.FOOD,
    "soto": Category.FOOD,
    "warung": Category.FOOD,
    "resto": Category.FOOD,
    "restaurant": Category.FOOD,
    "cafe": Category.FOOD,
    "starbucks": Category.FOOD,
    "mcdonalds": Category.FOOD,
    "kfc": Category.FOOD,
    "pizza": Category.FOOD,
    "burger": Category.FOOD,
    "indomie": Category.FOOD,
    "snack": Category.FOOD,

    # Transport
    "grab": Category.TRANSPORT,
    "gojek": Category.TRANSPORT,
    "bensin": Category.TRANSPORT,
    "parkir": Category.TRANSPORT,
    "tol": Category.TRANSPORT,
    "ojol": Category.TRANSPORT,
    "ojek": Category.TRANSPORT,
    "taxi": Category.TRANSPORT,
    "taksi": Category.TRANSPORT,
    "bus": Category.TRANSPORT,
    "kereta": Category.TRANSPORT,
    "mrt": Category.TRANSPORT,
    "lrt": Category.TRANSPORT,
    "transjakarta": Category.TRANSPORT,
    "angkot": Category.TRANSPORT,
    "bbm": Category.TRANSPORT,
    "pertamina": Category.TRANSPORT,
    "shell": Category.TRANSPORT,

    # Bills
    "listrik": Category.BILLS,
    "pln": Category.BILLS,
    "wifi": Category.BILLS,
    "pulsa": Category.BILLS,
    "sewa": Category.BILLS,
    "kos": Category.BILLS,
    "kontrakan": Category.BILLS,
    "pdam": Category.BILLS,
    "air": Category.BILLS,
    "internet": Category.BILLS,
    "indihome": Category.BILLS,
    "biznet": Category.BILLS,
    "telkomsel": Category.BILLS,
    "xl": Category.BILLS,
    "indosat": Category.BILLS,
    "three": Category.BILLS,
    "tri": Category.BILLS,

    # Shopping
    "shopee": Category.SHOPPING,
    "tokopedia": Category.SHOPPING,
    "baju": Category.SHOPPING,
    "indomaret": Category.SHOPPING,
    "alfamart": Category.SHOPPING,
    "lazada": Category.SHOPPING,
    "bukalapak": Category.SHOPPING,
    "blibli": Category.SHOPPING,
    "zalora": Category.SHOPPING,
    "uniqlo": Category.SHOPPING,
    "hm": Category.SHOPPING,
    "zara": Category.SHOPPING,
    "sepatu": Category.SHOPPING,
    "celana": Category.SHOPPING,
    "kaos": Category.SHOPPING,
    "supermarket": Category.SHOPPING,
    "mall": Category.SHOPPING,

    # Entertainment
    "netflix": Category.ENTERTAINMENT,
    "spotify": Category.ENTERTAINMENT,
    "bioskop": Category.ENTERTAINMENT,
    "game": Category.ENTERTAINMENT,
    "cinema": Category.ENTERTAINMENT,
    "xxi": Category.ENTERTAINMENT,
    "cgv": Category.ENTERTAINMENT,
    "youtube": Category.ENTERTAINMENT,
    "disney": Category.ENTERTAINMENT,
    "steam": Category.ENTERTAINMENT,
    "playstation": Category.ENTERTAINMENT,
    "xbox": Category.ENTERTAINMENT,
    "nintendo": Category.ENTERTAINMENT,
    "konser": Category.ENTERTAINMENT,
    "tiket": Category.ENTERTAINMENT,

    # Income
    "gaji": Category.INCOME,
    "salary": Category.INCOME,
    "freelance": Category.INCOME,
    "bonus": Category.INCOME,
    "thr": Category.INCOME,
    "dividen": Category.INCOME,
    "bunga": Category.INCOME,
    "cashback": Category.INCOME,
    "refund": Category.INCOME,
    "transfer": Category.INCOME,
})


def split_words(description: str | None) -> list[str]:
    if not description:
        return []
    return description.lower().split()


# ── Single-word tiers ─────────────────────────────────


def match_learned(word: str, store: MappingStore) -> Category | None:
    mapping = store.get(word)
    return mapping.category if mapping else None


def match_exact(word: str) -> Category | None:
    return DEFAULT_KEYWORDS.get(word.lower())


def match_substring(word: str) -> Category | None:
    word = word.lower()
    if len(word) < MIN_PARTIAL_LENGTH:
        return None
    for keyword, category in DEFAULT_KEYWORDS.items():
        if len(keyword) < MIN_PARTIAL_LENGTH:
            continue
        if keyword in word or word in keyword:
            return category
    return None


def match_fuzzy(word: str, threshold: float = DEFAULT_THRESHOLD) -> Category | None:
    word = word.lower()
    if len(word) < MIN_PARTIAL_LENGTH:
        return None
    match = find_best_match(word, DEFAULT_KEYWORDS.keys(), threshold)
    return DEFAULT_KEYWORDS[match.candidate] if match else None


def categorize_word_sync(word: str, threshold: float = DEFAULT_THRESHOLD) -> Category | None:
    """Resolve one word against the keyword table only."""
    return match_exact(word) or match_substring(word) or match_fuzzy(word, threshold)


def categorize_word(
    word: str,
    store: MappingStore,
    threshold: float = DEFAULT_THRESHOLD,
) -> Category | None:
    return match_learned(word, store) or categorize_word_sync(word, threshold)


# ── Whole-description passes ─────────────────────────────────


def learned_pass(words: Sequence[str], store: MappingStore) -> Category | None:
    for word in words:
        category = match_learned(word, store)
        if category:
            return category
    return None


def exact_pass(words: Sequence[str]) -> Category | None:
    for word in words:
        category = match_exact(word)
        if category:
            return category
    return None


def substring_pass(words: Sequence[str]) -> Category | None:
    for word in words:
        category = match_substring(word)
        if category:
            return category
    return None


def fuzzy_pass(words: Sequence[str], threshold: float = DEFAULT_THRESHOLD) -> Category | None:
    for word in words:
        category = match_fuzzy(word, threshold)
        if category:
            return category
    return None


def categorize_from_defaults(
    description: str | None,
    threshold: float = DEFAULT_THRESHOLD,
) -> Category | None:
    """Categorize a description from the keyword table alone, without learned mappings."""
    words = split_words(description)
    if not words:
        return None
    return exact_pass(words) or substring_pass(words) or fuzzy_pass(words, threshold)
