"""
Ingredient name normalisation and fuzzy matching.

``normalise_ingredient_name`` produces the exact matching key used across
inventory, recipes and shopping lists. Fuzzy matching (RapidFuzz) is never
used to merge ingredients; it only powers "did you mean" hints when an exact
key finds nothing.
"""

from rapidfuzz import fuzz, process


# Plurals the suffix rules below would get wrong
IRREGULAR_PLURALS: dict[str, str] = {
    "leaves": "leaf",
    "loaves": "loaf",
    "halves": "half",
    "knives": "knife",
    "geese": "goose",
}

# Singulars ending in "e" whose plural only adds "s"; the "ies", "oes" and
# "ches" rules would otherwise cut the "e" as well
E_STEMS: frozenset[str] = frozenset(
    {
        "brioche",
        "brownie",
        "calorie",
        "cloche",
        "cookie",
        "ganache",
        "hoagie",
        "quiche",
        "shoe",
        "sloe",
        "smoothie",
        "toe",
        "veggie",
    }
)

# Words ending in "s" that are not plurals
INVARIANT_WORDS: frozenset[str] = frozenset(
    {
        "asparagus",
        "couscous",
        "citrus",
        "grits",
        "hummus",
        "molasses",
        "series",
        "species",
        "swiss",
        "tapas",
    }
)

_ES_SUFFIXES = ("oes", "ches", "shes", "xes", "zes", "sses")
_KEEP_SUFFIXES = ("ss", "us", "is")
_MIN_SINGULARISE_LENGTH = 4


def singularise(word: str) -> str:
    """
    Conservatively strip a plural suffix from a single lower-case word.

    The rules only fire on unambiguous endings, so unrelated words are
    never merged ("bus" stays "bus", "glass" stays "glass"). The result is
    stable: singularising it again returns it unchanged.

    Example:
        >>> singularise("tomatoes")
        'tomato'
        >>> singularise("berries")
        'berry'
        >>> singularise("bus")
        'bus'
    """
    if word in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[word]

    if len(word) < _MIN_SINGULARISE_LENGTH or word in INVARIANT_WORDS:
        return word

    if word.endswith("s") and word[:-1] in E_STEMS:
        return word[:-1]

    if word.endswith("ies") and len(word) > _MIN_SINGULARISE_LENGTH:
        return word[:-3] + "y"

    if word.endswith(_ES_SUFFIXES):
        return word[:-2]

    if word.endswith(_KEEP_SUFFIXES):
        return word

    if word.endswith("s"):
        return word[:-1]

    return word


def normalise_ingredient_name(name: str) -> str:
    """
    Normalise an ingredient name to its matching key.

    Case-folds, trims, collapses internal whitespace and singularises the
    final word ("Green  Onions " -> "green onion"). Idempotent.

    Args:
        name: Raw ingredient text

    Returns:
        Canonical matching key (empty string for blank input)

    Example:
        >>> normalise_ingredient_name("  Cherry TOMATOES ")
        'cherry tomato'
    """
    words = name.casefold().split()
    if not words:
        return ""

    words[-1] = singularise(words[-1])
    return " ".join(words)


def names_match(first: str, second: str) -> bool:
    """Check whether two raw names normalise to the same key."""
    return normalise_ingredient_name(first) == normalise_ingredient_name(second)


def match_string(
    query: str,
    candidates: list[str],
    threshold: float = 0.7,
    limit: int = 5,
) -> list[tuple[str, float]]:
    """
    Match a query string against candidates using fuzzy matching.

    Uses token_sort_ratio, which tolerates word order ("onion, red" vs
    "red onion").

    Args:
        query: The string to search for
        candidates: List of strings to match against
        threshold: Minimum match score (0.0 to 1.0), default 0.7
        limit: Maximum number of results to return

    Returns:
        List of (match, confidence) tuples above threshold, sorted by confidence
    """
    if not candidates:
        return []

    if not query or not query.strip():
        return []

    results = process.extract(
        query,
        candidates,
        scorer=fuzz.token_sort_ratio,
        limit=limit,
    )

    # Convert scores from 0-100 to 0-1 and filter by threshold
    return [
        (match, score / 100)
        for match, score, _ in results
        if score / 100 >= threshold
    ]


def best_match(
    query: str,
    candidates: list[str],
    threshold: float = 0.7,
) -> tuple[str, float] | None:
    """
    Get the single best match above threshold.

    Returns:
        (match, confidence) tuple or None if no match above threshold
    """
    matches = match_string(query, candidates, threshold, limit=1)
    return matches[0] if matches else None


def suggest_names(
    query: str,
    candidates: list[str],
    threshold: float = 0.8,
    limit: int = 3,
) -> list[str]:
    """
    Suggest known ingredient keys close to a name that matched nothing.

    The query is normalised first and the exact key itself is never
    suggested, so the result only contains genuine alternatives.
    """
    key = normalise_ingredient_name(query)
    if not key:
        return []

    unique = [c for c in dict.fromkeys(candidates) if c != key]
    return [name for name, _ in match_string(key, unique, threshold, limit)]
