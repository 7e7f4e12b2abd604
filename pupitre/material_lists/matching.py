"""
Text normalization and deterministic matching.

Shared by the availability reconciler (catalog lookups) and the
cross-list search. Pure functions, no I/O.

Catalog candidate scoring:
| Rule                                                  | Score |
|-------------------------------------------------------|-------|
| normalized names equal                                | 100   |
| candidate contains query                              | 80    |
| query contains candidate                              | 60    |
| >=2 significant tokens, all present                   | 50    |
| >2 significant tokens, >=70% present                  | 40    |
| <=2 significant tokens, all present, each >=4 chars   | 40    |

Candidates under the threshold (40) are discarded; the first candidate
with the highest score wins.
"""

import re
import unicodedata
from typing import Any, Iterable, Optional

from .config import MatchSettings


_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Any) -> str:
    """
    Lowercase, strip diacritics and collapse whitespace.

    "  Cuaderno  Matemáticas " -> "cuaderno matematicas"
    """
    if text is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped).strip()


def tokenize(
    text: Any,
    min_length: int = 1,
    stop_words: Iterable[str] = (),
) -> list[str]:
    """Split normalized text on whitespace, dropping short and stop words."""
    stop = set(stop_words)
    return [
        token for token in normalize_text(text).split(" ")
        if len(token) >= min_length and token not in stop
    ]


def digits_only(value: Any) -> str:
    """Keep only the digits of an ISBN-like value."""
    if value is None:
        return ""
    return "".join(ch for ch in str(value) if ch.isdigit())


def catalog_entry_matches(
    query_name: Any,
    candidate_name: Any,
    query_isbn: Any = None,
    candidate_isbn: Any = None,
    settings: Optional[MatchSettings] = None,
) -> bool:
    """
    Decide whether an internal catalog entry matches a list item.

    An ISBN with enough digits is matched by digit containment only.
    Otherwise names match when one contains the other, or, for
    multi-token queries, when min(tokens, 2) tokens are present.
    """
    s = settings or MatchSettings()

    isbn = digits_only(query_isbn)
    if len(isbn) >= s.isbn_min_digits:
        candidate_digits = digits_only(candidate_isbn)
        return bool(candidate_digits) and isbn in candidate_digits

    query = normalize_text(query_name)
    candidate = normalize_text(candidate_name)
    if not query or not candidate:
        return False
    if query in candidate or candidate in query:
        return True

    tokens = tokenize(query, min_length=s.min_token_length)
    if len(tokens) >= 2:
        present = sum(1 for token in tokens if token in candidate)
        return present >= min(len(tokens), 2)
    return False


def score_candidate(
    query_name: Any,
    candidate_name: Any,
    settings: Optional[MatchSettings] = None,
) -> int:
    """Score how well a catalog product name matches the searched name."""
    s = settings or MatchSettings()

    query = normalize_text(query_name)
    candidate = normalize_text(candidate_name)
    if not query or not candidate:
        return 0

    if query == candidate:
        return 100
    if query in candidate:
        return 80
    if candidate in query:
        return 60

    tokens = tokenize(query, min_length=s.min_token_length, stop_words=s.stop_words)
    if not tokens:
        return 0
    present = [token for token in tokens if token in candidate]

    if len(present) == len(tokens) and len(tokens) >= 2:
        return 50
    if len(present) >= 2 and len(tokens) > 2:
        if len(present) / len(tokens) >= s.partial_token_ratio:
            return 40
        return 0
    if len(tokens) <= 2 and len(present) == len(tokens):
        if all(len(token) >= s.short_token_min_length for token in tokens):
            return 40
    return 0


def best_catalog_match(
    query_name: Any,
    products: list[dict],
    settings: Optional[MatchSettings] = None,
    name_key: str = "name",
) -> Optional[dict]:
    """
    Pick the best product for a searched name.

    Args:
        query_name: Raw item name
        products: Catalog search results
        settings: Matching thresholds
        name_key: Key holding the product name

    Returns:
        Best product scoring at least the threshold, or None
    """
    s = settings or MatchSettings()
    if not normalize_text(query_name) or not products:
        return None

    best = None
    best_score = 0
    for product in products:
        name = (product.get(name_key) or "").strip()
        if not name:
            continue
        score = score_candidate(query_name, name, s)
        if score >= s.score_threshold and score > best_score:
            best = product
            best_score = score
    return best


def fields_match(values: Iterable[Any], normalized_query: str, tokens: list[str]) -> bool:
    """
    Free-text match over several fields.

    The full normalized query as a substring of any field wins; otherwise
    a multi-token query matches when every token appears in some field.
    """
    normalized = [normalize_text(v) for v in values if v]
    if not normalized_query:
        return False
    if any(normalized_query in value for value in normalized):
        return True
    if len(tokens) >= 2:
        return all(any(token in value for value in normalized) for token in tokens)
    return False
