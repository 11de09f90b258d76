"""Search, filter, sort and aggregate views over the book collection.

Everything here is a pure function of ``(collection, query)``. ``derive`` is
memoized on those values, so callers can ask for a view on every read without
storing it anywhere.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from models import Book

ALL_GENRES = "all"
SORT_KEYS = ("title", "author", "year", "copies")
DEFAULT_SORT = "title"
LOW_STOCK_THRESHOLD = 2


@dataclass(frozen=True)
class Query:
    search_term: str = ""
    genre_filter: str = ALL_GENRES
    sort_key: str = DEFAULT_SORT


@dataclass(frozen=True)
class Stats:
    total_titles: int
    total_copies: int
    distinct_genres: int
    low_stock_count: int


@dataclass(frozen=True)
class DerivedView:
    visible: Tuple[Book, ...]
    stats: Stats
    genres: Tuple[str, ...]
    active_filter_count: int


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def collation_key(value: Optional[str]) -> Tuple[str, str]:
    """Accent- and case-insensitive ordering key; lowercase sorts first on ties."""
    text = value or ""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text.swapcase()


def _copies(book: Book) -> int:
    return book.quantity or 0


def _year(book: Book) -> int:
    return book.published_year or 0


def _tiebreak(book: Book) -> Tuple[Tuple[str, str], str]:
    return collation_key(book.title), str(book.id)


SORTERS: Dict[str, Callable[[Book], Any]] = {
    "title": lambda book: (collation_key(book.title), str(book.id)),
    "author": lambda book: (collation_key(book.author), _tiebreak(book)),
    "year": lambda book: (-_year(book), _tiebreak(book)),
    "copies": lambda book: (-_copies(book), _tiebreak(book)),
}


def matches_term(book: Book, term: str) -> bool:
    """``term`` must already be trimmed and lower-cased."""
    for value in (book.title, book.author, book.isbn, book.genre):
        if term in (value or "").lower():
            return True
    return False


def filter_books(books: Iterable[Book], query: Query) -> List[Book]:
    result = list(books)
    term = query.search_term.strip().lower()
    if term:
        result = [book for book in result if matches_term(book, term)]
    if query.genre_filter != ALL_GENRES:
        result = [book for book in result if book.genre == query.genre_filter]
    return result


def sort_books(books: Iterable[Book], sort_key: str) -> List[Book]:
    key = SORTERS.get(sort_key, SORTERS[DEFAULT_SORT])
    return sorted(books, key=key)


def genre_options(books: Iterable[Book]) -> List[str]:
    unique = {book.genre for book in books if book.genre}
    return sorted(unique, key=collation_key)


def compute_stats(books: Iterable[Book]) -> Stats:
    books = list(books)
    return Stats(
        total_titles=len(books),
        total_copies=sum(_copies(book) for book in books),
        distinct_genres=len({book.genre for book in books if book.genre}),
        low_stock_count=sum(1 for book in books if _copies(book) <= LOW_STOCK_THRESHOLD),
    )


def active_filter_count(query: Query) -> int:
    return (
        (1 if query.search_term.strip() else 0)
        + (1 if query.genre_filter != ALL_GENRES else 0)
        + (1 if query.sort_key else 0)
    )


# -----------------------------------------------------------------------------
# Derivation
# -----------------------------------------------------------------------------


@lru_cache(maxsize=64)
def _derive(collection: Tuple[Book, ...], query: Query) -> DerivedView:
    visible = sort_books(filter_books(collection, query), query.sort_key)
    return DerivedView(
        visible=tuple(visible),
        stats=compute_stats(collection),
        genres=tuple(genre_options(collection)),
        active_filter_count=active_filter_count(query),
    )


def derive(collection: Iterable[Book], query: Optional[Query] = None) -> DerivedView:
    """Produce the visible, ordered subset plus stats over the full collection."""
    return _derive(tuple(collection), query or Query())


def clear_cache() -> None:
    _derive.cache_clear()
