from __future__ import annotations

import unittest

from filters import (
    Query,
    active_filter_count,
    clear_cache,
    collation_key,
    compute_stats,
    derive,
    genre_options,
)
from models import Book


def _book(book_id: int, title: str, author: str, **extra: object) -> Book:
    return Book(id=book_id, title=title, author=author, **extra)  # type: ignore[arg-type]


DUNE = _book(1, "Dune", "Herbert", genre="SciFi", quantity=1)
EMMA = _book(2, "Emma", "Austen", genre="Classic", quantity=5)


def _shelf() -> list[Book]:
    return [
        _book(1, "Dune", "Frank Herbert", genre="SciFi", quantity=1, published_year=1965),
        _book(2, "Emma", "Jane Austen", genre="Classic", quantity=5, published_year=1815),
        _book(3, "Éclair Recipes", "Zoe Baker", genre="cooking", quantity=3, isbn="978-0-00-1"),
        _book(4, "anathem", "Neal Stephenson", genre="SciFi", quantity=None),
        _book(5, "Beloved", "Toni Morrison", genre="", quantity=2, published_year=1987),
    ]


def _titles(books) -> list[str]:
    return [book.title for book in books]


def test_copies_sort_and_stats_scenario() -> None:
    view = derive([DUNE, EMMA], Query(search_term="", genre_filter="all", sort_key="copies"))

    assert _titles(view.visible) == ["Emma", "Dune"]
    assert view.stats.total_titles == 2
    assert view.stats.total_copies == 6
    assert view.stats.distinct_genres == 2
    assert view.stats.low_stock_count == 1


def test_search_matches_author_substring() -> None:
    view = derive([DUNE, EMMA], Query(search_term="aus"))
    assert _titles(view.visible) == ["Emma"]


def test_search_is_trimmed_and_case_insensitive_across_fields() -> None:
    books = _shelf()
    assert _titles(derive(books, Query(search_term="  SCIFI ")).visible) == ["anathem", "Dune"]
    assert _titles(derive(books, Query(search_term="978-0")).visible) == ["Éclair Recipes"]
    assert derive(books, Query(search_term="nothing-like-this")).visible == ()


def test_blank_search_keeps_everything() -> None:
    books = _shelf()
    assert len(derive(books, Query(search_term="   ")).visible) == len(books)


def test_genre_filter_is_exact_and_combines_with_search() -> None:
    books = _shelf()
    assert _titles(derive(books, Query(genre_filter="SciFi")).visible) == ["anathem", "Dune"]
    assert derive(books, Query(genre_filter="scifi")).visible == ()
    assert _titles(derive(books, Query(search_term="dune", genre_filter="SciFi")).visible) == ["Dune"]
    assert derive(books, Query(search_term="emma", genre_filter="SciFi")).visible == ()


def test_title_sort_ignores_case_and_accents() -> None:
    view = derive(_shelf(), Query(sort_key="title"))
    assert _titles(view.visible) == ["anathem", "Beloved", "Dune", "Éclair Recipes", "Emma"]


def test_author_sort_ascending() -> None:
    view = derive(_shelf(), Query(sort_key="author"))
    assert [book.author for book in view.visible] == [
        "Frank Herbert",
        "Jane Austen",
        "Neal Stephenson",
        "Toni Morrison",
        "Zoe Baker",
    ]


def test_year_sort_descending_with_missing_last() -> None:
    view = derive(_shelf(), Query(sort_key="year"))
    assert _titles(view.visible) == ["Beloved", "Dune", "Emma", "anathem", "Éclair Recipes"]


def test_copies_sort_treats_missing_quantity_as_zero() -> None:
    view = derive(_shelf(), Query(sort_key="copies"))
    assert _titles(view.visible) == ["Emma", "Éclair Recipes", "Beloved", "Dune", "anathem"]


def test_unknown_sort_key_falls_back_to_title() -> None:
    assert derive(_shelf(), Query(sort_key="rating")).visible == derive(_shelf(), Query()).visible


def test_order_does_not_depend_on_input_order() -> None:
    books = _shelf() + [_book(6, "Dune", "Brian Herbert", quantity=1)]
    for sort_key in ("title", "author", "year", "copies"):
        forward = derive(books, Query(sort_key=sort_key)).visible
        backward = derive(list(reversed(books)), Query(sort_key=sort_key)).visible
        assert forward == backward


def test_visible_is_subset_and_input_untouched() -> None:
    books = _shelf()
    snapshot = list(books)
    view = derive(books, Query(search_term="e", sort_key="copies"))
    assert set(view.visible) <= set(books)
    assert books == snapshot


def test_stats_ignore_the_query() -> None:
    books = _shelf()
    unfiltered = derive(books, Query()).stats
    for query in (Query(search_term="dune"), Query(genre_filter="Classic"), Query(sort_key="year")):
        assert derive(books, query).stats == unfiltered
    assert unfiltered.total_titles == 5
    assert unfiltered.total_copies == 11
    assert unfiltered.distinct_genres == 3
    assert unfiltered.low_stock_count == 3


def test_derive_is_repeatable() -> None:
    books = _shelf()
    query = Query(search_term="e", genre_filter="SciFi", sort_key="year")
    first = derive(books, query)
    clear_cache()
    second = derive(tuple(books), query)
    assert first == second
    assert derive(books, query) is derive(books, query)


def test_empty_collection() -> None:
    view = derive([], Query(search_term="x"))
    assert view.visible == ()
    assert view.genres == ()
    assert view.stats.total_titles == 0
    assert view.stats.total_copies == 0


class GenreAndFilterCountTests(unittest.TestCase):
    def test_genre_options_sorted_unique_non_empty(self) -> None:
        self.assertEqual(genre_options(_shelf()), ["Classic", "cooking", "SciFi"])

    def test_genres_are_case_sensitive_in_stats(self) -> None:
        books = [
            _book(1, "A", "X", genre="Poetry"),
            _book(2, "B", "Y", genre="poetry"),
        ]
        self.assertEqual(compute_stats(books).distinct_genres, 2)

    def test_active_filter_count_adds_independent_flags(self) -> None:
        self.assertEqual(active_filter_count(Query()), 1)
        self.assertEqual(active_filter_count(Query(search_term="  ")), 1)
        self.assertEqual(active_filter_count(Query(search_term="dune", genre_filter="SciFi")), 3)
        self.assertEqual(active_filter_count(Query(genre_filter="SciFi", sort_key="")), 1)

    def test_collation_key_orders_accented_next_to_plain(self) -> None:
        words = ["Zebra", "école", "apple", "Eagle"]
        self.assertEqual(sorted(words, key=collation_key), ["apple", "Eagle", "école", "Zebra"])

    def test_collation_key_puts_lowercase_first_on_ties(self) -> None:
        self.assertEqual(sorted(["Apple", "apple", "APPLE"], key=collation_key), ["apple", "Apple", "APPLE"])


def test_derive_accepts_unhashable_ids() -> None:
    books = [
        Book.from_json({"id": {"$oid": "b2"}, "title": "Emma", "author": "Austen", "quantity": 5}),
        Book.from_json({"id": ["a", 1], "title": "Dune", "author": "Herbert", "quantity": 1}),
    ]
    view = derive(books, Query(sort_key="copies"))
    assert _titles(view.visible) == ["Emma", "Dune"]
    assert view.visible[0].id == {"$oid": "b2"}
    assert derive(books, Query(sort_key="copies")) is view
