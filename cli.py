from __future__ import annotations

import dataclasses
import shlex
from typing import Callable, List, Optional

from config import configure_logging, get_settings
from errors import ValidationError
from filters import ALL_GENRES, SORT_KEYS, DerivedView, Query
from inventory import InventoryStore, build_store
from models import DRAFT_FIELDS, Book, DraftTemplate
from session import EditSession

HELP_TEXT = """Commands:
  list                      show the visible books and inventory stats
  search <term>             filter by title/author/isbn/genre substring
  genre <name|all>          filter by exact genre
  sort <title|author|year|copies>
  reset                     clear search, genre and sort
  genres                    list the genres in the collection
  new                       start a new book draft
  edit <id>                 load a book into the draft
  set <field> <value>       change a draft field ({fields})
  show                      print the current draft
  save                      submit the draft
  cancel                    discard the draft
  delete <id>               remove a book (asks for confirmation)
  reload                    fetch the collection again
  quit""".format(fields=", ".join(DRAFT_FIELDS))


def describe_book(book: Book, index: int) -> str:
    """Return a printable line for one inventory row."""
    year = book.published_year if book.published_year is not None else "n/a"
    genre = book.genre or "-"
    quantity = book.quantity or 0
    flag = "  [low stock]" if quantity <= 2 else ""
    return (
        f"{index}. [{book.id}] {book.title or 'Untitled'} by {book.author or 'Unknown author'}"
        f" | {genre} | {year} | copies: {quantity}{flag}"
    )


def render_view(view: DerivedView, query: Query) -> List[str]:
    stats = view.stats
    lines = [
        f"Titles: {stats.total_titles}  Copies: {stats.total_copies}  "
        f"Genres: {stats.distinct_genres}  Low stock: {stats.low_stock_count}",
        f"Search: '{query.search_term}'  Genre: {query.genre_filter}  Sort: {query.sort_key}  "
        f"(active filters: {view.active_filter_count})",
    ]
    if not view.visible:
        lines.append("No books match the current filters.")
    for idx, book in enumerate(view.visible, start=1):
        lines.append(describe_book(book, idx))
    return lines


class Console:
    """Command interpreter that drives the store and edit session."""

    def __init__(
        self,
        store: InventoryStore,
        session: EditSession,
        *,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        self.store = store
        self.session = session
        self.query = Query()
        self.input = input_fn
        self.output = output

    def handle(self, line: str) -> bool:
        """Run one command; returns False when the user asked to quit."""
        try:
            tokens = shlex.split(line)
        except ValueError:
            tokens = line.split()
        if not tokens:
            return True
        command, args = tokens[0].lower(), tokens[1:]

        if command in {"quit", "exit", "q"}:
            return False
        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            self.output(f"Unknown command '{command}'. Type 'help' for options.")
            return True
        handler(args)
        if self.store.last_error:
            self.output(f"Error: {self.store.last_error}")
        return True

    # ------------------------------------------------------------------ #
    # Browsing
    # ------------------------------------------------------------------ #
    def _cmd_help(self, _args: List[str]) -> None:
        self.output(HELP_TEXT)

    def _cmd_list(self, _args: List[str]) -> None:
        for line in render_view(self.store.view(self.query), self.query):
            self.output(line)

    def _cmd_search(self, args: List[str]) -> None:
        self.query = dataclasses.replace(self.query, search_term=" ".join(args))
        self._cmd_list(args)

    def _cmd_genre(self, args: List[str]) -> None:
        self.query = dataclasses.replace(self.query, genre_filter=" ".join(args) or ALL_GENRES)
        self._cmd_list(args)

    def _cmd_sort(self, args: List[str]) -> None:
        if len(args) != 1 or args[0] not in SORT_KEYS:
            self.output(f"Sort by one of: {', '.join(SORT_KEYS)}")
            return
        self.query = dataclasses.replace(self.query, sort_key=args[0])
        self._cmd_list(args)

    def _cmd_reset(self, args: List[str]) -> None:
        self.query = Query()
        self._cmd_list(args)

    def _cmd_genres(self, _args: List[str]) -> None:
        genres = self.store.view(self.query).genres
        self.output(", ".join(genres) if genres else "No genres yet.")

    def _cmd_reload(self, args: List[str]) -> None:
        if self.store.load():
            self._cmd_list(args)

    # ------------------------------------------------------------------ #
    # Editing
    # ------------------------------------------------------------------ #
    def _cmd_new(self, _args: List[str]) -> None:
        self.session.start_create()
        self._cmd_show([])

    def _cmd_cancel(self, _args: List[str]) -> None:
        self.session.reset()
        self.output("Draft cleared.")

    def _cmd_edit(self, args: List[str]) -> None:
        book = self._find(args)
        if book is None:
            return
        self.session.start_edit(book)
        self._cmd_show([])

    def _cmd_show(self, _args: List[str]) -> None:
        mode = "Editing" if self.session.is_editing else "New book"
        self.output(f"{mode}:")
        for name in DRAFT_FIELDS:
            self.output(f"   {name}: {getattr(self.session.draft, name)}")

    def _cmd_set(self, args: List[str]) -> None:
        if not args or args[0] not in DRAFT_FIELDS:
            self.output(f"Use 'set <field> <value>' with one of: {', '.join(DRAFT_FIELDS)}")
            return
        self.session.update_field(args[0], " ".join(args[1:]))

    def _cmd_save(self, _args: List[str]) -> None:
        try:
            saved = self.session.submit()
        except ValidationError as error:
            self.output(error.message)
            return
        if saved:
            self.output("Saved.")
            self._cmd_list([])

    def _cmd_delete(self, args: List[str]) -> None:
        book = self._find(args)
        if book is None:
            return
        confirm = self.input(f"Remove '{book.title}' from inventory? (y/n): ").strip().lower()
        if confirm not in {"y", "yes"}:
            self.output("Kept the book.")
            return
        if self.store.delete(book.id):
            self.output("Deleted.")

    def _find(self, args: List[str]) -> Optional[Book]:
        if len(args) != 1:
            self.output("Give the book id, e.g. 'edit 3'.")
            return None
        book = self.store.get(args[0])
        if book is None:
            self.output(f"No book with id {args[0]}.")
        return book


def interactive_session(store: Optional[InventoryStore] = None) -> None:
    """Run the interactive inventory console."""
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    store = store or build_store(settings)
    session = EditSession(store, DraftTemplate({"quantity": settings.default_quantity}))
    console = Console(store, session)

    print("\nBook inventory console. Type 'help' for commands.")
    store.load()
    console.handle("list")

    while True:
        try:
            line = input("\n> ")
        except EOFError:
            break
        if not console.handle(line):
            break

    print("\nSession complete.")


if __name__ == "__main__":
    interactive_session()
