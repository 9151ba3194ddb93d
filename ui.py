# ui.py
from typing import Optional, Sequence, Tuple

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import (Button, DataTable, Input, Label, OptionList,
                             RichLog, Static)
from textual.widgets.option_list import Option

from models import FormFields, Item, MovieItem, MovieResult, SearchResult, ViewMode

EMPTY_TEXT = {
    ViewMode.MOVIES: "No movies or shows added yet",
    ViewMode.GAMES: "No games added yet",
}
PLACEHOLDER = {
    ViewMode.MOVIES: "Search for movies or shows...",
    ViewMode.GAMES: "Search for games...",
}
COLUMNS = {
    ViewMode.MOVIES: ("Title", "Release", "Director", "Genre"),
    ViewMode.GAMES: ("Title", "Release", "Developer", "Platform"),
}
FORM_FIELDS = ("title", "release_date", "director", "genre", "developer", "platform")


def describe_item(item: Item) -> str:
    """One line of the item's details, skipping empty fields."""
    parts = []
    if item.release_date:
        parts.append(f"Release: {item.release_date}")
    if isinstance(item, MovieItem):
        extra = (("Director", item.director), ("Genre", item.genre))
    else:
        extra = (("Developer", item.developer), ("Platform", item.platform))
    parts.extend(f"{label}: {value}" for label, value in extra if value)
    return "   ".join(parts)


def describe_result(result: SearchResult) -> str:
    detail = result.genre if isinstance(result, MovieResult) else result.platform
    return " • ".join(part for part in (result.release_date, detail) if part)


class ItemList(DataTable):
    """Widget for the active collection; columns follow the view mode."""
    BINDINGS = [
        Binding("x", "remove_item", "Remove"),
        Binding("delete", "remove_item", "Remove", show=False),
    ]

    class RemoveRequested(Message):
        def __init__(self, key: str) -> None:
            self.key = key
            super().__init__()

    highlighted_key: Optional[str] = None

    def on_mount(self) -> None:
        self.cursor_type = "row"

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self.highlighted_key = event.row_key.value

    def action_remove_item(self) -> None:
        if self.highlighted_key is not None:
            self.post_message(self.RemoveRequested(self.highlighted_key))

    def update_items(self, mode: ViewMode, items: Sequence[Item]) -> None:
        self.clear(columns=True)
        self.add_columns(*COLUMNS[mode])
        self.highlighted_key = None
        for item in items:
            if isinstance(item, MovieItem):
                extra = (item.director, item.genre)
            else:
                extra = (item.developer, item.platform)
            cells = (item.release_date,) + extra
            self.add_row(item.title, *(cell or "" for cell in cells), key=item.id)


class EmptyNotice(Static):
    """Shown in place of the list when the active collection is empty."""
    def show_for(self, mode: ViewMode, empty: bool) -> None:
        self.update(EMPTY_TEXT[mode])
        self.display = empty


class ResultsDropdown(OptionList):
    """Widget for the search hits shown above the search input."""
    shown_results: Tuple[SearchResult, ...] = ()

    def update_results(self, results: Sequence[SearchResult]) -> None:
        results = tuple(results)
        if results == self.shown_results:
            return
        self.shown_results = results
        self.clear_options()
        self.add_options([
            Option(Text.assemble(r.title, "\n", (describe_result(r), "dim")), id=str(i))
            for i, r in enumerate(results)
        ])
        self.display = bool(results)


class SearchBar(Vertical):
    """Widget for the search input, the results dropdown and the loading indicator."""
    class QueryChanged(Message):
        def __init__(self, query: str) -> None:
            self.query = query
            super().__init__()

    class ResultChosen(Message):
        def __init__(self, index: int) -> None:
            self.index = index
            super().__init__()

    def compose(self) -> ComposeResult:
        yield ResultsDropdown(id="results-dropdown")
        yield Label("Searching...", id="searching")
        yield Input(placeholder=PLACEHOLDER[ViewMode.MOVIES], id="search-input")

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.QueryChanged(event.value))

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.post_message(self.ResultChosen(event.option_index))

    def clear_query(self) -> None:
        """Empties the input without reporting it as a keystroke."""
        search_input = self.query_one(Input)
        with search_input.prevent(Input.Changed):
            search_input.value = ""

    def update_search(self, mode: ViewMode, results: Sequence[SearchResult],
                      is_searching: bool) -> None:
        # The input owns the typed text; it is never written back from state.
        self.query_one(Input).placeholder = PLACEHOLDER[mode]
        self.query_one("#searching", Label).display = is_searching
        self.query_one(ResultsDropdown).update_results(results)


class SideMenu(Vertical):
    """Widget for the slide-out menu."""
    class ActionChosen(Message):
        def __init__(self, action: str) -> None:
            self.action = action
            super().__init__()

    def compose(self) -> ComposeResult:
        yield Button("Settings", id="menu-settings")
        yield Button("Profile", id="menu-profile")
        yield Button("Subscriptions", id="menu-subscriptions")
        yield Button("Light Mode", id="menu-theme")
        yield Static("i am watching © 2025 PRISM PODCAST", id="menu-footer")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.post_message(self.ActionChosen(event.button.id.removeprefix("menu-")))

    def update_menu(self, open_: bool, dark_mode: bool) -> None:
        self.display = open_
        self.query_one("#menu-theme", Button).label = "Light Mode" if dark_mode else "Dark Mode"


class AddItemScreen(ModalScreen):
    """The add-item form; fields depend on the view mode."""
    BINDINGS = [("escape", "cancel", "Cancel")]

    class FormChanged(Message):
        def __init__(self, field_name: str, value: str) -> None:
            self.field_name = field_name
            self.value = value
            super().__init__()

    class Submitted(Message):
        pass

    class Cancelled(Message):
        pass

    def __init__(self, mode: ViewMode, form: FormFields) -> None:
        super().__init__()
        self.mode = mode
        self.form = form

    def compose(self) -> ComposeResult:
        with Vertical(id="add-dialog"):
            yield Label("", id="add-heading")
            yield Label("Title*")
            yield Input(self.form.title, placeholder="Enter title", id="title")
            yield Label("Release Date")
            yield Input(self.form.release_date, placeholder="e.g., 2024", id="release_date")
            with Vertical(id="movie-fields"):
                yield Label("Director")
                yield Input(self.form.director, placeholder="Enter director", id="director")
                yield Label("Genre")
                yield Input(self.form.genre, placeholder="Enter genre", id="genre")
            with Vertical(id="game-fields"):
                yield Label("Developer")
                yield Input(self.form.developer, placeholder="Enter developer", id="developer")
                yield Label("Platform")
                yield Input(self.form.platform, placeholder="Enter platform", id="platform")
            with Horizontal(id="add-buttons"):
                yield Button("Cancel", id="cancel")
                yield Button("Add", variant="primary", id="add")

    def on_mount(self) -> None:
        self.show_mode(self.mode)
        self.query_one("#title", Input).focus()

    def show_mode(self, mode: ViewMode) -> None:
        self.mode = mode
        heading = "Add Movie/Show" if mode is ViewMode.MOVIES else "Add Game"
        self.query_one("#add-heading", Label).update(heading)
        self.query_one("#movie-fields").display = mode is ViewMode.MOVIES
        self.query_one("#game-fields").display = mode is ViewMode.GAMES

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        if event.input.id in FORM_FIELDS:
            self.post_message(self.FormChanged(event.input.id, event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.post_message(self.Submitted())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "add":
            self.post_message(self.Submitted())
        else:
            self.action_cancel()

    def action_cancel(self) -> None:
        self.post_message(self.Cancelled())


class LogPane(RichLog):
    """A dedicated widget for logging application events."""
    def add_message(self, message: str) -> None:
        self.write(message)
