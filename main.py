# main.py
import argparse
import asyncio
import logging
import sqlite3
import sys
from typing import Optional, Tuple
try:
    import pyperclip
except ImportError:
    pyperclip = None

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.logging import TextualHandler
from textual.widgets import Footer, Header, Input

from config import Config
from controller import SearchTicket, TrackerController
from models import AppState, Item, ViewMode
from services import (CatalogSearchClient, KeyValueStore, LibraryStore, StoreError,
                      detect_system_dark)
from ui import (AddItemScreen, EmptyNotice, ItemList, LogPane, SearchBar, SideMenu,
                describe_item)

logger = logging.getLogger(__name__)

class TrackerApp(App):
    BINDINGS = [
        ("ctrl+t", "toggle_view_mode", "Movies/Games"),
        ("ctrl+n", "add_item", "Add manually"),
        ("ctrl+b", "toggle_menu", "Menu"),
        ("f3", "toggle_theme", "Toggle dark mode"),
        ("ctrl+y", "copy_item", "Copy"),
        ("ctrl+q", "quit", "Quit"),
    ]
    CSS_PATH = "tracker.tcss"
    TITLE = "i am watching"

    def __init__(self, store: LibraryStore, search_client: CatalogSearchClient, config: Config,
                 default_dark: bool = True):
        super().__init__()
        self.search_client = search_client
        self.config = config
        self.controller = TrackerController(store, config, schedule=self.set_timer,
                                            launch_search=self.launch_search,
                                            default_dark=default_dark)
        self._shown_items: Optional[Tuple[ViewMode, Tuple[Item, ...]]] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield SideMenu(id="side-menu")
        with Container(id="main-container"):
            yield EmptyNotice(id="empty-notice")
            yield ItemList(id="item-list")
            yield LogPane(id="log", wrap=True, highlight=True, markup=True)
            yield SearchBar(id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.item_list = self.query_one(ItemList)
        self.empty_notice = self.query_one(EmptyNotice)
        self.search_bar = self.query_one(SearchBar)
        self.side_menu = self.query_one(SideMenu)
        self.log_pane = self.query_one(LogPane)
        state = self.controller.state
        self.log_pane.add_message(
            f"💿 Loaded {len(state.movies)} movies/shows and {len(state.games)} games.")
        if not pyperclip:
            self.log_pane.add_message("[yellow]⚠️ 'pyperclip' not installed.[/yellow]")
        self.controller.subscribe(self.render_state)
        self.render_state(state)
        self.search_bar.query_one(Input).focus()

    def render_state(self, state: AppState) -> None:
        """Pushes every controller state change out to the widgets."""
        self.theme = "textual-dark" if state.dark_mode else "textual-light"
        self.sub_title = "Movies & Shows" if state.view_mode is ViewMode.MOVIES else "Games"
        shown = (state.view_mode, state.items)
        if shown != self._shown_items:
            self._shown_items = shown
            self.item_list.update_items(state.view_mode, state.items)
            self.empty_notice.show_for(state.view_mode, not state.items)
        self.search_bar.update_search(state.view_mode, state.results, state.is_searching)
        self.side_menu.update_menu(state.menu_open, state.dark_mode)
        self.sync_modal(state)

    def sync_modal(self, state: AppState) -> None:
        modal_shown = isinstance(self.screen, AddItemScreen)
        if state.modal_open and modal_shown:
            self.screen.show_mode(state.view_mode)
        elif state.modal_open:
            self.push_screen(AddItemScreen(state.view_mode, state.form))
        elif modal_shown:
            self.pop_screen()
            self.search_bar.query_one(Input).focus()

    # --- Actions ---
    def action_toggle_view_mode(self) -> None:
        self.controller.toggle_view_mode()

    def action_add_item(self) -> None:
        if not self.controller.state.modal_open:
            self.controller.open_form()

    def action_toggle_menu(self) -> None:
        self.controller.toggle_menu()

    def action_toggle_theme(self) -> None:
        self.controller.toggle_theme()

    def action_copy_item(self) -> None:
        if not pyperclip:
            self.log_pane.add_message("[red]❌ 'pyperclip' not installed.[/red]")
            return
        key = self.item_list.highlighted_key
        item = next((i for i in self.controller.state.items if i.id == key), None)
        if item:
            details = describe_item(item)
            pyperclip.copy(f"{item.title} ({details})" if details else item.title)
            self.log_pane.add_message(f"📋 Copied '[b]{item.title}[/b]'.")
        else:
            self.log_pane.add_message("[yellow]⚠️ Nothing selected.[/yellow]")

    # --- Message Handlers ---
    def on_search_bar_query_changed(self, message: SearchBar.QueryChanged) -> None:
        if message.query != self.controller.state.query:
            self.controller.set_query(message.query)

    def on_search_bar_result_chosen(self, message: SearchBar.ResultChosen) -> None:
        results = self.controller.state.results
        if 0 <= message.index < len(results):
            self.controller.select_result(results[message.index])
            self.search_bar.clear_query()

    def on_item_list_remove_requested(self, message: ItemList.RemoveRequested) -> None:
        item = next((i for i in self.controller.state.items if i.id == message.key), None)
        if item and self.controller.remove_item(item.id):
            self.log_pane.add_message(f"🗑️ Removed '[b]{item.title}[/b]'.")

    def on_side_menu_action_chosen(self, message: SideMenu.ActionChosen) -> None:
        self.controller.close_menu()
        if message.action == "theme":
            self.controller.toggle_theme()
        else:
            self.log_pane.add_message(f"[dim]{message.action.capitalize()} is not available yet.[/dim]")

    def on_add_item_screen_form_changed(self, message: AddItemScreen.FormChanged) -> None:
        self.controller.update_form(**{message.field_name: message.value})

    def on_add_item_screen_submitted(self, message: AddItemScreen.Submitted) -> None:
        item = self.controller.submit_form()
        if item:
            self.log_pane.add_message(f"[green]✅ Added '[b]{item.title}[/b]'.[/green]")

    def on_add_item_screen_cancelled(self, message: AddItemScreen.Cancelled) -> None:
        self.controller.cancel_form()

    # --- Worker Methods ---
    def launch_search(self, ticket: SearchTicket) -> None:
        self.run_worker(self.perform_search(ticket), group="search_worker")

    async def perform_search(self, ticket: SearchTicket) -> None:
        results = await asyncio.to_thread(self.search_client.search, ticket.query, ticket.mode)
        if self.controller.complete_search(ticket, results) and not results:
            self.log_pane.add_message(f"🤷 No results for '{ticket.query}'.")


def configure_logging(debug: bool = False) -> None:
    """Routes log records to the Textual devtools console."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO,
                        handlers=[TextualHandler()])


def run(argv=None) -> None:
    parser = argparse.ArgumentParser(
        description="Keep track of the movies, shows and games you have finished.")
    parser.add_argument("--db", help="Path of the library database file.")
    parser.add_argument("--debug", action="store_true", help="Log debug messages.")
    args = parser.parse_args(argv)

    configure_logging(args.debug)
    app_config = Config.from_env()
    try:
        db_service = KeyValueStore(args.db or app_config.DATABASE_FILENAME)
    except sqlite3.Error as e:
        print(f"Cannot open library: {e}", file=sys.stderr)
        sys.exit(1)
    try:
        library = LibraryStore(db_service)
    except (StoreError, sqlite3.Error) as e:
        db_service.close()
        print(f"Cannot open library: {e}", file=sys.stderr)
        sys.exit(1)

    search_client = CatalogSearchClient(app_config)
    app = TrackerApp(library, search_client, app_config, default_dark=detect_system_dark())

    try:
        app.run()
    finally:
        db_service.close()


if __name__ == "__main__":
    run()
