# controller.py
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence

from config import Config
from models import AppState, FormFields, Item, SearchResult, ViewMode
from services import LibraryStore

logger = logging.getLogger(__name__)

# (delay_seconds, callback) -> a timer object with a stop() method
Scheduler = Callable[[float, Callable[[], None]], Any]


@dataclass(frozen=True)
class SearchTicket:
    """Identifies one search request; only the newest generation is applied."""
    generation: int
    query: str
    mode: ViewMode


class Debouncer:
    """Runs only the last of a burst of calls, once `delay` seconds have passed quietly."""
    def __init__(self, schedule: Scheduler, delay: float):
        self.schedule = schedule
        self.delay = delay
        self._timer = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def call(self, fn: Callable[[], None]) -> None:
        self.cancel()

        def fire() -> None:
            self._timer = None
            fn()

        self._timer = self.schedule(self.delay, fire)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None


def _now_ms() -> int:
    return int(time.time() * 1000)


class TrackerController:
    """Owns the AppState and applies every user or timer event to it."""

    def __init__(self, store: LibraryStore, config: Config, schedule: Scheduler,
                 launch_search: Callable[[SearchTicket], None],
                 default_dark: bool = True, clock: Callable[[], int] = _now_ms):
        self.store = store
        self.config = config
        self.launch_search = launch_search
        self.clock = clock
        self.debouncer = Debouncer(schedule, config.SEARCH_DEBOUNCE_SECONDS)
        self._generation = 0
        self._listeners: List[Callable[[AppState], None]] = []

        library = store.load()
        dark_mode = default_dark if library.dark_mode is None else library.dark_mode
        self.state = AppState(dark_mode=dark_mode, movies=library.movies, games=library.games)

    # --- Observation ---
    def subscribe(self, listener: Callable[[AppState], None]) -> None:
        self._listeners.append(listener)

    def _update(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        for listener in self._listeners:
            listener(self.state)

    # --- Search ---
    def set_query(self, text: str) -> None:
        """Handles a keystroke in the search field."""
        self._generation += 1
        self.debouncer.cancel()
        self._update(query=text, results=(), is_searching=False)
        self._schedule_search()

    def _schedule_search(self) -> None:
        if len(self.state.query.strip()) >= self.config.MIN_QUERY_LENGTH:
            self.debouncer.call(self._start_search)

    def _start_search(self) -> None:
        ticket = SearchTicket(self._generation, self.state.query.strip(), self.state.view_mode)
        self._update(results=(), is_searching=True)
        logger.debug("Launching search %r (%s, generation %d)",
                     ticket.query, ticket.mode.value, ticket.generation)
        self.launch_search(ticket)

    def complete_search(self, ticket: SearchTicket, results: Sequence[SearchResult]) -> bool:
        """Applies a finished search unless a newer query or mode has superseded it."""
        if ticket.generation != self._generation:
            logger.debug("Discarding stale results for %r (generation %d, current %d)",
                         ticket.query, ticket.generation, self._generation)
            return False
        self._update(results=tuple(results), is_searching=False)
        return True

    def select_result(self, result: SearchResult) -> None:
        self._generation += 1
        self.debouncer.cancel()
        self._update(form=FormFields.from_result(result), query="", results=(),
                     is_searching=False, modal_open=True)

    # --- Add form ---
    def open_form(self) -> None:
        self._update(form=FormFields(), modal_open=True)

    def update_form(self, **fields: str) -> None:
        self._update(form=replace(self.state.form, **fields))

    def cancel_form(self) -> None:
        self._update(modal_open=False)

    def _new_id(self, now: int) -> str:
        taken = {item.id for item in self.state.items}
        while str(now) in taken:
            now += 1
        return str(now)

    def submit_form(self) -> Optional[Item]:
        """Prepends the form's item to the active collection; blank titles are ignored."""
        now = self.clock()
        item = self.state.form.to_item(self.state.view_mode, self._new_id(now), now)
        if item is None:
            return None
        items = (item,) + self.state.items
        self.store.save_collection(self.state.view_mode, items)
        self.state = self.state.with_items(items)
        self._update(form=FormFields(), modal_open=False)
        logger.info("Added %s %r", self.state.view_mode.value, item.title)
        return item

    def remove_item(self, item_id: str) -> bool:
        items = tuple(i for i in self.state.items if i.id != item_id)
        if len(items) == len(self.state.items):
            return False
        self.store.save_collection(self.state.view_mode, items)
        self.state = self.state.with_items(items)
        self._update()
        return True

    # --- Modes, theme, menu ---
    def toggle_view_mode(self) -> None:
        """Switches collection and endpoint; the query and the open form are kept."""
        self._generation += 1
        self.debouncer.cancel()
        self._update(view_mode=self.state.view_mode.other, results=(), is_searching=False)
        self._schedule_search()

    def toggle_theme(self) -> None:
        dark_mode = not self.state.dark_mode
        self.store.save_theme(dark_mode)
        self._update(dark_mode=dark_mode)

    def toggle_menu(self) -> None:
        self._update(menu_open=not self.state.menu_open)

    def close_menu(self) -> None:
        self._update(menu_open=False)
