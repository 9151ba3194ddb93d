from textual.widgets import Input

from config import Config
from conftest import FakeResponse, FakeSession
from main import TrackerApp
from models import ViewMode
from services import CatalogSearchClient
from ui import AddItemScreen, EmptyNotice, ItemList, ResultsDropdown


def make_app(library, config, session=None):
    return TrackerApp(library, CatalogSearchClient(config, session or FakeSession()), config)


def column_labels(table):
    return [column.label.plain for column in table.columns.values()]


async def test_add_item_through_the_form(library, config):
    app = make_app(library, config)
    async with app.run_test() as pilot:
        assert app.query_one(EmptyNotice).display is True
        app.action_add_item()
        await pilot.pause()
        assert isinstance(app.screen, AddItemScreen)

        await pilot.press(*"dune")
        await pilot.press("enter")
        await pilot.pause()

        assert not isinstance(app.screen, AddItemScreen)
        assert [m.title for m in app.controller.state.movies] == ["dune"]
        assert app.query_one(ItemList).row_count == 1
        assert app.query_one(EmptyNotice).display is False
    assert [m.title for m in library.load().movies] == ["dune"]


async def test_view_mode_and_theme_actions(library, config):
    app = make_app(library, config)
    async with app.run_test() as pilot:
        app.action_toggle_view_mode()
        app.action_toggle_theme()
        await pilot.pause()
        assert app.controller.state.view_mode is ViewMode.GAMES
        assert app.sub_title == "Games"
        assert app.theme == "textual-light"
    assert library.load().dark_mode is False


async def test_list_columns_follow_view_mode(library, config):
    app = make_app(library, config)
    async with app.run_test() as pilot:
        table = app.query_one(ItemList)
        assert column_labels(table) == ["Title", "Release", "Director", "Genre"]
        app.action_toggle_view_mode()
        await pilot.pause()
        assert column_labels(table) == ["Title", "Release", "Developer", "Platform"]


async def test_rapid_input_changes_keep_the_last_value(library, config):
    app = make_app(library, config)
    async with app.run_test() as pilot:
        search_input = app.query_one("#search-input", Input)
        search_input.value = "abcd"
        search_input.value = "abcde"
        await pilot.pause()
        await pilot.pause()
        assert search_input.value == "abcde"
        assert app.controller.state.query == "abcde"

        search_input.value = ""
        for char in "interstellar":
            search_input.insert_text_at_cursor(char)
        await pilot.pause()
        await pilot.pause()
        assert search_input.value == "interstellar"
        assert app.controller.state.query == "interstellar"


async def test_choosing_a_result_opens_prefilled_form(library):
    config = Config(TMDB_API_KEY="tmdb-key", SEARCH_DEBOUNCE_SECONDS=0.2)
    session = FakeSession(FakeResponse({"results": [
        {"id": 438631, "title": "Dune", "release_date": "2021-09-15", "genre_ids": [878]},
        {"id": 841, "title": "Dune", "release_date": "1984-12-14", "genre_ids": [12]},
    ]}))
    app = make_app(library, config, session)
    async with app.run_test() as pilot:
        await pilot.press(*"dune")
        await pilot.pause(0.5)
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert session.calls[-1][1]["query"] == "dune"
        dropdown = app.query_one("#results-dropdown", ResultsDropdown)
        assert dropdown.display is True
        assert dropdown.option_count == 2

        dropdown.highlighted = 1
        app.action_toggle_theme()
        await pilot.pause()
        assert dropdown.highlighted == 1
        dropdown.action_select()
        await pilot.pause()

        assert isinstance(app.screen, AddItemScreen)
        assert app.screen.query_one("#title", Input).value == "Dune"
        assert app.screen.query_one("#release_date", Input).value == "1984"
        assert app.screen.query_one("#genre", Input).value == "Adventure"
        assert app.screen.query_one("#developer", Input).value == ""
        assert app.search_bar.query_one(Input).value == ""
        assert app.controller.state.query == ""
        assert dropdown.display is False

        await pilot.press("enter")
        await pilot.pause()
        assert [m.title for m in app.controller.state.movies] == ["Dune"]
        assert app.controller.state.movies[0].genre == "Adventure"
