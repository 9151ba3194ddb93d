# models.py
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

class ViewMode(str, Enum):
    """Which of the two tracked collections is active."""
    MOVIES = "movies"
    GAMES = "games"

    @property
    def other(self) -> "ViewMode":
        return ViewMode.GAMES if self is ViewMode.MOVIES else ViewMode.MOVIES


@dataclass(frozen=True)
class MovieItem:
    """A movie or show the user has watched."""
    id: str
    title: str
    added_at: int
    release_date: Optional[str] = None
    director: Optional[str] = None
    genre: Optional[str] = None


@dataclass(frozen=True)
class GameItem:
    """A game the user has played."""
    id: str
    title: str
    added_at: int
    release_date: Optional[str] = None
    developer: Optional[str] = None
    platform: Optional[str] = None


Item = Union[MovieItem, GameItem]


@dataclass(frozen=True)
class MovieResult:
    """A normalized movie hit from the catalog search."""
    result_id: str
    title: str
    release_date: str = ""
    director: str = ""
    genre: str = ""


@dataclass(frozen=True)
class GameResult:
    """A normalized game hit from the catalog search."""
    result_id: str
    title: str
    release_date: str = ""
    developer: str = ""
    platform: str = ""


SearchResult = Union[MovieResult, GameResult]


@dataclass(frozen=True)
class FormFields:
    """The transient contents of the add-item form."""
    title: str = ""
    release_date: str = ""
    director: str = ""
    genre: str = ""
    developer: str = ""
    platform: str = ""

    @classmethod
    def from_result(cls, result: SearchResult) -> "FormFields":
        """Fills only the fields that belong to the result's kind."""
        if isinstance(result, MovieResult):
            return cls(title=result.title, release_date=result.release_date,
                       director=result.director, genre=result.genre)
        return cls(title=result.title, release_date=result.release_date,
                   developer=result.developer, platform=result.platform)

    def to_item(self, mode: ViewMode, item_id: str, added_at: int) -> Optional[Item]:
        """Builds the item for the given mode, or None when the title is blank."""
        title = self.title.strip()
        if not title:
            return None
        if mode is ViewMode.MOVIES:
            return MovieItem(id=item_id, title=title, added_at=added_at,
                             release_date=self.release_date or None,
                             director=self.director or None,
                             genre=self.genre or None)
        return GameItem(id=item_id, title=title, added_at=added_at,
                        release_date=self.release_date or None,
                        developer=self.developer or None,
                        platform=self.platform or None)


@dataclass
class AppState:
    """A single object to hold the entire application state."""
    view_mode: ViewMode = ViewMode.MOVIES
    dark_mode: bool = True
    movies: Tuple[MovieItem, ...] = ()
    games: Tuple[GameItem, ...] = ()
    query: str = ""
    results: Tuple[SearchResult, ...] = ()
    is_searching: bool = False
    modal_open: bool = False
    menu_open: bool = False
    form: FormFields = field(default_factory=FormFields)

    @property
    def items(self) -> Tuple[Item, ...]:
        return self.movies if self.view_mode is ViewMode.MOVIES else self.games

    def with_items(self, items: Tuple[Item, ...]) -> "AppState":
        """Returns a copy with the active collection replaced."""
        if self.view_mode is ViewMode.MOVIES:
            return replace(self, movies=items)
        return replace(self, games=items)
