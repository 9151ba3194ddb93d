# services.py
import json
import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

import requests

from config import Config
from models import (GameItem, GameResult, Item, MovieItem, MovieResult,
                    SearchResult, ViewMode)

logger = logging.getLogger(__name__)

MOVIES_KEY = "watchedMedia"
GAMES_KEY = "playedGames"
THEME_KEY = "darkMode"
SCHEMA_VERSION_KEY = "schemaVersion"
SCHEMA_VERSION = 2

# Ids from TMDB's /genre/movie/list, which rarely changes.
TMDB_GENRES = {
    28: "Action", 12: "Adventure", 16: "Animation", 35: "Comedy", 80: "Crime",
    99: "Documentary", 18: "Drama", 10751: "Family", 14: "Fantasy", 36: "History",
    27: "Horror", 10402: "Music", 9648: "Mystery", 10749: "Romance",
    878: "Science Fiction", 10770: "TV Movie", 53: "Thriller", 10752: "War",
    37: "Western",
}


class StoreError(Exception):
    """Raised when the local store cannot be opened or understood."""


class KeyValueStore:
    """A service to manage a string-keyed SQLite table of JSON values."""
    def __init__(self, db_name: str):
        self.db_name = db_name
        self.conn = sqlite3.connect(db_name)
        self.create_table()

    def create_table(self):
        """Creates the kv table if it doesn't exist."""
        with self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    def get(self, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute("""
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """, (key, value))

    def delete(self, key: str) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def keys(self) -> List[str]:
        return [row[0] for row in self.conn.execute("SELECT key FROM kv ORDER BY key")]

    def close(self):
        self.conn.close()


def item_to_record(item: Item) -> dict:
    """Encodes an item in the camelCase layout used on disk, omitting empty fields."""
    record = {
        "kind": "movie" if isinstance(item, MovieItem) else "game",
        "id": item.id,
        "title": item.title,
        "addedAt": item.added_at,
        "releaseDate": item.release_date,
    }
    if isinstance(item, MovieItem):
        record.update(director=item.director, genre=item.genre)
    else:
        record.update(developer=item.developer, platform=item.platform)
    return {k: v for k, v in record.items() if v is not None}


def record_to_item(record: dict) -> Item:
    """Decodes a stored record; raises KeyError/TypeError/ValueError on a bad shape."""
    kind = record["kind"]
    common = dict(
        id=str(record["id"]),
        title=record["title"],
        added_at=int(record["addedAt"]),
        release_date=record.get("releaseDate"),
    )
    if kind == "movie":
        return MovieItem(director=record.get("director"), genre=record.get("genre"), **common)
    if kind == "game":
        return GameItem(developer=record.get("developer"), platform=record.get("platform"), **common)
    raise ValueError(f"Unknown item kind {kind!r}")


@dataclass
class LoadedLibrary:
    movies: Tuple[MovieItem, ...]
    games: Tuple[GameItem, ...]
    dark_mode: Optional[bool]


class LibraryStore:
    """Reads and writes the two collections and the theme flag as whole JSON values."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self.migrate()

    def schema_version(self) -> int:
        raw = self.kv.get(SCHEMA_VERSION_KEY)
        if raw is None:
            return 1
        try:
            return int(json.loads(raw))
        except (TypeError, ValueError) as e:
            raise StoreError(f"Unreadable schema version {raw!r}") from e

    def migrate(self) -> None:
        """Brings the stored layout up to SCHEMA_VERSION.

        Version 1 stored untagged records whose kind was implied by the key
        holding them. Version 2 tags every record with ``kind``.
        """
        version = self.schema_version()
        if version > SCHEMA_VERSION:
            raise StoreError(
                f"Store schema version {version} is newer than supported ({SCHEMA_VERSION}).")
        if version == SCHEMA_VERSION:
            return
        for key, kind in ((MOVIES_KEY, "movie"), (GAMES_KEY, "game")):
            records = self._read_json(key)
            if isinstance(records, list):
                tagged = [dict(r, kind=kind) for r in records if isinstance(r, dict)]
                self.kv.set(key, json.dumps(tagged))
        self.kv.set(SCHEMA_VERSION_KEY, json.dumps(SCHEMA_VERSION))
        logger.info("Migrated store %s from schema %d to %d",
                    self.kv.db_name, version, SCHEMA_VERSION)

    def _read_json(self, key: str) -> Any:
        raw = self.kv.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed value stored under %r", key)
            return None

    def _load_items(self, key: str, expected: type) -> tuple:
        records = self._read_json(key)
        if records is None:
            return ()
        if not isinstance(records, list):
            logger.warning("Ignoring non-list collection stored under %r", key)
            return ()
        items = []
        for index, record in enumerate(records):
            try:
                item = record_to_item(record)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping undecodable record %d stored under %r", index, key,
                               exc_info=True)
                continue
            if isinstance(item, expected):
                items.append(item)
            else:
                logger.warning("Skipping %s record %d stored under %r",
                               type(item).__name__, index, key)
        return tuple(items)

    def load(self) -> LoadedLibrary:
        dark_mode = self._read_json(THEME_KEY)
        if dark_mode is not None and not isinstance(dark_mode, bool):
            logger.warning("Ignoring non-boolean theme flag %r", dark_mode)
            dark_mode = None
        return LoadedLibrary(
            movies=self._load_items(MOVIES_KEY, MovieItem),
            games=self._load_items(GAMES_KEY, GameItem),
            dark_mode=dark_mode,
        )

    def _save_items(self, key: str, items: Iterable[Item]) -> None:
        self.kv.set(key, json.dumps([item_to_record(i) for i in items]))

    def save_movies(self, items: Iterable[MovieItem]) -> None:
        self._save_items(MOVIES_KEY, items)

    def save_games(self, items: Iterable[GameItem]) -> None:
        self._save_items(GAMES_KEY, items)

    def save_collection(self, mode: ViewMode, items: Iterable[Item]) -> None:
        if mode is ViewMode.MOVIES:
            self.save_movies(items)
        else:
            self.save_games(items)

    def save_theme(self, dark_mode: bool) -> None:
        self.kv.set(THEME_KEY, json.dumps(dark_mode))


def detect_system_dark(environ=None) -> bool:
    """Guesses the terminal's dark/light preference from COLORFGBG ("fg;bg")."""
    environ = os.environ if environ is None else environ
    value = environ.get("COLORFGBG", "")
    try:
        background = int(value.split(";")[-1])
    except ValueError:
        return True
    return background in range(0, 7) or background == 8


def _year(date: Optional[str]) -> str:
    return date.split("-")[0] if date else ""


class CatalogSearchClient:
    """A service to query TMDB (movies) or RAWG (games) and normalize the hits."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def search(self, query: str, mode: ViewMode) -> List[SearchResult]:
        """Performs the search; any failure is logged and yields no results."""
        try:
            if mode is ViewMode.MOVIES:
                results = self._search_movies(query)
            else:
                results = self._search_games(query)
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError):
            logger.exception("Search failed for %r in %s", query, mode.value)
            return []
        return results[:self.config.SEARCH_RESULT_LIMIT]

    def _get(self, url: str, params: dict) -> dict:
        response = self.session.get(url, params=params, timeout=self.config.REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()

    def _search_movies(self, query: str) -> List[SearchResult]:
        if not self.config.TMDB_API_KEY:
            logger.warning("TMDB_API_KEY is not set; skipping movie search.")
            return []
        data = self._get(f"{self.config.TMDB_BASE_URL}/search/movie",
                         {"api_key": self.config.TMDB_API_KEY, "query": query})
        return [self._parse_movie(item) for item in data["results"]]

    def _search_games(self, query: str) -> List[SearchResult]:
        if not self.config.RAWG_API_KEY:
            logger.warning("RAWG_API_KEY is not set; skipping game search.")
            return []
        data = self._get(f"{self.config.RAWG_BASE_URL}/games",
                         {"key": self.config.RAWG_API_KEY, "search": query})
        return [self._parse_game(item) for item in data["results"]]

    def _parse_movie(self, item: dict) -> MovieResult:
        """Parses a single raw TMDB item into our MovieResult data model."""
        genres = [TMDB_GENRES[g] for g in item.get("genre_ids") or [] if g in TMDB_GENRES]
        return MovieResult(
            result_id=str(item.get("id", "")),
            title=item.get("title") or "",
            release_date=_year(item.get("release_date")),
            genre=genres[0] if genres else "",
        )

    def _parse_game(self, item: dict) -> GameResult:
        """Parses a single raw RAWG item into our GameResult data model."""
        platforms = [p["platform"]["name"] for p in item.get("platforms") or []]
        developers = item.get("developers") or []
        return GameResult(
            result_id=str(item.get("id", "")),
            title=item.get("name") or "",
            release_date=_year(item.get("released")),
            developer=developers[0]["name"] if developers else "",
            platform=", ".join(platforms),
        )
