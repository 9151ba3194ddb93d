# config.py
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

@dataclass
class Config:
    """Holds all application configuration."""
    SEARCH_RESULT_LIMIT: int = 20
    MIN_QUERY_LENGTH: int = 3
    SEARCH_DEBOUNCE_SECONDS: float = 0.5
    REQUEST_TIMEOUT: float = 10.0
    DATABASE_FILENAME: str = "i_am_watching.db"
    TMDB_API_KEY: str = ""
    RAWG_API_KEY: str = ""
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    RAWG_BASE_URL: str = "https://api.rawg.io/api"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Config":
        """Builds a config from the environment, reading a .env file first if present."""
        load_dotenv(dotenv_path=dotenv_path)
        return cls(
            DATABASE_FILENAME=os.getenv("I_AM_WATCHING_DB", cls.DATABASE_FILENAME),
            TMDB_API_KEY=os.getenv("TMDB_API_KEY", ""),
            RAWG_API_KEY=os.getenv("RAWG_API_KEY", ""),
        )
