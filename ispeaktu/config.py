"""
Configuration for iSpeaktu.

Settings come from the environment, after loading a project-root .env:

    SUPABASE_URL, SUPABASE_ANON_KEY   use Supabase when both are set
    ISPEAKTU_DB_PATH                  SQLite store (default: data/ispeaktu.db)
    ISPEAKTU_CACHE_PATH               local cache (default: ~/.ispeaktu/cache.json)
    ISPEAKTU_TEACHER_CODE             shared teacher access code; unset refuses teacher login
    ISPEAKTU_LOG_LEVEL                default INFO
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ispeaktu.classroom.cache import DEFAULT_CACHE_PATH, LocalCache
from ispeaktu.classroom.store import DEFAULT_DB_PATH, ProgressStore, SQLiteStore
from ispeaktu.classroom.supabase_store import create_supabase_store

PROJECT_ROOT = Path(__file__).parent.parent

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    db_path: Path = DEFAULT_DB_PATH
    cache_path: Path = DEFAULT_CACHE_PATH
    teacher_code: Optional[str] = None
    log_level: str = "INFO"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Load .env (without overriding set variables) and read settings."""
        load_dotenv(env_file or PROJECT_ROOT / ".env")
        return cls(
            supabase_url=os.environ.get("SUPABASE_URL") or None,
            supabase_anon_key=os.environ.get("SUPABASE_ANON_KEY") or None,
            db_path=Path(os.environ.get("ISPEAKTU_DB_PATH") or DEFAULT_DB_PATH),
            cache_path=Path(os.environ.get("ISPEAKTU_CACHE_PATH") or DEFAULT_CACHE_PATH).expanduser(),
            teacher_code=os.environ.get("ISPEAKTU_TEACHER_CODE") or None,
            log_level=(os.environ.get("ISPEAKTU_LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT
    )


def build_store(settings: Settings) -> ProgressStore:
    """Supabase when configured, otherwise the local SQLite store."""
    if settings.has_supabase:
        logger.info("Using Supabase store")
        return create_supabase_store(settings.supabase_url, settings.supabase_anon_key)
    logger.info(f"Using SQLite store at {settings.db_path}")
    return SQLiteStore(settings.db_path)


def build_cache(settings: Settings) -> LocalCache:
    return LocalCache(settings.cache_path)
