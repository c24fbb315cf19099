import contextvars
import sqlite3
import threading
from pathlib import Path

from chatline.lib import config, paths
from chatline.lib.store import migrations
from chatline.lib.store.sqlite import connect

Row = sqlite3.Row

_connections = threading.local()
_migrations_loaded: set[str] = set()
_migrations_lock = threading.Lock()

# Overrides paths.dot_dir() for test isolation
_db_path_override: contextvars.ContextVar[Path | None] = contextvars.ContextVar(
    "db_path_override", default=None
)


def db_path() -> Path:
    override = _db_path_override.get()
    base = override if override else paths.dot_dir()
    return base / config.get("db_file")


def ensure() -> sqlite3.Connection:
    """Ensure the database exists with migrations applied.

    Returns a connection cached per thread.
    """
    path = db_path()
    cache_key = str(path)

    conn = getattr(_connections, cache_key, None)
    if conn is not None:
        return conn

    path.parent.mkdir(parents=True, exist_ok=True)

    with _migrations_lock:
        if cache_key not in _migrations_loaded:
            migrations.ensure_schema(path, migrations.load_migrations("chatline.bridge"))
            _migrations_loaded.add(cache_key)

    conn = connect(path)
    setattr(_connections, cache_key, conn)
    return conn


def close_all() -> None:
    """Close connections cached on the calling thread."""
    if hasattr(_connections, "__dict__"):
        for conn in _connections.__dict__.values():
            conn.close()
        _connections.__dict__.clear()


def set_test_db_path(db_dir: Path | None) -> None:
    """Set database directory override. Call with None to clear."""
    _db_path_override.set(db_dir)


def _reset_for_testing() -> None:
    _db_path_override.set(None)
    close_all()
    with _migrations_lock:
        _migrations_loaded.clear()
