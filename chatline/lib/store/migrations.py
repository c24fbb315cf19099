"""Database schema migrations and initialization."""

import logging
import sqlite3
from pathlib import Path

from chatline.lib.store.sqlite import connect

logger = logging.getLogger(__name__)


def load_migrations(module_path: str) -> list[tuple[str, str]]:
    """Load numbered .sql files from a module's migrations/ directory.

    Args:
        module_path: Module path like 'chatline.bridge'

    Returns:
        List of (migration_name, sql_content) tuples in lexical order
    """
    parts = module_path.split(".")
    module_dir = Path(__file__).parent.parent.parent
    for part in parts[1:]:
        module_dir = module_dir / part
    migrations_dir = module_dir / "migrations"

    if not migrations_dir.exists():
        return []

    return [(sql_file.stem, sql_file.read_text()) for sql_file in sorted(migrations_dir.glob("*.sql"))]


def ensure_schema(db_path: Path, migs: list[tuple[str, str]] | None = None) -> None:
    conn = connect(db_path)
    try:
        if migs:
            migrate(conn, migs)
    finally:
        conn.close()


def migrate(conn: sqlite3.Connection, migs: list[tuple[str, str]]) -> None:
    conn.execute("CREATE TABLE IF NOT EXISTS _migrations (name TEXT PRIMARY KEY)")

    for name, sql in migs:
        applied = conn.execute("SELECT 1 FROM _migrations WHERE name = ?", (name,)).fetchone()
        if applied:
            continue
        try:
            conn.executescript(sql)
            conn.execute("INSERT OR IGNORE INTO _migrations (name) VALUES (?)", (name,))
        except sqlite3.Error as e:
            logger.error(f"Migration '{name}' failed: {e}")
            raise
        logger.debug(f"Applied migration {name}")
