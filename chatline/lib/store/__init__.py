"""Database connection management and utilities."""

from chatline.lib.store.connection import (
    Row,
    _reset_for_testing,
    close_all,
    db_path,
    ensure,
    set_test_db_path,
)
from chatline.lib.store.sqlite import connect

__all__ = [
    "ensure",
    "Row",
    "db_path",
    "_reset_for_testing",
    "set_test_db_path",
    "close_all",
    "connect",
]
