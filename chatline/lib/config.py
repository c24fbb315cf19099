import shutil
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from . import paths

DEFAULTS: dict[str, Any] = {
    "page_limit": 50,
    "read_timeout": 10.0,
    "log_level": "WARNING",
    "db_file": "chatline.db",
}


def get_default_config_path() -> Path:
    return paths.package_root() / "config.yaml"


def clear_cache():
    load_config.cache_clear()


@lru_cache(maxsize=1)
def load_config() -> dict:
    """Load config.yaml, returning its content or an empty dict if not found."""
    path = paths.config_file()
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def get(key: str) -> Any:
    return load_config().get(key, DEFAULTS[key])


def init_config() -> Path:
    """Initialize ~/.chatline/config.yaml from defaults if missing."""
    target = paths.config_file()
    if target.exists():
        return target

    target.parent.mkdir(parents=True, exist_ok=True)

    default_config_path = get_default_config_path()
    if not default_config_path.exists():
        raise FileNotFoundError(f"Default config not found at {default_config_path}")

    shutil.copy(default_config_path, target)
    clear_cache()
    return target
