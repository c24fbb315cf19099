from pathlib import Path


def dot_dir() -> Path:
    return Path.home() / ".chatline"


def package_root() -> Path:
    return Path(__file__).resolve().parent.parent


def config_file() -> Path:
    return dot_dir() / "config.yaml"
