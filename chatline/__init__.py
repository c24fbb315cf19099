"""Per-channel timeline composition and state tracking for group chat."""

__version__ = "0.1.0"
