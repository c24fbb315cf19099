class ChatlineError(Exception):
    """Base error for chatline."""


class LogReadFailure(ChatlineError):
    """Backing log read errored or timed out. The page request failed as a whole."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Log read for '{key}' failed: {reason}")


__all__ = ["ChatlineError", "LogReadFailure"]
