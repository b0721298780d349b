"""Exceptions raised by the hidden battle rating engine."""


class HbrError(Exception):
    """Base exception for all rating engine errors."""


class ConfigurationError(HbrError, ValueError):
    """Raised when engine parameters are invalid; the engine never starts."""


class NotInitializedError(HbrError, RuntimeError):
    """Raised when a rating operation runs before initialization completes."""


class InvalidPerformanceDataError(HbrError, ValueError):
    """Raised when a player's performance payload is malformed."""

    def __init__(self, message: str, *, player_id: int | None = None) -> None:
        super().__init__(message)
        self.player_id = player_id


__all__ = [
    "ConfigurationError",
    "HbrError",
    "InvalidPerformanceDataError",
    "NotInitializedError",
]
