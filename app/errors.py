"""Exception hierarchy shared by repositories, services and the HTTP layer."""


class BoardTunesError(Exception):
    """Base class for all application errors."""


class NotFoundError(BoardTunesError):
    """Raised when a referenced game, song or category does not exist."""


class ValidationError(BoardTunesError):
    """Raised when input or filter values are malformed."""


class StoreError(BoardTunesError):
    """Raised when the database fails (connectivity, constraint violation)."""


class ExternalStatsError(BoardTunesError):
    """Raised when BoardGameGeek stats cannot be fetched for a game."""
