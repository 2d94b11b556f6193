class DungeonError(Exception):
    """Base class for engine errors that callers are expected to report."""


class DecodeError(DungeonError, ValueError):
    """A state token is malformed or does not fit the current game shape."""


class EncodeOverflow(DungeonError):
    """An encoded token would not fit the length ceiling."""


class ConfigError(DungeonError, ValueError):
    """Configuration values are out of range."""


class SessionExpired(DungeonError):
    """A token sat idle past the session timeout."""
