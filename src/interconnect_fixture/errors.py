from __future__ import annotations


class FixtureError(Exception):
    """Base exception for chip loading and fixture generation errors."""
    pass


class ChipDataError(FixtureError):
    """Raised when the base chip description is malformed."""
    pass


class ConfigError(FixtureError):
    """Raised when layout overrides or saved connections are invalid."""
    pass


class ResolverStateError(FixtureError):
    """Raised when the resolver is used out of order (e.g. seeded twice)."""
    pass


class ConnectivityError(FixtureError):
    """Raised when a pin hint has no canonical net id."""

    def __init__(self, hint: str, context: str | None = None):
        self.hint = hint
        self.context = context
        message = f"Unresolvable pin hint {hint!r}"
        if context:
            message += f" ({context})"
        super().__init__(message)


class ConnectionPolicyError(FixtureError):
    """Raised when a user connection edit breaks the pin grouping rules."""

    def __init__(self, connection_id: str, message: str):
        self.connection_id = connection_id
        super().__init__(f"Connection {connection_id}: {message}")
