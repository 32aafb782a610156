"""Errors raised by the credit and stats accounting core."""


class AccountingError(Exception):
    """Base class for accounting failures."""


class NotFoundError(AccountingError):
    """A referenced user, session, stats row or plan does not exist (or is not visible)."""


class SessionAlreadyEndedError(AccountingError):
    """A learning session was closed a second time."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} already ended")
        self.session_id = session_id


class InsufficientCreditsError(AccountingError):
    """A paid action costs more than the user's balance."""

    def __init__(self, required: int, available: int):
        super().__init__(f"Insufficient credits. Required: {required}, available: {available}.")
        self.required = required
        self.available = available


class UnauthorizedError(AccountingError):
    """The caller referenced an entity owned by another user."""


class BadgeAlreadyAwardedError(AccountingError):
    """The user already holds a badge with this name."""
