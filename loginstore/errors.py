"""Exception hierarchy for the store."""


class StoreError(Exception):
    """Base class for every failure raised inside loginstore."""


class StoreUnavailableError(StoreError):
    """The backing store is not open (never initialised, closed, or broken)."""


class DuplicateUserError(StoreError):
    """A user with the requested username already exists."""

    def __init__(self, username: str):
        super().__init__(f"Username already taken: {username}")
        self.username = username


class DocumentSerializationError(StoreError):
    """A document could not be encoded to, or decoded from, JSON object text."""
