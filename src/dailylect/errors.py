class DailylectError(Exception):
    """Base class for errors raised by the dailylect core."""


class StorageUnavailable(DailylectError):
    """The persistence collaborator failed to read or write.

    Recoverable: callers may retry the operation.
    """


class ValidationError(DailylectError, ValueError):
    """A record handed to the core is malformed (e.g. ``total_questions <= 0``)."""


class CatalogExhausted(DailylectError):
    """The catalog cannot supply enough distinct distractor translations."""
