"""Process exit codes for the ivy CLI."""

OK = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
NOT_FOUND = 3
INDEX_MISMATCH = 4


def code_for(exc: Exception) -> int:
    """Map an exception raised while running a command to an exit code."""
    from ivystore.errors import InvalidIdentifierError, NotFoundError

    if isinstance(exc, NotFoundError):
        return NOT_FOUND
    if isinstance(exc, (InvalidIdentifierError, ValueError)):
        return USAGE_ERROR
    return GENERAL_ERROR
