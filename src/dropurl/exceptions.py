"""Exceptions raised by the DropURL audit engine."""


class InputError(ValueError):
    """Raised when a caller supplies a malformed, missing or empty URL batch.

    This is the only error that aborts a whole call. It is raised before any
    browser work is started.
    """

    def __init__(self, message: str, value=None):
        self.message = message
        self.value = value
        super().__init__(message)
