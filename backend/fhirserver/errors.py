"""Document store errors.

The message of each error is what the client sees as the plain-text body
of the resulting 500 response.
"""


class StoreError(Exception):
    """A persistence operation failed."""

    pass


class NotFoundError(StoreError):
    """No document with the requested id exists in the collection."""

    def __init__(self, message: str = "not found"):
        super().__init__(message)


class ConflictError(StoreError):
    """A document with the same id already exists in the collection."""

    pass
