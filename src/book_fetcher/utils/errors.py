"""
Custom exception classes for book-fetcher.

Resource errors are returned inside a ``ResourceResult`` by every resource
operation. They derive from ``BookFetcherError`` so the outer surface (workflow
and CLI) can raise them with ``ResourceResult.get_or_raise()``.
"""


class BookFetcherError(Exception):
    """Base exception class for all book-fetcher errors."""

    pass


class ResourceError(BookFetcherError):
    """Base class of the resource error taxonomy.

    Only the four kinds below are ever produced. Each one mirrors an HTTP status.
    """

    status = 500

    @staticmethod
    def from_status(status: int) -> "ResourceError":
        """Map an HTTP-like status code back to a resource error."""
        if status == 404:
            return NotFound()
        if status == 403:
            return Forbidden()
        if status == 503:
            return Unavailable()
        return Other(BookFetcherError(f"HTTP status {status}"))

    def __eq__(self, other):
        return type(self) is type(other) and self.args == other.args

    def __hash__(self):
        return hash((type(self), self.args))


class NotFound(ResourceError):
    """Equivalent to a 404 HTTP error."""

    status = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class Forbidden(ResourceError):
    """Equivalent to a 403 HTTP error.

    Returned when reading a resource protected with a DRM that is not unlocked.
    """

    status = 403

    def __init__(self, message: str = "Resource is locked"):
        super().__init__(message)


class Unavailable(ResourceError):
    """Equivalent to a 503 HTTP error.

    The source can't be reached (file system issue, closed handle, ...). Usually
    a temporary error.
    """

    status = 503

    def __init__(self, message: str = "Resource is unavailable"):
        super().__init__(message)


class Other(ResourceError):
    """Any other error, such as an HTTP 500."""

    status = 500

    def __init__(self, cause: BaseException):
        super().__init__(f"Resource error: {cause}")
        self.cause = cause

    def __eq__(self, other):
        return isinstance(other, Other) and self.cause is other.cause

    def __hash__(self):
        return hash((Other, id(self.cause)))


class ContainerError(BookFetcherError):
    """Raised when an EPUB container cannot be opened or parsed."""

    pass


class WorkflowError(BookFetcherError):
    """Raised when workflow processing encounters an error."""

    pass
