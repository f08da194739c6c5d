"""
Success-or-failure result returned by every resource operation.
"""

from typing import Any, Callable, Generic, TypeVar

from ...utils.errors import Other, ResourceError

T = TypeVar("T")
U = TypeVar("U")


class ResourceResult(Generic[T]):
    """Holds either a value or a ``ResourceError``.

    Callers branch on ``is_success`` / ``error`` instead of catching exceptions,
    e.g. to tell a DRM-locked resource (``Forbidden``) from a missing one.
    """

    __slots__ = ("_value", "_error")

    def __init__(self, value: Any = None, error: ResourceError | None = None):
        self._value = value
        self._error = error

    @classmethod
    def success(cls, value: T) -> "ResourceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ResourceError) -> "ResourceResult[Any]":
        if not isinstance(error, ResourceError):
            raise TypeError(f"Expected a ResourceError, got {type(error).__name__}")
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self._error is None

    @property
    def is_failure(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def error(self) -> ResourceError | None:
        return self._error

    def map(self, transform: Callable[[T], U]) -> "ResourceResult[U]":
        """Apply ``transform`` to the value of a success, keep failures as-is."""
        if self.is_failure:
            return self
        return ResourceResult.success(transform(self._value))

    def flat_map(
        self, transform: Callable[[T], "ResourceResult[U]"]
    ) -> "ResourceResult[U]":
        if self.is_failure:
            return self
        return transform(self._value)

    def try_map(self, transform: Callable[[T], U]) -> "ResourceResult[U]":
        """
        Map the result with a ``transform`` that may raise.

        A raised ``ResourceError`` becomes the failure unchanged; any other
        exception is wrapped in ``Other``.
        """
        if self.is_failure:
            return self
        try:
            return ResourceResult.success(transform(self._value))
        except ResourceError as e:
            return ResourceResult.failure(e)
        except Exception as e:
            return ResourceResult.failure(Other(e))

    def try_flat_map(
        self, transform: Callable[[T], "ResourceResult[U]"]
    ) -> "ResourceResult[U]":
        return self.try_map(transform).flat_map(lambda result: result)

    def get_or_default(self, default: T) -> T:
        return self._value if self.is_success else default

    def get_or_raise(self) -> T:
        """Return the value, or raise the ``ResourceError`` of a failure."""
        if self._error is not None:
            raise self._error
        return self._value

    def __eq__(self, other):
        if not isinstance(other, ResourceResult):
            return NotImplemented
        return self._value == other._value and self._error == other._error

    def __repr__(self) -> str:
        if self.is_failure:
            return f"ResourceResult.failure({self._error!r})"
        return f"ResourceResult.success({self._value!r})"
