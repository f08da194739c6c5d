"""
Range-addressable resources and the decorators composing them.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable

from lxml import etree

from ...utils.errors import ResourceError
from .link import Link
from .result import ResourceResult


def clamp_range(byte_range: range, length: int) -> range:
    """
    Clamp a half-open byte range to ``[0, length)``.

    Args:
        byte_range: Requested range, bounds may be negative or past the end
        length: Number of available bytes

    Returns:
        A range inside the available bytes, empty when ``start >= stop``
    """
    start = min(max(byte_range.start, 0), length)
    stop = min(max(byte_range.stop, start), length)
    return range(start, stop)


class Resource(ABC):
    """Acts as a proxy to an actual resource by handling read access."""

    @property
    @abstractmethod
    def link(self) -> Link:
        """
        The link from which the resource was retrieved.

        It might be modified by the resource to include additional metadata,
        e.g. a corrected media type.
        """

    @abstractmethod
    def length(self) -> ResourceResult[int]:
        """
        Data length from metadata if available, or calculated from the bytes.

        This value is a hint. To get the real length, read the whole resource.
        """

    @abstractmethod
    def read(self, byte_range: range | None = None) -> ResourceResult[bytes]:
        """
        Read the bytes at the given range.

        When ``byte_range`` is None the whole content is returned. Out-of-range
        bounds are clamped to the available length.
        """

    @abstractmethod
    def close(self) -> None:
        """Close any opened file handles. Safe to call more than once."""

    def read_as_string(self, encoding: str | None = None) -> ResourceResult[str]:
        """
        Read the full content as a string.

        Args:
            encoding: Codec name; defaults to the ``charset`` of the link media
                type, then UTF-8

        Returns:
            The decoded text, or an empty string when the bytes can't be decoded
        """
        encoding = encoding or self.link.media_type_charset or "utf-8"

        def decode(data: bytes) -> str:
            try:
                return data.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                return ""

        return self.read().map(decode)

    def read_as_json(self) -> ResourceResult[Any]:
        """Read the full content as a JSON document."""
        return self.read().try_map(json.loads)

    def read_as_xml(self) -> ResourceResult[etree._Element]:
        """Read the full content as an XML element tree root."""
        return self.read().try_map(etree.fromstring)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.link.href!r})"


ResourceTransformer = Callable[[Resource], Resource]
"""
Transforms a resource, e.g. to decrypt, deobfuscate, inject CSS or correct markup.

A transformer that doesn't apply returns the resource unchanged.
"""


class DataResource(Resource):
    """Serves an in-memory byte buffer."""

    def __init__(self, link: Link, data: bytes = b""):
        self._link = link
        self._data = bytes(data)

    @classmethod
    def from_string(cls, link: Link, text: str) -> "DataResource":
        """Create a resource serving ``text`` encoded as UTF-8."""
        return cls(link, text.encode("utf-8", errors="surrogatepass"))

    @property
    def link(self) -> Link:
        return self._link

    def length(self) -> ResourceResult[int]:
        return ResourceResult.success(len(self._data))

    def read(self, byte_range: range | None = None) -> ResourceResult[bytes]:
        if byte_range is None:
            return ResourceResult.success(self._data)
        clamped = clamp_range(byte_range, len(self._data))
        return ResourceResult.success(self._data[clamped.start:clamped.stop])

    def close(self) -> None:
        pass


class FailureResource(Resource):
    """A resource that always fails with the given error."""

    def __init__(self, link: Link, error: ResourceError):
        self._link = link
        self.error = error

    @property
    def link(self) -> Link:
        return self._link

    def length(self) -> ResourceResult[int]:
        return ResourceResult.failure(self.error)

    def read(self, byte_range: range | None = None) -> ResourceResult[bytes]:
        return ResourceResult.failure(self.error)

    def close(self) -> None:
        pass


class ResourceProxy(Resource):
    """
    Forwards every operation to the wrapped ``resource``.

    Subclasses override what they intercept and call through to
    ``self.resource`` for the underlying bytes.
    """

    def __init__(self, resource: Resource):
        self.resource = resource

    @property
    def link(self) -> Link:
        return self.resource.link

    def length(self) -> ResourceResult[int]:
        return self.resource.length()

    def read(self, byte_range: range | None = None) -> ResourceResult[bytes]:
        return self.resource.read(byte_range)

    def close(self) -> None:
        self.resource.close()
