"""
Link metadata attached to resources.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Encryption:
    """Encryption properties declared for a resource in META-INF/encryption.xml."""

    algorithm: str
    original_length: int | None = None
    compression: str | None = None
    scheme: str | None = None
    profile: str | None = None


@dataclass(frozen=True)
class Link:
    """Points to a resource inside a publication."""

    href: str
    type: str | None = None
    encryption: Encryption | None = None

    @property
    def media_type_charset(self) -> str | None:
        """Charset parameter of the media type, e.g. ``text/html; charset=utf-8``."""
        if not self.type:
            return None

        for param in self.type.split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "charset":
                value = value.strip().strip('"')
                return value or None
        return None

    def copy(self, **changes) -> "Link":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
