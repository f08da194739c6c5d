"""
EPUB resource deobfuscation.
"""

import itertools
import logging

from Crypto.Util.strxor import strxor

from ..fetcher import Resource, ResourceProxy, ResourceResult
from .obfuscation import ObfuscationAlgorithm, find_algorithm

logger = logging.getLogger(__name__)

# XML 1.0 white space, removed from the publication identifier before key generation.
_XML_WHITESPACE = str.maketrans("", "", " \t\r\n")


class EPUBDeobfuscator:
    """Deobfuscates EPUB resources obfuscated with a supported algorithm.

    An instance is a ``ResourceTransformer``: call it with a resource to get the
    deobfuscated resource, or the resource unchanged when it isn't obfuscated.
    """

    def __init__(self, publication_id: str):
        """
        Args:
            publication_id: Unique identifier of the publication
        """
        self.publication_id = publication_id.translate(_XML_WHITESPACE)

    def deobfuscate(self, resource: Resource) -> Resource:
        """
        Wrap ``resource`` in a deobfuscating proxy if its link declares a known
        obfuscation algorithm.

        Args:
            resource: Resource to deobfuscate

        Returns:
            The deobfuscating proxy, or ``resource`` itself
        """
        encryption = resource.link.encryption
        if encryption is None or not encryption.algorithm:
            return resource

        algorithm = find_algorithm(encryption.algorithm)
        if algorithm is None:
            logger.debug(
                "Unsupported algorithm %s for %s, leaving it as-is",
                encryption.algorithm,
                resource.link.href,
            )
            return resource

        key = algorithm.key(self.publication_id)
        if not key:
            logger.warning(
                "Empty %s key derived from publication identifier %r, "
                "leaving %s obfuscated",
                algorithm.identifier,
                self.publication_id,
                resource.link.href,
            )
            return resource

        logger.debug("Deobfuscating %s with %s", resource.link.href, algorithm.identifier)
        return DeobfuscatingResource(resource, algorithm, key)

    __call__ = deobfuscate


class DeobfuscatingResource(ResourceProxy):
    """XORs the obfuscated prefix of the wrapped resource on every read."""

    def __init__(self, resource: Resource, algorithm: ObfuscationAlgorithm, key: bytes):
        super().__init__(resource)
        self.algorithm = algorithm
        self.key = bytes(key)

    def read(self, byte_range: range | None = None) -> ResourceResult[bytes]:
        start = max(byte_range.start, 0) if byte_range is not None else 0
        return self.resource.read(byte_range).map(lambda data: self._deobfuscate(data, start))

    def _deobfuscate(self, data: bytes, offset: int) -> bytes:
        """
        Args:
            data: Bytes read from the wrapped resource
            offset: Absolute position of ``data[0]`` in the resource
        """
        end = min(offset + len(data), self.algorithm.obfuscated_length)
        if end <= offset:
            return data

        count = end - offset
        key_start = offset % len(self.key)
        keystream = bytes(itertools.islice(itertools.cycle(self.key), key_start, key_start + count))
        return strxor(bytes(data[:count]), keystream) + data[count:]
