"""
Font obfuscation algorithms of the EPUB Open Container Format.

https://www.w3.org/publishing/epub3/epub-ocf.html#sec-resource-obfuscation
"""

import binascii
import hashlib
from dataclasses import dataclass
from typing import Callable


def _hex_to_bytes(text: str) -> bytes:
    """Decode hex pairs, dropping a trailing odd character and invalid pairs."""
    decoded = bytearray()
    for i in range(0, len(text) - 1, 2):
        try:
            decoded += binascii.unhexlify(text[i:i + 2])
        except (binascii.Error, ValueError):
            continue
    return bytes(decoded)


def _idpf_key(publication_id: str) -> bytes:
    return hashlib.sha1(publication_id.encode("utf-8")).digest()


def _adobe_key(publication_id: str) -> bytes:
    return _hex_to_bytes(publication_id.replace("urn:uuid:", "").replace("-", ""))


@dataclass(frozen=True)
class ObfuscationAlgorithm:
    """
    An obfuscation scheme.

    Attributes:
        identifier: URI declared as ``EncryptionMethod/@Algorithm``
        obfuscated_length: Number of bytes obfuscated at the start of a resource
        derive_key: Generates the obfuscation key from the publication identifier
    """

    identifier: str
    obfuscated_length: int
    derive_key: Callable[[str], bytes]

    def key(self, publication_id: str) -> bytes:
        return self.derive_key(publication_id)


IDPF = ObfuscationAlgorithm(
    identifier="http://www.idpf.org/2008/embedding",
    obfuscated_length=1040,
    derive_key=_idpf_key,
)

ADOBE = ObfuscationAlgorithm(
    identifier="http://ns.adobe.com/pdf/enc#RC",
    obfuscated_length=1024,
    derive_key=_adobe_key,
)

ALGORITHMS = (IDPF, ADOBE)


def find_algorithm(identifier: str | None) -> ObfuscationAlgorithm | None:
    """Return the supported algorithm with exactly this identifier, if any."""
    for algorithm in ALGORITHMS:
        if algorithm.identifier == identifier:
            return algorithm
    return None
