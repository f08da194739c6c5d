"""
EPUB container reading and resource deobfuscation.
"""

from .container import EpubContainer, ZipResource
from .deobfuscator import DeobfuscatingResource, EPUBDeobfuscator
from .obfuscation import ADOBE, ALGORITHMS, IDPF, ObfuscationAlgorithm, find_algorithm

__all__ = [
    "EpubContainer",
    "ZipResource",
    "EPUBDeobfuscator",
    "DeobfuscatingResource",
    "ObfuscationAlgorithm",
    "IDPF",
    "ADOBE",
    "ALGORITHMS",
    "find_algorithm",
]
