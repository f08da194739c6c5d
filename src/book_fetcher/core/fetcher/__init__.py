"""
Resource access layer.
"""

from .link import Encryption, Link
from .resource import (
    DataResource,
    FailureResource,
    Resource,
    ResourceProxy,
    ResourceTransformer,
    clamp_range,
)
from .result import ResourceResult

__all__ = [
    "Encryption",
    "Link",
    "Resource",
    "ResourceResult",
    "ResourceTransformer",
    "ResourceProxy",
    "DataResource",
    "FailureResource",
    "clamp_range",
]
