"""Deterministic, concurrent merkle digests of directory trees."""

from .cancel import CancelToken
from .constants import MERKLEHASH_VERSION as __version__
from .errors import (
    CancelledError,
    FileHashError,
    MerkleHashError,
    NotDirectoryError,
    TraversalError,
)
from .merkle import MerkleHasher, compute, compute_serial

__all__ = [
    "CancelToken",
    "CancelledError",
    "FileHashError",
    "MerkleHashError",
    "MerkleHasher",
    "NotDirectoryError",
    "TraversalError",
    "compute",
    "compute_serial",
]
