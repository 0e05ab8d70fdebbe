"""Registry of supported digest algorithms.

The registry is an immutable mapping from algorithm name to digest factory.
It belongs to the command line layer: the engine only ever sees the single
factory resolved from it.
"""

import hashlib
from types import MappingProxyType
from typing import List, Mapping

from .errors import UnknownAlgorithmError
from .hashing import DigestFactory

DEFAULT_ALGORITHM = "sha256"

ALGORITHMS: Mapping[str, DigestFactory] = MappingProxyType({
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha224": hashlib.sha224,
    "sha256": hashlib.sha256,
    "sha384": hashlib.sha384,
    "sha512": hashlib.sha512,
    "sha3-224": hashlib.sha3_224,
    "sha3-256": hashlib.sha3_256,
    "sha3-384": hashlib.sha3_384,
    "sha3-512": hashlib.sha3_512,
    "blake2b": hashlib.blake2b,
    "blake2s": hashlib.blake2s,
})


def _normalize(name: str) -> str:
    return name.strip().lower().replace("_", "-")


def supports(name: str) -> bool:
    """Check whether ``name`` is a registered algorithm."""
    return _normalize(name) in ALGORITHMS


def list_algorithms() -> List[str]:
    """Return registered algorithm names in sorted order."""
    return sorted(ALGORITHMS)


def get_factory(name: str) -> DigestFactory:
    """Look up the digest factory for ``name``.

    Names are case-insensitive and ``sha3_256`` is accepted for ``sha3-256``.

    Raises:
        UnknownAlgorithmError: If the algorithm is not registered
    """
    try:
        return ALGORITHMS[_normalize(name)]
    except KeyError:
        raise UnknownAlgorithmError(name, list_algorithms()) from None
