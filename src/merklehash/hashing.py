"""Hashing primitives for deterministic directory digests.

This module provides the digest factory contract, streaming file hashing,
canonical directory enumeration and the merkle combination step shared by
the concurrent and serial engines.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Protocol, Union

from .errors import FileHashError, NotDirectoryError, TraversalError

PathLike = Union[str, Path]

DEFAULT_CHUNK_SIZE = 64 * 1024


class Accumulator(Protocol):
    """Streaming hash state. Any ``hashlib`` object satisfies this."""

    def update(self, data: bytes) -> None: ...

    def digest(self) -> bytes: ...


# Zero-argument callable returning a fresh, independent accumulator,
# e.g. ``hashlib.sha256``.
DigestFactory = Callable[[], Accumulator]


@dataclass(frozen=True)
class DirectoryEntry:
    """An immediate child of a directory."""

    name: str
    path: str
    is_dir: bool

    @property
    def sort_key(self) -> bytes:
        return os.fsencode(self.name)


def hash_file(
    path: PathLike,
    factory: DigestFactory,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bytes:
    """Compute the digest of a file's contents.

    Simple byte-for-byte hashing - any change invalidates the digest.

    Args:
        path: Path to file to hash
        factory: Digest factory producing the accumulator
        chunk_size: Read size in bytes

    Returns:
        Raw digest bytes

    Raises:
        FileHashError: If the file cannot be opened or read
    """
    hasher = factory()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hasher.update(chunk)
    except OSError as exc:
        raise FileHashError(str(path), exc) from exc
    return hasher.digest()


def combine_digests(digests: Iterable[bytes], factory: DigestFactory) -> bytes:
    """Fold ordered child digests into a single directory digest.

    Digests are fed in the order given; callers are responsible for passing
    them in canonical (sorted name) order. An empty iterable yields the
    algorithm's digest of empty input.
    """
    hasher = factory()
    for digest in digests:
        hasher.update(digest)
    return hasher.digest()


def list_children(path: PathLike) -> List[DirectoryEntry]:
    """List the immediate children of a directory in canonical order.

    Children are sorted byte-wise by name so the order never depends on what
    the filesystem reports. Symlinks are not followed: a symlink is listed as
    a file-kind child.

    Raises:
        NotDirectoryError: If ``path`` does not exist or is not a directory
        TraversalError: If the directory cannot be listed
    """
    path = str(path)
    try:
        with os.scandir(path) as it:
            entries = [
                DirectoryEntry(
                    name=entry.name,
                    path=entry.path,
                    is_dir=entry.is_dir(follow_symlinks=False),
                )
                for entry in it
            ]
    except (FileNotFoundError, NotADirectoryError):
        raise NotDirectoryError(path)
    except OSError as exc:
        raise TraversalError(path, exc) from exc

    entries.sort(key=lambda e: e.sort_key)
    return entries


def resolve_root(path: PathLike) -> str:
    """Make ``path`` absolute and check that it is a directory.

    Symlinks are left as they are; only ``.`` and ``..`` segments are
    normalized, so relative and absolute spellings of a path behave alike.
    """
    absolute = os.path.abspath(os.fspath(path))
    if not os.path.isdir(absolute):
        raise NotDirectoryError(absolute)
    return absolute


__all__ = [
    "Accumulator",
    "DigestFactory",
    "DirectoryEntry",
    "DEFAULT_CHUNK_SIZE",
    "hash_file",
    "combine_digests",
    "list_children",
    "resolve_root",
]
