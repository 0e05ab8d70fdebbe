"""Concurrent merkle digests of directory trees.

A directory's digest is the digest of its children's digests, fed in
ascending byte-wise name order. Files are hashed over their full contents and
subdirectories recurse, so the root digest changes whenever any byte, name or
nesting level below it changes.

Work runs on one thread pool per top-level call. Both directory expansion
and file hashing are pool tasks, and each directory gathers its children
through future callbacks rather than by blocking a worker, so a bounded pool
cannot deadlock however deep the tree is. Results land in ordinal slots: the
combination order never depends on completion order.
"""

import logging
import threading
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import List, Optional

from .cancel import CancelToken
from .errors import CancelledError
from .hashing import (
    DEFAULT_CHUNK_SIZE,
    DigestFactory,
    PathLike,
    combine_digests,
    hash_file,
    list_children,
    resolve_root,
)

logger = logging.getLogger(__name__)

# How often the caller thread re-checks its cancel token while waiting.
POLL_INTERVAL = 0.05


@dataclass
class DigestResult:
    """Outcome of hashing one child: a digest or an error, never both."""

    index: int
    digest: Optional[bytes] = None
    error: Optional[BaseException] = None

    @classmethod
    def from_future(cls, index: int, future: Future, path: str) -> "DigestResult":
        if future.cancelled():
            return cls(index, error=CancelledError(path))
        exc = future.exception()
        if exc is not None:
            return cls(index, error=exc)
        return cls(index, digest=future.result())


class _FanIn:
    """Collects one directory's child results into ordinal slots.

    The first failure observed closes the collector, cancels the directory's
    token so queued siblings are skipped, and fails the directory's future.
    Later results are discarded.

    The directory's future is always settled from a fresh pool task, never
    from inside the child's callback. Settling inline would run every
    ancestor's callback on one stack, one frame group per directory level.
    """

    def __init__(
        self,
        pool: ThreadPoolExecutor,
        path: str,
        count: int,
        factory: DigestFactory,
        token: CancelToken,
        done: Future,
    ):
        self.pool = pool
        self.path = path
        self.factory = factory
        self.token = token
        self.done = done
        self._slots: List[Optional[bytes]] = [None] * count
        self._remaining = count
        self._closed = False
        self._lock = threading.Lock()

    def publish(self, index: int, child: Future) -> None:
        """Done-callback for the child at ``index``."""
        # concurrent.futures swallows callback errors, so route them to the
        # directory's future instead of leaving its slot empty forever.
        try:
            result = DigestResult.from_future(index, child, self.path)
            if result.error is None and self.token.cancelled:
                result = DigestResult(index, error=CancelledError(self.path))
        except BaseException as exc:
            result = DigestResult(index, error=exc)

        with self._lock:
            if self._closed:
                if result.error is not None:
                    logger.debug("Discarding failure under %s: %s", self.path, result.error)
                return
            if result.error is None:
                self._slots[index] = result.digest
                self._remaining -= 1
                if self._remaining:
                    return
            self._closed = True

        self._settle(result.error)

    def abort(self, error: BaseException) -> None:
        """Fail the directory before all children were submitted."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._finish(error)

    def _settle(self, error: Optional[BaseException]) -> None:
        try:
            self.pool.submit(self._finish, error)
        except RuntimeError:
            # Pool already shut down: the top-level call has returned.
            logger.debug("Abandoning result for %s after shutdown", self.path)

    def _finish(self, error: Optional[BaseException]) -> None:
        if error is None:
            try:
                digest = combine_digests(self._slots, self.factory)
            except Exception as exc:
                error = exc
            else:
                self.done.set_result(digest)
                return
        logger.debug("Directory %s failed: %s", self.path, error)
        self.token.cancel()
        self.done.set_exception(error)


def _forward_cancel(done: Future, path: str, task: Future) -> None:
    """Fail ``done`` if the pool dropped the task that would have set it."""
    if not task.cancelled():
        return
    try:
        done.set_exception(CancelledError(path))
    except futures.InvalidStateError:
        # Already settled by the directory itself
        pass


class MerkleHasher:
    """Computes merkle digests of directory trees.

    Args:
        factory: Zero-argument callable returning a fresh hash accumulator,
            e.g. ``hashlib.sha256``
        max_workers: Size of the worker pool (default: ThreadPoolExecutor's)
        chunk_size: Read size used when streaming files

    Example:
        >>> hasher = MerkleHasher(hashlib.sha256)
        >>> hasher.compute("some/dir").hex()
    """

    def __init__(
        self,
        factory: DigestFactory,
        max_workers: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.factory = factory
        self.max_workers = max_workers
        self.chunk_size = chunk_size

    def compute(self, path: PathLike, cancel_token: Optional[CancelToken] = None) -> bytes:
        """Compute the digest of ``path`` using the worker pool.

        Raises:
            NotDirectoryError: If ``path`` is not a directory
            TraversalError: If any directory in the tree cannot be listed
            FileHashError: If any file in the tree cannot be read
            CancelledError: If ``cancel_token`` is cancelled before completion
        """
        token = (cancel_token or CancelToken()).child()
        token.raise_if_cancelled(str(path))
        root = resolve_root(path)

        pool = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="merklehash"
        )
        try:
            done = self._submit_directory(pool, root, token)
            return self._wait(done, token, root)
        finally:
            # Outstanding work is abandoned, not joined.
            token.cancel()
            pool.shutdown(wait=False, cancel_futures=True)

    def compute_serial(
        self, path: PathLike, cancel_token: Optional[CancelToken] = None
    ) -> bytes:
        """Compute the digest of ``path`` one child at a time on this thread.

        Produces the same digest as ``compute`` for the same tree.
        """
        token = cancel_token or CancelToken()
        token.raise_if_cancelled(str(path))
        return self._digest_serial(resolve_root(path), token)

    def _digest_serial(self, root: str, token: CancelToken) -> bytes:
        # Explicit stack of (remaining children, digests so far) per open
        # directory, so depth is not limited by the interpreter's stack.
        stack = [(iter(list_children(root)), [])]
        while True:
            entries, digests = stack[-1]
            entry = next(entries, None)
            if entry is None:
                digest = combine_digests(digests, self.factory)
                stack.pop()
                if not stack:
                    return digest
                stack[-1][1].append(digest)
                continue

            token.raise_if_cancelled(entry.path)
            if entry.is_dir:
                stack.append((iter(list_children(entry.path)), []))
            else:
                digests.append(hash_file(entry.path, self.factory, self.chunk_size))

    def _wait(self, done: Future, token: CancelToken, root: str) -> bytes:
        while True:
            token.raise_if_cancelled(root)
            try:
                return done.result(timeout=POLL_INTERVAL)
            except futures.TimeoutError:
                continue

    def _submit_directory(
        self, pool: ThreadPoolExecutor, path: str, token: CancelToken
    ) -> Future:
        done: Future = Future()
        task = pool.submit(self._expand_directory, pool, path, token, done)
        task.add_done_callback(partial(_forward_cancel, done, path))
        return done

    def _expand_directory(
        self,
        pool: ThreadPoolExecutor,
        path: str,
        token: CancelToken,
        done: Future,
    ) -> None:
        try:
            token.raise_if_cancelled(path)
            entries = list_children(path)
        except Exception as exc:
            done.set_exception(exc)
            return

        logger.debug("Expanding %s (%d children)", path, len(entries))
        if not entries:
            done.set_result(combine_digests([], self.factory))
            return

        child_token = token.child()
        fan_in = _FanIn(pool, path, len(entries), self.factory, child_token, done)
        for index, entry in enumerate(entries):
            if child_token.cancelled:
                fan_in.abort(CancelledError(path))
                return
            try:
                if entry.is_dir:
                    child = self._submit_directory(pool, entry.path, child_token)
                else:
                    child = pool.submit(self._hash_file, entry.path, child_token)
            except RuntimeError:
                # Pool already shut down by an abandoned top-level call.
                fan_in.abort(CancelledError(path))
                return
            child.add_done_callback(partial(fan_in.publish, index))

    def _hash_file(self, path: str, token: CancelToken) -> bytes:
        token.raise_if_cancelled(path)
        return hash_file(path, self.factory, self.chunk_size)


def compute(
    path: PathLike,
    factory: DigestFactory,
    cancel_token: Optional[CancelToken] = None,
    max_workers: Optional[int] = None,
) -> bytes:
    """Compute the merkle digest of a directory concurrently."""
    return MerkleHasher(factory, max_workers=max_workers).compute(path, cancel_token)


def compute_serial(
    path: PathLike,
    factory: DigestFactory,
    cancel_token: Optional[CancelToken] = None,
) -> bytes:
    """Compute the merkle digest of a directory without worker threads."""
    return MerkleHasher(factory).compute_serial(path, cancel_token)


__all__ = [
    "DigestResult",
    "MerkleHasher",
    "compute",
    "compute_serial",
]
