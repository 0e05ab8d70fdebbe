"""Custom exceptions for merklehash.

This module defines typed exceptions for better error handling and clearer
error messages throughout the application. Every engine failure names the
offending path so the CLI can report it.
"""

from typing import Optional


class MerkleHashError(RuntimeError):
    """Base class for all merklehash errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


# Traversal Errors
class NotDirectoryError(MerkleHashError):
    """Root or recursed path is not a directory."""

    def __init__(self, path: str):
        super().__init__(f"{path} is not a directory", path=path)


class TraversalError(MerkleHashError):
    """Listing a directory's children failed (permissions, I/O)."""

    def __init__(self, path: str, cause: BaseException):
        self.cause = cause
        super().__init__(f"Could not read directory {path}: {cause}", path=path)


class FileHashError(MerkleHashError):
    """Opening or reading a file failed mid-stream."""

    def __init__(self, path: str, cause: BaseException):
        self.cause = cause
        super().__init__(f"Could not hash file {path}: {cause}", path=path)


class CancelledError(MerkleHashError):
    """Cancellation was signaled before the digest was complete."""

    def __init__(self, path: Optional[str] = None):
        message = "Cancelled"
        if path:
            message = f"Cancelled while hashing {path}"
        super().__init__(message, path=path)


# Configuration Errors
class ConfigError(MerkleHashError):
    """Base class for configuration errors."""
    pass


class UnknownAlgorithmError(ConfigError):
    """Requested digest algorithm is not registered."""

    def __init__(self, name: str, available: list):
        self.name = name
        self.available = available
        super().__init__(
            f"'{name}' is not a valid algorithm. "
            f"Valid algorithms are: {', '.join(available)}"
        )
