# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Custom exceptions raised by resource location operations."""

from __future__ import annotations


class ResourceError(RuntimeError):
    """Base class for every error raised by :mod:`resloc`."""


class PatternSyntaxError(ResourceError, ValueError):
    """Raised when a glob pattern cannot be compiled."""

    def __init__(self, description: str, pattern: str, index: int) -> None:
        """Create the error describing the offending position.

        Args:
            description: Human-readable explanation of the failure.
            pattern: Glob pattern that failed to compile.
            index: Zero-based index of the offending character.
        """

        super().__init__(f"{description} near index {index}: {pattern!r}")
        self.description = description
        self.pattern = pattern
        self.index = index


class InvalidSourceError(ResourceError, ValueError):
    """Raised when a registered root does not exist or is not the claimed kind."""


class InvalidStateError(ResourceError):
    """Raised when an operation is attempted in an invalid state."""


class ConfigError(ResourceError, ValueError):
    """Raised when locator settings are invalid."""


class ResourceIOError(ResourceError, OSError):
    """Raised when the bytes of a resource cannot be read."""


class DecodeError(ResourceError):
    """Raised when a loader fails to decode a resource."""

    def __init__(self, name: str, cause: BaseException) -> None:
        """Create the error for resource ``name`` caused by ``cause``.

        Args:
            name: Name or description of the resource being decoded.
            cause: Underlying exception raised by the loader.
        """

        super().__init__(f"Unable to decode {name!r}: {cause}")
        self.name = name
        self.__cause__ = cause


class ResolutionError(ResourceError):
    """Raised when a service candidate cannot be resolved."""

    def __init__(self, candidate: str, message: str) -> None:
        """Create the error for ``candidate``.

        Args:
            candidate: Implementation name that failed to resolve.
            message: Explanation of the failure.
        """

        super().__init__(f"Unable to resolve service candidate {candidate!r}: {message}")
        self.candidate = candidate


__all__ = (
    "ConfigError",
    "DecodeError",
    "InvalidSourceError",
    "InvalidStateError",
    "PatternSyntaxError",
    "ResolutionError",
    "ResourceError",
    "ResourceIOError",
)
