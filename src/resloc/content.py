# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Byte content handles backing located resources."""

from __future__ import annotations

import io
import tarfile
import zipfile
import zlib
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

from .errors import ResourceIOError

_ARCHIVE_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    EOFError,
    KeyError,
    zipfile.BadZipFile,
    tarfile.TarError,
    zlib.error,
)


@runtime_checkable
class ContentHandle(Protocol):
    """Define the contract for objects exposing the bytes of a resource.

    Implementations must be immutable and safe to share between threads. Each
    call to :meth:`open_stream` returns a fresh stream owned by the caller.
    """

    @abstractmethod
    def open_stream(self) -> BinaryIO:
        """Return a new binary stream positioned at the start of the content.

        Raises:
            ResourceIOError: If the content cannot be opened.
        """
        raise NotImplementedError

    @abstractmethod
    def read_all(self) -> bytes:
        """Return the complete content as ``bytes``.

        Raises:
            ResourceIOError: If the content cannot be read.
        """
        raise NotImplementedError


def read_text(content: ContentHandle, encoding: str = "utf-8") -> str:
    """Return ``content`` decoded with ``encoding``.

    Args:
        content: Handle exposing the resource bytes.
        encoding: Text encoding applied to the bytes.

    Returns:
        str: Decoded text.
    """

    return content.read_all().decode(encoding)


@dataclass(frozen=True, slots=True)
class BytesContent(ContentHandle):
    """In-memory content, mostly useful for tests and synthetic roots."""

    data: bytes
    label: str = "<bytes>"

    def open_stream(self) -> BinaryIO:
        """Return a stream over the in-memory bytes."""

        return io.BytesIO(self.data)

    def read_all(self) -> bytes:
        """Return the in-memory bytes."""

        return self.data

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True, slots=True)
class FileContent(ContentHandle):
    """Content stored in a regular file."""

    path: Path

    def open_stream(self) -> BinaryIO:
        """Open the backing file for binary reading.

        Returns:
            BinaryIO: Stream over the file content.

        Raises:
            ResourceIOError: If the file cannot be opened.
        """

        try:
            return self.path.open("rb")
        except OSError as error:
            raise ResourceIOError(f"Unable to open {self.path}: {error}") from error

    def read_all(self) -> bytes:
        """Return the file content.

        Raises:
            ResourceIOError: If the file cannot be read.
        """

        try:
            return self.path.read_bytes()
        except OSError as error:
            raise ResourceIOError(f"Unable to read {self.path}: {error}") from error

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class ZipEntryContent(ContentHandle):
    """Content of a single member of a ZIP archive.

    The archive is reopened on every access so handles never share an open
    file object across threads.
    """

    archive: Path
    entry: str

    def open_stream(self) -> BinaryIO:
        """Return a stream over the entry, detached from the archive.

        Raises:
            ResourceIOError: If the archive or the entry cannot be read.
        """

        return io.BytesIO(self.read_all())

    def read_all(self) -> bytes:
        """Return the decompressed entry content.

        Raises:
            ResourceIOError: If the archive or the entry cannot be read.
        """

        try:
            with zipfile.ZipFile(self.archive) as archive:
                return archive.read(self.entry)
        except _ARCHIVE_ERRORS as error:
            raise ResourceIOError(f"Unable to read {self}: {error}") from error

    def __str__(self) -> str:
        return f"{self.archive}!/{self.entry}"


@dataclass(frozen=True, slots=True)
class TarEntryContent(ContentHandle):
    """Content of a single regular member of a tar archive."""

    archive: Path
    member: str

    def open_stream(self) -> BinaryIO:
        """Return a stream over the member, detached from the archive.

        Raises:
            ResourceIOError: If the archive or the member cannot be read.
        """

        return io.BytesIO(self.read_all())

    def read_all(self) -> bytes:
        """Return the member content.

        Raises:
            ResourceIOError: If the archive or the member cannot be read.
        """

        try:
            with tarfile.open(self.archive) as archive:
                stream = archive.extractfile(self.member)
                if stream is None:
                    raise ResourceIOError(f"{self} is not a regular member")
                with stream:
                    return stream.read()
        except ResourceIOError:
            raise
        except _ARCHIVE_ERRORS as error:
            raise ResourceIOError(f"Unable to read {self}: {error}") from error

    def __str__(self) -> str:
        return f"{self.archive}!/{self.member}"


__all__ = [
    "BytesContent",
    "ContentHandle",
    "FileContent",
    "TarEntryContent",
    "ZipEntryContent",
    "read_text",
]
