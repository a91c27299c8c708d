# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Source roots contributing named resources to an index.

A root is one provenance unit: a directory tree, an archive file, or an
aggregate of other roots. Roots validate their input when constructed and
enumerate their resources only when :meth:`SourceRoot.enumerate` is called
by the index builder.
"""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path, PurePosixPath

from .content import ContentHandle, FileContent, TarEntryContent, ZipEntryContent
from .errors import InvalidSourceError, ResourceIOError

LOGGER = logging.getLogger(__name__)


class RootKind(StrEnum):
    """Enumerate the supported root kinds."""

    DIRECTORY = "directory"
    ZIP = "zip"
    TAR = "tar"
    AGGREGATE = "aggregate"


@dataclass(frozen=True, slots=True)
class RootId:
    """Stable identity of a source root.

    Attributes:
        kind: Kind of root.
        location: Resolved POSIX path for file based roots, label for aggregates.
    """

    kind: RootKind
    location: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.location}"


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    """A named resource together with its content and origin.

    Attributes:
        name: Slash separated resource name without a leading separator.
        origin: Identity of the root that produced the resource.
        content: Handle exposing the resource bytes.
    """

    name: str
    origin: RootId
    content: ContentHandle


@dataclass(frozen=True, slots=True)
class RootListing:
    """Resources enumerated from a single concrete root."""

    root_id: RootId
    resources: tuple[ResourceDescriptor, ...]


class SourceRoot(ABC):
    """Base class for every root accepted by the index builder."""

    @property
    @abstractmethod
    def root_id(self) -> RootId:
        """Return the identity of this root."""

    @abstractmethod
    def enumerate(self) -> tuple[RootListing, ...]:
        """Return the listings produced by this root, in precedence order.

        Raises:
            ResourceIOError: If the root can no longer be read.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.root_id})"


class DirectoryRoot(SourceRoot):
    """Root backed by a directory tree."""

    def __init__(self, path: Path | str, *, follow_symlinks: bool = False) -> None:
        """Create a directory root.

        Args:
            path: Directory containing the resources.
            follow_symlinks: When ``True`` descend into symlinked directories.

        Raises:
            InvalidSourceError: If ``path`` is not a directory.
        """

        directory = Path(path)
        if not directory.is_dir():
            raise InvalidSourceError(f"{directory} is not a directory")
        self.path = directory.resolve()
        self.follow_symlinks = follow_symlinks
        self._root_id = RootId(RootKind.DIRECTORY, self.path.as_posix())

    @property
    def root_id(self) -> RootId:
        return self._root_id

    def enumerate(self) -> tuple[RootListing, ...]:
        """Return every regular file below the directory, sorted by name.

        Raises:
            ResourceIOError: If the directory tree cannot be walked.
        """

        resources = tuple(
            ResourceDescriptor(name=name, origin=self._root_id, content=FileContent(self.path / name))
            for name in sorted(self._walk())
        )
        return (RootListing(self._root_id, resources),)

    def _walk(self) -> Iterator[str]:
        """Yield relative POSIX names of the regular files below the root."""

        def _raise(error: OSError) -> None:
            raise ResourceIOError(f"Unable to enumerate {self.path}: {error}") from error

        for dirpath, _dirnames, filenames in os.walk(self.path, onerror=_raise, followlinks=self.follow_symlinks):
            current = Path(dirpath)
            for filename in filenames:
                candidate = current / filename
                if not candidate.is_file():
                    continue
                yield candidate.relative_to(self.path).as_posix()


class ArchiveRoot(SourceRoot):
    """Root backed by a ZIP or tar archive."""

    def __init__(self, path: Path | str) -> None:
        """Create an archive root, detecting the archive format from its content.

        Args:
            path: Archive file.

        Raises:
            InvalidSourceError: If ``path`` is not a readable archive.
        """

        archive = Path(path)
        if not archive.is_file():
            raise InvalidSourceError(f"{archive} is not an archive file")
        self.path = archive.resolve()
        self.kind = _detect_archive_kind(self.path)
        LOGGER.debug("Detected %s archive %s", self.kind, self.path)
        self._root_id = RootId(self.kind, self.path.as_posix())

    @property
    def root_id(self) -> RootId:
        return self._root_id

    def enumerate(self) -> tuple[RootListing, ...]:
        """Return the regular entries stored in the archive, in stored order.

        Raises:
            ResourceIOError: If the archive cannot be read.
        """

        try:
            if self.kind is RootKind.ZIP:
                resources = tuple(self._zip_entries())
            else:
                resources = tuple(self._tar_members())
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as error:
            raise ResourceIOError(f"Unable to enumerate {self.path}: {error}") from error
        return (RootListing(self._root_id, resources),)

    def _zip_entries(self) -> Iterator[ResourceDescriptor]:
        seen: set[str] = set()
        with zipfile.ZipFile(self.path) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                name = normalize_entry_name(info.filename)
                if not name or name in seen:
                    continue
                seen.add(name)
                yield ResourceDescriptor(name, self._root_id, ZipEntryContent(self.path, info.filename))

    def _tar_members(self) -> Iterator[ResourceDescriptor]:
        seen: set[str] = set()
        with tarfile.open(self.path) as archive:
            for member in archive.getmembers():
                if not member.isfile():
                    continue
                name = normalize_entry_name(member.name)
                if not name or name in seen:
                    continue
                seen.add(name)
                yield ResourceDescriptor(name, self._root_id, TarEntryContent(self.path, member.name))


class AggregateRoot(SourceRoot):
    """Root grouping other roots while preserving their individual identities."""

    def __init__(self, members: Sequence[SourceRoot], *, label: str | None = None) -> None:
        """Create an aggregate over ``members``.

        Args:
            members: Roots grouped by the aggregate, in precedence order.
            label: Optional label identifying the aggregate.

        Raises:
            InvalidSourceError: If ``members`` is empty.
        """

        if not members:
            raise InvalidSourceError("Aggregate root has no usable roots")
        self.members: tuple[SourceRoot, ...] = tuple(members)
        description = label or "+".join(str(member.root_id) for member in self.members)
        self._root_id = RootId(RootKind.AGGREGATE, description)

    @property
    def root_id(self) -> RootId:
        return self._root_id

    def enumerate(self) -> tuple[RootListing, ...]:
        """Return the listings of every member, flattened in member order."""

        listings: list[RootListing] = []
        for member in self.members:
            listings.extend(member.enumerate())
        return tuple(listings)

    def flatten(self) -> tuple[SourceRoot, ...]:
        """Return the concrete roots below this aggregate, in precedence order."""

        concrete: list[SourceRoot] = []
        for member in self.members:
            if isinstance(member, AggregateRoot):
                concrete.extend(member.flatten())
            else:
                concrete.append(member)
        return tuple(concrete)


def normalize_entry_name(raw: str) -> str:
    """Return ``raw`` as a slash separated name without a leading separator.

    Args:
        raw: Entry name as stored in an archive.

    Returns:
        str: Normalised resource name, empty when nothing remains.
    """

    posix = raw.replace("\\", "/")
    parts = [part for part in PurePosixPath(posix).parts if part not in ("/", ".")]
    return "/".join(parts)


def _detect_archive_kind(path: Path) -> RootKind:
    """Return the archive kind of ``path``.

    Raises:
        InvalidSourceError: If ``path`` is neither a ZIP nor a tar archive.
    """

    try:
        if zipfile.is_zipfile(path):
            with zipfile.ZipFile(path) as archive:
                archive.infolist()
            return RootKind.ZIP
        if tarfile.is_tarfile(path):
            return RootKind.TAR
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as error:
        raise InvalidSourceError(f"{path} does not refer to a valid archive: {error}") from error
    raise InvalidSourceError(f"{path} does not refer to a valid archive")


__all__ = [
    "AggregateRoot",
    "ArchiveRoot",
    "DirectoryRoot",
    "ResourceDescriptor",
    "RootId",
    "RootKind",
    "RootListing",
    "SourceRoot",
    "normalize_entry_name",
]
