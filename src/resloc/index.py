# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Immutable index of the resources contributed by registered roots."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .errors import InvalidStateError
from .settings import LocatorSettings, resolve_settings
from .sources import AggregateRoot, ArchiveRoot, DirectoryRoot, ResourceDescriptor, RootId, RootListing, SourceRoot

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, eq=False)
class ResourceIndex:
    """Resources grouped by root, in root precedence order.

    Attributes:
        roots: Root identities in insertion order.
        by_root: Resources enumerated from each root, in enumeration order.
    """

    roots: tuple[RootId, ...]
    by_root: Mapping[RootId, tuple[ResourceDescriptor, ...]]
    _by_name: Mapping[str, tuple[ResourceDescriptor, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Freeze ``by_root`` and derive the name lookup table."""

        frozen = MappingProxyType({root: tuple(self.by_root.get(root, ())) for root in self.roots})
        object.__setattr__(self, "by_root", frozen)
        by_name: dict[str, list[ResourceDescriptor]] = {}
        for descriptor in self:
            by_name.setdefault(descriptor.name, []).append(descriptor)
        object.__setattr__(
            self,
            "_by_name",
            MappingProxyType({name: tuple(matches) for name, matches in by_name.items()}),
        )

    @classmethod
    def from_listings(cls, listings: Sequence[RootListing]) -> ResourceIndex:
        """Assemble an index from root listings, keeping the first of any duplicate root.

        Args:
            listings: Root listings in precedence order.

        Returns:
            ResourceIndex: Index over the listed resources.
        """

        order: list[RootId] = []
        by_root: dict[RootId, tuple[ResourceDescriptor, ...]] = {}
        for listing in listings:
            if listing.root_id in by_root:
                LOGGER.debug("Ignoring duplicate root %s", listing.root_id)
                continue
            order.append(listing.root_id)
            by_root[listing.root_id] = listing.resources
        return cls(roots=tuple(order), by_root=by_root)

    def __iter__(self) -> Iterator[ResourceDescriptor]:
        """Yield every resource in root order, then enumeration order."""

        for root in self.roots:
            yield from self.by_root[root]

    def __len__(self) -> int:
        return sum(len(resources) for resources in self.by_root.values())

    def named(self, name: str) -> tuple[ResourceDescriptor, ...]:
        """Return the resources called ``name``, in root order.

        Args:
            name: Exact resource name.

        Returns:
            tuple[ResourceDescriptor, ...]: Matching resources, possibly empty.
        """

        return self._by_name.get(name, ())

    def in_root(self, root: RootId) -> tuple[ResourceDescriptor, ...]:
        """Return the resources contributed by ``root``.

        Raises:
            KeyError: If ``root`` is not part of the index.
        """

        return self.by_root[root]


class ResourceIndexBuilder:
    """Collect roots and build a :class:`ResourceIndex` from them.

    Roots are validated when added so that an invalid directory or archive is
    reported by the ``add_*`` call, not by :meth:`build`.
    """

    def __init__(self, settings: LocatorSettings | None = None) -> None:
        """Create an empty builder.

        Args:
            settings: Optional settings; resolved from the environment when omitted.
        """

        self.settings = resolve_settings(settings)
        self._roots: list[SourceRoot] = []

    @property
    def roots(self) -> tuple[SourceRoot, ...]:
        """Return the registered roots in insertion order."""

        return tuple(self._roots)

    def add_root(self, root: SourceRoot) -> ResourceIndexBuilder:
        """Register an already constructed root.

        Returns:
            ResourceIndexBuilder: ``self`` for chaining.
        """

        LOGGER.debug("Registered root %s", root.root_id)
        self._roots.append(root)
        return self

    def add_directory(self, path: Path | str) -> ResourceIndexBuilder:
        """Register a directory root.

        Raises:
            InvalidSourceError: If ``path`` is not a directory.
        """

        return self.add_root(DirectoryRoot(path, follow_symlinks=self.settings.follow_symlinks))

    def add_archive(self, path: Path | str) -> ResourceIndexBuilder:
        """Register a ZIP or tar archive root.

        Raises:
            InvalidSourceError: If ``path`` is not a readable archive.
        """

        return self.add_root(ArchiveRoot(path))

    def add_aggregate(self, roots: Sequence[SourceRoot], *, label: str | None = None) -> ResourceIndexBuilder:
        """Register an aggregate of existing roots.

        Raises:
            InvalidSourceError: If ``roots`` is empty.
        """

        return self.add_root(AggregateRoot(roots, label=label))

    def build(self) -> ResourceIndex:
        """Enumerate every registered root and return the resulting index.

        Returns:
            ResourceIndex: Immutable index over the enumerated resources.

        Raises:
            InvalidStateError: If no root has been registered.
            ResourceIOError: If any root cannot be enumerated; no index is produced.
        """

        if not self._roots:
            raise InvalidStateError("At least one root must be added before building the index")
        concrete = _flatten(self._roots)
        listings = self._enumerate(concrete)
        index = ResourceIndex.from_listings(listings)
        LOGGER.debug("Built resource index with %d roots and %d resources", len(index.roots), len(index))
        return index

    def _enumerate(self, roots: Sequence[SourceRoot]) -> list[RootListing]:
        """Enumerate ``roots``, in parallel when enabled, preserving their order."""

        if not self.settings.parallel_enumeration or len(roots) < 2:
            return [listing for root in roots for listing in _enumerate_root(root)]
        with ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="resloc-enum") as executor:
            futures = [executor.submit(_enumerate_root, root) for root in roots]
            return [listing for future in futures for listing in future.result()]


def _enumerate_root(root: SourceRoot) -> tuple[RootListing, ...]:
    listings = root.enumerate()
    for listing in listings:
        LOGGER.debug("Enumerated %d resources from %s", len(listing.resources), listing.root_id)
    return listings


def _flatten(roots: Sequence[SourceRoot]) -> tuple[SourceRoot, ...]:
    concrete: list[SourceRoot] = []
    for root in roots:
        if isinstance(root, AggregateRoot):
            concrete.extend(root.flatten())
        else:
            concrete.append(root)
    return tuple(concrete)


__all__ = ["ResourceIndex", "ResourceIndexBuilder"]
