# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Query surface over a built :class:`~resloc.index.ResourceIndex`.

Every query returns a lazy view. Iterating a view walks the immutable index
from scratch, so views can be iterated repeatedly and from several threads at
once without sharing any cursor state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

from .cached import CachedResource
from .errors import DecodeError, ResourceIOError
from .glob import CompiledPattern, cached_compile_glob
from .index import ResourceIndex
from .loaders import ResourceLoader, as_loader, decode_with
from .services import (
    ImportResolver,
    ResolverLike,
    ServiceCandidate,
    ServiceResolution,
    read_provider_declaration,
    resolve_candidate,
    unreadable_declaration,
)
from .settings import LocatorSettings, resolve_settings
from .slots import ReclaimableSlot
from .sources import ResourceDescriptor

LOGGER = logging.getLogger(__name__)

ValueT = TypeVar("ValueT")
ItemT = TypeVar("ItemT")

NamePredicate: TypeAlias = Callable[[str], bool]
Query: TypeAlias = str | CompiledPattern | NamePredicate
LoaderLike: TypeAlias = ResourceLoader[ValueT] | Callable[..., ValueT]
DeclarationEntry: TypeAlias = tuple[ResourceDescriptor, tuple[str, ...] | ResourceIOError]


class LazyView(Generic[ItemT]):
    """Restartable, finite view whose items are recomputed on every iteration."""

    __slots__ = ("_produce",)

    def __init__(self, produce: Callable[[], Iterator[ItemT]]) -> None:
        self._produce = produce

    def __iter__(self) -> Iterator[ItemT]:
        return self._produce()

    def first(self) -> ItemT | None:
        """Return the first item, or ``None`` when the view is empty."""

        return next(iter(self), None)

    def to_list(self) -> list[ItemT]:
        """Materialise the view into a list."""

        return list(self)


class ResourceView(LazyView[ResourceDescriptor]):
    """Lazy view over located resource descriptors."""

    __slots__ = ()

    def names(self) -> list[str]:
        """Return the names of the located resources."""

        return [descriptor.name for descriptor in self]


@dataclass(frozen=True, slots=True)
class LoadOutcome(Generic[ValueT]):
    """Result of decoding one located resource.

    Attributes:
        descriptor: Resource that was decoded.
        value: Decoded value when decoding succeeded.
        error: Failure raised while reading or decoding the resource.
    """

    descriptor: ResourceDescriptor
    value: ValueT | None = None
    error: DecodeError | ResourceIOError | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when the resource decoded successfully."""

        return self.error is None

    def unwrap(self) -> ValueT:
        """Return the decoded value.

        Raises:
            DecodeError: If the loader failed for this resource.
            ResourceIOError: If the content of this resource could not be read.
        """

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class LoadView(LazyView[LoadOutcome[ValueT]]):
    """Lazy view decoding each located resource as it is consumed."""

    __slots__ = ()

    def values(self) -> Iterator[ValueT]:
        """Yield the values of the resources that decoded successfully."""

        for outcome in self:
            if outcome.error is None:
                yield outcome.value  # type: ignore[misc]

    def failures(self) -> Iterator[LoadOutcome[ValueT]]:
        """Yield the outcomes of the resources that failed to decode."""

        for outcome in self:
            if outcome.error is not None:
                yield outcome


class ResourceLocator:
    """Answer name, predicate and glob queries against a resource index."""

    def __init__(
        self,
        index: ResourceIndex,
        *,
        settings: LocatorSettings | None = None,
        resolver: ResolverLike | None = None,
    ) -> None:
        """Create a locator over ``index``.

        Args:
            index: Index produced by :class:`~resloc.index.ResourceIndexBuilder`.
            settings: Optional settings; resolved from the environment when omitted.
            resolver: Default resolver for :meth:`services`, importing
                ``package.module.Attribute`` names when omitted.
        """

        self.index = index
        self.settings = resolve_settings(settings)
        self.resolver: ResolverLike = resolver if resolver is not None else ImportResolver()
        self._slot_factory: Callable[[], ReclaimableSlot[object]] = self.settings.slot_factory()

    def locate(self, query: str | CompiledPattern | NamePredicate) -> ResourceView:
        """Return the resources matching ``query``.

        Args:
            query: Exact resource name, compiled glob or name predicate.

        Returns:
            ResourceView: Matching resources in root order, then enumeration order.
        """

        if isinstance(query, str):
            name = query
            return ResourceView(lambda: iter(self.index.named(name)))
        return self._filtered(query)

    def locate_matching(self, pattern: str) -> ResourceView:
        """Return the resources whose names match the glob ``pattern``.

        Raises:
            PatternSyntaxError: If ``pattern`` is malformed.
        """

        return self._filtered(cached_compile_glob(pattern))

    def load(self, query: Query, loader: LoaderLike[ValueT]) -> LoadView[ValueT]:
        """Return a view decoding every matching resource with ``loader``.

        Each resource is decoded when its outcome is consumed. A failure is
        captured in that resource's :class:`LoadOutcome` and does not affect
        the others.

        Args:
            query: Glob pattern, compiled glob or name predicate.
            loader: Loader or callable decoding a content handle.

        Returns:
            LoadView: Lazy view of load outcomes.

        Raises:
            PatternSyntaxError: If ``query`` is a malformed glob.
        """

        resources = self._filtered(self._matcher(query))
        decoder = as_loader(loader)

        def _produce() -> Iterator[LoadOutcome[ValueT]]:
            for descriptor in resources:
                yield _load_one(descriptor, decoder)

        return LoadView(_produce)

    def get_cached(self, query: Query, loader: LoaderLike[ValueT]) -> LazyView[CachedResource[ValueT]]:
        """Return a view wrapping every matching resource for deferred decoding.

        Args:
            query: Glob pattern, compiled glob or name predicate.
            loader: Loader or callable decoding a content handle.

        Returns:
            LazyView: Lazy view of :class:`CachedResource` instances.

        Raises:
            PatternSyntaxError: If ``query`` is a malformed glob.
        """

        resources = self._filtered(self._matcher(query))
        decoder = as_loader(loader)

        def _produce() -> Iterator[CachedResource[ValueT]]:
            for descriptor in resources:
                yield self.cached(descriptor, decoder)

        return LazyView(_produce)

    def cached(self, descriptor: ResourceDescriptor, loader: LoaderLike[ValueT]) -> CachedResource[ValueT]:
        """Wrap ``descriptor`` in a :class:`CachedResource` using the configured slot policy."""

        slot: ReclaimableSlot[ValueT] = self._slot_factory()  # type: ignore[assignment]
        return CachedResource(descriptor.content, as_loader(loader), name=descriptor.name, slot=slot)

    def service_declaration_name(self, service: str) -> str:
        """Return the resource name holding provider declarations for ``service``."""

        return f"{self.settings.service_prefix}/{service}"

    def service_candidates(self, service: str) -> LazyView[ServiceCandidate]:
        """Return the implementation names declared for ``service``.

        Declarations are read root by root in index order and candidates are
        not de-duplicated across roots. A declaration that cannot be read is
        logged and skipped, and later roots are still consulted; use
        :meth:`services` to receive such failures as outcomes.

        Args:
            service: Fully qualified service name.

        Returns:
            LazyView: Candidates in root order, then declaration order.
        """

        declarations = self._declarations(service)

        def _produce() -> Iterator[ServiceCandidate]:
            for declaration, names in declarations:
                if isinstance(names, ResourceIOError):
                    continue
                for name in names:
                    yield ServiceCandidate(name=name, origin=declaration.origin, declaration=declaration)

        return LazyView(_produce)

    def services(self, service: str, resolver: ResolverLike | None = None) -> LazyView[ServiceResolution]:
        """Return the resolution outcome of every candidate declared for ``service``.

        Args:
            service: Fully qualified service name.
            resolver: Resolver overriding the locator default.

        Returns:
            LazyView: One :class:`ServiceResolution` per candidate, plus one
            failed resolution for each declaration that could not be read.
        """

        declarations = self._declarations(service)
        effective = resolver if resolver is not None else self.resolver

        def _produce() -> Iterator[ServiceResolution]:
            for declaration, names in declarations:
                if isinstance(names, ResourceIOError):
                    yield unreadable_declaration(declaration, names)
                    continue
                for name in names:
                    candidate = ServiceCandidate(name=name, origin=declaration.origin, declaration=declaration)
                    yield resolve_candidate(candidate, effective)

        return LazyView(_produce)

    def _declarations(self, service: str) -> LazyView[DeclarationEntry]:
        declarations = self.locate(self.service_declaration_name(service))

        def _produce() -> Iterator[DeclarationEntry]:
            for declaration in declarations:
                try:
                    yield declaration, read_provider_declaration(declaration)
                except ResourceIOError as error:
                    LOGGER.warning(
                        "Skipping provider declaration %s from %s: %s",
                        declaration.name,
                        declaration.origin,
                        error,
                    )
                    yield declaration, error

        return LazyView(_produce)

    def _filtered(self, predicate: NamePredicate) -> ResourceView:
        index = self.index

        def _produce() -> Iterator[ResourceDescriptor]:
            return (descriptor for descriptor in index if predicate(descriptor.name))

        return ResourceView(_produce)

    @staticmethod
    def _matcher(query: Query) -> NamePredicate:
        if isinstance(query, str):
            return cached_compile_glob(query)
        if isinstance(query, CompiledPattern) or callable(query):
            return query
        raise TypeError(f"Unsupported resource query: {query!r}")


def _load_one(descriptor: ResourceDescriptor, loader: ResourceLoader[ValueT]) -> LoadOutcome[ValueT]:
    try:
        value = decode_with(loader, descriptor.content, name=descriptor.name)
    except (DecodeError, ResourceIOError) as error:
        LOGGER.warning("Failed to load %s from %s: %s", descriptor.name, descriptor.origin, error)
        return LoadOutcome(descriptor=descriptor, error=error)
    return LoadOutcome(descriptor=descriptor, value=value)


__all__ = [
    "LazyView",
    "LoadOutcome",
    "LoadView",
    "NamePredicate",
    "Query",
    "ResourceLocator",
    "ResourceView",
]
