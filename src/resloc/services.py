# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Service provider declarations and candidate resolution.

A provider declaration is a UTF-8 text resource named
``<service prefix>/<service name>`` listing one implementation name per line.
Text from ``#`` to the end of a line is a comment, and blank lines are ignored.
"""

from __future__ import annotations

import logging
import re
from abc import abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from importlib import import_module
from typing import Final, Protocol, TypeAlias, runtime_checkable

from .content import read_text
from .errors import ResolutionError, ResourceIOError
from .sources import ResourceDescriptor, RootId

LOGGER = logging.getLogger(__name__)

_LINE_SPLIT: Final[re.Pattern[str]] = re.compile(r"\r\n|\r|\n")
_BYTE_ORDER_MARK: Final[str] = "\ufeff"


@dataclass(frozen=True, slots=True)
class ServiceCandidate:
    """Implementation name declared by one root for a service.

    Attributes:
        name: Declared implementation name.
        origin: Root that declared the candidate.
        declaration: Provider-declaration resource listing the candidate.
    """

    name: str
    origin: RootId
    declaration: ResourceDescriptor


@runtime_checkable
class ServiceResolver(Protocol):
    """Define the contract for turning candidate names into type descriptors."""

    @abstractmethod
    def __call__(self, name: str, origin: RootId) -> object:
        """Return the descriptor for ``name`` declared by ``origin``.

        Raises:
            Exception: Any failure; callers report it as :class:`ResolutionError`.
        """
        raise NotImplementedError


ResolverLike: TypeAlias = ServiceResolver | Callable[[str, RootId], object]


@dataclass(frozen=True, slots=True)
class ServiceResolution:
    """Outcome of resolving a single service candidate."""

    candidate: ServiceCandidate
    value: object | None = None
    error: ResolutionError | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when the candidate resolved successfully."""

        return self.error is None

    def unwrap(self) -> object:
        """Return the resolved descriptor.

        Raises:
            ResolutionError: If the candidate could not be resolved.
        """

        if self.error is not None:
            raise self.error
        return self.value


class RegistryResolver:
    """Resolve candidates from a static mapping.

    Keys are either plain names or ``(name, RootId)`` pairs; a pair takes
    precedence so a single root can override the shared entry.
    """

    def __init__(self, registry: Mapping[str | tuple[str, RootId], object]) -> None:
        self._registry = dict(registry)

    def __call__(self, name: str, origin: RootId) -> object:
        """Return the registered descriptor for ``name``.

        Raises:
            LookupError: If neither ``(name, origin)`` nor ``name`` is registered.
        """

        scoped = (name, origin)
        if scoped in self._registry:
            return self._registry[scoped]
        if name in self._registry:
            return self._registry[name]
        raise LookupError(f"{name} is not registered")


class ImportResolver:
    """Resolve candidates by importing ``package.module.Attribute`` references.

    Both the dotted form and the ``package.module:Attribute`` entry-point form
    are accepted. The declaring root is not consulted.
    """

    def __call__(self, name: str, origin: RootId) -> object:
        """Import and return the object referenced by ``name``.

        Raises:
            ImportError: If no module prefix of ``name`` can be imported.
            AttributeError: If the attribute path does not exist.
        """

        del origin
        if ":" in name:
            module_name, _, attribute_path = name.partition(":")
            target: object = import_module(module_name)
            return _resolve_attributes(target, attribute_path)
        module_name, _, attribute_path = name.rpartition(".")
        if not module_name:
            raise ImportError(f"{name} does not name a module attribute")
        while module_name:
            try:
                module = import_module(module_name)
            except ModuleNotFoundError:
                module_name, _, head = module_name.rpartition(".")
                attribute_path = f"{head}.{attribute_path}"
                continue
            return _resolve_attributes(module, attribute_path)
        raise ImportError(f"No importable module in {name}")


def parse_provider_declaration(text: str) -> tuple[str, ...]:
    """Return the candidate names listed in a provider declaration.

    Lines end at ``\\n``, ``\\r`` or ``\\r\\n`` only, and a leading byte order
    mark is ignored.

    Args:
        text: Declaration content.

    Returns:
        tuple[str, ...]: Candidate names in declaration order.
    """

    candidates: list[str] = []
    for line in _LINE_SPLIT.split(text.removeprefix(_BYTE_ORDER_MARK)):
        entry = line.split("#", 1)[0].strip()
        if entry:
            candidates.append(entry)
    return tuple(candidates)


def read_provider_declaration(declaration: ResourceDescriptor) -> tuple[str, ...]:
    """Read ``declaration`` as UTF-8 and return the candidate names it lists.

    Args:
        declaration: Provider-declaration resource.

    Returns:
        tuple[str, ...]: Candidate names in declaration order.

    Raises:
        ResourceIOError: If the declaration cannot be read or is not valid UTF-8.
    """

    try:
        text = read_text(declaration.content, "utf-8")
    except UnicodeDecodeError as error:
        raise ResourceIOError(
            f"Provider declaration {declaration.name} from {declaration.origin} is not valid UTF-8: {error}",
        ) from error
    return parse_provider_declaration(text)


def unreadable_declaration(declaration: ResourceDescriptor, error: ResourceIOError) -> ServiceResolution:
    """Return the failed resolution reported in place of an unreadable declaration.

    The stand-in candidate is named after the declaration resource itself, and
    the :class:`ResolutionError` is chained to ``error``.
    """

    candidate = ServiceCandidate(name=declaration.name, origin=declaration.origin, declaration=declaration)
    failure = ResolutionError(declaration.name, f"provider declaration could not be read: {error}")
    failure.__cause__ = error
    return ServiceResolution(candidate=candidate, error=failure)


def resolve_candidate(candidate: ServiceCandidate, resolver: ResolverLike) -> ServiceResolution:
    """Resolve ``candidate`` with ``resolver`` capturing any failure.

    Args:
        candidate: Candidate to resolve.
        resolver: Resolver invoked with the candidate name and origin.

    Returns:
        ServiceResolution: Resolved value or the :class:`ResolutionError`.
    """

    try:
        value = resolver(candidate.name, candidate.origin)
    except ResolutionError as error:
        failure = error
    except Exception as error:
        failure = ResolutionError(candidate.name, str(error))
        failure.__cause__ = error
    else:
        return ServiceResolution(candidate=candidate, value=value)
    LOGGER.warning("Service candidate %s from %s failed to resolve: %s", candidate.name, candidate.origin, failure)
    return ServiceResolution(candidate=candidate, error=failure)


def distinct_candidates(candidates: Iterable[ServiceCandidate]) -> Iterator[ServiceCandidate]:
    """Yield the first occurrence of each candidate name, earlier roots winning.

    Args:
        candidates: Candidates in root precedence order.

    Yields:
        ServiceCandidate: Candidates whose name has not been seen before.
    """

    seen: set[str] = set()
    for candidate in candidates:
        if candidate.name in seen:
            continue
        seen.add(candidate.name)
        yield candidate


def _resolve_attributes(target: object, attribute_path: str) -> object:
    for attribute in attribute_path.split("."):
        target = getattr(target, attribute)
    return target


__all__ = [
    "ImportResolver",
    "RegistryResolver",
    "ResolverLike",
    "ServiceCandidate",
    "ServiceResolution",
    "ServiceResolver",
    "distinct_candidates",
    "parse_provider_declaration",
    "read_provider_declaration",
    "resolve_candidate",
    "unreadable_declaration",
]
