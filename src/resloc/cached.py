# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Lazily decoded, memoized resources."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Final, Generic, TypeVar

from .content import ContentHandle
from .loaders import ResourceLoader, decode_with
from .slots import ReclaimableSlot, StrongSlot

LOGGER = logging.getLogger(__name__)

ValueT = TypeVar("ValueT")

_MISSING: Final[object] = object()


class CachedResource(Generic[ValueT]):
    """Decode a resource on first access and keep the value in a reclaimable slot.

    ``get`` returns the slot value without locking while it is present. On a
    miss, callers serialise on a per-instance lock and re-check the slot, so
    concurrent misses collapse into a single decode. Once the slot is cleared,
    either by :meth:`invalidate` or by the slot's own reclamation policy, the
    next ``get`` decodes again.
    """

    __slots__ = ("_content", "_loader", "_lock", "_name", "_slot")

    def __init__(
        self,
        content: ContentHandle,
        loader: ResourceLoader[ValueT],
        *,
        name: str | None = None,
        slot: ReclaimableSlot[ValueT] | None = None,
    ) -> None:
        """Create a cached resource.

        Args:
            content: Handle exposing the resource bytes.
            loader: Loader decoding the bytes on demand.
            name: Optional resource name used in logs and errors.
            slot: Slot holding the decoded value; a :class:`StrongSlot` when omitted.
        """

        self._content = content
        self._loader = loader
        self._name = name or str(content)
        self._slot: ReclaimableSlot[ValueT] = slot if slot is not None else StrongSlot()
        self._lock = Lock()

    @property
    def name(self) -> str:
        """Return the name of the underlying resource."""

        return self._name

    @property
    def content(self) -> ContentHandle:
        """Return the handle exposing the resource bytes."""

        return self._content

    @property
    def is_loaded(self) -> bool:
        """Return ``True`` when a decoded value is currently retained."""

        return self._slot.get(_MISSING) is not _MISSING

    def get(self) -> ValueT:
        """Return the decoded value, decoding it when absent.

        Returns:
            ValueT: Decoded value.

        Raises:
            DecodeError: If the loader fails.
            ResourceIOError: If the content cannot be read.
        """

        value = self._slot.get(_MISSING)
        if value is not _MISSING:
            return value  # type: ignore[return-value]
        with self._lock:
            value = self._slot.get(_MISSING)
            if value is _MISSING:
                LOGGER.debug("Decoding cached resource %s", self._name)
                value = decode_with(self._loader, self._content, name=self._name)
                self._slot.set(value)
            return value  # type: ignore[return-value]

    def invalidate(self) -> None:
        """Discard the retained value so the next :meth:`get` decodes again."""

        with self._lock:
            self._slot.clear()
        LOGGER.debug("Invalidated cached resource %s", self._name)

    def __call__(self) -> ValueT:
        return self.get()

    def __repr__(self) -> str:
        state = "loaded" if self.is_loaded else "empty"
        return f"CachedResource({self._name!r}, {state})"


__all__ = ["CachedResource"]
