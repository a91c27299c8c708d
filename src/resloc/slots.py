# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Reclaimable value slots backing cached resources.

A slot holds at most one value, which may be ``None``. Depending on the
implementation the value may disappear without notice, at which point
:meth:`ReclaimableSlot.get` returns its ``default`` exactly as if nothing had
ever been stored. Callers that need to tell a stored ``None`` apart from an
empty slot pass a private sentinel as ``default``, the same way ``dict.get``
is used.

* :class:`StrongSlot` keeps its value until cleared.
* :class:`WeakSlot` keeps a weak reference, so the value is reclaimed by the
  garbage collector once nothing else refers to it.
* :class:`TTLSlot` drops its value once ``ttl_seconds`` have elapsed on the
  monotonic clock since it was stored.
* :class:`SlotPool` hands out slots sharing a least-recently-used budget; when
  more than ``maxsize`` pooled slots hold values the least recently used one
  is cleared.
"""

from __future__ import annotations

import logging
import time
import weakref
from abc import abstractmethod
from collections import OrderedDict
from threading import Lock
from typing import Final, Generic, Protocol, TypeVar

LOGGER = logging.getLogger(__name__)

ValueT = TypeVar("ValueT")
DefaultT = TypeVar("DefaultT")

_EMPTY: Final[object] = object()


class ReclaimableSlot(Protocol[ValueT]):
    """Define the contract implemented by reclaimable value holders."""

    @abstractmethod
    def get(self, default: DefaultT | None = None) -> ValueT | DefaultT | None:
        """Return the held value, or ``default`` when empty or reclaimed."""
        raise NotImplementedError

    @abstractmethod
    def set(self, value: ValueT) -> None:
        """Store ``value`` replacing any previous value."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Discard the held value."""
        raise NotImplementedError


class StrongSlot(Generic[ValueT]):
    """Slot that is never reclaimed implicitly."""

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value: object = _EMPTY

    def get(self, default: DefaultT | None = None) -> ValueT | DefaultT | None:
        value = self._value
        return default if value is _EMPTY else value  # type: ignore[return-value]

    def set(self, value: ValueT) -> None:
        self._value = value

    def clear(self) -> None:
        self._value = _EMPTY


class WeakSlot(Generic[ValueT]):
    """Slot reclaimed by the garbage collector.

    Builtins such as ``dict``, ``str``, ``bytes`` and ``None`` cannot be
    weakly referenced. Such values are retained strongly until the slot is
    cleared, so the slot behaves like a :class:`StrongSlot` for them.
    """

    __slots__ = ("_held", "_ref")

    def __init__(self) -> None:
        self._ref: weakref.ReferenceType[ValueT] | None = None
        self._held: object = _EMPTY

    def get(self, default: DefaultT | None = None) -> ValueT | DefaultT | None:
        held = self._held
        if held is not _EMPTY:
            return held  # type: ignore[return-value]
        ref = self._ref
        value = None if ref is None else ref()
        return default if value is None else value

    def set(self, value: ValueT) -> None:
        """Store a weak reference to ``value``, or ``value`` itself when it cannot be weakly referenced."""

        try:
            ref = weakref.ref(value)
        except TypeError:
            LOGGER.debug("Retaining %s value strongly; it does not support weak references", type(value).__name__)
            self._ref = None
            self._held = value
            return
        self._held = _EMPTY
        self._ref = ref

    def clear(self) -> None:
        self._ref = None
        self._held = _EMPTY


class TTLSlot(Generic[ValueT]):
    """Slot whose value expires after a fixed lifetime."""

    __slots__ = ("_entry", "_ttl_seconds")

    def __init__(self, ttl_seconds: float) -> None:
        """Create a slot keeping values for ``ttl_seconds``.

        Raises:
            ValueError: If ``ttl_seconds`` is not positive.
        """

        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl_seconds = ttl_seconds
        self._entry: tuple[float, ValueT] | None = None

    def get(self, default: DefaultT | None = None) -> ValueT | DefaultT | None:
        entry = self._entry
        if entry is None:
            return default
        expires_at, value = entry
        if expires_at < time.monotonic():
            # a concurrent set() may already have replaced the expired entry
            if self._entry is entry:
                self._entry = None
            return default
        return value

    def set(self, value: ValueT) -> None:
        self._entry = (time.monotonic() + self._ttl_seconds, value)

    def clear(self) -> None:
        self._entry = None


class SlotPool:
    """Least-recently-used budget shared by the slots it creates."""

    def __init__(self, maxsize: int) -> None:
        """Create a pool retaining at most ``maxsize`` values.

        Raises:
            ValueError: If ``maxsize`` is not positive.
        """

        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._occupied: OrderedDict[int, PooledSlot[object]] = OrderedDict()
        self._lock = Lock()

    def slot(self) -> PooledSlot[ValueT]:
        """Return a new empty slot drawing on this pool's budget."""

        return PooledSlot(self)

    def __len__(self) -> int:
        with self._lock:
            return len(self._occupied)

    def _touch(self, slot: PooledSlot[ValueT]) -> None:
        with self._lock:
            if id(slot) in self._occupied:
                self._occupied.move_to_end(id(slot))

    def _admit(self, slot: PooledSlot[ValueT], value: ValueT) -> None:
        with self._lock:
            slot._value = value
            self._occupied[id(slot)] = slot  # type: ignore[assignment]
            self._occupied.move_to_end(id(slot))
            while len(self._occupied) > self.maxsize:
                _, oldest = self._occupied.popitem(last=False)
                oldest._value = _EMPTY

    def _release(self, slot: PooledSlot[ValueT]) -> None:
        with self._lock:
            slot._value = _EMPTY
            self._occupied.pop(id(slot), None)


class PooledSlot(Generic[ValueT]):
    """Slot whose value may be evicted by its :class:`SlotPool`."""

    __slots__ = ("__weakref__", "_pool", "_value")

    def __init__(self, pool: SlotPool) -> None:
        self._pool = pool
        self._value: object = _EMPTY

    def get(self, default: DefaultT | None = None) -> ValueT | DefaultT | None:
        value = self._value
        if value is _EMPTY:
            return default
        self._pool._touch(self)
        return value  # type: ignore[return-value]

    def set(self, value: ValueT) -> None:
        self._pool._admit(self, value)

    def clear(self) -> None:
        self._pool._release(self)


__all__ = [
    "PooledSlot",
    "ReclaimableSlot",
    "SlotPool",
    "StrongSlot",
    "TTLSlot",
    "WeakSlot",
]
