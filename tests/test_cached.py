# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for memoized resources."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from resloc import (
    BytesContent,
    CachedResource,
    DecodeError,
    ResourceIOError,
    SlotPool,
    StrongSlot,
    TTLSlot,
    WeakSlot,
    json_loader,
)
from resloc.content import ContentHandle, FileContent
from resloc.loaders import as_loader


class CountingLoader:
    """Loader recording how often it decodes, optionally slowly."""

    def __init__(self, delay: float = 0.0) -> None:
        self.calls = 0
        self.delay = delay
        self._lock = threading.Lock()

    def decode(self, content: ContentHandle) -> str:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return content.read_all().decode("utf-8")


def test_get_decodes_once() -> None:
    loader = CountingLoader()
    resource = CachedResource(BytesContent(b"payload"), loader)

    assert not resource.is_loaded
    assert resource.get() == "payload"
    assert resource.get() == "payload"
    assert resource.is_loaded
    assert loader.calls == 1


def test_concurrent_misses_collapse_into_one_decode() -> None:
    """Many simultaneous callers should observe a single decode."""
    loader = CountingLoader(delay=0.05)
    resource = CachedResource(BytesContent(b"shared"), loader)
    barrier = threading.Barrier(16)

    def _get(_: int) -> str:
        barrier.wait()
        return resource.get()

    with ThreadPoolExecutor(max_workers=16) as executor:
        results = list(executor.map(_get, range(16)))

    assert results == ["shared"] * 16
    assert loader.calls == 1


def test_invalidate_forces_exactly_one_reload() -> None:
    loader = CountingLoader()
    resource = CachedResource(BytesContent(b"v"), loader)
    resource.get()

    resource.invalidate()

    assert not resource.is_loaded
    resource.get()
    resource.get()
    assert loader.calls == 2


def test_invalidate_during_concurrent_gets_keeps_state_consistent() -> None:
    loader = CountingLoader(delay=0.001)
    resource = CachedResource(BytesContent(b"v"), loader)
    stop = threading.Event()

    def _invalidate() -> None:
        while not stop.is_set():
            resource.invalidate()

    invalidator = threading.Thread(target=_invalidate)
    invalidator.start()
    try:
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: resource.get(), range(200)))
    finally:
        stop.set()
        invalidator.join()

    assert set(results) == {"v"}
    assert resource.get() == "v"


def test_decode_failures_are_wrapped_and_not_cached() -> None:
    attempts = {"count": 0}

    def _failing(content: ContentHandle) -> str:
        attempts["count"] += 1
        raise ValueError("corrupt")

    resource = CachedResource(BytesContent(b"x"), as_loader(_failing), name="bad.bin")

    with pytest.raises(DecodeError) as excinfo:
        resource.get()
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert "bad.bin" in str(excinfo.value)
    with pytest.raises(DecodeError):
        resource.get()
    assert attempts["count"] == 2


def test_io_failures_propagate_as_resource_io_error(tmp_path) -> None:
    resource = CachedResource(FileContent(tmp_path / "missing.txt"), CountingLoader())

    with pytest.raises(ResourceIOError):
        resource.get()


def test_reclaimed_slot_triggers_reload() -> None:
    pool = SlotPool(maxsize=1)
    first_loader = CountingLoader()
    second_loader = CountingLoader()
    first = CachedResource(BytesContent(b"1"), first_loader, slot=pool.slot())
    second = CachedResource(BytesContent(b"2"), second_loader, slot=pool.slot())

    first.get()
    second.get()

    assert not first.is_loaded
    assert second.is_loaded
    assert first.get() == "1"
    assert first_loader.calls == 2
    assert second_loader.calls == 1


def test_expired_ttl_slot_triggers_reload(monkeypatch) -> None:
    clock = {"now": 100.0}
    monkeypatch.setattr("resloc.slots.time.monotonic", lambda: clock["now"])
    loader = CountingLoader()
    resource = CachedResource(BytesContent(b"t"), loader, slot=TTLSlot(10.0))

    resource.get()
    clock["now"] = 105.0
    resource.get()
    assert loader.calls == 1

    clock["now"] = 111.0
    resource.get()
    assert loader.calls == 2


@pytest.mark.parametrize(
    "make_slot",
    [StrongSlot, WeakSlot, lambda: TTLSlot(60.0), lambda: SlotPool(4).slot()],
    ids=["strong", "weak", "ttl", "pooled"],
)
def test_none_values_are_cached(make_slot) -> None:
    """A document decoding to ``None`` should still count as loaded."""
    decoder = json_loader()
    calls = {"count": 0}

    def _decode(content: ContentHandle) -> object:
        calls["count"] += 1
        return decoder.decode(content)

    resource = CachedResource(BytesContent(b"null"), as_loader(_decode), slot=make_slot())

    assert resource.get() is None
    assert resource.get() is None
    assert resource.get() is None
    assert resource.is_loaded
    assert calls["count"] == 1

    resource.invalidate()
    assert not resource.is_loaded
    assert resource.get() is None
    assert calls["count"] == 2
