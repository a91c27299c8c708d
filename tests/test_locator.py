# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for locator queries and loading."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from resloc import (
    CachedResource,
    DecodeError,
    LocatorSettings,
    PatternSyntaxError,
    ResourceIndexBuilder,
    ResourceIOError,
    ResourceLocator,
    compile_glob,
    properties_loader,
    text_loader,
)
from resloc.content import ContentHandle


@pytest.fixture
def books_locator(make_zip, serial_settings: LocatorSettings) -> ResourceLocator:
    """Return a locator over two archives that both ship ``books/x.properties``."""
    first = make_zip(
        "first.jar",
        {
            "books/x.properties": "title=A Game of Thrones\nauthor=George R. R. Martin\n",
            "books/readme.txt": "first",
        },
    )
    second = make_zip(
        "second.jar",
        {
            "books/x.properties": "title=\\uZZZZ broken\n",
            "covers/x.png": b"\x89PNG",
        },
    )
    index = ResourceIndexBuilder(serial_settings).add_archive(first).add_archive(second).build()
    return ResourceLocator(index, settings=serial_settings)


def test_locate_exact_name_returns_shadowed_resources_in_root_order(books_locator: ResourceLocator) -> None:
    located = books_locator.locate("books/x.properties").to_list()

    assert len(located) == 2
    assert [descriptor.origin for descriptor in located] == list(books_locator.index.roots)


def test_locate_exact_name_does_not_glob(books_locator: ResourceLocator) -> None:
    assert books_locator.locate("books/*.properties").to_list() == []


def test_locate_matching_glob(books_locator: ResourceLocator) -> None:
    located = books_locator.locate_matching("books/*.properties")

    assert located.names() == ["books/x.properties", "books/x.properties"]
    assert [descriptor.origin for descriptor in located] == list(books_locator.index.roots)


def test_locate_with_predicate_and_compiled_pattern(books_locator: ResourceLocator) -> None:
    by_predicate = books_locator.locate(lambda name: name.endswith(".txt")).names()
    by_pattern = books_locator.locate(compile_glob("**/*.png")).names()

    assert by_predicate == ["books/readme.txt"]
    assert by_pattern == ["covers/x.png"]


def test_views_are_restartable(books_locator: ResourceLocator) -> None:
    view = books_locator.locate_matching("**")

    assert list(view) == list(view)
    assert len(list(view)) == 4


def test_malformed_pattern_fails_at_query_time(books_locator: ResourceLocator) -> None:
    with pytest.raises(PatternSyntaxError):
        books_locator.locate_matching("books/{x")
    with pytest.raises(PatternSyntaxError):
        books_locator.load("books/\\", text_loader())
    with pytest.raises(PatternSyntaxError):
        books_locator.get_cached("{a,{b}}", text_loader())


def test_load_isolates_failures_per_resource(books_locator: ResourceLocator) -> None:
    """One corrupt entry should not prevent the other from decoding."""
    outcomes = books_locator.load("books/*.properties", properties_loader("utf-8")).to_list()

    assert len(outcomes) == 2
    good, bad = outcomes
    assert good.ok
    assert good.unwrap()["title"] == "A Game of Thrones"
    assert not bad.ok
    assert isinstance(bad.error, DecodeError)
    with pytest.raises(DecodeError):
        bad.unwrap()


def test_load_isolates_corrupt_archive_entries(make_zip, corrupt_zip_entry, serial_settings: LocatorSettings) -> None:
    """A damaged compressed entry should fail alone, as an I/O error."""
    healthy = make_zip("healthy.jar", {"books/x.properties": "title=Dune\n"})
    damaged = make_zip("damaged.jar", {"books/x.properties": "title=Hyperion\nauthor=Dan Simmons\n" * 20})
    corrupt_zip_entry(damaged, "books/x.properties")
    index = ResourceIndexBuilder(serial_settings).add_archive(healthy).add_archive(damaged).build()
    locator = ResourceLocator(index, settings=serial_settings)

    located = locator.locate_matching("books/*.properties").to_list()
    outcomes = locator.load("books/*.properties", properties_loader()).to_list()

    assert [descriptor.origin for descriptor in located] == list(index.roots)
    assert outcomes[0].unwrap() == {"title": "Dune"}
    assert isinstance(outcomes[1].error, ResourceIOError)
    with pytest.raises(ResourceIOError):
        outcomes[1].unwrap()


def test_load_values_and_failures(books_locator: ResourceLocator) -> None:
    view = books_locator.load("books/x.properties", properties_loader("utf-8"))

    assert [value["author"] for value in view.values()] == ["George R. R. Martin"]
    assert [outcome.descriptor.origin for outcome in view.failures()] == [books_locator.index.roots[1]]


def test_load_decodes_lazily(books_locator: ResourceLocator) -> None:
    calls: list[str] = []

    def _loader(content: ContentHandle) -> bytes:
        calls.append(str(content))
        return content.read_all()

    view = books_locator.load("**/*.txt", _loader)
    assert calls == []

    assert view.first() is not None
    assert len(calls) == 1


def test_get_cached_wraps_without_decoding(books_locator: ResourceLocator) -> None:
    calls: list[str] = []

    def _loader(content: ContentHandle) -> str:
        calls.append(str(content))
        return content.read_all().decode("utf-8")

    cached = books_locator.get_cached("books/readme.txt", _loader).to_list()

    assert len(cached) == 1
    resource = cached[0]
    assert isinstance(resource, CachedResource)
    assert resource.name == "books/readme.txt"
    assert calls == []
    assert resource.get() == "first"
    assert resource() == "first"
    assert len(calls) == 1


def test_concurrent_queries_see_identical_ordering(books_locator: ResourceLocator) -> None:
    expected = [(descriptor.name, descriptor.origin) for descriptor in books_locator.locate_matching("**")]

    def _query(_: int) -> list[tuple[str, object]]:
        return [(descriptor.name, descriptor.origin) for descriptor in books_locator.locate_matching("**")]

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(_query, range(40)))
    assert all(result == expected for result in results)


def test_unsupported_query_type_is_rejected(books_locator: ResourceLocator) -> None:
    with pytest.raises(TypeError):
        books_locator.load(42, text_loader())  # type: ignore[arg-type]


def test_get_cached_under_weak_policy_keeps_builtin_values(make_zip) -> None:
    settings = LocatorSettings(parallel_enumeration=False, cache_policy="weak")
    archive = make_zip("weak.jar", {"books/x.properties": "title=Dune\n"})
    locator = ResourceLocator(ResourceIndexBuilder(settings).add_archive(archive).build(), settings=settings)

    resource = locator.get_cached("books/*.properties", properties_loader()).first()

    assert resource is not None
    first = resource.get()
    assert first == {"title": "Dune"}
    assert resource.get() is first
    assert resource.is_loaded
