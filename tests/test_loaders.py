# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the bundled resource loaders."""

from __future__ import annotations

import pytest

from resloc import (
    BytesContent,
    DecodeError,
    ResourceIOError,
    ResourceLoader,
    as_loader,
    bytes_loader,
    json_loader,
    parse_properties,
    properties_loader,
    text_loader,
    xml_properties_loader,
)
from resloc.content import FileContent
from resloc.loaders import CallableLoader, decode_with


def test_bytes_text_and_json_loaders() -> None:
    content = BytesContent('{"name": "café"}'.encode("utf-8"))

    assert bytes_loader().decode(content) == content.data
    assert text_loader().decode(content) == '{"name": "café"}'
    assert json_loader().decode(content) == {"name": "café"}


def test_properties_loader_is_shared_per_encoding() -> None:
    assert properties_loader() is properties_loader()
    assert properties_loader("utf-8") is properties_loader("utf-8")
    assert properties_loader("utf-8") is not properties_loader()
    assert properties_loader().encoding == "latin-1"


def test_properties_loader_defaults_to_latin_1() -> None:
    content = BytesContent("greeting=caf\u00e9\n".encode("latin-1"))

    assert properties_loader().decode(content) == {"greeting": "café"}


def test_parse_properties_covers_the_line_format() -> None:
    text = (
        "# comment\n"
        "! another comment\n"
        "\n"
        "plain=value\n"
        "colon:value\n"
        "spaced   value with spaces\n"
        "  indented = padded  \n"
        "multi=one, \\\n"
        "      two\n"
        "escaped\\ key=tab\\there\n"
        "unicode=\\u0041\\u00e9\n"
        "empty\n"
        "backslash=ends\\\\\n"
        "plain=later wins\n"
    )

    assert parse_properties(text) == {
        "plain": "later wins",
        "colon": "value",
        "spaced": "value with spaces",
        "indented": "padded  ",
        "multi": "one, two",
        "escaped key": "tab\there",
        "unicode": "Aé",
        "empty": "",
        "backslash": "ends\\",
    }


def test_parse_properties_keeps_hash_inside_continuation() -> None:
    assert parse_properties("key=a\\\n#b\n") == {"key": "a#b"}


def test_parse_properties_rejects_malformed_unicode_escape() -> None:
    with pytest.raises(ValueError):
        parse_properties("key=\\u12G4\n")


def test_xml_properties_loader() -> None:
    document = b"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE properties SYSTEM "http://java.sun.com/dtd/properties.dtd">
<properties>
  <comment>ignored</comment>
  <entry key="title">Dune</entry>
  <entry key="blank"></entry>
</properties>
"""

    assert xml_properties_loader().decode(BytesContent(document)) == {"title": "Dune", "blank": ""}


@pytest.mark.parametrize(
    "document",
    [b"<settings/>", b"<properties><entry>missing key</entry></properties>", b"<properties>"],
)
def test_xml_properties_loader_rejects_invalid_documents(document: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_with(xml_properties_loader(), BytesContent(document), name="bad.xml")


def test_as_loader_accepts_loaders_and_callables() -> None:
    loader = text_loader()
    wrapped = as_loader(lambda content: content.read_all()[::-1])

    assert as_loader(loader) is loader
    assert isinstance(wrapped, CallableLoader)
    assert isinstance(wrapped, ResourceLoader)
    assert wrapped.decode(BytesContent(b"abc")) == b"cba"
    with pytest.raises(TypeError):
        as_loader(42)  # type: ignore[arg-type]


def test_decode_with_wraps_loader_failures() -> None:
    with pytest.raises(DecodeError) as excinfo:
        decode_with(json_loader(), BytesContent(b"{not json"), name="config.json")

    assert excinfo.value.name == "config.json"
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_decode_with_passes_io_errors_through(tmp_path) -> None:
    with pytest.raises(ResourceIOError):
        decode_with(text_loader(), FileContent(tmp_path / "absent.txt"), name="absent.txt")
