# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Resource loaders decoding content handles into typed values."""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ElementTree
from abc import abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, Generic, Protocol, TypeVar, runtime_checkable

from .content import ContentHandle, read_text
from .errors import DecodeError, ResourceIOError

ValueT = TypeVar("ValueT", covariant=True)
ResultT = TypeVar("ResultT")

PROPERTIES_DEFAULT_ENCODING: Final[str] = "latin-1"
_PROPERTIES_ESCAPES: Final[dict[str, str]] = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_KEY_TERMINATORS: Final[frozenset[str]] = frozenset("=: \t\f")
_PROPERTIES_WHITESPACE: Final[str] = " \t\f"
_UNICODE_ESCAPE_LENGTH: Final[int] = 4
_LINE_SPLIT: Final[re.Pattern[str]] = re.compile(r"\r\n|\r|\n")


@runtime_checkable
class ResourceLoader(Protocol[ValueT]):
    """Define the contract for decoding resource content into values."""

    @abstractmethod
    def decode(self, content: ContentHandle) -> ValueT:
        """Return the value decoded from ``content``.

        Args:
            content: Handle exposing the bytes to decode.

        Returns:
            ValueT: Decoded value.
        """
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class CallableLoader(Generic[ResultT]):
    """Adapt a plain callable to the :class:`ResourceLoader` protocol."""

    func: Callable[[ContentHandle], ResultT]

    def decode(self, content: ContentHandle) -> ResultT:
        return self.func(content)


def as_loader(
    loader: ResourceLoader[ResultT] | Callable[[ContentHandle], ResultT],
) -> ResourceLoader[ResultT]:
    """Return ``loader`` as a :class:`ResourceLoader`.

    Args:
        loader: Loader instance or callable accepting a content handle.

    Returns:
        ResourceLoader: ``loader`` itself or a :class:`CallableLoader` wrapper.

    Raises:
        TypeError: If ``loader`` is neither a loader nor callable.
    """

    if isinstance(loader, ResourceLoader):
        return loader
    if callable(loader):
        return CallableLoader(loader)
    raise TypeError(f"{loader!r} is not a resource loader")


def decode_with(loader: ResourceLoader[ResultT], content: ContentHandle, *, name: str | None = None) -> ResultT:
    """Invoke ``loader`` on ``content`` normalising failures.

    Args:
        loader: Loader performing the decode.
        content: Handle exposing the bytes to decode.
        name: Optional resource name used in error messages.

    Returns:
        ResultT: Decoded value.

    Raises:
        ResourceIOError: If the content cannot be read.
        DecodeError: If the loader fails for any other reason.
    """

    try:
        return loader.decode(content)
    except ResourceIOError:
        raise
    except Exception as error:
        raise DecodeError(name or str(content), error) from error


@dataclass(frozen=True, slots=True)
class BytesLoader:
    """Return the raw bytes of a resource."""

    def decode(self, content: ContentHandle) -> bytes:
        return content.read_all()


@dataclass(frozen=True, slots=True)
class TextLoader:
    """Decode a resource as text."""

    encoding: str = "utf-8"

    def decode(self, content: ContentHandle) -> str:
        return read_text(content, self.encoding)


@dataclass(frozen=True, slots=True)
class JsonLoader:
    """Decode a resource as a JSON document."""

    encoding: str = "utf-8"

    def decode(self, content: ContentHandle) -> object:
        return json.loads(read_text(content, self.encoding))


@dataclass(frozen=True, slots=True)
class PropertiesLoader:
    """Decode a resource in the line oriented ``.properties`` format."""

    encoding: str = PROPERTIES_DEFAULT_ENCODING

    def decode(self, content: ContentHandle) -> dict[str, str]:
        return parse_properties(read_text(content, self.encoding))


@dataclass(frozen=True, slots=True)
class XmlPropertiesLoader:
    """Decode a resource in the XML properties format.

    The document root must be ``<properties>``; every ``<entry key="...">``
    child contributes one property and ``<comment>`` children are ignored.
    """

    def decode(self, content: ContentHandle) -> dict[str, str]:
        root = ElementTree.fromstring(content.read_all())
        if root.tag != "properties":
            raise ValueError(f"Expected a <properties> document, found <{root.tag}>")
        properties: dict[str, str] = {}
        for entry in root.iter("entry"):
            key = entry.get("key")
            if key is None:
                raise ValueError("<entry> element is missing its key attribute")
            properties[key] = entry.text or ""
        return properties


def bytes_loader() -> BytesLoader:
    """Return a loader producing the raw resource bytes."""

    return BytesLoader()


def text_loader(encoding: str = "utf-8") -> TextLoader:
    """Return a loader decoding resources as text in ``encoding``."""

    return TextLoader(encoding)


def json_loader(encoding: str = "utf-8") -> JsonLoader:
    """Return a loader parsing resources as JSON documents."""

    return JsonLoader(encoding)


@lru_cache(maxsize=None)
def properties_loader(encoding: str = PROPERTIES_DEFAULT_ENCODING) -> PropertiesLoader:
    """Return the shared ``.properties`` loader for ``encoding``.

    Args:
        encoding: Character set of the properties files, ISO-8859-1 by default.

    Returns:
        PropertiesLoader: Loader cached per encoding.
    """

    return PropertiesLoader(encoding)


def xml_properties_loader() -> XmlPropertiesLoader:
    """Return a loader for XML properties documents."""

    return XmlPropertiesLoader()


def parse_properties(text: str) -> dict[str, str]:
    """Parse ``.properties`` text into an ordered mapping.

    Comment lines start with ``#`` or ``!``. Keys end at the first unescaped
    ``=``, ``:`` or whitespace; a line ending with an odd number of
    backslashes continues on the next line.

    Args:
        text: Properties document.

    Returns:
        dict[str, str]: Keys and values in document order, later keys winning.

    Raises:
        ValueError: If a ``\\u`` escape is malformed.
    """

    properties: dict[str, str] = {}
    for logical in _logical_lines(text):
        key, value = _split_entry(logical)
        properties[_unescape(key)] = _unescape(value)
    return properties


def _logical_lines(text: str) -> Iterator[str]:
    """Yield logical lines with comments removed and continuations joined."""

    pending: list[str] = []
    for raw in _LINE_SPLIT.split(text):
        line = raw.lstrip(_PROPERTIES_WHITESPACE)
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending.append(line[:-1])
            continue
        pending.append(line)
        yield "".join(pending)
        pending = []
    if pending:
        yield "".join(pending)


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into its raw key and raw value."""

    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _KEY_TERMINATORS:
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(_PROPERTIES_WHITESPACE)
    if rest and rest[0] in "=:":
        rest = rest[1:].lstrip(_PROPERTIES_WHITESPACE)
    return key, rest


def _unescape(raw: str) -> str:
    """Resolve backslash escapes in a raw key or value."""

    if "\\" not in raw:
        return raw
    chars: list[str] = []
    index = 0
    length = len(raw)
    while index < length:
        char = raw[index]
        index += 1
        if char != "\\" or index == length:
            chars.append(char)
            continue
        escaped = raw[index]
        index += 1
        if escaped == "u":
            digits = raw[index : index + _UNICODE_ESCAPE_LENGTH]
            if len(digits) != _UNICODE_ESCAPE_LENGTH or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise ValueError(f"Malformed \\uxxxx encoding: {digits!r}")
            chars.append(chr(int(digits, 16)))
            index += _UNICODE_ESCAPE_LENGTH
        else:
            chars.append(_PROPERTIES_ESCAPES.get(escaped, escaped))
    return "".join(chars)


__all__ = [
    "BytesLoader",
    "CallableLoader",
    "JsonLoader",
    "PropertiesLoader",
    "ResourceLoader",
    "TextLoader",
    "XmlPropertiesLoader",
    "as_loader",
    "bytes_loader",
    "decode_with",
    "json_loader",
    "parse_properties",
    "properties_loader",
    "text_loader",
    "xml_properties_loader",
]
