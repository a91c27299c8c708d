# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Locate, match, load and cache named resources across directories and archives."""

from __future__ import annotations

from typing import Final

from .cached import CachedResource
from .content import BytesContent, ContentHandle, FileContent, TarEntryContent, ZipEntryContent, read_text
from .errors import (
    ConfigError,
    DecodeError,
    InvalidSourceError,
    InvalidStateError,
    PatternSyntaxError,
    ResolutionError,
    ResourceError,
    ResourceIOError,
)
from .glob import CompiledPattern, compile_glob
from .index import ResourceIndex, ResourceIndexBuilder
from .loaders import (
    ResourceLoader,
    as_loader,
    bytes_loader,
    json_loader,
    parse_properties,
    properties_loader,
    text_loader,
    xml_properties_loader,
)
from .locator import LazyView, LoadOutcome, LoadView, ResourceLocator, ResourceView
from .services import (
    ImportResolver,
    RegistryResolver,
    ServiceCandidate,
    ServiceResolution,
    ServiceResolver,
    distinct_candidates,
)
from .settings import LocatorSettings, resolve_settings
from .slots import ReclaimableSlot, SlotPool, StrongSlot, TTLSlot, WeakSlot
from .sources import AggregateRoot, ArchiveRoot, DirectoryRoot, ResourceDescriptor, RootId, RootKind, SourceRoot

__all__: Final[tuple[str, ...]] = (
    "AggregateRoot",
    "ArchiveRoot",
    "BytesContent",
    "CachedResource",
    "CompiledPattern",
    "ConfigError",
    "ContentHandle",
    "DecodeError",
    "DirectoryRoot",
    "FileContent",
    "ImportResolver",
    "InvalidSourceError",
    "InvalidStateError",
    "LazyView",
    "LoadOutcome",
    "LoadView",
    "LocatorSettings",
    "PatternSyntaxError",
    "ReclaimableSlot",
    "RegistryResolver",
    "ResolutionError",
    "ResourceDescriptor",
    "ResourceError",
    "ResourceIOError",
    "ResourceIndex",
    "ResourceIndexBuilder",
    "ResourceLoader",
    "ResourceLocator",
    "ResourceView",
    "RootId",
    "RootKind",
    "ServiceCandidate",
    "ServiceResolution",
    "ServiceResolver",
    "SlotPool",
    "SourceRoot",
    "StrongSlot",
    "TTLSlot",
    "TarEntryContent",
    "WeakSlot",
    "ZipEntryContent",
    "as_loader",
    "bytes_loader",
    "compile_glob",
    "distinct_candidates",
    "json_loader",
    "parse_properties",
    "properties_loader",
    "read_text",
    "resolve_settings",
    "text_loader",
    "xml_properties_loader",
)
