# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import io
import struct
import tarfile
import zipfile
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from resloc import LocatorSettings

TreeFactory = Callable[[str, Mapping[str, str | bytes]], Path]


def _as_bytes(payload: str | bytes) -> bytes:
    return payload.encode("utf-8") if isinstance(payload, str) else payload


@pytest.fixture
def make_tree(tmp_path: Path) -> TreeFactory:
    """Return a factory writing ``files`` below ``tmp_path / name``."""

    def _make(name: str, files: Mapping[str, str | bytes]) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True)
        for relative, payload in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(_as_bytes(payload))
        return root

    return _make


@pytest.fixture
def make_zip(tmp_path: Path) -> TreeFactory:
    """Return a factory writing a deflated ZIP archive holding ``files`` in insertion order."""

    def _make(name: str, files: Mapping[str, str | bytes]) -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry, payload in files.items():
                archive.writestr(entry, _as_bytes(payload))
        return path

    return _make


@pytest.fixture
def make_tar(tmp_path: Path) -> TreeFactory:
    """Return a factory writing a gzip compressed tar archive holding ``files``."""

    def _make(name: str, files: Mapping[str, str | bytes]) -> Path:
        path = tmp_path / name
        with tarfile.open(path, "w:gz") as archive:
            for entry, payload in files.items():
                data = _as_bytes(payload)
                info = tarfile.TarInfo(entry)
                info.size = len(data)
                archive.addfile(info, io.BytesIO(data))
        return path

    return _make


@pytest.fixture
def serial_settings() -> LocatorSettings:
    """Return settings enumerating roots on the calling thread."""

    return LocatorSettings(parallel_enumeration=False)


@pytest.fixture
def corrupt_zip_entry() -> Callable[[Path, str], None]:
    """Return a helper flipping the leading compressed bytes of one ZIP entry in place."""

    def _corrupt(path: Path, entry: str) -> None:
        with zipfile.ZipFile(path) as archive:
            info = archive.getinfo(entry)
        data = bytearray(path.read_bytes())
        name_length, extra_length = struct.unpack_from("<HH", data, info.header_offset + 26)
        start = info.header_offset + 30 + name_length + extra_length
        for offset in range(start, start + min(6, info.compress_size)):
            data[offset] ^= 0xFF
        path.write_bytes(bytes(data))

    return _corrupt
