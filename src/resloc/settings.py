# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Configuration for resource indexing, caching and service discovery."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from functools import partial
from typing import Final, Literal, TypeAlias, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .slots import ReclaimableSlot, SlotPool, StrongSlot, TTLSlot, WeakSlot

CachePolicy: TypeAlias = Literal["lru", "ttl", "weak", "strong"]
ValueT = TypeVar("ValueT")

DEFAULT_SERVICE_PREFIX: Final[str] = "META-INF/services"
ENV_PREFIX: Final[str] = "RESLOC_"
_TRUE_TOKENS: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_TOKENS: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})
_ENV_FIELDS: Final[dict[str, str]] = {
    "SERVICE_PREFIX": "service_prefix",
    "PARALLEL": "parallel_enumeration",
    "MAX_WORKERS": "max_workers",
    "FOLLOW_SYMLINKS": "follow_symlinks",
    "CACHE_POLICY": "cache_policy",
    "CACHE_TTL": "cache_ttl_seconds",
    "CACHE_MAXSIZE": "cache_maxsize",
}
_BOOLEAN_FIELDS: Final[frozenset[str]] = frozenset({"parallel_enumeration", "follow_symlinks"})


class LocatorSettings(BaseModel):
    """Settings shared by the index builder and the locator.

    Attributes:
        service_prefix: Directory holding provider-declaration resources.
        parallel_enumeration: Enumerate independent roots on worker threads.
        max_workers: Upper bound on enumeration threads, ``None`` for the
            executor default.
        follow_symlinks: Descend into symlinked directories of directory roots.
        cache_policy: Reclamation policy backing cached resources.
        cache_ttl_seconds: Lifetime of a cached value under the ``ttl`` policy.
        cache_maxsize: Number of values retained under the ``lru`` policy.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_prefix: str = DEFAULT_SERVICE_PREFIX
    parallel_enumeration: bool = True
    max_workers: int | None = Field(default=None, gt=0)
    follow_symlinks: bool = False
    cache_policy: CachePolicy = "lru"
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_maxsize: int = Field(default=256, gt=0)

    @field_validator("service_prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        """Normalise the prefix to a name without surrounding separators."""

        stripped = value.strip().strip("/")
        if not stripped:
            raise ValueError("service_prefix must not be empty")
        return stripped

    def slot_factory(self) -> Callable[[], ReclaimableSlot[ValueT]]:
        """Return a factory producing fresh slots for the configured policy.

        Under the ``lru`` policy every slot produced by the returned factory
        shares a single pool, so the budget applies across cached resources.

        Returns:
            Callable[[], ReclaimableSlot]: Zero-argument slot factory.
        """

        if self.cache_policy == "lru":
            return SlotPool(self.cache_maxsize).slot
        if self.cache_policy == "ttl":
            return partial(TTLSlot, self.cache_ttl_seconds)
        if self.cache_policy == "weak":
            return WeakSlot
        return StrongSlot


def settings_from_environment(env: Mapping[str, str]) -> LocatorSettings | None:
    """Parse settings from ``RESLOC_*`` variables in ``env`` when any are set.

    Args:
        env: Environment mapping consulted for overrides.

    Returns:
        LocatorSettings | None: Parsed settings, ``None`` when no variable is set.

    Raises:
        ConfigError: If a variable holds an invalid value.
    """

    overrides: dict[str, object] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        raw = env.get(f"{ENV_PREFIX}{suffix}")
        if raw is None or not raw.strip():
            continue
        token = raw.strip()
        overrides[field_name] = _parse_boolean(suffix, token) if field_name in _BOOLEAN_FIELDS else token
    if not overrides:
        return None
    try:
        return LocatorSettings.model_validate(overrides)
    except ValidationError as error:
        raise ConfigError(f"Invalid {ENV_PREFIX}* environment configuration: {error}") from error


def resolve_settings(
    settings: LocatorSettings | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> LocatorSettings:
    """Return effective settings honouring overrides and defaults.

    Args:
        settings: Explicit settings taking precedence over everything else.
        env: Optional environment mapping used instead of :mod:`os.environ`.

    Returns:
        LocatorSettings: Explicit settings, environment settings or defaults.
    """

    if settings is not None:
        return settings
    environment = os.environ if env is None else env
    env_settings = settings_from_environment(environment)
    if env_settings is not None:
        return env_settings
    return LocatorSettings()


def _parse_boolean(suffix: str, token: str) -> bool:
    lowered = token.lower()
    if lowered in _TRUE_TOKENS:
        return True
    if lowered in _FALSE_TOKENS:
        return False
    raise ConfigError(f"{ENV_PREFIX}{suffix} must be a boolean, got {token!r}")


__all__ = [
    "DEFAULT_SERVICE_PREFIX",
    "CachePolicy",
    "LocatorSettings",
    "resolve_settings",
    "settings_from_environment",
]
