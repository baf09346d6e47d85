"""Centralised media ingestion settings.

This module exposes :class:`ApplicationSettings`, which turns configuration
values into the value objects consumed by the ingestion pipeline. The class
treats the process environment (or any mapping provided) as the backing
store. When a Flask application context is active, the host application's
``app.config`` takes precedence so that the pipeline can be embedded without
duplicating configuration.

Production code should call :func:`load_settings`, which also reads a
``.env`` file. Tests can instantiate :class:`ApplicationSettings` with a
dedicated mapping to validate behaviour in isolation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional, cast

from dotenv import load_dotenv
from flask import current_app, has_app_context

from .domain import (
    DEFAULT_MEDIA_MIME_TYPES,
    CDNRegistry,
    IngestionConfiguration,
    StorageBackendType,
    StorageConfiguration,
    StorageCredentials,
)

if TYPE_CHECKING:  # pragma: no cover
    from flask import Flask

__all__ = ["ApplicationSettings", "load_settings"]

_DEFAULT_BUCKET = "media"
_DEFAULT_BASE_PATH = "/tmp/media_ingest"


@dataclass(frozen=True)
class _EnvironmentFacade:
    """Thin wrapper that provides ``Mapping`` compatible access to env vars."""

    source: Mapping[str, str]

    @classmethod
    def from_environ(cls, env: Optional[Mapping[str, str]] = None) -> "_EnvironmentFacade":
        return cls(source=os.environ if env is None else env)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.source.get(key, default)


class ApplicationSettings:
    """Domain level representation of ingestion configuration values.

    Explicit properties are preferred over generic ``get`` access so that
    callers operate on intent-revealing names and defaults live in a single
    place.
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = _EnvironmentFacade.from_environ(env)

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _get(self, key: str, default: Optional[str] = None):
        if has_app_context():
            app = cast("Flask", current_app)
            if key in app.config:
                return app.config.get(key)

        value = self._env.get(key)
        if value is not None:
            return value
        return default

    def get(self, key: str, default=None):
        """Return the configured value for *key* or *default* if missing."""

        value = self._get(key)
        return default if value is None else value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Return a boolean configuration value."""

        value = self._get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            normalised = value.strip().lower()
            if normalised in {"1", "true", "yes", "on"}:
                return True
            if normalised in {"0", "false", "no", "off"}:
                return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Return an integer configuration value."""

        value = self._get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_list(self, key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
        """Return a comma separated value as a tuple of stripped segments."""

        value = self._get(key)
        if value is None:
            return default
        if isinstance(value, (list, tuple, set, frozenset)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return tuple(segment.strip() for segment in str(value).split(",") if segment.strip())

    def _optional(self, key: str) -> Optional[str]:
        value = self._get(key)
        return str(value) if value else None

    # ------------------------------------------------------------------
    # Storage backend
    # ------------------------------------------------------------------
    @property
    def storage_backend(self) -> StorageBackendType:
        """Return the configured storage backend implementation.

        The value is resolved from ``MEDIA_STORAGE_BACKEND``. When unset, the
        local filesystem backend is used.
        """

        value = self.get("MEDIA_STORAGE_BACKEND", StorageBackendType.LOCAL.value)
        normalised = str(value).strip().lower()
        if not normalised:
            return StorageBackendType.LOCAL

        for backend in StorageBackendType:
            if backend.value == normalised:
                return backend

        raise ValueError(
            f"Unsupported storage backend '{value}'. "
            "Available values: "
            + ", ".join(backend.value for backend in StorageBackendType)
        )

    @property
    def storage_bucket(self) -> str:
        return str(self.get("MEDIA_STORAGE_BUCKET", _DEFAULT_BUCKET))

    @property
    def storage_base_path(self) -> str:
        return str(self.get("MEDIA_STORAGE_BASE_PATH", _DEFAULT_BASE_PATH))

    @property
    def storage_public_url(self) -> Optional[str]:
        return self._optional("MEDIA_STORAGE_PUBLIC_URL")

    def storage_credentials(self) -> StorageCredentials:
        backend = self.storage_backend
        if backend is not StorageBackendType.AZURE_BLOB:
            return StorageCredentials(backend_type=backend)

        return StorageCredentials(
            backend_type=backend,
            connection_string=self._optional("AZURE_STORAGE_CONNECTION_STRING"),
            account_name=self._optional("AZURE_STORAGE_ACCOUNT_NAME"),
            access_key=self._optional("AZURE_STORAGE_ACCESS_KEY"),
        )

    def storage_configuration(self) -> StorageConfiguration:
        """Return the :class:`StorageConfiguration` for the active backend."""

        return StorageConfiguration(
            backend_type=self.storage_backend,
            credentials=self.storage_credentials(),
            bucket=self.storage_bucket,
            base_path=self.storage_base_path,
            public_url=self.storage_public_url,
        )

    # ------------------------------------------------------------------
    # CDN
    # ------------------------------------------------------------------
    @property
    def default_cdn(self) -> Optional[str]:
        return self._optional("MEDIA_DEFAULT_CDN")

    @property
    def cdn_domains(self) -> dict[str, str]:
        """Return the CDN table parsed from ``name=domain`` pairs."""

        value = self._get("MEDIA_CDN_DOMAINS")
        if isinstance(value, Mapping):
            return {str(name): str(domain) for name, domain in value.items()}

        domains: dict[str, str] = {}
        for entry in self.get_list("MEDIA_CDN_DOMAINS"):
            name, separator, domain = entry.partition("=")
            if not separator or not name.strip() or not domain.strip():
                raise ValueError(
                    f"Invalid MEDIA_CDN_DOMAINS entry '{entry}'. Expected 'name=domain'."
                )
            domains[name.strip()] = domain.strip()
        return domains

    def cdn_registry(self) -> CDNRegistry:
        return CDNRegistry(domains=self.cdn_domains, default_name=self.default_cdn)

    # ------------------------------------------------------------------
    # Media validation
    # ------------------------------------------------------------------
    @property
    def allowed_mime_types(self) -> frozenset[str]:
        configured = self.get_list("MEDIA_ALLOWED_MIME_TYPES")
        if not configured:
            return DEFAULT_MEDIA_MIME_TYPES
        return frozenset(mime.lower() for mime in configured)

    def ingestion_configuration(self) -> IngestionConfiguration:
        """Return the explicit configuration handed to the pipeline."""

        return IngestionConfiguration(
            cdn=self.cdn_registry(),
            allowed_mime_types=self.allowed_mime_types,
        )


def load_settings(dotenv_path: Optional[str | os.PathLike[str]] = None) -> ApplicationSettings:
    """Load ``.env`` values into the process environment and return settings.

    Variables that are already present in the environment are kept.
    """

    load_dotenv(dotenv_path, override=False)
    return ApplicationSettings()
