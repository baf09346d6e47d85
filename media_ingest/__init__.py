"""Media ingestion: content sniffing, storage upload and CDN URL resolution."""

from .application import (
    MediaIngestionService,
    MediaTypeSniffer,
    StorageBackendFactory,
    classify,
    create_ingestion_service,
)
from .domain import (
    CDNRegistry,
    IngestionConfiguration,
    InvalidBase64MediaError,
    InvalidMediaError,
    InvalidMediaFileError,
    StorageException,
    Visibility,
)
from .settings import ApplicationSettings, load_settings

__all__ = [
    "ApplicationSettings",
    "CDNRegistry",
    "IngestionConfiguration",
    "InvalidBase64MediaError",
    "InvalidMediaError",
    "InvalidMediaFileError",
    "MediaIngestionService",
    "MediaTypeSniffer",
    "StorageBackendFactory",
    "StorageException",
    "Visibility",
    "classify",
    "create_ingestion_service",
    "load_settings",
]
