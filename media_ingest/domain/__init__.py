"""メディア取り込み境界文脈のドメイン層."""

from .entities import *
from .services import *
from .types import *

__all__ = [
    # types
    "MediaInputKind",
    "StorageBackendType",
    "Visibility",
    # entities
    "DEFAULT_MEDIA_MIME_TYPES",
    "RawStream",
    "Base64Text",
    "FileHandle",
    "MediaInput",
    "SniffResult",
    "StorageCredentials",
    "StorageConfiguration",
    "CDNRegistry",
    "IngestionConfiguration",
    "UrlResolution",
    # exceptions
    "InvalidMediaError",
    "InvalidBase64MediaError",
    "InvalidMediaFileError",
    "StorageException",
    "StorageNotFoundException",
    "StoragePermissionException",
    # services
    "StorageBackend",
    "CDNUrlRewriterService",
]
