"""メディア取り込み境界文脈のアプリケーション層."""

from .classifier import classify, decode_base64, is_file
from .services import (
    KEY_TOKEN_BYTES,
    MediaIngestionService,
    StorageBackendFactory,
    create_ingestion_service,
)
from .sniffer import MediaTypeSniffer, detect_signature

__all__ = [
    "KEY_TOKEN_BYTES",
    "MediaIngestionService",
    "MediaTypeSniffer",
    "StorageBackendFactory",
    "classify",
    "create_ingestion_service",
    "decode_base64",
    "detect_signature",
    "is_file",
]
