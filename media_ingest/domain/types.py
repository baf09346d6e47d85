"""メディア取り込みのドメイン型定義."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "MediaInputKind",
    "StorageBackendType",
    "Visibility",
]


class StorageBackendType(Enum):
    """Storage backend types."""
    LOCAL = "local"
    AZURE_BLOB = "azure_blob"
    MEMORY = "memory"


class MediaInputKind(Enum):
    """入力値の表現形式."""
    RAW_STREAM = "raw_stream"
    BASE64_TEXT = "base64_text"
    FILE_HANDLE = "file_handle"


class Visibility(Enum):
    """アップロード時のアクセス制御レベル."""
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def coerce(cls, value: Visibility | str) -> Visibility:
        """列挙値またはACL文字列からVisibilityを得る."""
        if isinstance(value, cls):
            return value
        normalised = str(value).strip().lower()
        for member in cls:
            if member.value == normalised:
                return member
        raise ValueError(
            f"Unsupported visibility '{value}'. "
            "Available values: " + ", ".join(member.value for member in cls)
        )
