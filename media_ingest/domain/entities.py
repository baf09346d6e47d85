"""メディア取り込みドメイン層 - 値オブジェクトと例外."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union
from urllib.parse import quote

from .types import MediaInputKind, StorageBackendType

__all__ = [
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
    "InvalidMediaError",
    "InvalidBase64MediaError",
    "InvalidMediaFileError",
    "StorageException",
    "StorageNotFoundException",
    "StoragePermissionException",
]


DEFAULT_MEDIA_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/bmp",
        "image/tiff",
        "image/x-icon",
        "image/heic",
        "image/avif",
        "application/pdf",
    }
)


@dataclass(frozen=True, slots=True)
class RawStream:
    """デコード済みのバイナリ入力."""

    content: bytes
    kind: MediaInputKind = field(default=MediaInputKind.RAW_STREAM, init=False)


@dataclass(frozen=True, slots=True)
class Base64Text:
    """base64エンコードされたテキスト入力."""

    text: str
    kind: MediaInputKind = field(default=MediaInputKind.BASE64_TEXT, init=False)


@dataclass(frozen=True, slots=True)
class FileHandle:
    """ディスク上のファイル、または読み込み可能なファイルオブジェクトへの参照.

    ``source`` はパス（``os.PathLike``）か ``read()`` を持つファイルオブジェクト。
    呼び出し元が渡したファイルオブジェクトは閉じず、シーク可能であれば
    読み込み後に元の位置へ戻す。
    """

    source: Any
    kind: MediaInputKind = field(default=MediaInputKind.FILE_HANDLE, init=False)

    @property
    def name(self) -> str | None:
        """ログ用の表示名."""
        if isinstance(self.source, (str, os.PathLike)):
            return os.fspath(self.source)
        name = getattr(self.source, "filename", None) or getattr(self.source, "name", None)
        return str(name) if name else None

    def read_bytes(self) -> bytes:
        """参照先の内容を全て読み込む.

        Raises:
            OSError: ファイルが存在しない、または読み込めない場合。
        """
        if isinstance(self.source, (str, os.PathLike)):
            return Path(self.source).read_bytes()

        stream = self.source
        position = None
        seekable = getattr(stream, "seekable", None)
        try:
            if callable(seekable) and seekable():
                position = stream.tell()
                stream.seek(0)
            data = stream.read()
        except ValueError as e:
            # 閉じられたファイルオブジェクト
            raise OSError(f"ファイルを読み込めません: {e}") from e
        finally:
            if position is not None and not getattr(stream, "closed", False):
                stream.seek(position)

        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)


MediaInput = Union[RawStream, Base64Text, FileHandle]


@dataclass(frozen=True, slots=True)
class SniffResult:
    """コンテンツ判定の結果."""

    mime_type: str
    extension: str
    is_supported_media: bool


@dataclass(frozen=True, slots=True)
class StorageCredentials:
    """ストレージ認証情報を表す値オブジェクト."""

    backend_type: StorageBackendType
    connection_string: str | None = None
    account_name: str | None = None
    access_key: str | None = None

    def __post_init__(self) -> None:
        """認証情報の妥当性を検証."""
        if self.backend_type == StorageBackendType.AZURE_BLOB:
            if not self.connection_string and not (self.account_name and self.access_key):
                raise ValueError("Azure Blob requires connection_string or account_name+access_key")


@dataclass(frozen=True, slots=True)
class StorageConfiguration:
    """ストレージ設定を表す値オブジェクト."""

    backend_type: StorageBackendType
    credentials: StorageCredentials
    bucket: str = "media"
    base_path: str = ""
    public_url: str | None = None

    def __post_init__(self) -> None:
        """設定の妥当性を検証."""
        if not self.bucket:
            raise ValueError("bucketは空文字列にできません")
        if self.credentials.backend_type != self.backend_type:
            raise ValueError("credentials.backend_typeとbackend_typeが一致しません")

    def public_object_url(self, bucket: str, key: str) -> str | None:
        """public_urlからオブジェクトの公開URLを組み立てる.

        ``{bucket}`` を含む場合はバーチャルホスト形式、それ以外はパス形式。
        public_url未設定ならNone。
        """
        if not self.public_url:
            return None

        quoted_key = quote(key, safe="/")
        if "{bucket}" in self.public_url:
            base = self.public_url.replace("{bucket}", bucket).rstrip("/")
            return f"{base}/{quoted_key}"

        base = self.public_url.rstrip("/")
        return f"{base}/{quote(bucket)}/{quoted_key}"


@dataclass(frozen=True, slots=True)
class CDNRegistry:
    """CDN名とドメインの対応表、およびデフォルトCDN名."""

    domains: Mapping[str, str] = field(default_factory=dict)
    default_name: str | None = None

    def domain_for(self, name: str | None) -> str | None:
        """CDN名に対応するドメインを返す. 未登録ならNone."""
        if not name:
            return None
        return self.domains.get(name)

    @property
    def default_domain(self) -> str | None:
        return self.domain_for(self.default_name)


@dataclass(frozen=True, slots=True)
class IngestionConfiguration:
    """取り込みパイプラインに明示的に渡される設定."""

    cdn: CDNRegistry = field(default_factory=CDNRegistry)
    allowed_mime_types: frozenset[str] = DEFAULT_MEDIA_MIME_TYPES


@dataclass(frozen=True, slots=True)
class UrlResolution:
    """URL解決に用いるバケットとCDNドメイン."""

    bucket: str
    cdn_domain: str | None = None


# ドメイン例外クラス
class InvalidMediaError(ValueError):
    """呼び出し元が修正可能な入力エラーの基底例外."""


class InvalidBase64MediaError(InvalidMediaError):
    """base64文字列が有効なメディアにデコードできない例外."""

    default_message = "The base64 encoded string is not a valid image."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidMediaFileError(InvalidMediaError):
    """ファイル入力が有効なメディアではない例外."""

    default_message = "The file could not be processed. It is not a valid media file."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class StorageException(Exception):
    """ストレージバックエンドの基底例外."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class StorageNotFoundException(StorageException):
    """ストレージオブジェクトが見つからない例外."""
    pass


class StoragePermissionException(StorageException):
    """ストレージアクセス権限エラー例外."""
    pass
