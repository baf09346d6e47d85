"""メディア取り込み境界文脈のアプリケーションサービス."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Any

from ..domain import (
    Base64Text,
    CDNUrlRewriterService,
    FileHandle,
    IngestionConfiguration,
    InvalidBase64MediaError,
    InvalidMediaFileError,
    RawStream,
    SniffResult,
    StorageBackend,
    StorageBackendType,
    StorageConfiguration,
    StorageException,
    UrlResolution,
    Visibility,
)
from ..infrastructure import AzureBlobStorage, InMemoryStorage, LocalStorage
from .classifier import classify, decode_base64
from .sniffer import MediaTypeSniffer

if TYPE_CHECKING:  # pragma: no cover
    from ..settings import ApplicationSettings

__all__ = [
    "KEY_TOKEN_BYTES",
    "MediaIngestionService",
    "StorageBackendFactory",
    "create_ingestion_service",
]

logger = logging.getLogger(__name__)

# 16バイト = 32桁の16進トークン
KEY_TOKEN_BYTES = 16


class StorageBackendFactory:
    """ストレージバックエンドファクトリ - ポリモーフィズムの実現."""

    @staticmethod
    def create_backend(configuration: StorageConfiguration) -> StorageBackend:
        """設定に基づいてストレージバックエンドを作成."""
        backend_type = configuration.backend_type

        if backend_type == StorageBackendType.LOCAL:
            backend: StorageBackend = LocalStorage()
        elif backend_type == StorageBackendType.AZURE_BLOB:
            backend = AzureBlobStorage()
        elif backend_type == StorageBackendType.MEMORY:
            backend = InMemoryStorage()
        else:
            raise StorageException(f"未対応のバックエンドタイプ: {backend_type}")

        # バックエンドを初期化
        backend.initialize(configuration)
        return backend


class MediaIngestionService:
    """メディア取り込みのアプリケーションサービス - ユースケース実行層.

    入力の分類 → 内容判定 → キー確定 → アップロード → URL解決 を
    1回の呼び出しで直列に実行する。状態は保持しない。
    """

    def __init__(
        self,
        backend: StorageBackend,
        configuration: IngestionConfiguration | None = None,
        sniffer: MediaTypeSniffer | None = None,
    ) -> None:
        self._backend = backend
        self._configuration = configuration or IngestionConfiguration()
        self._sniffer = sniffer or MediaTypeSniffer(self._configuration.allowed_mime_types)
        self._rewriter = CDNUrlRewriterService()

    @property
    def sniffer(self) -> MediaTypeSniffer:
        return self._sniffer

    # =============================================================
    # キー生成
    # =============================================================

    @staticmethod
    def generate_key(prefix: str) -> str:
        """プレフィックスにランダムトークンを連結したキーを生成."""
        return f"{prefix}{secrets.token_hex(KEY_TOKEN_BYTES)}"

    # =============================================================
    # アップロードユースケース
    # =============================================================

    def upload_media(
        self,
        key: str,
        value: Any,
        visibility: Visibility | str,
        *,
        bucket: str | None = None,
        cdn: str | None = None,
    ) -> str:
        """入力の表現形式を判定して適切なアップロード経路に振り分ける."""
        media = classify(value)
        logger.debug(f"入力分類: key={key}, kind={media.kind.value}")

        if isinstance(media, FileHandle):
            return self.upload_file(key, media, visibility, bucket=bucket, cdn=cdn)
        if isinstance(media, Base64Text):
            return self.upload_base64(key, media.text, visibility, bucket=bucket, cdn=cdn)
        return self.upload_stream(key, media.content, visibility, bucket=bucket, cdn=cdn)

    def upload_base64(
        self,
        key: str,
        base64_text: str,
        visibility: Visibility | str,
        *,
        bucket: str | None = None,
        cdn: str | None = None,
    ) -> str:
        """base64文字列をデコードしてアップロード."""
        decoded = decode_base64(base64_text) if isinstance(base64_text, str) else None
        if decoded is None:
            logger.warning(f"base64デコード失敗: key={key}")
            raise InvalidBase64MediaError()

        result = self._sniffer.sniff(decoded)
        if not result.is_supported_media:
            logger.warning(f"未対応のメディア形式(base64): key={key}, mime={result.mime_type}")
            raise InvalidBase64MediaError()

        return self._store(key, decoded, result, visibility, bucket=bucket, cdn=cdn)

    def upload_file(
        self,
        key: str,
        file_handle: Any,
        visibility: Visibility | str,
        *,
        bucket: str | None = None,
        cdn: str | None = None,
    ) -> str:
        """ファイルハンドルの内容を検証してアップロード."""
        media = classify(file_handle)
        if not isinstance(media, FileHandle):
            logger.warning(f"ファイルハンドル以外の入力: key={key}, kind={media.kind.value}")
            raise InvalidMediaFileError()

        try:
            content = media.read_bytes()
        except OSError as e:
            logger.warning(f"ファイル読み込み失敗: key={key}, name={media.name}, error={e}")
            raise InvalidMediaFileError() from e

        result = self._sniffer.sniff(content)
        if not result.is_supported_media:
            logger.warning(f"未対応のメディア形式(file): key={key}, name={media.name}, mime={result.mime_type}")
            raise InvalidMediaFileError()

        return self._store(key, content, result, visibility, bucket=bucket, cdn=cdn)

    def upload_stream(
        self,
        key: str,
        raw_bytes: bytes | RawStream,
        visibility: Visibility | str,
        *,
        bucket: str | None = None,
        cdn: str | None = None,
    ) -> str:
        """生データをそのまま判定してアップロード."""
        if isinstance(raw_bytes, RawStream):
            content = raw_bytes.content
        elif isinstance(raw_bytes, str):
            content = raw_bytes.encode("utf-8")
        else:
            content = bytes(raw_bytes)

        result = self._sniffer.sniff(content)
        if not result.is_supported_media:
            logger.warning(f"未対応のメディア形式(stream): key={key}, mime={result.mime_type}")
            raise InvalidMediaFileError()

        return self._store(key, content, result, visibility, bucket=bucket, cdn=cdn)

    def assign_media(
        self,
        current_url: str | None,
        value: Any,
        prefix: str,
        visibility: Visibility | str = Visibility.PUBLIC,
    ) -> Any:
        """属性値の置き換え時に明示的に呼び出すアップロード.

        値が空、または現在のURLと同一であればアップロードせずにそのまま返す。
        """
        if value is None or (isinstance(value, (str, bytes)) and not value):
            return value
        if isinstance(value, str) and value == current_url:
            return value

        return self.upload_media(self.generate_key(prefix), value, visibility)

    # =============================================================
    # URL解決ユースケース
    # =============================================================

    def raw_url(self, key: str, bucket: str | None = None) -> str:
        """CDNを経由しないストレージURLを取得."""
        return self._backend.resolve_raw_url(bucket or self._backend.default_bucket, key)

    def media_url(self, key: str, cdn: str | None = None, bucket: str | None = None) -> str:
        """公開URLを取得. CDNが設定されていればオリジンを書き換える.

        生URLがHTTP(S)でない場合（file://, memory://）はパスを引き継がず、
        CDNドメインにキーを連結する。
        """
        resolution = self.resolve(cdn=cdn, bucket=bucket)
        url = self._backend.resolve_raw_url(resolution.bucket, key)
        if resolution.cdn_domain is None:
            return url
        if not self._rewriter.is_web_url(url):
            return self._rewriter.join(resolution.cdn_domain, key)
        return self._rewriter.rewrite(url, resolution.cdn_domain)

    def resolve(self, cdn: str | None = None, bucket: str | None = None) -> UrlResolution:
        """呼び出し単位の上書きと設定からバケットとCDNドメインを決定."""
        return UrlResolution(
            bucket=bucket or self._backend.default_bucket,
            cdn_domain=cdn or self._configuration.cdn.default_domain,
        )

    # =============================================================
    # 内部処理
    # =============================================================

    def _store(
        self,
        key: str,
        content: bytes,
        result: SniffResult,
        visibility: Visibility | str,
        *,
        bucket: str | None,
        cdn: str | None,
    ) -> str:
        visibility = Visibility.coerce(visibility)
        final_key = f"{key}.{result.extension}"

        try:
            self._backend.put(final_key, content, visibility, content_type=result.mime_type)
        except Exception as e:
            logger.error(f"アップロードエラー: key={final_key}, error={e}")
            raise

        logger.info(
            f"メディアアップロード: key={final_key}, mime={result.mime_type}, "
            f"size={len(content)}, visibility={visibility.value}"
        )
        return self.media_url(final_key, cdn=cdn, bucket=bucket)


def create_ingestion_service(
    settings: ApplicationSettings,
    backend_factory: StorageBackendFactory | None = None,
) -> MediaIngestionService:
    """設定からストレージバックエンドと取り込みサービスを構築."""
    factory = backend_factory or StorageBackendFactory()
    backend = factory.create_backend(settings.storage_configuration())
    return MediaIngestionService(backend, settings.ingestion_configuration())
