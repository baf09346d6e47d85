"""Azure Blob Storage実装."""

from __future__ import annotations

import logging
from typing import Any

from ..domain import (
    StorageConfiguration,
    StorageException,
    StoragePermissionException,
    Visibility,
)

__all__ = ["AzureBlobStorage"]

logger = logging.getLogger(__name__)


class AzureBlobStorage:
    """Azure Blob Storageのストレージバックエンド実装.

    バケットはコンテナ、キーはブロブ名に対応する。Blob単位のACLは存在しないため、
    公開範囲はブロブメタデータ ``visibility`` として記録する。
    """

    def __init__(self) -> None:
        self._blob_service_client: Any = None
        self._configuration: StorageConfiguration | None = None

    @property
    def default_bucket(self) -> str:
        if self._configuration is None:
            raise StorageException("Storageが初期化されていません")
        return self._configuration.bucket

    def initialize(self, configuration: StorageConfiguration) -> None:
        """Azure Blob Storageクライアントを初期化."""
        try:
            from azure.core.exceptions import ResourceExistsError
            from azure.storage.blob import BlobServiceClient
        except ImportError as import_error:
            raise StorageException(
                f"Azure Blob Storage初期化エラー: 必要なパッケージが正しくインストールされていません。\n"
                f"詳細: {import_error}"
            )

        credentials = configuration.credentials
        try:
            # 接続文字列またはアカウント情報で認証
            if credentials.connection_string:
                self._blob_service_client = BlobServiceClient.from_connection_string(
                    credentials.connection_string
                )
            elif credentials.account_name and credentials.access_key:
                account_url = f"https://{credentials.account_name}.blob.core.windows.net"
                self._blob_service_client = BlobServiceClient(
                    account_url=account_url,
                    credential=credentials.access_key,
                )
            else:
                raise StorageException("Azure Blob認証情報が不正です")

            # コンテナが存在しない場合は作成
            container_client = self._blob_service_client.get_container_client(configuration.bucket)
            try:
                container_client.create_container()
            except ResourceExistsError:
                pass  # 既に存在する場合は無視
        except StorageException:
            raise
        except Exception as e:
            raise StorageException(f"Azure Blob Storage初期化エラー: {e}")

        self._configuration = configuration
        logger.info(f"Azure Blob Storage initialized: container={configuration.bucket}")

    def put(
        self,
        key: str,
        content: bytes,
        visibility: Visibility,
        content_type: str | None = None,
    ) -> None:
        """ブロブに内容を書き込み."""
        from azure.core.exceptions import ClientAuthenticationError, HttpResponseError
        from azure.storage.blob import ContentSettings

        blob_client = self._blob_client(self.default_bucket, key)
        options: dict[str, Any] = {
            "overwrite": True,
            "metadata": {"visibility": Visibility.coerce(visibility).value},
        }
        if content_type:
            options["content_settings"] = ContentSettings(content_type=content_type)

        try:
            blob_client.upload_blob(content, **options)
        except ClientAuthenticationError:
            raise StoragePermissionException(f"書き込み権限エラー: {key}", key)
        except HttpResponseError as e:
            if e.status_code == 403:
                raise StoragePermissionException(f"書き込み権限エラー: {key}", key)
            raise StorageException(f"書き込みエラー: {e}", key)

    def resolve_raw_url(self, bucket: str, key: str) -> str:
        """ブロブのURLを返す."""
        return self._blob_client(bucket, key).url

    def _blob_client(self, bucket: str, key: str) -> Any:
        if self._blob_service_client is None:
            raise StorageException("Storageが初期化されていません")
        return self._blob_service_client.get_blob_client(container=bucket, blob=key)
