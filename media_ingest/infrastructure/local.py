"""Local filesystem storage実装."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..domain import (
    StorageConfiguration,
    StorageException,
    StoragePermissionException,
    Visibility,
)

__all__ = ["LocalStorage"]

logger = logging.getLogger(__name__)

_FILE_MODES = {
    Visibility.PUBLIC: 0o644,
    Visibility.PRIVATE: 0o600,
}


class LocalStorage:
    """ローカルファイルシステムのストレージバックエンド実装.

    オブジェクトは ``<base_path>/<bucket>/<key>`` に保存される。
    公開範囲はファイルのパーミッションに対応付ける。
    """

    def __init__(self) -> None:
        self._configuration: StorageConfiguration | None = None
        self._base_dir: Path | None = None

    @property
    def default_bucket(self) -> str:
        return self._require_configuration().bucket

    def initialize(self, configuration: StorageConfiguration) -> None:
        """ローカルストレージを初期化."""
        self._configuration = configuration
        self._base_dir = Path(configuration.base_path or ".").expanduser().resolve()

        # ベースディレクトリを作成
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageException(f"ベースディレクトリ作成エラー: {e}")

    def put(
        self,
        key: str,
        content: bytes,
        visibility: Visibility,
        content_type: str | None = None,
    ) -> None:
        """ファイルに内容を書き込み."""
        file_path = self._resolve_file_path(self.default_bucket, key)
        mode = _FILE_MODES[Visibility.coerce(visibility)]

        # 親ディレクトリを作成
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            # 作成時点でパーミッションを指定し、既存ファイルはfchmodで合わせる
            fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "wb") as fh:
                os.fchmod(fh.fileno(), mode)
                fh.write(content)
        except PermissionError:
            raise StoragePermissionException(f"書き込み権限エラー: {key}", key)
        except OSError as e:
            raise StorageException(f"書き込みエラー: {e}", key)

        logger.debug(f"ローカル書き込み: path={file_path}, size={len(content)}, content_type={content_type}")

    def resolve_raw_url(self, bucket: str, key: str) -> str:
        """公開URLが設定されていればHTTP URL、なければfile URIを返す."""
        public_url = self._require_configuration().public_object_url(bucket, key)
        if public_url:
            return public_url

        return self._resolve_file_path(bucket, key).as_uri()

    def _resolve_file_path(self, bucket: str, key: str) -> Path:
        """バケットとキーからファイルパスを解決."""
        self._require_configuration()
        assert self._base_dir is not None

        file_path = (self._base_dir / bucket / key).resolve()
        if not file_path.is_relative_to(self._base_dir):
            raise StorageException(f"ストレージルート外のキーは使用できません: {key}", key)
        return file_path

    def _require_configuration(self) -> StorageConfiguration:
        if self._configuration is None:
            raise StorageException("Storageが初期化されていません")
        return self._configuration
