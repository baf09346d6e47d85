"""インメモリストレージ実装（テスト・ローカル開発用）."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from ..domain import (
    StorageConfiguration,
    StorageException,
    StorageNotFoundException,
    Visibility,
)

__all__ = ["InMemoryStorage", "StoredObject"]


@dataclass(frozen=True, slots=True)
class StoredObject:
    content: bytes
    visibility: Visibility
    content_type: str | None = None


class InMemoryStorage:
    """インメモリストレージバックエンド."""

    def __init__(self) -> None:
        self._configuration: StorageConfiguration | None = None
        self._objects: dict[tuple[str, str], StoredObject] = {}

    @property
    def default_bucket(self) -> str:
        if self._configuration is None:
            raise StorageException("Storageが初期化されていません")
        return self._configuration.bucket

    def initialize(self, configuration: StorageConfiguration) -> None:
        self._configuration = configuration

    def put(
        self,
        key: str,
        content: bytes,
        visibility: Visibility,
        content_type: str | None = None,
    ) -> None:
        self._objects[(self.default_bucket, key)] = StoredObject(
            content=bytes(content),
            visibility=Visibility.coerce(visibility),
            content_type=content_type,
        )

    def resolve_raw_url(self, bucket: str, key: str) -> str:
        if self._configuration is None:
            raise StorageException("Storageが初期化されていません")
        public_url = self._configuration.public_object_url(bucket, key)
        if public_url:
            return public_url
        return f"memory://{quote(bucket)}/{quote(key, safe='/')}"

    def get(self, key: str, bucket: str | None = None) -> StoredObject:
        """保存済みオブジェクトを取得."""
        try:
            return self._objects[(bucket or self.default_bucket, key)]
        except KeyError:
            raise StorageNotFoundException(f"オブジェクトが見つかりません: {key}", key)

    def keys(self) -> list[str]:
        """保存済みキーの一覧を取得."""
        return [key for _, key in self._objects]
