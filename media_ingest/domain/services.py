"""メディア取り込みのドメインサービスとストレージバックエンドプロトコル."""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from urllib.parse import quote, urlsplit

from .entities import StorageConfiguration
from .types import Visibility

__all__ = [
    "StorageBackend",
    "CDNUrlRewriterService",
]


@runtime_checkable
class StorageBackend(Protocol):
    """ストレージバックエンドの抽象プロトコル.

    ポリモーフィズムにより、異なるストレージ実装（Local、AzureBlob等）を
    統一的なインターフェースで扱う。
    """

    @property
    def default_bucket(self) -> str:
        """設定済みのデフォルトバケット名."""
        ...

    def initialize(self, configuration: StorageConfiguration) -> None:
        """バックエンドを初期化する."""
        ...

    def put(
        self,
        key: str,
        content: bytes,
        visibility: Visibility,
        content_type: str | None = None,
    ) -> None:
        """指定キーにオブジェクトを書き込み."""
        ...

    def resolve_raw_url(self, bucket: str, key: str) -> str:
        """CDNを経由しない生のオブジェクトURLを返す."""
        ...


class CDNUrlRewriterService:
    """ストレージURLのオリジンをCDNドメインに置き換えるドメインサービス."""

    WEB_SCHEMES = ("http", "https")

    def is_web_url(self, raw_url: str) -> bool:
        return urlsplit(raw_url).scheme.lower() in self.WEB_SCHEMES

    def join(self, cdn_domain: str, key: str) -> str:
        """CDNドメインにオブジェクトキーを連結する."""
        base = cdn_domain.rstrip("/")
        if "://" not in base:
            base = f"https://{base}"
        return f"{base}/{quote(key, safe='/')}"

    def rewrite(self, raw_url: str, cdn_domain: str) -> str:
        """パスとクエリを保持したままオリジンを差し替える."""
        parsed = urlsplit(raw_url)

        base = cdn_domain.rstrip("/")
        if "://" not in base:
            # スキーム省略時は元URLのスキームを引き継ぐ
            base = f"{parsed.scheme or 'https'}://{base}"

        path = parsed.path
        if path and not path.startswith("/"):
            path = f"/{path}"

        url = f"{base}{path}"
        if parsed.query:
            url += f"?{parsed.query}"
        if parsed.fragment:
            url += f"#{parsed.fragment}"
        return url
