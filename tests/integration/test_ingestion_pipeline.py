"""メディア取り込みパイプラインの統合テスト."""

import stat

import pytest

from media_ingest.application import MediaIngestionService, StorageBackendFactory
from media_ingest.domain import (
    CDNRegistry,
    IngestionConfiguration,
    InvalidBase64MediaError,
    InvalidMediaFileError,
    StorageBackendType,
    StorageConfiguration,
    StorageCredentials,
    Visibility,
)

PUBLIC_URL = "http://{bucket}.s3.example.com"


def _storage_configuration(backend_type, base_path="") -> StorageConfiguration:
    return StorageConfiguration(
        backend_type=backend_type,
        credentials=StorageCredentials(backend_type=backend_type),
        bucket="bucket1",
        base_path=str(base_path),
        public_url=PUBLIC_URL,
    )


def _ingestion_configuration(default_name="main") -> IngestionConfiguration:
    return IngestionConfiguration(
        cdn=CDNRegistry(
            domains={"main": "http://media.example.com"},
            default_name=default_name,
        )
    )


@pytest.fixture(params=[StorageBackendType.MEMORY, StorageBackendType.LOCAL])
def backend(request, tmp_path):
    configuration = _storage_configuration(request.param, base_path=tmp_path)
    return StorageBackendFactory.create_backend(configuration)


@pytest.fixture
def service(backend) -> MediaIngestionService:
    return MediaIngestionService(backend, _ingestion_configuration())


class TestIngestionPipeline:
    """分類から公開URL生成までの一連の流れ."""

    def test_every_entry_point_returns_cdn_url(self, service, pdf_path, pdf_bytes, pdf_base64) -> None:
        expected = "http://media.example.com/file_key.pdf"

        assert service.upload_file("file_key", pdf_path, Visibility.PUBLIC) == expected
        assert service.upload_base64("file_key", pdf_base64, Visibility.PUBLIC) == expected
        assert service.upload_stream("file_key", pdf_bytes, Visibility.PUBLIC) == expected
        assert service.upload_media("file_key", pdf_path, Visibility.PUBLIC) == expected

    def test_custom_cdn(self, service, pdf_path) -> None:
        url = service.upload_file("file_key", pdf_path, "public", cdn="http://customcdn.com")

        assert url == "http://customcdn.com/file_key.pdf"

    def test_missing_default_cdn_returns_raw_url(self, backend, pdf_path) -> None:
        service = MediaIngestionService(backend, _ingestion_configuration("doesnt_exist"))

        url = service.upload_file("file_key", pdf_path, Visibility.PUBLIC)

        assert url == "http://bucket1.s3.example.com/file_key.pdf"
        assert url == service.raw_url("file_key.pdf")

    def test_invalid_inputs_are_rejected(self, service, text_path) -> None:
        with pytest.raises(InvalidMediaFileError):
            service.upload_media("file_key", text_path, Visibility.PUBLIC)
        with pytest.raises(InvalidBase64MediaError):
            service.upload_base64("file_key", "garbage", Visibility.PUBLIC)

        assert service.sniffer.is_valid_media_file(text_path) is False


def test_in_memory_object_keeps_metadata(pdf_bytes) -> None:
    backend = StorageBackendFactory.create_backend(_storage_configuration(StorageBackendType.MEMORY))
    service = MediaIngestionService(backend, _ingestion_configuration())

    service.upload_stream("docs/file_key", pdf_bytes, Visibility.PRIVATE)

    stored = backend.get("docs/file_key.pdf")
    assert stored.content == pdf_bytes
    assert stored.visibility is Visibility.PRIVATE
    assert stored.content_type == "application/pdf"


def test_local_file_permissions_follow_visibility(tmp_path, png_bytes) -> None:
    backend = StorageBackendFactory.create_backend(
        _storage_configuration(StorageBackendType.LOCAL, base_path=tmp_path)
    )
    service = MediaIngestionService(backend, _ingestion_configuration())

    service.upload_stream("private_avatar", png_bytes, Visibility.PRIVATE)
    service.upload_stream("public_avatar", png_bytes, Visibility.PUBLIC)

    bucket_dir = tmp_path / "bucket1"
    assert stat.S_IMODE((bucket_dir / "private_avatar.png").stat().st_mode) == 0o600
    assert stat.S_IMODE((bucket_dir / "public_avatar.png").stat().st_mode) == 0o644


def test_local_backend_without_public_url_uses_cdn_key_url(tmp_path, pdf_bytes) -> None:
    configuration = StorageConfiguration(
        backend_type=StorageBackendType.LOCAL,
        credentials=StorageCredentials(backend_type=StorageBackendType.LOCAL),
        bucket="bucket1",
        base_path=str(tmp_path),
    )
    backend = StorageBackendFactory.create_backend(configuration)
    service = MediaIngestionService(backend, _ingestion_configuration())

    url = service.upload_stream("file_key", pdf_bytes, Visibility.PUBLIC)

    assert url == "http://media.example.com/file_key.pdf"
    assert str(tmp_path) not in url
    assert service.raw_url("file_key.pdf").startswith("file://")
