import base64
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from media_ingest.domain import CDNRegistry, IngestionConfiguration  # noqa: E402

FIXTURES = Path(__file__).resolve().parent / "fixtures"

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@pytest.fixture
def pdf_path() -> Path:
    """サンプルPDFのパス."""
    return FIXTURES / "pdf-sample.pdf"


@pytest.fixture
def pdf_bytes(pdf_path) -> bytes:
    return pdf_path.read_bytes()


@pytest.fixture
def pdf_base64(pdf_bytes) -> str:
    return base64.b64encode(pdf_bytes).decode("ascii")


@pytest.fixture
def text_path() -> Path:
    """メディアではないテキストファイル."""
    return FIXTURES / "notes.txt"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def cdn_registry() -> CDNRegistry:
    return CDNRegistry(
        domains={"default_cdn1": "http://media.default_cdn1.com"},
        default_name="default_cdn1",
    )


@pytest.fixture
def ingestion_configuration(cdn_registry) -> IngestionConfiguration:
    return IngestionConfiguration(cdn=cdn_registry)


@pytest.fixture
def mock_backend():
    """生URLを返すモックストレージバックエンド."""
    backend = MagicMock()
    backend.default_bucket = "aws_bucket"
    backend.resolve_raw_url.side_effect = lambda bucket, key: f"http://s3.com/{key}"
    return backend
