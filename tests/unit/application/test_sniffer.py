"""メディア判定のテスト."""

import base64
import io
from pathlib import Path

import pytest

from media_ingest.application import MediaTypeSniffer, detect_signature


@pytest.fixture
def sniffer() -> MediaTypeSniffer:
    return MediaTypeSniffer()


class TestDetectSignature:
    """マジックナンバー判定のテスト."""

    @pytest.mark.parametrize(
        "header, expected",
        [
            (b"%PDF-1.7\n", ("application/pdf", "pdf")),
            (b"\xff\xd8\xff\xe0\x00\x10JFIF", ("image/jpeg", "jpg")),
            (b"\x89PNG\r\n\x1a\n\x00\x00", ("image/png", "png")),
            (b"GIF89a\x01\x00", ("image/gif", "gif")),
            (b"RIFF\x24\x00\x00\x00WEBPVP8 ", ("image/webp", "webp")),
            (b"RIFF\x24\x00\x00\x00WAVEfmt ", ("audio/wav", "wav")),
            (b"BM\x36\x00\x00\x00\x00\x00\x00\x00\x36\x00", ("image/bmp", "bmp")),
            (b"II*\x00\x08\x00\x00\x00", ("image/tiff", "tiff")),
            (b"MM\x00*\x00\x00\x00\x08", ("image/tiff", "tiff")),
            (b"\x00\x00\x00\x18ftypheic\x00\x00", ("image/heic", "heic")),
            (b"\x00\x00\x00\x1cftypavif\x00\x00", ("image/avif", "avif")),
            (b"\x00\x00\x00\x14ftypqt  \x00\x00", ("video/quicktime", "mov")),
            (b"\x00\x00\x00\x18ftypisom\x00\x00", ("video/mp4", "mp4")),
            (b"ID3\x03\x00\x00\x00\x00", ("audio/mpeg", "mp3")),
            (b"OggS\x00\x02", ("audio/ogg", "ogg")),
        ],
    )
    def test_known_signatures(self, header, expected) -> None:
        assert detect_signature(header) == expected

    @pytest.mark.parametrize(
        "data",
        [b"", b"hello world", b"BMW is a car brand", b"ID3 tags explained", b"RIFF\x00\x00\x00\x00XXXX"],
    )
    def test_unknown_content(self, data) -> None:
        assert detect_signature(data) is None


class TestSniff:
    """sniff() のテスト."""

    def test_pdf_is_supported_media(self, sniffer, pdf_bytes) -> None:
        result = sniffer.sniff(pdf_bytes)

        assert result.mime_type == "application/pdf"
        assert result.extension == "pdf"
        assert result.is_supported_media is True

    def test_png_is_supported_media(self, sniffer, png_bytes) -> None:
        result = sniffer.sniff(png_bytes)

        assert (result.mime_type, result.extension, result.is_supported_media) == (
            "image/png",
            "png",
            True,
        )

    def test_source_file_is_plain_text(self, sniffer) -> None:
        result = sniffer.sniff(Path(__file__).read_bytes())

        assert result.mime_type == "text/plain"
        assert result.extension == "txt"
        assert result.is_supported_media is False

    def test_unknown_binary_is_octet_stream(self, sniffer) -> None:
        result = sniffer.sniff(b"\x00\x01\x02\x03garbage")

        assert result.mime_type == "application/octet-stream"
        assert result.extension == "bin"
        assert result.is_supported_media is False

    def test_recognized_but_not_allowed(self, sniffer) -> None:
        result = sniffer.sniff(b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00")

        assert result.mime_type == "video/mp4"
        assert result.is_supported_media is False

    def test_custom_allow_list(self, pdf_bytes, png_bytes) -> None:
        sniffer = MediaTypeSniffer(["image/png", " VIDEO/MP4 "])

        assert sniffer.is_supported(png_bytes) is True
        assert sniffer.is_supported(pdf_bytes) is False
        assert sniffer.is_supported(b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00") is True

    def test_filename_is_never_consulted(self, sniffer, tmp_path, pdf_bytes) -> None:
        disguised = tmp_path / "report.txt"
        disguised.write_bytes(pdf_bytes)

        assert sniffer.is_valid_media_file(disguised) is True


class TestStreamHelpers:
    """mime_type() / guess_extension() のテスト."""

    def test_guess_extension(self, sniffer, pdf_bytes) -> None:
        assert sniffer.guess_extension(pdf_bytes) == "pdf"
        assert sniffer.guess_extension(__file__.encode("utf-8")) == "txt"

    def test_mime_type(self, sniffer, pdf_bytes) -> None:
        assert sniffer.mime_type(pdf_bytes) == "application/pdf"
        assert sniffer.mime_type(__file__.encode("utf-8")) == "text/plain"


class TestIsValidMediaFile:
    """is_valid_media_file() のテスト."""

    def test_pdf_file(self, sniffer, pdf_path) -> None:
        assert sniffer.is_valid_media_file(pdf_path) is True

    def test_text_file(self, sniffer, text_path) -> None:
        assert sniffer.is_valid_media_file(text_path) is False
        assert sniffer.is_valid_media_file(Path(__file__)) is False

    def test_missing_file_returns_false(self, sniffer, tmp_path) -> None:
        assert sniffer.is_valid_media_file(tmp_path / "missing.pdf") is False

    def test_unreadable_stream_returns_false(self, sniffer) -> None:
        stream = io.BytesIO(b"%PDF-1.4")
        stream.close()

        assert sniffer.is_valid_media_file(stream) is False

    def test_raw_bytes(self, sniffer, pdf_bytes) -> None:
        assert sniffer.is_valid_media_file(pdf_bytes) is True
        assert sniffer.is_valid_media_file(b"plain words") is False


class TestIsBase64Media:
    """is_base64_media() のテスト."""

    def test_base64_media(self, sniffer, pdf_bytes, pdf_base64) -> None:
        assert sniffer.is_base64_media("garbage") is False
        assert sniffer.is_base64_media(pdf_bytes) is False
        assert sniffer.is_base64_media(pdf_base64) is True

    def test_base64_of_text_is_not_media(self, sniffer) -> None:
        encoded = base64.b64encode(b"plain words").decode("ascii")

        assert sniffer.is_base64_media(encoded) is False
