"""Content based media type detection.

Detection never looks at a file name or a claimed extension: only the
leading bytes of the content are inspected. Recognized signatures are mapped
onto a canonical MIME type and extension, and the configured allow-list
decides whether the content counts as supported media.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Iterable

from ..domain import (
    DEFAULT_MEDIA_MIME_TYPES,
    FileHandle,
    RawStream,
    SniffResult,
)
from .classifier import classify, decode_base64

__all__ = ["MediaTypeSniffer", "detect_signature"]

logger = logging.getLogger(__name__)

TEXT_MIME_TYPE: Final = "text/plain"
BINARY_MIME_TYPE: Final = "application/octet-stream"

# (offset, signature, mime type, extension)
_SIGNATURES: Final[tuple[tuple[int, bytes, str, str], ...]] = (
    (0, b"%PDF-", "application/pdf", "pdf"),
    (0, b"\xff\xd8\xff", "image/jpeg", "jpg"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png", "png"),
    (0, b"GIF87a", "image/gif", "gif"),
    (0, b"GIF89a", "image/gif", "gif"),
    (0, b"II*\x00", "image/tiff", "tiff"),
    (0, b"MM\x00*", "image/tiff", "tiff"),
    (0, b"\x00\x00\x01\x00", "image/x-icon", "ico"),
    (0, b"\x1a\x45\xdf\xa3", "video/webm", "webm"),
    (0, b"OggS", "audio/ogg", "ogg"),
    (0, b"fLaC", "audio/flac", "flac"),
    (0, b"\xff\xfb", "audio/mpeg", "mp3"),
    (0, b"\xff\xf3", "audio/mpeg", "mp3"),
    (0, b"\xff\xf2", "audio/mpeg", "mp3"),
)

# RIFF containers: the form type lives at offset 8
_RIFF_FORMS: Final[dict[bytes, tuple[str, str]]] = {
    b"WEBP": ("image/webp", "webp"),
    b"WAVE": ("audio/wav", "wav"),
    b"AVI ": ("video/x-msvideo", "avi"),
}

# ISO base media file format: the major brand lives at offset 8
_FTYP_BRANDS: Final[dict[bytes, tuple[str, str]]] = {
    b"heic": ("image/heic", "heic"),
    b"heix": ("image/heic", "heic"),
    b"hevc": ("image/heic", "heic"),
    b"heim": ("image/heic", "heic"),
    b"heis": ("image/heic", "heic"),
    b"mif1": ("image/heic", "heic"),
    b"msf1": ("image/heic", "heic"),
    b"avif": ("image/avif", "avif"),
    b"avis": ("image/avif", "avif"),
    b"qt  ": ("video/quicktime", "mov"),
}
_FTYP_DEFAULT: Final = ("video/mp4", "mp4")

_HEADER_SIZE: Final = 16
_TEXT_WINDOW: Final = 1024


def detect_signature(data: bytes) -> tuple[str, str] | None:
    """Return ``(mime_type, extension)`` for a known signature, else ``None``."""
    header = bytes(data[:_HEADER_SIZE])

    if header.startswith(b"RIFF") and len(header) >= 12:
        return _RIFF_FORMS.get(header[8:12])

    if header[4:8] == b"ftyp" and len(header) >= 12:
        return _FTYP_BRANDS.get(header[8:12], _FTYP_DEFAULT)

    # Short ASCII signatures need their reserved bytes checked as well
    if header.startswith(b"BM") and header[6:10] == b"\x00\x00\x00\x00":
        return "image/bmp", "bmp"
    if header.startswith(b"ID3") and header[3:4] in (b"\x02", b"\x03", b"\x04"):
        return "audio/mpeg", "mp3"

    for offset, signature, mime_type, extension in _SIGNATURES:
        if header[offset:offset + len(signature)] == signature:
            return mime_type, extension
    return None


class MediaTypeSniffer:
    """Sniffs content types and checks them against an allow-list."""

    def __init__(self, allowed_mime_types: Iterable[str] | None = None) -> None:
        if allowed_mime_types is None:
            allowed_mime_types = DEFAULT_MEDIA_MIME_TYPES
        self._allowed = frozenset(mime.strip().lower() for mime in allowed_mime_types)

    @property
    def allowed_mime_types(self) -> frozenset[str]:
        return self._allowed

    def sniff(self, data: bytes) -> SniffResult:
        detected = detect_signature(data)
        if detected is None:
            # Unknown content: plain text unless it carries NUL bytes
            if b"\x00" in bytes(data[:_TEXT_WINDOW]):
                detected = (BINARY_MIME_TYPE, "bin")
            else:
                detected = (TEXT_MIME_TYPE, "txt")

        mime_type, extension = detected
        return SniffResult(
            mime_type=mime_type,
            extension=extension,
            is_supported_media=mime_type in self._allowed,
        )

    def mime_type(self, data: bytes) -> str:
        return self.sniff(data).mime_type

    def guess_extension(self, data: bytes) -> str:
        return self.sniff(data).extension

    def is_supported(self, data: bytes) -> bool:
        return self.sniff(data).is_supported_media

    def is_valid_media_file(self, value: Any) -> bool:
        """Return whether *value* refers to supported media content.

        Accepts a file handle (path or file object) or raw bytes. A missing or
        unreadable file yields ``False`` instead of raising.
        """
        media = classify(value)
        if isinstance(media, FileHandle):
            try:
                content = media.read_bytes()
            except OSError as e:
                logger.warning(f"Media file could not be read: name={media.name}, error={e}")
                return False
            return self.is_supported(content)
        if isinstance(media, RawStream):
            return self.is_supported(media.content)
        return False

    def is_base64_media(self, value: Any) -> bool:
        """Return whether *value* is base64 text that decodes to supported media."""
        if not isinstance(value, str):
            return False
        decoded = decode_base64(value)
        if decoded is None:
            return False
        return self.is_supported(decoded)
