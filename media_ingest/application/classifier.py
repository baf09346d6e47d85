"""入力値の表現形式を判定する分類器."""

from __future__ import annotations

import base64
import binascii
import os
from typing import Any

from ..domain import Base64Text, FileHandle, MediaInput, RawStream

__all__ = ["classify", "decode_base64", "is_file"]


def decode_base64(text: str) -> bytes | None:
    """厳密なbase64デコード.

    再エンコードして元の文字列に一致し、かつ空でない場合のみデコード結果を返す。
    """
    try:
        decoded = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None

    if not decoded:
        return None
    if base64.b64encode(decoded).decode("ascii") != text:
        return None
    return decoded


def _is_file_like(value: Any) -> bool:
    if isinstance(value, os.PathLike):
        return True
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    return callable(getattr(value, "read", None))


def classify(value: Any) -> MediaInput:
    """任意の値を RawStream / Base64Text / FileHandle のいずれかに分類する.

    判定順序はファイルハンドル、base64の往復一致、生データの順。
    ファイルの実在や内容の妥当性はここでは検証しない。
    """
    if isinstance(value, (RawStream, Base64Text, FileHandle)):
        return value

    if _is_file_like(value):
        return FileHandle(value)

    if isinstance(value, str):
        if decode_base64(value) is not None:
            return Base64Text(value)
        return RawStream(value.encode("utf-8"))

    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawStream(bytes(value))

    return RawStream(str(value).encode("utf-8"))


def is_file(value: Any) -> bool:
    """値がファイルハンドルとして扱われるかを返す."""
    return isinstance(classify(value), FileHandle)
