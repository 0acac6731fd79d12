"""Symbolic text-encoding names mapped to Python codecs."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

LOGGER = logging.getLogger(__name__)

DEFAULT_ENCODING_NAME = "US-ASCII"
UNIVERSAL_ENCODING_NAME = "UTF-8"

_CODECS: dict[str, str] = {
    "US-ASCII": "ascii",
    "Windows-1252": "cp1252",
    "Shift-JIS": "shift_jis",
    "Windows-1251": "cp1251",
    "GB2312": "gb2312",
    "Big5": "big5",
    "UTF-8": "utf-8",
}


@dataclass(frozen=True)
class TextEncoding:
    """Byte encoder for one named text encoding.

    Characters the codec cannot represent are written as ``?``.
    """

    name: str
    codec: str

    def encode(self, text: str) -> bytes:
        return text.encode(self.codec, errors="replace")


EncodingFallbackHook = Callable[[str, Any, TextEncoding], None]


def known_encodings() -> tuple[str, ...]:
    return tuple(_CODECS)


def _codec_available(codec: str) -> bool:
    try:
        codecs.lookup(codec)
    except LookupError:
        return False
    return True


def resolve_encoding(name: str, *, on_fallback: EncodingFallbackHook | None = None) -> TextEncoding:
    """Resolve a symbolic encoding name; unknown names are reported like option fallbacks."""
    codec = _CODECS.get(name)
    if codec is None:
        default = TextEncoding(name=DEFAULT_ENCODING_NAME, codec=_CODECS[DEFAULT_ENCODING_NAME])
        if on_fallback is None:
            LOGGER.warning("Unknown encoding %r; using %s", name, DEFAULT_ENCODING_NAME)
        else:
            on_fallback("encoding", name, default)
        return default
    if not _codec_available(codec):
        LOGGER.warning("Codec for %s is unavailable; using %s", name, UNIVERSAL_ENCODING_NAME)
        return TextEncoding(name=UNIVERSAL_ENCODING_NAME, codec=_CODECS[UNIVERSAL_ENCODING_NAME])
    return TextEncoding(name=name, codec=codec)


DEFAULT_ENCODING = TextEncoding(name=DEFAULT_ENCODING_NAME, codec=_CODECS[DEFAULT_ENCODING_NAME])
