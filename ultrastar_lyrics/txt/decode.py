from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


# (bom, codec); UTF-32 LE must be checked before UTF-16 LE, they share a prefix
_BOMS: tuple[tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf-8"),
    (b"\xff\xfe\x00\x00", "utf-32-le"),
    (b"\x00\x00\xfe\xff", "utf-32-be"),
    (b"\xff\xfe", "utf-16-le"),
    (b"\xfe\xff", "utf-16-be"),
)

# Windows-1252 differs from Latin-1 only in 0x80-0x9F. Slots cp1252 leaves
# undefined (0x81, 0x8D, 0x8F, 0x90, 0x9D) pass through unchanged.
_CP1252_HIGH = {
    0x80: "€",
    0x82: "‚",
    0x83: "ƒ",
    0x84: "„",
    0x85: "…",
    0x86: "†",
    0x87: "‡",
    0x88: "ˆ",
    0x89: "‰",
    0x8A: "Š",
    0x8B: "‹",
    0x8C: "Œ",
    0x8E: "Ž",
    0x91: "‘",
    0x92: "’",
    0x93: "“",
    0x94: "”",
    0x95: "•",
    0x96: "–",
    0x97: "—",
    0x98: "˜",
    0x99: "™",
    0x9A: "š",
    0x9B: "›",
    0x9C: "œ",
    0x9E: "ž",
    0x9F: "Ÿ",
}


def decode_windows_1252(data: bytes) -> str:
    """
    Deterministic single-byte decode; never fails.
    """
    return data.decode("latin-1").translate(_CP1252_HIGH)


def decode_text(data: bytes) -> str:
    """
    Detection order (first match wins):
    - BOM: UTF-8, UTF-32 LE/BE, UTF-16 LE/BE; bad bytes become U+FFFD
    - strict UTF-8
    - Windows-1252 (legacy song packs)
    """
    for bom, codec in _BOMS:
        if data.startswith(bom):
            return data[len(bom) :].decode(codec, errors="replace")

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Not valid UTF-8, decoding as Windows-1252")
        return decode_windows_1252(data)


def split_lines(text: str) -> list[str]:
    # keep the trailing "" after a final newline, the parser skips blanks
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def decode_lines(data: bytes) -> list[str]:
    return split_lines(decode_text(data))


def read_lines(path: Path) -> list[str]:
    return decode_lines(Path(path).read_bytes())
