"""Share string codec.

A share is written as symbols from a 35-character alphabet (digits 1-9, then
A-Z; ``0`` is left out because it reads like ``O``). Before grouping, the
logical layout is::

    [T-1][X-1][y0 hi][y0 lo][y1 hi][y1 lo]...[checksum]

Each y value is a field element in [0, 256], written base-35 in two symbols
(35**2 = 1225 > 257). The checksum is the sum of every preceding symbol value
mod 35. The whole string is then split into hyphen-separated groups of four
for transcription, e.g. ``23DG-4H1K-P``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType

import structlog

from shardkey.core.errors import CorruptShareError, EncodingError, LengthError
from shardkey.core.field import PRIME

ALPHABET = "123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE = len(ALPHABET)
GROUP_SIZE = 4
SEPARATOR = "-"

MIN_THRESHOLD = 2
# One lane per secret byte
MAX_LANES = 32

# threshold, index, checksum
MIN_SYMBOLS = 3

_SYMBOL_VALUES = MappingProxyType({c: i for i, c in enumerate(ALPHABET)})

log = structlog.get_logger()


@dataclass(frozen=True)
class Share:
    """One point on every lane polynomial, plus the threshold it was split with."""

    threshold: int
    index: int
    y_values: tuple[int, ...]

    @property
    def lanes(self) -> int:
        return len(self.y_values)


def value_to_char(value: int) -> str:
    if not 0 <= value < BASE:
        raise EncodingError(f"Value {value} out of symbol range 0-{BASE - 1}")
    return ALPHABET[value]


def char_to_value(char: str) -> int:
    try:
        return _SYMBOL_VALUES[char]
    except KeyError:
        raise EncodingError(f"Character {char!r} is not a share symbol") from None


def byte_to_two_chars(value: int) -> str:
    """Encode a field element (0..PRIME-1) as a high/low symbol pair."""
    if not 0 <= value < PRIME:
        raise EncodingError(f"Field value {value} out of range 0-{PRIME - 1}")
    q, r = divmod(value, BASE)
    return value_to_char(q) + value_to_char(r)


def two_chars_to_byte(chars: str) -> int:
    """Decode a high/low symbol pair back into a field element."""
    if len(chars) != 2:
        raise EncodingError(f"Expected two symbols, got {len(chars)}")
    value = char_to_value(chars[0]) * BASE + char_to_value(chars[1])
    if value >= PRIME:
        raise EncodingError(f"Symbol pair {chars!r} decodes to {value}, outside the field")
    return value


def generate_control_char(symbols: Iterable[str]) -> str:
    """Checksum symbol: sum of symbol values mod BASE."""
    total = 0
    for c in symbols:
        total = (total + char_to_value(c)) % BASE
    return value_to_char(total)


def group_symbols(raw: str) -> str:
    """Insert a separator after every GROUP_SIZE symbols."""
    return SEPARATOR.join(raw[i : i + GROUP_SIZE] for i in range(0, len(raw), GROUP_SIZE))


def normalize_share_input(text: str) -> str:
    """Strip separators and whitespace and upper-case a transcribed share."""
    return "".join(c for c in text if c != SEPARATOR and not c.isspace()).upper()


def format_share_output_string(share: Share) -> str:
    """Render a share as its checksummed, grouped string form."""
    data = value_to_char(share.threshold - 1) + value_to_char(share.index - 1)
    data += "".join(byte_to_two_chars(y) for y in share.y_values)
    return group_symbols(data + generate_control_char(data))


def parse_share_input_string(text: str) -> Share:
    """Parse and verify a share string.

    Raises:
        LengthError: fewer than three symbols, an odd-sized y-value region, or
            a lane count outside 1..MAX_LANES.
        CorruptShareError: foreign symbol, checksum mismatch, a threshold
            below MIN_THRESHOLD, or a y pair that no valid share can contain.
    """
    combined = normalize_share_input(text)
    if len(combined) < MIN_SYMBOLS:
        raise LengthError(
            f"Share too short: {len(combined)} symbols, need at least {MIN_SYMBOLS}"
        )

    foreign = sorted({c for c in combined if c not in _SYMBOL_VALUES})
    if foreign:
        log.debug("share_rejected", reason="foreign_symbol")
        raise CorruptShareError(
            f"Share contains symbols outside the alphabet: {''.join(foreign)!r}"
        )

    data, control = combined[:-1], combined[-1]
    if generate_control_char(data) != control:
        log.debug("share_rejected", reason="checksum_mismatch")
        raise CorruptShareError("Checksum mismatch: share corrupted or mistyped")

    y_chars = data[2:]
    if len(y_chars) % 2 != 0:
        raise LengthError(f"Share data region has odd length {len(y_chars)}")
    lanes = len(y_chars) // 2
    if not 1 <= lanes <= MAX_LANES:
        log.debug("share_rejected", reason="lane_count")
        raise LengthError(f"Share holds {lanes} secret bytes, expected 1-{MAX_LANES}")

    threshold = char_to_value(data[0]) + 1
    if threshold < MIN_THRESHOLD:
        log.debug("share_rejected", reason="threshold_below_minimum")
        raise CorruptShareError(
            f"Share declares threshold {threshold}, minimum is {MIN_THRESHOLD}"
        )

    try:
        y_values = tuple(two_chars_to_byte(y_chars[i : i + 2]) for i in range(0, len(y_chars), 2))
    except EncodingError as e:
        raise CorruptShareError(str(e)) from e

    return Share(
        threshold=threshold,
        index=char_to_value(data[1]) + 1,
        y_values=y_values,
    )
