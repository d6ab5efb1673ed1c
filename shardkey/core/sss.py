"""Split a short secret into share strings and reconstruct it.

Each byte of the secret is an independent lane with its own random polynomial
of degree threshold-1. Share ``X`` holds every lane's polynomial evaluated at
``X``. Nothing is shared across calls: both operations are pure apart from the
entropy ``split`` draws from :mod:`secrets`.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from shardkey.core.codec import (
    BASE,
    MAX_LANES,
    MIN_THRESHOLD,
    Share,
    format_share_output_string,
    parse_share_input_string,
)
from shardkey.core.errors import (
    DomainError,
    EncodingError,
    InconsistentThresholdError,
    InsufficientSharesError,
    LengthError,
    ValidationError,
)
from shardkey.core.polynomial import evaluate_polynomial, interpolate_at_zero, random_polynomial

MAX_SECRET_BYTES = MAX_LANES
# T-1 and N-1 must each fit in one symbol
MAX_SHARES = BASE

log = structlog.get_logger()


def _validate_split(secret: bytes, num_shares: int, threshold: int) -> None:
    if len(secret) == 0:
        raise ValidationError("Secret cannot be empty")
    if len(secret) > MAX_SECRET_BYTES:
        raise ValidationError(
            f"Secret too long: {len(secret)} bytes (max {MAX_SECRET_BYTES})"
        )
    for name, value in (("num_shares", num_shares), ("threshold", threshold)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{name} must be an integer, got {type(value).__name__}")
    if threshold < MIN_THRESHOLD:
        raise ValidationError(f"Threshold must be at least {MIN_THRESHOLD}, got {threshold}")
    if threshold > num_shares:
        raise ValidationError(
            f"Threshold ({threshold}) cannot exceed number of shares ({num_shares})"
        )
    if threshold - 1 >= BASE:
        raise ValidationError(f"Threshold {threshold} too large for share encoding (max {MAX_SHARES})")
    if num_shares - 1 >= BASE:
        raise ValidationError(
            f"Number of shares {num_shares} too large for share encoding (max {MAX_SHARES})"
        )


def split_bytes(secret: bytes, num_shares: int, threshold: int) -> list[str]:
    """Split raw bytes into ``num_shares`` share strings, any ``threshold`` of which recover it.

    Args:
        secret: 1 to 32 bytes.
        num_shares: Total shares to produce (threshold..35).
        threshold: Shares needed for reconstruction (2..num_shares).

    Returns:
        Share strings for indices 1..num_shares, in index order.

    Raises:
        ValidationError: Any precondition fails. No share is produced.
    """
    _validate_split(secret, num_shares, threshold)

    lanes = [random_polynomial(b, threshold) for b in secret]
    shares = [
        format_share_output_string(
            Share(
                threshold=threshold,
                index=x,
                y_values=tuple(evaluate_polynomial(coeffs, x) for coeffs in lanes),
            )
        )
        for x in range(1, num_shares + 1)
    ]
    log.debug("secret_split", lanes=len(lanes), num_shares=num_shares, threshold=threshold)
    return shares


def split(secret_text: str, num_shares: int, threshold: int) -> list[str]:
    """Split UTF-8 text. See :func:`split_bytes`."""
    try:
        secret = secret_text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValidationError(f"Secret is not encodable as UTF-8: {e.reason}") from e
    return split_bytes(secret, num_shares, threshold)


def parse_shares(share_strings: Sequence[str]) -> list[Share]:
    """Parse share strings and check they belong together.

    Raises on the first failure. Checks run in this order: the format of each
    share, then a non-empty set, a common threshold, enough shares, and a
    common lane count.
    """
    shares = [parse_share_input_string(s) for s in share_strings]
    if not shares:
        raise InsufficientSharesError("No shares provided for reconstruction")

    threshold = shares[0].threshold
    if any(s.threshold != threshold for s in shares[1:]):
        raise InconsistentThresholdError("Inconsistent threshold values in provided shares")
    if len(shares) < threshold:
        raise InsufficientSharesError(
            f"Not enough shares: required {threshold}, provided {len(shares)}"
        )

    lanes = shares[0].lanes
    if any(s.lanes != lanes for s in shares[1:]):
        raise LengthError("Shares encode secrets of different lengths")
    return shares


def reconstruct_bytes(share_strings: Sequence[str]) -> bytes:
    """Recover the secret bytes from ``threshold`` or more share strings.

    Every supplied share takes part in the interpolation. When more than the
    threshold are given and they are consistent, the result is the same.
    """
    shares = parse_shares(share_strings)

    indices = [s.index for s in shares]
    if len(set(indices)) != len(indices):
        raise DomainError("Duplicate share indices: each share may be supplied only once")

    out = bytearray()
    for lane in range(shares[0].lanes):
        value = interpolate_at_zero([(s.index, s.y_values[lane]) for s in shares])
        if value > 0xFF:
            # Only reachable when the shares come from different splits
            raise EncodingError(f"Lane {lane} reconstructed to {value}, not a byte")
        out.append(value)

    log.debug("secret_reconstructed", lanes=len(out), shares_used=len(shares))
    return bytes(out)


def reconstruct(share_strings: Sequence[str]) -> str:
    """Recover secret text. Invalid UTF-8 is decoded with replacement characters."""
    return reconstruct_bytes(share_strings).decode("utf-8", errors="replace")


def inspect_share(text: str) -> Share:
    """Verify one share string and return its decoded metadata."""
    return parse_share_input_string(text)
