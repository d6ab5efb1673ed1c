"""Error taxonomy for the secret-sharing engine.

Every error is terminal. Callers surface ``kind`` and the message as-is and
never retry or drop the offending share.
"""

from __future__ import annotations


class ShareError(ValueError):
    """Base class for all engine errors."""

    kind = "share_error"


class ValidationError(ShareError):
    """Split preconditions violated (secret length, threshold, share count)."""

    kind = "validation"


class EncodingError(ShareError):
    """A value fell outside the representable symbol or field range."""

    kind = "encoding"


class CorruptShareError(ShareError):
    """Checksum mismatch or foreign symbol: a transcription error or tampering."""

    kind = "corrupt_share"


class LengthError(ShareError):
    """Share too short, odd-sized data region, or mismatched lane count."""

    kind = "length"


class InconsistentThresholdError(ShareError):
    kind = "inconsistent_threshold"


class InsufficientSharesError(ShareError):
    kind = "insufficient_shares"


class DomainError(ShareError):
    """Modular inverse requested for a non-invertible value."""

    kind = "domain"
