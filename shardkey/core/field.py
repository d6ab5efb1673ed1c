"""Modular arithmetic over the prime field GF(257)."""

from __future__ import annotations

from shardkey.core.errors import DomainError

# Smallest prime above every byte value, so 0..255 are all field elements
PRIME = 257


def mod(n: int, m: int) -> int:
    """Canonical non-negative remainder of n modulo m."""
    return ((n % m) + m) % m


def extended_gcd(a: int, b: int) -> tuple[int, int, int]:
    """Return (g, x, y) such that a*x + b*y == g == gcd(a, b)."""
    old_r, r = a, b
    old_x, x = 1, 0
    old_y, y = 0, 1
    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_x, x = x, old_x - q * x
        old_y, y = y, old_y - q * y
    return old_r, old_x, old_y


def mod_inverse(a: int, m: int = PRIME) -> int:
    """Modular multiplicative inverse using the extended Euclidean algorithm.

    Raises:
        DomainError: a has no inverse modulo m. With a prime modulus this only
            happens for a == 0 (mod m), which upstream means two shares carry
            the same index.
    """
    a = mod(a, m)
    g, x, _ = extended_gcd(a, m)
    if g != 1:
        raise DomainError(f"Modular inverse of {a} mod {m} does not exist")
    return mod(x, m)
