"""Random polynomial construction, evaluation and Lagrange interpolation."""

from __future__ import annotations

import secrets
from collections.abc import Sequence

from shardkey.core.errors import EncodingError, InsufficientSharesError, ValidationError
from shardkey.core.field import PRIME, mod, mod_inverse


def random_coefficient(prime: int = PRIME) -> int:
    """Uniform secure draw from [0, prime - 2]."""
    return secrets.randbelow(prime - 1)


def random_polynomial(constant: int, threshold: int, prime: int = PRIME) -> list[int]:
    """Build a degree threshold-1 polynomial whose constant term is ``constant``.

    Args:
        constant: The fixed coefficient 0 (one secret byte).
        threshold: Number of coefficients, i.e. shares needed to recover it.
        prime: The field modulus.

    Returns:
        Coefficients in ascending power order.
    """
    if not 0 <= constant < prime:
        raise EncodingError(f"Constant term {constant} is not a field element mod {prime}")
    if threshold < 1:
        raise ValidationError(f"Polynomial needs at least one coefficient, got {threshold}")
    return [constant] + [random_coefficient(prime) for _ in range(threshold - 1)]


def evaluate_polynomial(coeffs: Sequence[int], x: int, prime: int = PRIME) -> int:
    """Evaluate sum(coeffs[i] * x**i) mod prime with Horner's rule."""
    result = 0
    for c in reversed(coeffs):
        result = mod(result * x + c, prime)
    return result


def interpolate_at_zero(points: Sequence[tuple[int, int]], prime: int = PRIME) -> int:
    """Constant term of the polynomial through ``points`` (Lagrange at x=0).

    All points are used, not just the first ``threshold`` of them. Duplicate x
    coordinates make a denominator zero and raise DomainError.
    """
    if not points:
        raise InsufficientSharesError("No points to interpolate")

    total = 0
    for i, (xi, yi) in enumerate(points):
        numerator = 1
        denominator = 1
        for j, (xj, _) in enumerate(points):
            if i == j:
                continue
            numerator = mod(numerator * -xj, prime)
            denominator = mod(denominator * (xi - xj), prime)
        term = mod(yi * numerator * mod_inverse(denominator, prime), prime)
        total = mod(total + term, prime)
    return total
