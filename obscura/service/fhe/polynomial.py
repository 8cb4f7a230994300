from functools import lru_cache
from typing import List, Sequence, Tuple

# ============================================================================
# Polynomial tables for homomorphic lookups
# ============================================================================

# Baby-step size for baby-step / giant-step evaluation of a degree-255 polynomial
BABY_STEPS = 16


def interpolate(points: Sequence[int], values: Sequence[int], modulus: int) -> List[int]:
    """
    Monomial coefficients (lowest degree first) of the unique polynomial of
    degree < len(points) through (points[i], values[i]) over Z_modulus.

    Args:
        points: Distinct evaluation points
        values: Target values at each point
        modulus: Prime field modulus

    Returns:
        Coefficient list of length len(points)
    """
    n = len(points)
    if n != len(values):
        raise ValueError("points and values must have the same length")

    # Newton divided differences
    coefficients = [v % modulus for v in values]
    for j in range(1, n):
        for i in range(n - 1, j - 1, -1):
            numerator = (coefficients[i] - coefficients[i - 1]) % modulus
            denominator = (points[i] - points[i - j]) % modulus
            coefficients[i] = numerator * pow(denominator, -1, modulus) % modulus

    # Newton form -> monomial form (Horner on the nested products)
    result = [0] * n
    for k in range(n - 1, -1, -1):
        shifted = [0] + result[:-1]
        for i in range(n):
            shifted[i] = (shifted[i] - points[k] * result[i]) % modulus
        shifted[0] = (shifted[0] + coefficients[k]) % modulus
        result = shifted
    return result


@lru_cache(maxsize=None)
def fold_coefficients(modulus: int, offset: int, input_bits: int, plain_modulus: int) -> Tuple[int, ...]:
    """
    Coefficients of v -> (v mod modulus) + offset on the input domain
    [0, 2**input_bits).

    Example:
        modulus=9, offset=1: 0 -> 1, 10 -> 2, 255 -> 4
    """
    points = list(range(1 << input_bits))
    values = [(v % modulus) + offset for v in points]
    return tuple(interpolate(points, values, plain_modulus))


def evaluate(coefficients: Sequence[int], x: int, modulus: int) -> int:
    """Plain Horner evaluation mod `modulus`"""
    acc = 0
    for c in reversed(coefficients):
        acc = (acc * x + c) % modulus
    return acc


def centered(value: int, modulus: int) -> int:
    """Map [0, modulus) to the centered range packed encoding accepts"""
    value %= modulus
    return value - modulus if value > modulus // 2 else value


def power_plan(limit: int) -> List[Tuple[int, int, int]]:
    """
    Minimal-depth products for x^2 .. x^limit.

    Returns:
        List of (exponent, left, right) with x^exponent = x^left * x^right
    """
    plan = []
    for exponent in range(2, limit + 1):
        high = 1 << (exponent.bit_length() - 1)
        if high == exponent:
            plan.append((exponent, exponent // 2, exponent // 2))
        else:
            plan.append((exponent, high, exponent - high))
    return plan
