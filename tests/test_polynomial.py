from __future__ import annotations

from obscura.service.fhe.polynomial import (
    BABY_STEPS,
    centered,
    evaluate,
    fold_coefficients,
    interpolate,
    power_plan,
)

PLAIN_MODULUS = 65537


def test_interpolate_linear() -> None:
    # p(x) = 3 + 5x
    coefficients = interpolate([0, 1], [3, 8], PLAIN_MODULUS)
    assert coefficients == [3, 5]


def test_interpolate_passes_through_points() -> None:
    points = [0, 2, 5, 7, 11]
    values = [4, 1, 9, 0, 6]
    coefficients = interpolate(points, values, PLAIN_MODULUS)

    assert len(coefficients) == len(points)
    for x, y in zip(points, values):
        assert evaluate(coefficients, x, PLAIN_MODULUS) == y


def test_fold_table_matches_canonicalization_rule() -> None:
    coefficients = fold_coefficients(9, 1, 8, PLAIN_MODULUS)

    assert len(coefficients) == 256
    for v in range(256):
        assert evaluate(coefficients, v, PLAIN_MODULUS) == (v % 9) + 1
    assert evaluate(coefficients, 0, PLAIN_MODULUS) == 1
    assert evaluate(coefficients, 10, PLAIN_MODULUS) == 2
    assert evaluate(coefficients, 255, PLAIN_MODULUS) == 4


def test_fold_table_is_cached() -> None:
    assert fold_coefficients(9, 1, 8, PLAIN_MODULUS) is fold_coefficients(9, 1, 8, PLAIN_MODULUS)


def test_centered_range() -> None:
    assert centered(1, PLAIN_MODULUS) == 1
    assert centered(PLAIN_MODULUS - 1, PLAIN_MODULUS) == -1
    assert centered(PLAIN_MODULUS // 2, PLAIN_MODULUS) == PLAIN_MODULUS // 2
    assert centered(PLAIN_MODULUS // 2 + 1, PLAIN_MODULUS) == -(PLAIN_MODULUS // 2)


def test_power_plan_covers_every_exponent_with_known_factors() -> None:
    plan = power_plan(BABY_STEPS)
    known = {1}
    for exponent, left, right in plan:
        assert left in known and right in known
        assert left + right == exponent
        known.add(exponent)
    assert known == set(range(1, BABY_STEPS + 1))
