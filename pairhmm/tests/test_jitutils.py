import numpy as np
import pytest

from pairhmm import jitutils
from pairhmm.constant import JACOBIAN_LOG_TABLE_MAX_TOLERANCE


def test_add_log10_prob():

    for _ in range(10):
        p1 = np.random.rand()
        p2 = np.random.rand()

        query = jitutils.add_log10_prob(np.log10(p1), np.log10(p2))
        answer = np.log10(p1 + p2)

        assert np.round(query, 10) == np.round(answer, 10)


def test_add_log10_prob__zeros():
    assert jitutils.add_log10_prob(-np.inf, -np.inf) == -np.inf
    assert jitutils.add_log10_prob(-np.inf, -2.0) == -2.0
    assert jitutils.add_log10_prob(-2.0, -np.inf) == -2.0


def test_sum_log10_probs():

    for _ in range(10):
        length = np.random.randint(2, 10)
        p = np.random.rand(length)
        answer = np.log10(np.sum(p))

        query = jitutils.sum_log10_probs(np.log10(p))

        assert np.round(query, 10) == np.round(answer, 10)


def test_sum_log10_probs__empty():
    assert jitutils.sum_log10_probs(np.zeros(0)) == -np.inf


def test_approximate_add_log10_prob():
    np.random.seed(42)
    for _ in range(1000):
        x, y = np.random.uniform(-20, 0, size=2)
        expect = jitutils.add_log10_prob(x, y)
        actual = jitutils.approximate_add_log10_prob(x, y)
        assert abs(actual - expect) < 1e-4


def test_approximate_add_log10_prob__symmetric():
    np.random.seed(0)
    for _ in range(100):
        x, y = np.random.uniform(-10, 0, size=2)
        assert jitutils.approximate_add_log10_prob(
            x, y
        ) == jitutils.approximate_add_log10_prob(y, x)


def test_approximate_add_log10_prob__beyond_tolerance():
    y = -1.0
    x = y - JACOBIAN_LOG_TABLE_MAX_TOLERANCE - 0.5
    assert jitutils.approximate_add_log10_prob(x, y) == y


def test_approximate_add_log10_prob__zeros():
    assert jitutils.approximate_add_log10_prob(-np.inf, -np.inf) == -np.inf
    assert jitutils.approximate_add_log10_prob(-np.inf, -3.0) == -3.0
    assert jitutils.approximate_add_log10_prob(-3.0, -np.inf) == -3.0


def test_approximate_add_log10_prob__equal():
    np.testing.assert_almost_equal(
        jitutils.approximate_add_log10_prob(-2.0, -2.0), -2.0 + np.log10(2.0)
    )


@pytest.mark.parametrize("length", [1, 2, 5, 10, 20])
def test_first_difference(length):
    bases = np.frombuffer(b"ACGT", dtype=np.uint8)
    np.random.seed(length)
    x = bases[np.random.randint(0, 4, size=length)]
    assert jitutils.first_difference(x, x.copy()) == length
    for position in range(length):
        for base in bases:
            if base == x[position]:
                continue
            y = x.copy()
            y[position] = base
            assert jitutils.first_difference(x, y) == position
            assert jitutils.first_difference(y, x) == position


def test_first_difference__prefix():
    x = np.array([1, 2, 3, 4, 5])
    assert jitutils.first_difference(x, x[0:3]) == 3
    assert jitutils.first_difference(x[0:3], x) == 3
    assert jitutils.first_difference(x, x[0:0]) == 0
