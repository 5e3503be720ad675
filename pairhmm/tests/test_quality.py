import warnings
import numpy as np
import pytest

from pairhmm import quality
from pairhmm.constant import MAX_QUAL


@pytest.mark.parametrize(
    "qual,expect",
    [
        pytest.param(0, 1.0, id="0"),
        pytest.param(10, 0.1, id="10"),
        pytest.param(20, 0.01, id="20"),
        pytest.param(30, 0.001, id="30"),
        pytest.param(60, 1e-6, id="60"),
    ],
)
def test_error_prob_of_qual(qual, expect):
    actual = quality.error_prob_of_qual(qual)
    np.testing.assert_almost_equal(actual, expect, decimal=12)
    np.testing.assert_almost_equal(quality.prob_of_qual(qual), 1 - expect, decimal=12)
    np.testing.assert_almost_equal(quality.qual_to_error_prob(qual), expect, decimal=12)
    np.testing.assert_almost_equal(quality.qual_to_prob(qual), 1 - expect, decimal=12)


def test_error_prob_of_qual__array():
    quals = np.array([0, 10, 20, 30])
    expect = np.array([1.0, 0.1, 0.01, 0.001])
    np.testing.assert_almost_equal(quality.error_prob_of_qual(quals), expect)
    np.testing.assert_almost_equal(quality.prob_of_qual(quals), 1 - expect)


def test_error_prob_of_qual__clamped():
    expect = quality.error_prob_of_qual(MAX_QUAL)
    assert expect > 0
    assert quality.error_prob_of_qual(MAX_QUAL + 1) == expect
    assert quality.error_prob_of_qual(1000) == expect
    assert quality.qual_to_error_prob(1000) == quality.qual_to_error_prob(MAX_QUAL)
    assert quality.log10_error_prob_of_qual(1000) == -MAX_QUAL / 10


def test_log10_error_prob_of_qual():
    quals = np.array([0, 10, 25, 30])
    np.testing.assert_almost_equal(
        quality.log10_error_prob_of_qual(quals), [0.0, -1.0, -2.5, -3.0]
    )


def test_log10_prob_of_qual():
    np.testing.assert_almost_equal(quality.log10_prob_of_qual(20), np.log10(0.99))
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert quality.log10_prob_of_qual(0) == -np.inf


def test_qual_of_char():
    assert quality.qual_of_char("!") == 0
    assert quality.qual_of_char("+") == 10
    assert quality.qual_of_char("I") == 40


@pytest.mark.parametrize("char", ["", "II", " ", 73])
def test_qual_of_char__raise_on_invalid(char):
    with pytest.raises(ValueError):
        quality.qual_of_char(char)


def test_quals_of_string():
    quals = quality.quals_of_string("!+5?I")
    assert quals.dtype == np.int64
    np.testing.assert_array_equal(quals, [0, 10, 20, 30, 40])


def test_quals_of_string__empty():
    assert len(quality.quals_of_string("")) == 0


def test_quals_of_string__raise_on_invalid():
    with pytest.raises(ValueError):
        quality.quals_of_string("II I")
