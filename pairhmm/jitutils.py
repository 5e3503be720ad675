import numpy as np
import numba

from pairhmm.constant import (
    JACOBIAN_LOG_TABLE_STEP,
    JACOBIAN_LOG_TABLE_MAX_TOLERANCE,
)

_LOG10_E = np.log10(np.e)

_INVERSE_TABLE_STEP = 1.0 / JACOBIAN_LOG_TABLE_STEP

# log10(1 + 10^-d) for d = 0, step, 2 * step, ... max_tolerance
_JACOBIAN_LOG_TABLE = np.log10(
    1.0
    + 10.0
    ** (
        -np.arange(
            int(JACOBIAN_LOG_TABLE_MAX_TOLERANCE / JACOBIAN_LOG_TABLE_STEP) + 1
        )
        * JACOBIAN_LOG_TABLE_STEP
    )
)


@numba.njit(cache=True)
def add_log10_prob(x, y):
    """Sum of two probabilities in log10 space.

    Parameters
    ----------
    x, y : float
        Log10-transformed probabilities.

    Returns
    -------
    z : float
        The log10-transformed sum of the un-transformed `x` and `y`.

    """
    if x == y == -np.inf:
        return -np.inf
    if x > y:
        return x + np.log1p(10.0 ** (y - x)) * _LOG10_E
    else:
        return y + np.log1p(10.0 ** (x - y)) * _LOG10_E


@numba.njit(cache=True)
def sum_log10_probs(array):
    """Sum of values in log10 space.

    Parameters
    ----------
    array : ndarray, float, shape (n_values, )
        Log10-transformed values.

    Returns
    -------
    z : float
        The log10-transformed sum of the un-transformed values.

    """
    acumulate = -np.inf
    for i in range(len(array)):
        acumulate = add_log10_prob(acumulate, array[i])
    return acumulate


@numba.njit(cache=True)
def approximate_add_log10_prob(x, y):
    """Approximate sum of two probabilities in log10 space.

    Parameters
    ----------
    x, y : float
        Log10-transformed probabilities.

    Returns
    -------
    z : float
        Approximate log10-transformed sum of the un-transformed
        `x` and `y`.

    Notes
    -----
    The correction term `log10(1 + 10^-d)` is read from a lookup
    table quantised to `JACOBIAN_LOG_TABLE_STEP` and is ignored
    once the difference `d` reaches `JACOBIAN_LOG_TABLE_MAX_TOLERANCE`.
    The absolute error is below 1e-4.

    """
    if x > y:
        x, y = y, x
    if x == -np.inf:
        return y
    diff = y - x
    if diff < JACOBIAN_LOG_TABLE_MAX_TOLERANCE:
        return y + _JACOBIAN_LOG_TABLE[int(diff * _INVERSE_TABLE_STEP + 0.5)]
    return y


@numba.njit(cache=True)
def first_difference(x, y):
    """Index of the first position at which two sequences differ.

    Parameters
    ----------
    x, y : ndarray, int
        1D vectors of integers.

    Returns
    -------
    index : int
        Index of the first differing position or the length of
        the shorter sequence if it is a prefix of the other.

    """
    n = min(len(x), len(y))
    for i in range(n):
        if x[i] != y[i]:
            return i
    return n
