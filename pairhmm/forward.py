#!/usr/bin/env python3

import math
import numpy as np
import numba

from pairhmm.constant import (
    N_BASE,
    MATCH_TO_MATCH,
    INDEL_TO_MATCH,
    MATCH_TO_INSERTION,
    INSERTION_TO_INSERTION,
    MATCH_TO_DELETION,
    DELETION_TO_DELETION,
    EMIT_MATCH,
    EMIT_MISMATCH,
    RESCALE_EXPONENT,
    MAX_EXPONENT_DRIFT,
    LOG10_2,
)
from pairhmm.jitutils import (
    add_log10_prob,
    sum_log10_probs,
    approximate_add_log10_prob,
)

__all__ = [
    "log10_forward",
    "logless_forward",
]


@numba.njit(cache=True)
def _emission(emissions, i, read_base, haplotype_base):
    if read_base == haplotype_base or read_base == N_BASE or haplotype_base == N_BASE:
        return emissions[i, EMIT_MATCH]
    return emissions[i, EMIT_MISMATCH]


@numba.njit(cache=True)
def log10_forward(
    haplotype,
    read,
    emissions,
    transitions,
    match,
    insertion,
    deletion,
    hap_start=0,
    exact=True,
):
    """Log10 likelihood of a read given a haplotype using the forward
    algorithm of a pair hidden Markov model in log10 space.

    Parameters
    ----------
    haplotype : ndarray, uint8, shape (n_hap, )
        Haplotype bases.
    read : ndarray, uint8, shape (n_read, )
        Read bases.
    emissions : ndarray, float, shape (n_read + 1, 2)
        Log10 emission probabilities of the read.
    transitions : ndarray, float, shape (n_read + 1, 6)
        Log10 transition probabilities of the read.
    match, insertion, deletion : ndarray, float, shape (>n_read, >n_hap)
        Scratch matrices which are updated in place.
    hap_start : int
        Columns up to and including `hap_start` are assumed to hold
        values from a previous haplotype with identical leading bases
        and are not recomputed.
    exact : bool
        If False then log10 sums are approximated with a lookup table.

    Returns
    -------
    llk : float
        Log10 likelihood of the read given the haplotype.

    """
    n_read = len(read)
    n_hap = len(haplotype)

    # alignment may start at any haplotype position
    initial = np.log10(1.0 / n_hap)
    for j in range(n_hap + 1):
        match[0, j] = -np.inf
        insertion[0, j] = -np.inf
        deletion[0, j] = initial
    for i in range(1, n_read + 1):
        match[i, 0] = -np.inf
        insertion[i, 0] = -np.inf
        deletion[i, 0] = -np.inf

    for i in range(1, n_read + 1):
        read_base = read[i - 1]
        match_to_match = transitions[i, MATCH_TO_MATCH]
        indel_to_match = transitions[i, INDEL_TO_MATCH]
        match_to_insertion = transitions[i, MATCH_TO_INSERTION]
        insertion_to_insertion = transitions[i, INSERTION_TO_INSERTION]
        match_to_deletion = transitions[i, MATCH_TO_DELETION]
        deletion_to_deletion = transitions[i, DELETION_TO_DELETION]
        for j in range(hap_start + 1, n_hap + 1):
            prior = _emission(emissions, i, read_base, haplotype[j - 1])
            if exact:
                match[i, j] = prior + add_log10_prob(
                    match[i - 1, j - 1] + match_to_match,
                    add_log10_prob(
                        insertion[i - 1, j - 1] + indel_to_match,
                        deletion[i - 1, j - 1] + indel_to_match,
                    ),
                )
                insertion[i, j] = add_log10_prob(
                    match[i - 1, j] + match_to_insertion,
                    insertion[i - 1, j] + insertion_to_insertion,
                )
                deletion[i, j] = add_log10_prob(
                    match[i, j - 1] + match_to_deletion,
                    deletion[i, j - 1] + deletion_to_deletion,
                )
            else:
                match[i, j] = prior + approximate_add_log10_prob(
                    match[i - 1, j - 1] + match_to_match,
                    approximate_add_log10_prob(
                        insertion[i - 1, j - 1] + indel_to_match,
                        deletion[i - 1, j - 1] + indel_to_match,
                    ),
                )
                insertion[i, j] = approximate_add_log10_prob(
                    match[i - 1, j] + match_to_insertion,
                    insertion[i - 1, j] + insertion_to_insertion,
                )
                deletion[i, j] = approximate_add_log10_prob(
                    match[i, j - 1] + match_to_deletion,
                    deletion[i, j - 1] + deletion_to_deletion,
                )

    # alignment may end at any haplotype position
    if exact:
        return add_log10_prob(
            sum_log10_probs(match[n_read, 1 : n_hap + 1]),
            sum_log10_probs(insertion[n_read, 1 : n_hap + 1]),
        )
    llk = -np.inf
    for j in range(1, n_hap + 1):
        llk = approximate_add_log10_prob(
            llk, approximate_add_log10_prob(match[n_read, j], insertion[n_read, j])
        )
    return llk


@numba.njit(cache=True)
def _logless_fill(
    haplotype,
    read,
    emissions,
    transitions,
    match,
    insertion,
    deletion,
    scales,
    hap_start,
):
    """Fill the forward matrices in linear space.

    Returns False if `hap_start > 0` and the cached row scales are
    unsuitable for the new columns, in which case the matrices are
    left in an inconsistent state and must be filled from scratch.
    """
    n_read = len(read)
    n_hap = len(haplotype)

    initial = 1.0 / n_hap
    for j in range(n_hap + 1):
        match[0, j] = 0.0
        insertion[0, j] = 0.0
        deletion[0, j] = initial
    scales[0] = 0
    for i in range(1, n_read + 1):
        match[i, 0] = 0.0
        insertion[i, 0] = 0.0
        deletion[i, 0] = 0.0

    for i in range(1, n_read + 1):
        read_base = read[i - 1]
        match_to_match = transitions[i, MATCH_TO_MATCH]
        indel_to_match = transitions[i, INDEL_TO_MATCH]
        match_to_insertion = transitions[i, MATCH_TO_INSERTION]
        insertion_to_insertion = transitions[i, INSERTION_TO_INSERTION]
        match_to_deletion = transitions[i, MATCH_TO_DELETION]
        deletion_to_deletion = transitions[i, DELETION_TO_DELETION]

        # cached columns of this row already carry its scale and the
        # deletion chain inherits it from the match column to its left
        factor = 1.0
        if hap_start > 0:
            factor = 2.0 ** scales[i]

        for j in range(hap_start + 1, n_hap + 1):
            prior = _emission(emissions, i, read_base, haplotype[j - 1])
            match[i, j] = (
                prior
                * factor
                * (
                    match[i - 1, j - 1] * match_to_match
                    + insertion[i - 1, j - 1] * indel_to_match
                    + deletion[i - 1, j - 1] * indel_to_match
                )
            )
            insertion[i, j] = factor * (
                match[i - 1, j] * match_to_insertion
                + insertion[i - 1, j] * insertion_to_insertion
            )
            deletion[i, j] = (
                match[i, j - 1] * match_to_deletion
                + deletion[i, j - 1] * deletion_to_deletion
            )

        maximum = 0.0
        for j in range(1, n_hap + 1):
            maximum = max(
                max(maximum, match[i, j]), max(insertion[i, j], deletion[i, j])
            )

        if hap_start > 0:
            if not np.isfinite(maximum):
                return False
            if maximum > 0.0:
                exponent = int(math.floor(math.log2(maximum)))
                if exponent > MAX_EXPONENT_DRIFT or exponent < -MAX_EXPONENT_DRIFT:
                    return False
        else:
            # rescale by a power of two so that the row remains in range
            scales[i] = 0
            if maximum > 0.0:
                exponent = int(math.floor(math.log2(maximum)))
                if exponent > RESCALE_EXPONENT or exponent < -RESCALE_EXPONENT:
                    scales[i] = -exponent
                    factor = 2.0 ** -exponent
                    for j in range(1, n_hap + 1):
                        match[i, j] *= factor
                        insertion[i, j] *= factor
                        deletion[i, j] *= factor
    return True


@numba.njit(cache=True)
def logless_forward(
    haplotype,
    read,
    emissions,
    transitions,
    match,
    insertion,
    deletion,
    scales,
    hap_start=0,
):
    """Log10 likelihood of a read given a haplotype using the forward
    algorithm of a pair hidden Markov model in linear space.

    Parameters
    ----------
    haplotype : ndarray, uint8, shape (n_hap, )
        Haplotype bases.
    read : ndarray, uint8, shape (n_read, )
        Read bases.
    emissions : ndarray, float, shape (n_read + 1, 2)
        Emission probabilities of the read.
    transitions : ndarray, float, shape (n_read + 1, 6)
        Transition probabilities of the read.
    match, insertion, deletion : ndarray, float, shape (>n_read, >n_hap)
        Scratch matrices which are updated in place.
    scales : ndarray, int, shape (>n_read, )
        Binary exponent applied to each row of the scratch matrices
        which is updated in place.
    hap_start : int
        Columns up to and including `hap_start` are assumed to hold
        values from a previous haplotype with identical leading bases
        and are not recomputed.

    Returns
    -------
    llk : float
        Log10 likelihood of the read given the haplotype.

    Notes
    -----
    Each row is multiplied by a power of two whenever its maximum
    drifts beyond `2^RESCALE_EXPONENT` in either direction and the
    accumulated exponent is removed from the final result.
    Scaling by powers of two is exact, so results do not depend on
    which rows were rescaled.
    If the scales cached for reused columns would push the new
    columns out of range the matrices are filled from scratch.

    """
    n_read = len(read)
    n_hap = len(haplotype)

    filled = _logless_fill(
        haplotype,
        read,
        emissions,
        transitions,
        match,
        insertion,
        deletion,
        scales,
        hap_start,
    )
    if not filled:
        _logless_fill(
            haplotype,
            read,
            emissions,
            transitions,
            match,
            insertion,
            deletion,
            scales,
            0,
        )

    total = 0.0
    for j in range(1, n_hap + 1):
        total += match[n_read, j] + insertion[n_read, j]
    exponent = 0
    for i in range(1, n_read + 1):
        exponent += scales[i]
    return np.log10(total) - exponent * LOG10_2
