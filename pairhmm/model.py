#!/usr/bin/env python3

import numpy as np
import numba

from pairhmm.constant import (
    TRISTATE_CORRECTION,
    MATCH_TO_MATCH,
    INDEL_TO_MATCH,
    MATCH_TO_INSERTION,
    INSERTION_TO_INSERTION,
    MATCH_TO_DELETION,
    DELETION_TO_DELETION,
    N_TRANSITIONS,
    EMIT_MATCH,
    EMIT_MISMATCH,
)
from pairhmm.quality import qual_to_error_prob, qual_to_prob

__all__ = [
    "transition_probabilities",
    "emission_probabilities",
    "log10_transition_probabilities",
    "log10_emission_probabilities",
]


@numba.njit(cache=True)
def transition_probabilities(ins_quals, del_quals, gcp_quals):
    """State transition probabilities at each position of a read.

    Parameters
    ----------
    ins_quals : ndarray, int, shape (n_base, )
        Phred-scaled insertion open penalties.
    del_quals : ndarray, int, shape (n_base, )
        Phred-scaled deletion open penalties.
    gcp_quals : ndarray, int, shape (n_base, )
        Phred-scaled gap continuation penalties.

    Returns
    -------
    transitions : ndarray, float, shape (n_base + 1, 6)
        Transition probabilities in which row `i` holds the
        transitions into read base `i - 1` (row 0 is unused).

    Notes
    -----
    The match to match probability is the remainder after opening
    an insertion or a deletion and is floored at zero for very low
    quality gap open penalties.

    """
    n_base = len(ins_quals)
    transitions = np.zeros((n_base + 1, N_TRANSITIONS))
    for i in range(n_base):
        insertion = qual_to_error_prob(ins_quals[i])
        deletion = qual_to_error_prob(del_quals[i])
        match_to_match = 1.0 - (insertion + deletion)
        if match_to_match < 0.0:
            match_to_match = 0.0
        row = transitions[i + 1]
        row[MATCH_TO_MATCH] = match_to_match
        row[INDEL_TO_MATCH] = qual_to_prob(gcp_quals[i])
        row[MATCH_TO_INSERTION] = insertion
        row[INSERTION_TO_INSERTION] = qual_to_error_prob(gcp_quals[i])
        row[MATCH_TO_DELETION] = deletion
        row[DELETION_TO_DELETION] = qual_to_error_prob(gcp_quals[i])
    return transitions


@numba.njit(cache=True)
def emission_probabilities(base_quals, tristate_correction=True):
    """Probability of each read base given a matching or a
    mismatching haplotype base.

    Parameters
    ----------
    base_quals : ndarray, int, shape (n_base, )
        Phred-scaled base qualities.
    tristate_correction : bool
        If True the error probability is divided among the
        three alternate bases.

    Returns
    -------
    emissions : ndarray, float, shape (n_base + 1, 2)
        Match and mismatch probabilities in which row `i` holds
        the values for read base `i - 1` (row 0 is unused).

    """
    n_base = len(base_quals)
    emissions = np.zeros((n_base + 1, 2))
    for i in range(n_base):
        error = qual_to_error_prob(base_quals[i])
        if tristate_correction:
            error /= TRISTATE_CORRECTION
        emissions[i + 1, EMIT_MATCH] = qual_to_prob(base_quals[i])
        emissions[i + 1, EMIT_MISMATCH] = error
    return emissions


@numba.njit(cache=True)
def log10_transition_probabilities(ins_quals, del_quals, gcp_quals):
    """Log10 of `transition_probabilities`."""
    return np.log10(transition_probabilities(ins_quals, del_quals, gcp_quals))


@numba.njit(cache=True)
def log10_emission_probabilities(base_quals, tristate_correction=True):
    """Log10 of `emission_probabilities`."""
    return np.log10(emission_probabilities(base_quals, tristate_correction))
