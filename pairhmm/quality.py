#!/usr/bin/env python3

import numpy as np
import numba

from pairhmm.constant import MAX_QUAL

__all__ = [
    "qual_of_char",
    "quals_of_string",
    "error_prob_of_qual",
    "prob_of_qual",
    "log10_error_prob_of_qual",
    "log10_prob_of_qual",
    "qual_to_error_prob",
    "qual_to_prob",
]


def qual_of_char(char):
    """Phred quality encoded by a single phred+33 (FASTQ) character.

    Parameters
    ----------
    char : str
        A single character.

    Returns
    -------
    qual : int
        Phred-scaled quality.
    """
    if not isinstance(char, str) or len(char) != 1:
        raise ValueError("Input must be a single character")
    qual = ord(char) - 33
    if qual < 0:
        raise ValueError("Character {!r} is not a phred+33 quality".format(char))
    return qual


def quals_of_string(string):
    """Convert a phred+33 encoded (FASTQ) quality string into an
    array of integer qualities.

    Parameters
    ----------
    string : str
        FASTQ quality string.

    Returns
    -------
    quals : ndarray, int, shape (n_base, )
        Integer phred qualities.
    """
    chars = np.frombuffer(string.encode("ascii"), dtype=np.uint8)
    if len(chars) and chars.min() < 33:
        raise ValueError("String contains characters below phred+33 '!'")
    return chars.astype(np.int64) - 33


def error_prob_of_qual(qual):
    """Convert phred-scaled quality integer into a probability of the call
    being incorrect.

    Parameters
    ----------
    qual : array_like
        A single int or array of integers.

    Returns
    -------
    prob : array_like
        A single float or array of floats.

    Notes
    -----
    Qualities above `MAX_QUAL` are clamped to `MAX_QUAL` and a
    quality of 0 has an error probability of 1.
    """
    qual = np.minimum(qual, MAX_QUAL)
    return 10 ** (qual / -10)


def prob_of_qual(qual):
    """Convert phred-scaled quality integer into a probability of the call
    being correct.

    Parameters
    ----------
    qual : array_like
        A single int or array of integers.

    Returns
    -------
    prob : array_like
        A single float or array of floats.
    """
    return 1 - error_prob_of_qual(qual)


def log10_error_prob_of_qual(qual):
    """Log10 of `error_prob_of_qual`."""
    return np.minimum(qual, MAX_QUAL) / -10


def log10_prob_of_qual(qual):
    """Log10 of `prob_of_qual`.

    A quality of 0 returns `-inf`.
    """
    with np.errstate(divide="ignore"):
        return np.log10(prob_of_qual(qual))


@numba.njit(cache=True)
def qual_to_error_prob(qual):
    """Scalar version of `error_prob_of_qual` for compiled code."""
    if qual > MAX_QUAL:
        qual = MAX_QUAL
    return 10.0 ** (qual / -10.0)


@numba.njit(cache=True)
def qual_to_prob(qual):
    """Scalar version of `prob_of_qual` for compiled code."""
    return 1.0 - qual_to_error_prob(qual)
