#!/usr/bin/env python3

import logging
import numpy as np
from dataclasses import dataclass

from pairhmm.encoding import as_bases, as_quals
from pairhmm.forward import log10_forward, logless_forward
from pairhmm.jitutils import first_difference
from pairhmm.model import (
    transition_probabilities,
    emission_probabilities,
    log10_transition_probabilities,
    log10_emission_probabilities,
)

__all__ = [
    "PairHMM",
    "Log10PairHMM",
    "LoglessPairHMM",
    "UninitializedEngineError",
    "DimensionExceededError",
    "LikelihoodInvariantError",
    "find_first_differing_position",
    "new_pairhmm",
]

logger = logging.getLogger(__name__)


class UninitializedEngineError(RuntimeError):
    pass


class DimensionExceededError(ValueError):
    pass


class LikelihoodInvariantError(AssertionError):
    pass


def find_first_differing_position(haplotype_a, haplotype_b):
    """Index of the first base at which two haplotypes differ.

    Parameters
    ----------
    haplotype_a, haplotype_b : str, bytes or array_like, int
        Haplotype bases.

    Returns
    -------
    index : int
        The 0-based index of the first differing base, or the length of
        the shorter haplotype if it is a prefix of the other.

    """
    return int(first_difference(as_bases(haplotype_a), as_bases(haplotype_b)))


def _validate_read(read, quals):
    if len(read) == 0:
        raise ValueError("Read must contain at least one base")
    for name, qual in zip(("base", "insertion", "deletion", "gap continuation"), quals):
        if len(qual) != len(read):
            raise ValueError(
                "Length of {} qualities ({}) does not match read length ({})".format(
                    name, len(qual), len(read)
                )
            )


@dataclass
class PairHMM(object):
    """Abstract base class for pair hidden Markov models which compute
    the likelihood of a read given a haplotype.

    Attributes
    ----------
    tristate_correction : bool, optional
        If True the probability of a mismatching base is the base error
        probability divided among the three alternate bases
        (default = True).

    Notes
    -----
    An instance owns scratch matrices which are reused between calls
    and must not be shared between threads.

    """

    tristate_correction: bool = True

    def __post_init__(self):
        self._max_read_length = None
        self._max_haplotype_length = None
        self._match = None
        self._insertion = None
        self._deletion = None
        self._shape = None
        self._clear_cache()

    @classmethod
    def parameterize(cls, *args, **kwargs):
        """Returns an instance with specified parameters."""
        return cls(*args, **kwargs)

    @staticmethod
    def find_first_differing_position(haplotype_a, haplotype_b):
        """Index of the first base at which two haplotypes differ.

        See `find_first_differing_position`.
        """
        return find_first_differing_position(haplotype_a, haplotype_b)

    @property
    def initialized(self):
        return self._match is not None

    @property
    def max_read_length(self):
        return self._max_read_length

    @property
    def max_haplotype_length(self):
        return self._max_haplotype_length

    def _clear_cache(self):
        self._previous_haplotype = None
        self._previous_read = None
        self._previous_quals = None
        self._next_hap_start = None
        self._emissions = None
        self._transitions = None

    def _allocate(self, n_rows, n_columns):
        self._match = np.zeros((n_rows, n_columns))
        self._insertion = np.zeros((n_rows, n_columns))
        self._deletion = np.zeros((n_rows, n_columns))

    def initialize(self, max_read_length, max_haplotype_length):
        """Prepare scratch matrices for reads and haplotypes up to the
        specified lengths.

        Parameters
        ----------
        max_read_length : int
            Maximum length of any read to be evaluated.
        max_haplotype_length : int
            Maximum length of any haplotype to be evaluated.

        Notes
        -----
        Existing matrices are reused if they are large enough and any
        cached state from previous calls is discarded.

        """
        max_read_length = int(max_read_length)
        max_haplotype_length = int(max_haplotype_length)
        if max_read_length < 0 or max_haplotype_length < 0:
            raise ValueError("Maximum lengths must not be negative")
        n_rows = max_read_length + 1
        n_columns = max_haplotype_length + 1
        if (
            self._match is None
            or self._match.shape[0] < n_rows
            or self._match.shape[1] < n_columns
        ):
            if self._match is not None:
                n_rows = max(n_rows, self._match.shape[0])
                n_columns = max(n_columns, self._match.shape[1])
            logger.debug(
                "Allocating %s scratch matrices of shape (%d, %d)",
                type(self).__name__,
                n_rows,
                n_columns,
            )
            self._allocate(n_rows, n_columns)
        self._max_read_length = max_read_length
        self._max_haplotype_length = max_haplotype_length
        self._shape = None
        self._clear_cache()

    def _probabilities(self, base_quals, ins_quals, del_quals, gcp_quals):
        """Emission and transition arrays for a read.

        Raises
        ------
        NotImplementedError

        """
        raise NotImplementedError()

    def _forward(self, haplotype, read, hap_start):
        """Run the forward algorithm on the scratch matrices.

        Raises
        ------
        NotImplementedError

        """
        raise NotImplementedError()

    def _same_read(self, read, quals):
        if self._previous_read is None:
            return False
        if not np.array_equal(self._previous_read, read):
            return False
        for previous, qual in zip(self._previous_quals, quals):
            if not np.array_equal(previous, qual):
                return False
        return True

    def _reusable_columns(self, haplotype):
        previous = self._previous_haplotype
        if previous is None or len(previous) != len(haplotype):
            # the uniform start prior depends on haplotype length
            return 0
        hap_start = int(first_difference(previous, haplotype))
        if self._next_hap_start is not None:
            hap_start = min(hap_start, self._next_hap_start)
        return hap_start

    def compute_log_likelihood(
        self,
        haplotype_bases,
        read_bases,
        base_quals,
        ins_quals,
        del_quals,
        gcp_quals,
        recache=True,
        next_haplotype_bases=None,
    ):
        """Log10 likelihood of a read given a haplotype.

        Parameters
        ----------
        haplotype_bases : str, bytes or array_like, int
            Haplotype bases.
        read_bases : str, bytes or array_like, int
            Read bases.
        base_quals : bytes or array_like, int
            Phred-scaled base qualities of the read.
        ins_quals : bytes or array_like, int
            Phred-scaled insertion open penalties of the read.
        del_quals : bytes or array_like, int
            Phred-scaled deletion open penalties of the read.
        gcp_quals : bytes or array_like, int
            Phred-scaled gap continuation penalties of the read.
        recache : bool
            If True every matrix cell is recomputed. If False then columns
            computed for the previous haplotype are reused up to the first
            base at which the haplotypes differ.
        next_haplotype_bases : str, bytes or array_like, int, optional
            The haplotype to be evaluated in the next call (if known).

        Returns
        -------
        llk : float
            Log10 likelihood of the read given the haplotype.

        Raises
        ------
        UninitializedEngineError
            If `initialize` has not been called.
        DimensionExceededError
            If the read or haplotype is longer than the initialized maximum.
        LikelihoodInvariantError
            If the computed likelihood is NaN or positive.

        Notes
        -----
        Cached columns are only reused if the read and its qualities are
        identical to those of the previous call and the haplotype has the
        same length as the previous haplotype, otherwise every cell is
        recomputed. Hence results never depend on the history of calls.

        """
        if not self.initialized:
            raise UninitializedEngineError(
                "{} must be initialized before computing likelihoods".format(
                    type(self).__name__
                )
            )
        haplotype = as_bases(haplotype_bases)
        read = as_bases(read_bases)
        quals = tuple(as_quals(q) for q in (base_quals, ins_quals, del_quals, gcp_quals))
        _validate_read(read, quals)
        if len(haplotype) == 0:
            raise ValueError("Haplotype must contain at least one base")
        if len(read) > self._max_read_length:
            raise DimensionExceededError(
                "Read length {} exceeds the initialized maximum of {}".format(
                    len(read), self._max_read_length
                )
            )
        if len(haplotype) > self._max_haplotype_length:
            raise DimensionExceededError(
                "Haplotype length {} exceeds the initialized maximum of {}".format(
                    len(haplotype), self._max_haplotype_length
                )
            )

        if (not recache) and self._same_read(read, quals):
            hap_start = self._reusable_columns(haplotype)
        else:
            if not recache:
                logger.debug("Cached read does not match, recomputing all columns")
            self._emissions, self._transitions = self._probabilities(*quals)
            self._previous_read = read
            self._previous_quals = quals
            hap_start = 0

        # the matrices are invalid if the computation fails
        self._previous_haplotype = None
        self._shape = (len(read) + 1, len(haplotype) + 1)
        llk = float(self._forward(haplotype, read, hap_start))
        if np.isnan(llk) or llk > 0.0:
            raise LikelihoodInvariantError(
                "Invalid log10 likelihood {} for read '{}' and haplotype '{}'".format(
                    llk, read.tobytes(), haplotype.tobytes()
                )
            )
        self._previous_haplotype = haplotype

        if next_haplotype_bases is None:
            self._next_hap_start = None
        else:
            next_haplotype = as_bases(next_haplotype_bases)
            if len(next_haplotype) == len(haplotype):
                self._next_hap_start = int(first_difference(haplotype, next_haplotype))
            else:
                self._next_hap_start = 0
        return llk

    def matrices(self):
        """Read-only views of the match, insertion and deletion matrices
        of the most recent computation.

        Returns
        -------
        match, insertion, deletion : ndarray, float, shape (n_read + 1, n_hap + 1)
            Forward matrices.

        """
        if self._shape is None:
            raise ValueError("No likelihood has been computed since initialization")
        n_rows, n_columns = self._shape
        views = []
        for matrix in (self._match, self._insertion, self._deletion):
            view = matrix[0:n_rows, 0:n_columns]
            view.flags.writeable = False
            views.append(view)
        return tuple(views)


@dataclass
class Log10PairHMM(PairHMM):
    """Pair hidden Markov model evaluated in log10 space.

    Attributes
    ----------
    tristate_correction : bool, optional
        If True the probability of a mismatching base is the base error
        probability divided among the three alternate bases
        (default = True).
    exact : bool, optional
        If True every sum is computed exactly in log10 space, otherwise
        sums are approximated with a lookup table which is accurate to
        within 1e-3 of the exact result (default = True).

    """

    exact: bool = True

    def _probabilities(self, base_quals, ins_quals, del_quals, gcp_quals):
        emissions = log10_emission_probabilities(base_quals, self.tristate_correction)
        transitions = log10_transition_probabilities(ins_quals, del_quals, gcp_quals)
        return emissions, transitions

    def _forward(self, haplotype, read, hap_start):
        return log10_forward(
            haplotype,
            read,
            self._emissions,
            self._transitions,
            self._match,
            self._insertion,
            self._deletion,
            hap_start,
            self.exact,
        )


@dataclass
class LoglessPairHMM(PairHMM):
    """Pair hidden Markov model evaluated in linear space with
    rescaling of rows by powers of two.

    Attributes
    ----------
    tristate_correction : bool, optional
        If True the probability of a mismatching base is the base error
        probability divided among the three alternate bases
        (default = True).

    Notes
    -----
    Results agree with `Log10PairHMM(exact=True)` to within 1e-9.

    """

    def __post_init__(self):
        self._scales = None
        super().__post_init__()

    def _allocate(self, n_rows, n_columns):
        super()._allocate(n_rows, n_columns)
        self._scales = np.zeros(n_rows, dtype=np.int64)

    def _probabilities(self, base_quals, ins_quals, del_quals, gcp_quals):
        emissions = emission_probabilities(base_quals, self.tristate_correction)
        transitions = transition_probabilities(ins_quals, del_quals, gcp_quals)
        return emissions, transitions

    def _forward(self, haplotype, read, hap_start):
        return logless_forward(
            haplotype,
            read,
            self._emissions,
            self._transitions,
            self._match,
            self._insertion,
            self._deletion,
            self._scales,
            hap_start,
        )


def new_pairhmm(implementation="EXACT", tristate_correction=True):
    """Create a pair hidden Markov model.

    Parameters
    ----------
    implementation : str
        One of "EXACT" (exact log10 space), "ORIGINAL" (approximate
        log10 space) or "LOGLESS" (linear space with rescaling).
    tristate_correction : bool
        If True the probability of a mismatching base is the base error
        probability divided among the three alternate bases.

    Returns
    -------
    hmm : PairHMM
        An uninitialized pair hidden Markov model.

    """
    if implementation == "EXACT":
        return Log10PairHMM(tristate_correction=tristate_correction, exact=True)
    elif implementation == "ORIGINAL":
        return Log10PairHMM(tristate_correction=tristate_correction, exact=False)
    elif implementation == "LOGLESS":
        return LoglessPairHMM(tristate_correction=tristate_correction)
    else:
        raise ValueError(
            'PairHMM implementation must be one of "EXACT", "ORIGINAL" or "LOGLESS"'
        )
