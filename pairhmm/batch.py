#!/usr/bin/env python3

import logging
import numpy as np
import numba
from dataclasses import dataclass

from pairhmm.constant import IMPLEMENTATIONS
from pairhmm.classes import LikelihoodInvariantError, _validate_read
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
    "BatchPairHMM",
    "batch_forward",
]

logger = logging.getLogger(__name__)


@numba.njit(parallel=True, cache=True)
def batch_forward(
    haplotypes,
    haplotype_offsets,
    unit_offsets,
    reads,
    read_offsets,
    emissions,
    transitions,
    logless=True,
    exact=True,
):
    """Log10 likelihoods of many reads each given a set of haplotypes.

    Parameters
    ----------
    haplotypes : ndarray, uint8, shape (n_haplotype_bases, )
        Concatenated bases of all haplotypes.
    haplotype_offsets : ndarray, int, shape (n_haplotypes + 1, )
        Start of each haplotype within `haplotypes`.
    unit_offsets : ndarray, int, shape (n_units + 1, )
        Index of the first haplotype of each unit.
    reads : ndarray, uint8, shape (n_read_bases, )
        Concatenated bases of the read of each unit.
    read_offsets : ndarray, int, shape (n_units + 1, )
        Start of each read within `reads`.
    emissions : ndarray, float, shape (n_read_bases + n_units, 2)
        Concatenated emission arrays of each read.
    transitions : ndarray, float, shape (n_read_bases + n_units, 6)
        Concatenated transition arrays of each read.
    logless : bool
        If True then emissions and transitions are linear probabilities
        and the linear space forward algorithm is used, otherwise they
        are log10 probabilities.
    exact : bool
        If False then log10 sums are approximated with a lookup table
        (ignored if `logless` is True).

    Returns
    -------
    llks : ndarray, float, shape (n_haplotypes, )
        Log10 likelihood of each haplotype given the read of its unit.

    Notes
    -----
    Units are evaluated in parallel with each unit using its own scratch
    matrices. Within a unit, columns are reused between consecutive
    haplotypes of equal length which share leading bases.

    """
    n_units = len(read_offsets) - 1
    llks = np.empty(len(haplotype_offsets) - 1)
    for u in numba.prange(n_units):
        read = reads[read_offsets[u] : read_offsets[u + 1]]
        n_read = len(read)
        row_start = read_offsets[u] + u
        row_stop = row_start + n_read + 1
        unit_emissions = emissions[row_start:row_stop]
        unit_transitions = transitions[row_start:row_stop]

        max_hap = 0
        for h in range(unit_offsets[u], unit_offsets[u + 1]):
            max_hap = max(max_hap, haplotype_offsets[h + 1] - haplotype_offsets[h])
        match = np.empty((n_read + 1, max_hap + 1))
        insertion = np.empty((n_read + 1, max_hap + 1))
        deletion = np.empty((n_read + 1, max_hap + 1))
        scales = np.zeros(n_read + 1, dtype=np.int64)

        for h in range(unit_offsets[u], unit_offsets[u + 1]):
            haplotype = haplotypes[haplotype_offsets[h] : haplotype_offsets[h + 1]]
            hap_start = 0
            if h > unit_offsets[u]:
                previous = haplotypes[haplotype_offsets[h - 1] : haplotype_offsets[h]]
                if len(previous) == len(haplotype):
                    hap_start = first_difference(previous, haplotype)
            if logless:
                llks[h] = logless_forward(
                    haplotype,
                    read,
                    unit_emissions,
                    unit_transitions,
                    match,
                    insertion,
                    deletion,
                    scales,
                    hap_start,
                )
            else:
                llks[h] = log10_forward(
                    haplotype,
                    read,
                    unit_emissions,
                    unit_transitions,
                    match,
                    insertion,
                    deletion,
                    hap_start,
                    exact,
                )
    return llks


@dataclass
class BatchPairHMM(object):
    """Queue of reads and candidate haplotypes whose likelihoods are
    computed together.

    Attributes
    ----------
    implementation : str, optional
        One of "EXACT" (exact log10 space), "ORIGINAL" (approximate
        log10 space) or "LOGLESS" (linear space with rescaling)
        (default = "LOGLESS").
    tristate_correction : bool, optional
        If True the probability of a mismatching base is the base error
        probability divided among the three alternate bases
        (default = True).

    Notes
    -----
    Results are identical (within the tolerance of the implementation)
    to computing each read and haplotype pair individually.

    """

    implementation: str = "LOGLESS"
    tristate_correction: bool = True

    def __post_init__(self):
        if self.implementation not in IMPLEMENTATIONS:
            raise ValueError(
                'PairHMM implementation must be one of "EXACT", "ORIGINAL" or "LOGLESS"'
            )
        self._queue = []

    def __len__(self):
        return len(self._queue)

    def clear(self):
        """Discard all queued units without computing them."""
        self._queue = []

    def enqueue(
        self,
        haplotypes,
        read_bases,
        base_quals,
        ins_quals,
        del_quals,
        gcp_quals,
    ):
        """Queue a read to be evaluated against a set of haplotypes.

        Parameters
        ----------
        haplotypes : list
            Haplotypes, each as a str, bytes or array_like of bytes.
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

        Notes
        -----
        No likelihoods are computed until `drain` is called.

        """
        if isinstance(haplotypes, (str, bytes, bytearray)):
            raise ValueError("Haplotypes must be a list of sequences")
        haplotypes = [as_bases(h) for h in haplotypes]
        for haplotype in haplotypes:
            if len(haplotype) == 0:
                raise ValueError("Haplotype must contain at least one base")
        read = as_bases(read_bases)
        quals = tuple(as_quals(q) for q in (base_quals, ins_quals, del_quals, gcp_quals))
        _validate_read(read, quals)
        self._queue.append((haplotypes, read, quals))

    def _probabilities(self, base_quals, ins_quals, del_quals, gcp_quals):
        if self.implementation == "LOGLESS":
            emissions = emission_probabilities(base_quals, self.tristate_correction)
            transitions = transition_probabilities(ins_quals, del_quals, gcp_quals)
        else:
            emissions = log10_emission_probabilities(
                base_quals, self.tristate_correction
            )
            transitions = log10_transition_probabilities(
                ins_quals, del_quals, gcp_quals
            )
        return emissions, transitions

    def drain(self):
        """Compute the likelihoods of all queued units and empty the queue.

        Returns
        -------
        llks : list
            One ndarray of log10 likelihoods for each queued unit (in the
            order they were queued) with one value for each of its
            haplotypes (in the order they were given).

        Raises
        ------
        LikelihoodInvariantError
            If any computed likelihood is NaN or positive.

        """
        queue, self._queue = self._queue, []
        if len(queue) == 0:
            return []

        haplotypes = []
        unit_sizes = []
        reads = []
        emissions = []
        transitions = []
        for unit_haplotypes, read, quals in queue:
            haplotypes += unit_haplotypes
            unit_sizes.append(len(unit_haplotypes))
            reads.append(read)
            unit_emissions, unit_transitions = self._probabilities(*quals)
            emissions.append(unit_emissions)
            transitions.append(unit_transitions)

        unit_offsets = np.zeros(len(queue) + 1, dtype=np.int64)
        unit_offsets[1:] = np.cumsum(unit_sizes)
        haplotype_offsets = np.zeros(len(haplotypes) + 1, dtype=np.int64)
        haplotype_offsets[1:] = np.cumsum([len(h) for h in haplotypes])
        read_offsets = np.zeros(len(reads) + 1, dtype=np.int64)
        read_offsets[1:] = np.cumsum([len(r) for r in reads])
        if len(haplotypes):
            haplotype_bases = np.concatenate(haplotypes)
        else:
            haplotype_bases = np.zeros(0, dtype=np.uint8)

        logger.debug(
            "Computing %d likelihoods for %d reads", len(haplotypes), len(queue)
        )
        llks = batch_forward(
            haplotype_bases,
            haplotype_offsets,
            unit_offsets,
            np.concatenate(reads),
            read_offsets,
            np.concatenate(emissions),
            np.concatenate(transitions),
            self.implementation == "LOGLESS",
            self.implementation == "EXACT",
        )
        invalid = np.isnan(llks) | (llks > 0.0)
        if np.any(invalid):
            raise LikelihoodInvariantError(
                "Invalid log10 likelihoods {}".format(llks[invalid])
            )
        return np.split(llks, unit_offsets[1:-1])
