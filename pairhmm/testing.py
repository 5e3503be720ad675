import numpy as np
from dataclasses import dataclass

from pairhmm.encoding import as_bases, as_string
from pairhmm.quality import quals_of_string

__all__ = [
    "BASES",
    "LikelihoodTestCase",
    "random_bases",
    "simulate_read",
    "run_hmms",
    "read_likelihoods_in_order",
    "max_read_length",
    "max_haplotype_length",
]


BASES = "ACGT"


@dataclass
class LikelihoodTestCase(object):
    """A read and haplotype pair with qualities and an (optional)
    expected log10 likelihood.

    Attributes
    ----------
    haplotype : str
        Haplotype bases.
    next_haplotype : str
        Haplotype of the following case (may be None).
    read : str
        Read bases.
    base_quals, ins_quals, del_quals, gcp_quals : ndarray, int
        Phred-scaled qualities of the read.
    log10_likelihood : float
        Expected log10 likelihood.
    new_read : bool
        False if the previous case has an identical read.

    """

    haplotype: str
    next_haplotype: str
    read: str
    base_quals: np.ndarray
    ins_quals: np.ndarray
    del_quals: np.ndarray
    gcp_quals: np.ndarray
    log10_likelihood: float = -1.0
    new_read: bool = True

    @classmethod
    def uniform_quality(cls, haplotype, next_haplotype, read, qual):
        """Case with base, insertion and deletion qualities of `qual`
        and gap continuation penalties of 10."""
        quals = np.full(len(read), qual, dtype=np.int64)
        return cls(
            haplotype=haplotype,
            next_haplotype=next_haplotype,
            read=read,
            base_quals=quals,
            ins_quals=quals.copy(),
            del_quals=quals.copy(),
            gcp_quals=np.full(len(read), 10, dtype=np.int64),
        )

    def run(self, hmm):
        """Initialize a pair HMM to the size of this case and compute
        the likelihood without caching."""
        hmm.initialize(len(self.read), len(self.haplotype))
        return hmm.compute_log_likelihood(
            self.haplotype,
            self.read,
            self.base_quals,
            self.ins_quals,
            self.del_quals,
            self.gcp_quals,
            recache=True,
            next_haplotype_bases=None,
        )


def max_haplotype_length(cases):
    return max(len(case.haplotype) for case in cases)


def max_read_length(cases):
    return max(len(case.read) for case in cases)


def run_hmms(hmm, cases, run_singly):
    """Sum of log10 likelihoods of a list of cases.

    Parameters
    ----------
    hmm : PairHMM
        Pair HMM instance.
    cases : list
        List of LikelihoodTestCase.
    run_singly : bool
        If True each case is evaluated independently, otherwise cases
        are evaluated in order after a single initialization, reusing
        cached values for consecutive cases with the same read.

    Returns
    -------
    total : float
        Sum of log10 likelihoods.
    """
    total = 0.0
    if run_singly:
        for case in cases:
            total += case.run(hmm)
    else:
        hmm.initialize(max_read_length(cases), max_haplotype_length(cases))
        for case in cases:
            total += hmm.compute_log_likelihood(
                case.haplotype,
                case.read,
                case.base_quals,
                case.ins_quals,
                case.del_quals,
                case.gcp_quals,
                recache=case.new_read,
                next_haplotype_bases=case.next_haplotype,
            )
    return total


def read_likelihoods_in_order(lines):
    """Parse read and haplotype pairs from whitespace delimited records.

    Parameters
    ----------
    lines : iterable, str
        Records of the form `haplotype read base_quals ins_quals del_quals
        gcp_quals log10_likelihood` in which qualities are phred+33 text.

    Returns
    -------
    cases : list
        List of LikelihoodTestCase in the order given, each referencing
        the haplotype of the following record.
    """
    records = [line.split() for line in lines if line.strip()]
    cases = []
    previous_read = None
    for i, record in enumerate(records):
        haplotype, read, base, ins, dels, gcp, llk = record
        next_haplotype = records[i + 1][0] if i + 1 < len(records) else None
        cases.append(
            LikelihoodTestCase(
                haplotype=haplotype,
                next_haplotype=next_haplotype,
                read=read,
                base_quals=quals_of_string(base),
                ins_quals=quals_of_string(ins),
                del_quals=quals_of_string(dels),
                gcp_quals=quals_of_string(gcp),
                log10_likelihood=float(llk),
                new_read=read != previous_read,
            )
        )
        previous_read = read
    return cases


def random_bases(length):
    """Random string of nucleotides using numpy's global random state."""
    return "".join(BASES[i] for i in np.random.randint(0, 4, size=length))


def simulate_read(
    haplotype,
    start=0,
    length=None,
    substitution_rate=0.01,
    insertion_rate=0.001,
    deletion_rate=0.001,
    qual=(20, 40),
    indel_qual=45,
    gcp=10,
):
    """Simulate a read from a haplotype for tests.

    Parameters
    ----------
    haplotype : str
        Haplotype bases.
    start : int
        Position of the haplotype at which the read starts.
    length : int, optional
        Maximum number of haplotype bases to sample (defaults to the
        remainder of the haplotype).
    substitution_rate, insertion_rate, deletion_rate : float
        Per base probability of each type of error.
    qual : tuple, int
        Lower and upper qual scores to randomly assign to base calls.
    indel_qual : int
        Insertion and deletion open penalty of each base.
    gcp : int
        Gap continuation penalty of each base.

    Returns
    -------
    read : str
        Simulated read bases.
    base_quals, ins_quals, del_quals, gcp_quals : ndarray, int
        Qualities of the read.

    Notes
    -----
    This function is intended only for use in unit tests
    and simulated reads are not intended to be an accurate
    simulation of real molecular data.

    """
    haplotype = as_string(as_bases(haplotype))
    if length is None:
        length = len(haplotype) - start
    template = haplotype[start : start + length]
    bases = []
    for base in template:
        if np.random.rand() < deletion_rate:
            continue
        if np.random.rand() < substitution_rate:
            base = BASES[(BASES.index(base) + np.random.randint(1, 4)) % 4]
        bases.append(base)
        if np.random.rand() < insertion_rate:
            bases.append(BASES[np.random.randint(0, 4)])
    if len(bases) == 0:
        bases.append(template[0] if template else BASES[0])
    read = "".join(bases)
    n = len(read)
    base_quals = np.random.randint(qual[0], qual[1] + 1, size=n).astype(np.int64)
    ins_quals = np.full(n, indel_qual, dtype=np.int64)
    del_quals = np.full(n, indel_qual, dtype=np.int64)
    gcp_quals = np.full(n, gcp, dtype=np.int64)
    return read, base_quals, ins_quals, del_quals, gcp_quals
