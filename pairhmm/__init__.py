from pairhmm.classes import (
    PairHMM,
    Log10PairHMM,
    LoglessPairHMM,
    UninitializedEngineError,
    DimensionExceededError,
    LikelihoodInvariantError,
    find_first_differing_position,
    new_pairhmm,
)
from pairhmm.batch import BatchPairHMM
from pairhmm import quality
from pairhmm.version import __version__

__all__ = [
    "PairHMM",
    "Log10PairHMM",
    "LoglessPairHMM",
    "BatchPairHMM",
    "UninitializedEngineError",
    "DimensionExceededError",
    "LikelihoodInvariantError",
    "find_first_differing_position",
    "new_pairhmm",
    "quality",
    "__version__",
]
