import math

# phred qualities at or above this are clamped before conversion
MAX_QUAL = 254

# mismatch error is spread over the three alternate bases
TRISTATE_CORRECTION = 3.0

# unknown base, matches any base
N_BASE = ord("N")

# column indices of the per-position transition array
MATCH_TO_MATCH = 0
INDEL_TO_MATCH = 1
MATCH_TO_INSERTION = 2
INSERTION_TO_INSERTION = 3
MATCH_TO_DELETION = 4
DELETION_TO_DELETION = 5
N_TRANSITIONS = 6

# column indices of the per-position emission array
EMIT_MATCH = 0
EMIT_MISMATCH = 1

# lookup table for approximate log10(10^a + 10^b)
JACOBIAN_LOG_TABLE_STEP = 0.0001
JACOBIAN_LOG_TABLE_MAX_TOLERANCE = 8.0

# linear space rescaling, as binary exponents of the row maximum
RESCALE_EXPONENT = 256
MAX_EXPONENT_DRIFT = 768
LOG10_2 = math.log10(2.0)

IMPLEMENTATIONS = ("EXACT", "ORIGINAL", "LOGLESS")
