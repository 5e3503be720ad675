import numpy as np

__all__ = [
    "as_bases",
    "as_quals",
    "as_string",
]


def as_bases(sequence):
    """Convert a sequence of bases into an array of byte values.

    Parameters
    ----------
    sequence : str, bytes or array_like, int
        Bases as text, as bytes or as integer byte values.

    Returns
    -------
    bases : ndarray, uint8, shape (n_base, )
        Contiguous array of byte values.

    Notes
    -----
    The returned array is always a copy so that it may be
    retained without aliasing the callers data.

    """
    if isinstance(sequence, str):
        sequence = sequence.encode("ascii")
    if isinstance(sequence, (bytes, bytearray)):
        return np.frombuffer(bytes(sequence), dtype=np.uint8).copy()
    array = np.asarray(sequence)
    if array.ndim != 1:
        raise ValueError("Bases must be a one dimensional sequence")
    if len(array) and array.dtype.kind not in "iu":
        raise ValueError("Bases must be text, bytes or integer byte values")
    if len(array) and (array.min() < 0 or array.max() > 255):
        raise ValueError("Base byte values must be within 0 and 255")
    return np.array(array, dtype=np.uint8)


def as_quals(quals):
    """Convert phred-scaled qualities into an array of integers.

    Parameters
    ----------
    quals : bytes or array_like, int
        Phred-scaled qualities as raw bytes or integers (not
        phred+33 text).

    Returns
    -------
    quals : ndarray, int64, shape (n_base, )
        Contiguous array of qualities.

    """
    if isinstance(quals, (bytes, bytearray)):
        return np.frombuffer(bytes(quals), dtype=np.uint8).astype(np.int64)
    array = np.asarray(quals)
    if array.ndim != 1:
        raise ValueError("Qualities must be a one dimensional sequence")
    if len(array) and array.dtype.kind not in "iu":
        raise ValueError("Qualities must be bytes or integers")
    if len(array) and array.min() < 0:
        raise ValueError("Qualities must not be negative")
    return np.array(array, dtype=np.int64)


def as_string(bases):
    """Convert an array of byte values into a string of bases."""
    return np.asarray(bases, dtype=np.uint8).tobytes().decode("ascii")
