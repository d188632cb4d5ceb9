"""Linear-interpolation resampling to the model's target rate.

Not bandlimited: no anti-aliasing filter is applied before downsampling.
"""

import math
import logging

import numpy as np

logger = logging.getLogger(__name__)


def resampled_length(input_length: int, from_rate: int, to_rate: int) -> int:
    """Number of output samples for an input of input_length samples (half-up rounding)."""
    return int(math.floor(input_length * to_rate / from_rate + 0.5))


def resample(samples: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Resample mono audio from from_rate to to_rate.

    For output index i the source position is i * (from_rate / to_rate); the
    value is interpolated between the two neighbouring input samples, and
    reads past the end of the input count as 0.

    Args:
        samples: Mono audio samples
        from_rate: Rate the samples were recorded at in Hz
        to_rate: Desired rate in Hz

    Returns:
        float32 array of length round(len(samples) * to_rate / from_rate)
    """
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError(f"Sample rates must be positive (got {from_rate} -> {to_rate})")

    samples = np.asarray(samples, dtype=np.float32)
    if from_rate == to_rate:
        return samples

    ratio = from_rate / to_rate
    out_len = resampled_length(len(samples), from_rate, to_rate)
    if out_len == 0:
        return np.zeros(0, dtype=np.float32)

    src = np.arange(out_len, dtype=np.float64) * ratio
    i0 = np.floor(src).astype(np.int64)
    t = src - i0

    # One trailing zero covers the i0 + 1 read at the last input sample
    padded = np.concatenate([samples, np.zeros(1, dtype=np.float32)])
    i0 = np.minimum(i0, len(samples))
    i1 = np.minimum(i0 + 1, len(samples))
    a = padded[i0]
    b = padded[i1]

    out = (a + (b - a) * t).astype(np.float32)
    logger.debug(f"Resampled {len(samples)} samples @ {from_rate}Hz -> {out_len} @ {to_rate}Hz")
    return out
