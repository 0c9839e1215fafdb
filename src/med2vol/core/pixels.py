"""Pixel normalization: raw integer samples to rescaled float32 values."""

from __future__ import annotations

import numpy as np

from med2vol.core.types import PixelFormat, SliceRecord
from med2vol.errors import FormatError

# (bits allocated, signed) -> numpy dtype code, byte order applied separately
_SAMPLE_TYPES = {
    (8, False): "u1",
    (8, True): "i1",
    (16, False): "u2",
    (16, True): "i2",
}


def sample_dtype(pixel_format: PixelFormat) -> np.dtype:
    """Numpy dtype matching *pixel_format*; raises FormatError if unsupported."""
    key = (pixel_format.bits_allocated, pixel_format.signed)
    if key not in _SAMPLE_TYPES:
        kind = "signed" if pixel_format.signed else "unsigned"
        raise FormatError(
            f"Unsupported pixel format: {pixel_format.bits_allocated}-bit {kind}"
        )
    byte_order = "<" if pixel_format.little_endian else ">"
    return np.dtype(byte_order + _SAMPLE_TYPES[key])


def normalize_pixels(
    record: SliceRecord,
    raw: bytes,
    pixel_format: PixelFormat,
) -> np.ndarray:
    """Decode *raw* into a ``[rows, columns]`` float32 array.

    Applies ``intercept + slope * value`` when the record carries a rescale
    pair. Only single-sample 8- and 16-bit data is supported.
    """
    if pixel_format.samples_per_pixel != 1:
        raise FormatError(
            f"Unsupported samples per pixel: {pixel_format.samples_per_pixel} "
            f"in {record.path}"
        )
    dtype = sample_dtype(pixel_format)

    count = record.sample_count
    available = len(raw) // dtype.itemsize
    if available < count:
        raise FormatError(
            f"Pixel buffer of {record.path} holds {available} samples, "
            f"expected {record.rows}x{record.columns}={count}"
        )

    samples = np.frombuffer(raw, dtype=dtype, count=count).astype(np.float64)
    if record.rescale is not None:
        intercept, slope = record.rescale
        samples = intercept + slope * samples

    return samples.astype(np.float32).reshape(record.rows, record.columns)
