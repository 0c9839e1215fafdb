"""Slice ordering along the series normal and slice-spacing inference."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from med2vol.core.geometry import (
    MIN_SLICE_GAP,
    Vec3,
    cross,
    dot,
    normalize,
    split_orientation,
)
from med2vol.core.types import SliceRecord
from med2vol.errors import SequencingError


def slice_normal(orientation: Sequence[float]) -> Vec3:
    """Unit normal of the image plane: row cosines x column cosines."""
    row, col = split_orientation(orientation)
    return normalize(cross(row, col))


def sequence_slices(records: Sequence[SliceRecord]) -> list[SliceRecord]:
    """Sort slices by their position along the series normal.

    The normal comes from the first record's orientation. Each record gets
    its ``projected_position`` and its 0-based ``index`` in the sorted order.
    The sort is stable: slices at the same position keep their input order.
    """
    if not records:
        raise SequencingError("Cannot sequence an empty series")

    normal = slice_normal(records[0].orientation)
    for record in records:
        record.projected_position = dot(record.position, normal)

    ordered = sorted(records, key=lambda r: r.projected_position)
    for i, record in enumerate(ordered):
        record.index = i
    return ordered


def infer_slice_spacing(positions: Sequence[float]) -> float:
    """Median gap between consecutive sorted slice positions.

    Gaps of 1e-6 or less (duplicate slices) are ignored. The median keeps a
    single misplaced slice from skewing the result; 1.0 is returned when no
    usable gap remains.
    """
    if len(positions) < 2:
        return 1.0

    gaps = np.diff(np.asarray(positions, dtype=np.float64))
    gaps = gaps[gaps > MIN_SLICE_GAP]
    if gaps.size == 0:
        return 1.0

    spacing = float(np.median(gaps))
    return spacing if spacing > MIN_SLICE_GAP else 1.0
