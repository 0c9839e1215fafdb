"""Vector helpers and tolerances for patient (LPS) coordinate geometry."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

Vec3 = tuple[float, float, float]
Orientation = tuple[float, float, float, float, float, float]

# Tolerances
ORIENTATION_TOLERANCE = 1e-6
SPACING_TOLERANCE = 1e-6
MIN_SLICE_GAP = 1e-6  # consecutive slices closer than this are duplicates
NORMALIZE_EPSILON = 1e-12
ORTHONORMAL_EPSILON = 1e-6

IDENTITY_ORIENTATION: Orientation = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
ZERO_ORIENTATION: Orientation = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
ZERO_VECTOR: Vec3 = (0.0, 0.0, 0.0)


def as_vec3(values: Sequence[float]) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.dot(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))


def cross(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return as_vec3(np.cross(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))


def norm(v: Sequence[float]) -> float:
    return float(np.linalg.norm(np.asarray(v, dtype=np.float64)))


def normalize(v: Sequence[float]) -> Vec3:
    """Scale *v* to unit length.

    Vectors shorter than ``NORMALIZE_EPSILON`` are returned unchanged, so a
    degenerate (all-zero) orientation stays degenerate instead of raising.
    """
    length = norm(v)
    if length > NORMALIZE_EPSILON:
        return as_vec3(np.asarray(v, dtype=np.float64) / length)
    return as_vec3(v)


def split_orientation(orientation: Sequence[float]) -> tuple[Vec3, Vec3]:
    """Split a 6-value ImageOrientationPatient into (row, column) cosines."""
    return as_vec3(orientation[0:3]), as_vec3(orientation[3:6])
