"""Volume data structure with patient-space (LPS) geometry."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from med2vol.core.geometry import ORTHONORMAL_EPSILON, Vec3, cross, dot, norm


def _empty_voxels() -> np.ndarray:
    return np.zeros((0, 0, 0), dtype=np.float32)


@dataclass
class Volume:
    """3D scalar volume assembled from a DICOM series.

    ``voxels`` is a float32 array shaped ``[Z, Y, X]`` (depth, height, width),
    so its flat C-order buffer is slice-major, row-major, column-minor.
    ``spacing`` is ``(x, y, z)`` in mm, ``origin`` is the LPS position of
    voxel (0, 0, 0), and the three direction vectors map voxel axes
    x, y, z to patient space. Rescale values are informational only: they
    have already been applied to the samples.
    """

    voxels: np.ndarray = field(default_factory=_empty_voxels)
    spacing: Vec3 = (1.0, 1.0, 1.0)
    origin: Vec3 = (0.0, 0.0, 0.0)
    row_direction: Vec3 = (1.0, 0.0, 0.0)
    column_direction: Vec3 = (0.0, 1.0, 0.0)
    slice_direction: Vec3 = (0.0, 0.0, 1.0)
    vmin: float = 0.0
    vmax: float = 0.0
    modality: str = ""
    patient_id: str = ""
    study_uid: str = ""
    study_date: str = ""
    series_uid: str = ""
    series_description: str = ""
    rescale: tuple[float, float] | None = None  # intercept, slope

    @classmethod
    def allocate(cls, width: int, height: int, depth: int, **kwargs) -> Volume:
        """Create a zero-filled volume of the given dimensions."""
        voxels = np.zeros((depth, height, width), dtype=np.float32)
        return cls(voxels=voxels, **kwargs)

    @property
    def width(self) -> int:
        return int(self.voxels.shape[2])

    @property
    def height(self) -> int:
        return int(self.voxels.shape[1])

    @property
    def depth(self) -> int:
        return int(self.voxels.shape[0])

    @property
    def shape(self) -> tuple[int, ...]:
        return self.voxels.shape

    @property
    def total_voxels(self) -> int:
        return self.width * self.height * self.depth

    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0 and self.depth > 0

    def _in_bounds(self, x: int, y: int, z: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.depth

    def get_voxel(self, x: int, y: int, z: int) -> float:
        """Sample at column *x*, row *y*, slice *z*; 0.0 outside the volume."""
        if not self._in_bounds(x, y, z):
            return 0.0
        return float(self.voxels[z, y, x])

    def set_voxel(self, x: int, y: int, z: int, value: float) -> None:
        """Store *value* at (x, y, z); writes outside the volume are ignored."""
        if self._in_bounds(x, y, z):
            self.voxels[z, y, x] = value

    def world_to_voxel(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        """Convert an LPS position (mm) to continuous voxel coordinates."""
        offset = (x - self.origin[0], y - self.origin[1], z - self.origin[2])
        return (
            dot(offset, self.row_direction) / self.spacing[0],
            dot(offset, self.column_direction) / self.spacing[1],
            dot(offset, self.slice_direction) / self.spacing[2],
        )

    def voxel_to_world(self, i: float, j: float, k: float) -> tuple[float, float, float]:
        """Convert voxel coordinates to an LPS position (mm)."""
        dx = i * self.spacing[0]
        dy = j * self.spacing[1]
        dz = k * self.spacing[2]
        return tuple(
            self.origin[n]
            + dx * self.row_direction[n]
            + dy * self.column_direction[n]
            + dz * self.slice_direction[n]
            for n in range(3)
        )

    def is_orthonormal(self, epsilon: float = ORTHONORMAL_EPSILON) -> bool:
        """Check that the direction vectors form a right-handed orthonormal basis."""
        axes = (self.row_direction, self.column_direction, self.slice_direction)
        if any(abs(norm(v) - 1.0) > epsilon for v in axes):
            return False

        row, col, slc = axes
        if (
            abs(dot(row, col)) > epsilon
            or abs(dot(row, slc)) > epsilon
            or abs(dot(col, slc)) > epsilon
        ):
            return False

        # Right-handed: slice == row x column
        expected = cross(row, col)
        return all(abs(expected[n] - slc[n]) <= epsilon for n in range(3))
