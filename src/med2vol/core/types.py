"""Core data types for the med2vol pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from med2vol.core.geometry import (
    IDENTITY_ORIENTATION,
    ZERO_VECTOR,
    Orientation,
    Vec3,
)


@dataclass(frozen=True)
class PixelFormat:
    """Sample layout of a slice's raw pixel buffer."""

    bits_allocated: int
    bits_stored: int
    signed: bool
    samples_per_pixel: int = 1
    little_endian: bool = True


@dataclass
class ImageGeometry:
    """Decoded image dimensions plus the undecoded pixel bytes of one file."""

    rows: int
    columns: int
    pixel_format: PixelFormat
    raw: bytes


@dataclass(frozen=True)
class SeriesDescriptor:
    """One DICOM series found while scanning a directory."""

    series_uid: str
    modality: str = ""
    description: str = ""
    patient_id: str = ""
    study_uid: str = ""
    study_date: str = ""
    pixel_spacing: tuple[float, float] = (1.0, 1.0)  # row, column
    slice_thickness: float = 1.0
    rows: int = 0
    columns: int = 0
    file_paths: tuple[Path, ...] = ()
    slice_count: int = 0

    def is_valid(self) -> bool:
        return (
            bool(self.series_uid)
            and self.slice_count > 0
            and self.rows > 0
            and self.columns > 0
        )


@dataclass
class SliceRecord:
    """Geometry and pixel-format attributes of one slice file.

    ``projected_position`` and ``index`` are filled in by the sequencer.
    ``defaulted`` names the geometry fields that were missing from the file
    and replaced by a default value.
    """

    path: Path
    rows: int
    columns: int
    bits_allocated: int
    bits_stored: int
    signed: bool
    samples_per_pixel: int = 1
    position: Vec3 = ZERO_VECTOR
    orientation: Orientation = IDENTITY_ORIENTATION
    slice_location: float | None = None
    instance_number: int = 0
    rescale: tuple[float, float] | None = None  # intercept, slope
    pixel_spacing: tuple[float, float] = (1.0, 1.0)  # row, column
    projected_position: float = 0.0
    index: int = -1
    defaulted: frozenset[str] = field(default_factory=frozenset)

    @property
    def has_rescale(self) -> bool:
        return self.rescale is not None

    @property
    def pixel_format(self) -> PixelFormat:
        return PixelFormat(
            bits_allocated=self.bits_allocated,
            bits_stored=self.bits_stored,
            signed=self.signed,
            samples_per_pixel=self.samples_per_pixel,
        )

    @property
    def sample_count(self) -> int:
        return self.rows * self.columns


@dataclass
class LoaderConfig:
    """Configuration for a load run (from CLI flags)."""

    input_path: Path
    series_uid: str | None = None
    workers: int | None = None
    list_series: bool = False
    verbose: bool = False
