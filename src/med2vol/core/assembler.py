"""Volume assembly from sorted, validated slices."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from med2vol._workers import map_ordered
from med2vol.core.geometry import cross, normalize, split_orientation
from med2vol.core.pixels import normalize_pixels
from med2vol.core.types import ImageGeometry, SeriesDescriptor, SliceRecord
from med2vol.core.volume import Volume
from med2vol.errors import BufferOverflowError, FormatError, SequencingError

logger = logging.getLogger("med2vol")

PixelSource = Callable[[SliceRecord], ImageGeometry]


def assemble_volume(
    series: SeriesDescriptor,
    records: Sequence[SliceRecord],
    slice_spacing: float,
    read_pixels: PixelSource,
    workers: int | None = None,
) -> Volume:
    """Build a Volume from slices already validated and sequenced.

    Each slice is decoded by *read_pixels*, normalized, and written into the
    buffer segment given by its sequencer index, so the volume order never
    depends on which worker finishes first. Any failure aborts the whole
    assembly.
    """
    if not records:
        raise SequencingError("No slices to assemble")

    if sorted(r.index for r in records) != list(range(len(records))):
        raise BufferOverflowError("Slice indices do not cover the volume depth exactly once")

    first = records[0]
    width, height, depth = first.columns, first.rows, len(records)
    row_spacing, col_spacing = first.pixel_spacing

    row, col = split_orientation(first.orientation)
    row_dir = normalize(row)
    col_dir = normalize(col)
    slice_dir = normalize(cross(row, col))

    volume = Volume.allocate(
        width,
        height,
        depth,
        spacing=(col_spacing, row_spacing, slice_spacing),
        origin=first.position,
        row_direction=row_dir,
        column_direction=col_dir,
        slice_direction=slice_dir,
        modality=series.modality,
        patient_id=series.patient_id,
        study_uid=series.study_uid,
        study_date=series.study_date,
        series_uid=series.series_uid,
        series_description=series.description,
        rescale=first.rescale,
    )
    flat = volume.voxels.reshape(-1)
    slice_size = width * height

    def fill(record: SliceRecord) -> tuple[float, float]:
        image = read_pixels(record)
        fmt = image.pixel_format
        if (fmt.bits_allocated, fmt.signed) != (record.bits_allocated, record.signed):
            raise FormatError(
                f"Pixel format of {record.path} changed since extraction"
            )
        samples = normalize_pixels(record, image.raw, fmt).reshape(-1)

        offset = record.index * slice_size
        if record.index < 0 or samples.size != slice_size or offset + samples.size > flat.size:
            raise BufferOverflowError(
                f"Slice {record.index} ({record.path.name}) with {samples.size} samples "
                f"does not fit volume buffer of {flat.size} voxels"
            )
        flat[offset:offset + samples.size] = samples
        return float(samples.min()), float(samples.max())

    ranges = map_ordered(fill, records, workers)

    volume.vmin = min(lo for lo, _ in ranges)
    volume.vmax = max(hi for _, hi in ranges)
    logger.debug(
        f"Assembled {width}x{height}x{depth} volume, value range {volume.vmin} to {volume.vmax}"
    )
    return volume
