"""Slice extraction: pull geometry and pixel-format attributes into SliceRecords."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from med2vol._workers import map_ordered
from med2vol.core.geometry import ZERO_ORIENTATION, ZERO_VECTOR, as_vec3
from med2vol.core.types import SliceRecord
from med2vol.errors import AttributeReadError
from med2vol.io.attribute_reader import SLICE_KEYWORDS, AttributeReader

logger = logging.getLogger("med2vol")


def extract_slice(path: Path, reader: AttributeReader) -> SliceRecord:
    """Build a SliceRecord for one file.

    Missing or unparseable position, orientation and pixel spacing fall
    back to zeros, zeros and 1.0/1.0 respectively; each fallback is recorded
    in ``SliceRecord.defaulted``. Non-positive pixel spacing counts as
    missing. A missing orientation is not repaired here.

    Raises AttributeReadError if the file cannot be read.
    """
    path = Path(path)
    attributes = reader.read_tags(path, SLICE_KEYWORDS)
    image = reader.read_image_geometry(path)
    defaulted: set[str] = set()

    position = _float_list(attributes.get("ImagePositionPatient"), 3)
    if position is None:
        defaulted.add("position")
        position = ZERO_VECTOR

    orientation = _float_list(attributes.get("ImageOrientationPatient"), 6)
    if orientation is None:
        defaulted.add("orientation")
        orientation = ZERO_ORIENTATION

    spacing = _float_list(attributes.get("PixelSpacing"), 2)
    if spacing is None or min(spacing) <= 0.0:
        defaulted.add("pixel_spacing")
        spacing = (1.0, 1.0)

    rescale = None
    intercept = _float_or_none(attributes.get("RescaleIntercept"))
    slope = _float_or_none(attributes.get("RescaleSlope"))
    if intercept is not None and slope is not None:
        rescale = (intercept, slope)

    instance = attributes.get("InstanceNumber")
    try:
        instance_number = int(instance) if instance is not None else 0
    except (TypeError, ValueError):
        instance_number = 0

    if defaulted:
        logger.debug(f"{path.name}: defaulted {', '.join(sorted(defaulted))}")

    fmt = image.pixel_format
    return SliceRecord(
        path=path,
        rows=image.rows,
        columns=image.columns,
        bits_allocated=fmt.bits_allocated,
        bits_stored=fmt.bits_stored,
        signed=fmt.signed,
        samples_per_pixel=fmt.samples_per_pixel,
        position=as_vec3(position),
        orientation=tuple(float(v) for v in orientation[:6]),
        slice_location=_float_or_none(attributes.get("SliceLocation")),
        instance_number=instance_number,
        rescale=rescale,
        pixel_spacing=(float(spacing[0]), float(spacing[1])),
        defaulted=frozenset(defaulted),
    )


def extract_slices(
    paths: Iterable[Path],
    reader: AttributeReader,
    workers: int | None = None,
) -> list[SliceRecord]:
    """Extract records for all *paths*, skipping unreadable files.

    Records come back in input order regardless of which worker finished first.
    """

    def extract(path: Path) -> SliceRecord | None:
        try:
            return extract_slice(path, reader)
        except AttributeReadError as e:
            logger.warning(f"Failed to extract slice info: {e}")
            return None

    records = [r for r in map_ordered(extract, paths, workers) if r is not None]

    defaulted = [r for r in records if r.defaulted]
    if defaulted:
        fields = sorted(set().union(*(r.defaulted for r in defaulted)))
        logger.warning(
            f"{len(defaulted)} of {len(records)} slices are missing "
            f"{', '.join(fields)}; defaults were used"
        )
    return records


def _float_list(value, count: int) -> tuple[float, ...] | None:
    if not isinstance(value, (list, tuple)) or len(value) < count:
        return None
    try:
        return tuple(float(v) for v in value[:count])
    except (TypeError, ValueError):
        return None


def _float_or_none(value) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
