"""Series loader: scan, select and assemble a DICOM series into a Volume."""

from __future__ import annotations

import logging
from pathlib import Path

from med2vol.core.assembler import assemble_volume
from med2vol.core.extractor import extract_slices
from med2vol.core.sequencer import infer_slice_spacing, sequence_slices
from med2vol.core.types import SeriesDescriptor
from med2vol.core.validator import validate_consistency
from med2vol.core.volume import Volume
from med2vol.errors import ScanError, SequencingError
from med2vol.io.attribute_reader import AttributeReader, PydicomReader
from med2vol.io.catalog import scan_directory

logger = logging.getLogger("med2vol")


def load_series(
    series: SeriesDescriptor,
    reader: AttributeReader | None = None,
    workers: int | None = None,
) -> Volume:
    """Load one series into a Volume.

    Unreadable files are skipped with a warning. From validation onward the
    load is all-or-nothing: any inconsistency raises and no partial volume
    is returned.
    """
    if not series.is_valid() or not series.file_paths:
        raise SequencingError(f"Invalid series information: '{series.series_uid}'")

    reader = reader or PydicomReader()

    records = extract_slices(series.file_paths, reader, workers)
    if not records:
        raise SequencingError(f"No valid DICOM slices found in series {series.series_uid}")

    validate_consistency(records)
    ordered = sequence_slices(records)
    slice_spacing = infer_slice_spacing([r.projected_position for r in ordered])

    volume = assemble_volume(
        series,
        ordered,
        slice_spacing,
        read_pixels=lambda record: reader.read_image_geometry(record.path),
        workers=workers,
    )

    if not volume.is_orthonormal():
        logger.warning("Direction vectors do not form an orthonormal basis")

    logger.info(
        f"Loaded series {volume.series_uid} ({volume.modality}): "
        f"{volume.width}x{volume.height}x{volume.depth}, "
        f"spacing {_fmt(volume.spacing)} mm, origin {_fmt(volume.origin)} mm, "
        f"value range {volume.vmin:g} to {volume.vmax:g}"
    )
    return volume


def load_directory(
    input_path: Path,
    series_uid: str | None = None,
    reader: AttributeReader | None = None,
    workers: int | None = None,
) -> Volume:
    """Scan *input_path* and load one series.

    *series_uid* may be a partial UID; without it the first catalog entry
    is loaded.
    """
    reader = reader or PydicomReader()
    series_list = scan_directory(input_path, reader=reader, workers=workers)
    if not series_list:
        raise ScanError(f"No valid DICOM series found in {input_path}")

    series = select_series(series_list, series_uid)
    logger.info(f"Selected series {series.series_uid} with {series.slice_count} files")
    return load_series(series, reader=reader, workers=workers)


def select_series(
    series_list: list[SeriesDescriptor], series_uid: str | None = None
) -> SeriesDescriptor:
    """Pick the series whose UID contains *series_uid*, or the first one."""
    if not series_list:
        raise ScanError("No DICOM series to select from")
    if not series_uid:
        return series_list[0]

    matches = [s for s in series_list if series_uid in s.series_uid]
    if not matches:
        available = "\n  ".join(s.series_uid for s in series_list)
        raise ScanError(f"No series matching '{series_uid}'. Available:\n  {available}")
    if len(matches) > 1:
        logger.warning(
            f"Multiple series match '{series_uid}', using first: {matches[0].series_uid}"
        )
    return matches[0]


def _fmt(values) -> str:
    return ", ".join(f"{v:g}" for v in values)
