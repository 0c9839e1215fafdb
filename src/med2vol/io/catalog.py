"""Series catalog: find DICOM files under a directory and group them by series."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from med2vol._workers import map_ordered
from med2vol.core.types import SeriesDescriptor
from med2vol.errors import AttributeReadError, ScanError
from med2vol.io.attribute_reader import (
    SERIES_KEYWORDS,
    AttributeMap,
    AttributeReader,
    PydicomReader,
)

logger = logging.getLogger("med2vol")


@dataclass
class _SeriesAccumulator:
    """Mutable series entry used while the scan is still running."""

    series_uid: str
    modality: str
    description: str
    patient_id: str
    study_uid: str
    study_date: str
    pixel_spacing: tuple[float, float]
    slice_thickness: float
    rows: int
    columns: int
    file_paths: list[Path] = field(default_factory=list)

    @classmethod
    def from_attributes(cls, attributes: AttributeMap) -> _SeriesAccumulator:
        return cls(
            series_uid=attributes["SeriesInstanceUID"],
            modality=str(attributes.get("Modality", "")),
            description=str(attributes.get("SeriesDescription", "")),
            patient_id=str(attributes.get("PatientID", "")),
            study_uid=str(attributes.get("StudyInstanceUID", "")),
            study_date=str(attributes.get("StudyDate", "")),
            pixel_spacing=_pixel_spacing(attributes),
            slice_thickness=_float_or(attributes.get("SliceThickness"), 1.0),
            rows=int(attributes["Rows"]),
            columns=int(attributes["Columns"]),
        )

    def freeze(self) -> SeriesDescriptor:
        return SeriesDescriptor(
            series_uid=self.series_uid,
            modality=self.modality,
            description=self.description,
            patient_id=self.patient_id,
            study_uid=self.study_uid,
            study_date=self.study_date,
            pixel_spacing=self.pixel_spacing,
            slice_thickness=self.slice_thickness,
            rows=self.rows,
            columns=self.columns,
            file_paths=tuple(self.file_paths),
            slice_count=len(self.file_paths),
        )


def scan_directory(
    directory: Path,
    reader: AttributeReader | None = None,
    workers: int | None = None,
) -> list[SeriesDescriptor]:
    """Scan *directory* recursively and return one descriptor per series.

    Files the reader cannot open are skipped silently; DICOM files whose
    series attributes cannot be read are skipped with a warning. The result
    is sorted by series description, then series UID. An empty list means
    no DICOM series were found.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ScanError(f"Directory does not exist or is not a directory: {directory}")

    reader = reader or PydicomReader()
    try:
        paths = sorted(p for p in directory.rglob("*") if p.is_file())
    except OSError as e:
        raise ScanError(f"Cannot traverse {directory}: {e}") from e

    def probe(path: Path) -> AttributeMap | None:
        if not reader.can_open(path):
            return None
        try:
            attributes = reader.read_tags(path, SERIES_KEYWORDS)
        except AttributeReadError as e:
            logger.warning(f"Could not extract series info: {e}")
            return None
        if not _has_series_identity(attributes):
            logger.warning(f"Could not extract series info from {path}")
            return None
        return attributes

    probed = map_ordered(probe, paths, workers)

    groups: dict[str, _SeriesAccumulator] = {}
    for path, attributes in zip(paths, probed):
        if attributes is None:
            continue
        uid = attributes["SeriesInstanceUID"]
        if uid not in groups:
            groups[uid] = _SeriesAccumulator.from_attributes(attributes)
        groups[uid].file_paths.append(path)

    series = [acc.freeze() for acc in groups.values()]
    series = [s for s in series if s.is_valid()]
    series.sort(key=lambda s: (s.description, s.series_uid))

    logger.info(f"Found {len(series)} DICOM series in {directory}")
    for s in series:
        logger.info(
            f"  Series: {s.description} ({s.modality}) - {s.slice_count} slices, "
            f"{s.columns}x{s.rows}"
        )
    return series


def _has_series_identity(attributes: AttributeMap) -> bool:
    try:
        return (
            bool(attributes.get("SeriesInstanceUID"))
            and int(attributes.get("Rows", 0)) > 0
            and int(attributes.get("Columns", 0)) > 0
        )
    except (TypeError, ValueError):
        return False


def _pixel_spacing(attributes: AttributeMap) -> tuple[float, float]:
    # malformed or non-positive values count as missing
    spacing = attributes.get("PixelSpacing")
    if isinstance(spacing, list) and len(spacing) >= 2:
        row = _float_or(spacing[0], 0.0)
        col = _float_or(spacing[1], 0.0)
        if row > 0.0 and col > 0.0:
            return (row, col)
    return (1.0, 1.0)


def _float_or(value, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
