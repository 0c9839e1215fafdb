"""Attribute reader: the boundary between DICOM file parsing and geometry code.

Geometry code only sees an ``AttributeMap``, a plain dict keyed by DICOM
keyword with values converted to Python floats, ints, strings and lists.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pydicom
from pydicom.errors import InvalidDicomError
from pydicom.misc import is_dicom
from pydicom.multival import MultiValue
from pydicom.valuerep import DSdecimal, DSfloat, PersonName

from med2vol.core.types import ImageGeometry, PixelFormat
from med2vol.errors import AttributeReadError

logger = logging.getLogger("med2vol")

AttributeMap = dict[str, Any]

SERIES_KEYWORDS = (
    "SeriesInstanceUID",
    "Modality",
    "SeriesDescription",
    "PatientID",
    "StudyInstanceUID",
    "StudyDate",
    "PixelSpacing",
    "SliceThickness",
    "Rows",
    "Columns",
)

SLICE_KEYWORDS = (
    "ImagePositionPatient",
    "ImageOrientationPatient",
    "SliceLocation",
    "InstanceNumber",
    "RescaleIntercept",
    "RescaleSlope",
    "PixelSpacing",
)


class AttributeReader(ABC):
    """Reads decoded attribute values and raw pixel bytes from image files."""

    @abstractmethod
    def can_open(self, path: Path) -> bool:
        """Cheap check whether *path* looks like a readable file (no full parse)."""
        ...

    @abstractmethod
    def read_tags(self, path: Path, keywords: Iterable[str]) -> AttributeMap:
        """Return the requested attributes present in *path*.

        Absent, empty and unparseable attributes are left out of the map;
        values kept in raw string form are for the caller to validate.
        Raises AttributeReadError if the file cannot be parsed.
        """
        ...

    @abstractmethod
    def read_image_geometry(self, path: Path) -> ImageGeometry:
        """Return image dimensions, pixel format and raw pixel bytes.

        Raises AttributeReadError if the file cannot be parsed or holds no
        single-frame pixel data.
        """
        ...


def to_plain(value: Any) -> Any:
    """Convert a pydicom element value to a plain Python value."""
    if isinstance(value, (MultiValue, list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, (DSfloat, DSdecimal)):
        return float(value)
    if isinstance(value, PersonName):
        return str(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value).strip()
    return value


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, list) and not value)


class PydicomReader(AttributeReader):
    """Attribute reader backed by pydicom."""

    def can_open(self, path: Path) -> bool:
        try:
            return is_dicom(str(path))
        except OSError:
            return False

    def read_tags(self, path: Path, keywords: Iterable[str]) -> AttributeMap:
        keywords = list(keywords)
        try:
            ds = pydicom.dcmread(
                str(path), stop_before_pixels=True, specific_tags=keywords
            )
        except (InvalidDicomError, OSError, ValueError, EOFError) as e:
            raise AttributeReadError(path, f"cannot read attributes: {e}") from e

        attributes: AttributeMap = {}
        for keyword in keywords:
            try:
                value = to_plain(ds.get(keyword))
            except (TypeError, ValueError) as e:
                logger.debug(f"{path}: ignoring unparseable {keyword}: {e}")
                continue
            if not _is_empty(value):
                attributes[keyword] = value
        return attributes

    def read_image_geometry(self, path: Path) -> ImageGeometry:
        try:
            ds = pydicom.dcmread(str(path))
        except (InvalidDicomError, OSError, ValueError, EOFError) as e:
            raise AttributeReadError(path, f"cannot read image: {e}") from e

        file_meta = getattr(ds, "file_meta", None)
        transfer_syntax = getattr(file_meta, "TransferSyntaxUID", None)
        little_endian = True
        if transfer_syntax is not None:
            try:
                compressed = transfer_syntax.is_compressed
                little_endian = transfer_syntax.is_little_endian
            except ValueError as e:
                raise AttributeReadError(path, f"unknown transfer syntax: {e}") from e
            if compressed:
                raise AttributeReadError(
                    path, f"compressed transfer syntax {transfer_syntax.name} is not supported"
                )
        if int(getattr(ds, "NumberOfFrames", 1) or 1) > 1:
            raise AttributeReadError(path, "multi-frame images are not supported")
        if "PixelData" not in ds:
            raise AttributeReadError(path, "no pixel data")

        rows = int(getattr(ds, "Rows", 0) or 0)
        columns = int(getattr(ds, "Columns", 0) or 0)
        if rows <= 0 or columns <= 0:
            raise AttributeReadError(path, f"invalid image size {columns}x{rows}")

        bits_allocated = int(getattr(ds, "BitsAllocated", 0) or 0)
        bits_stored = int(getattr(ds, "BitsStored", bits_allocated) or bits_allocated)
        pixel_format = PixelFormat(
            bits_allocated=bits_allocated,
            bits_stored=bits_stored,
            signed=int(getattr(ds, "PixelRepresentation", 0) or 0) == 1,
            samples_per_pixel=int(getattr(ds, "SamplesPerPixel", 1) or 1),
            little_endian=little_endian,
        )
        return ImageGeometry(
            rows=rows,
            columns=columns,
            pixel_format=pixel_format,
            raw=bytes(ds.PixelData),
        )
