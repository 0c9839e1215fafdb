"""Shared test fixtures: synthetic DICOM data and an in-memory attribute reader."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pydicom
import pytest
from pydicom.dataset import FileDataset
from pydicom.uid import ExplicitVRLittleEndian, generate_uid

from med2vol.core.types import ImageGeometry, PixelFormat, SliceRecord
from med2vol.errors import AttributeReadError
from med2vol.io.attribute_reader import AttributeReader


@pytest.fixture
def dicom_directory(tmp_path) -> Path:
    """Create a temporary directory with a 10-slice axial CT series."""
    series_uid = generate_uid()
    study_uid = generate_uid()

    # Written in shuffled order so file order differs from slice order
    for i in [3, 0, 7, 1, 9, 4, 2, 8, 6, 5]:
        write_synthetic_dicom(
            tmp_path / f"slice_{i:03d}.dcm",
            series_uid=series_uid,
            study_uid=study_uid,
            instance_number=i + 1,
            position=(-10.0, -20.0, 2.5 * i),
            pixel_value=100 + i,
        )

    return tmp_path


@pytest.fixture
def dicom_multi_series_directory(tmp_path) -> Path:
    """Two series in nested folders plus a non-DICOM file."""
    series_a = generate_uid()
    series_b = generate_uid()

    for i in range(6):
        write_synthetic_dicom(
            tmp_path / "a" / f"a_{i:02d}.dcm",
            series_uid=series_a,
            description="Axial",
            instance_number=i + 1,
            position=(0.0, 0.0, float(i)),
        )
    for i in range(4):
        write_synthetic_dicom(
            tmp_path / "b" / "nested" / f"b_{i:02d}.dcm",
            series_uid=series_b,
            description="Abdomen",
            modality="MR",
            instance_number=i + 1,
            position=(0.0, 0.0, 3.0 * i),
            rows=16,
            cols=24,
        )
    (tmp_path / "notes.txt").write_text("not a DICOM file")

    return tmp_path


def write_synthetic_dicom(
    path: Path,
    series_uid: str,
    instance_number: int = 1,
    position=(0.0, 0.0, 0.0),
    orientation=(1.0, 0.0, 0.0, 0.0, 1.0, 0.0),
    pixel_spacing=(0.5, 0.75),
    rows: int = 8,
    cols: int = 12,
    bits_allocated: int = 16,
    signed: bool = False,
    rescale=(-1024.0, 1.0),
    pixel_value: int = 100,
    pixels: np.ndarray | None = None,
    study_uid: str | None = None,
    modality: str = "CT",
    description: str = "Synthetic",
) -> None:
    """Write a single synthetic single-frame DICOM file.

    Pass ``None`` for position, orientation, pixel_spacing or rescale to
    leave the attribute out of the file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    file_meta = pydicom.Dataset()
    file_meta.MediaStorageSOPClassUID = "1.2.840.10008.5.1.4.1.1.2"
    file_meta.MediaStorageSOPInstanceUID = generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(str(path), {}, file_meta=file_meta, preamble=b"\x00" * 128)

    ds.SOPClassUID = "1.2.840.10008.5.1.4.1.1.2"
    ds.SOPInstanceUID = generate_uid()
    ds.SeriesInstanceUID = series_uid
    ds.StudyInstanceUID = study_uid or generate_uid()
    ds.StudyDate = "20240131"
    ds.PatientID = "PAT-001"
    ds.Modality = modality
    ds.SeriesDescription = description
    ds.InstanceNumber = instance_number
    if position is not None:
        ds.ImagePositionPatient = list(position)
        ds.SliceLocation = float(position[2])
    if orientation is not None:
        ds.ImageOrientationPatient = list(orientation)
    if pixel_spacing is not None:
        ds.PixelSpacing = list(pixel_spacing)
    ds.SliceThickness = 2.5
    ds.Rows = rows
    ds.Columns = cols
    ds.BitsAllocated = bits_allocated
    ds.BitsStored = bits_allocated
    ds.HighBit = bits_allocated - 1
    ds.PixelRepresentation = 1 if signed else 0
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = "MONOCHROME2"
    if rescale is not None:
        ds.RescaleIntercept = rescale[0]
        ds.RescaleSlope = rescale[1]

    if pixels is None:
        dtype = {
            (8, False): np.uint8,
            (8, True): np.int8,
            (16, False): np.uint16,
            (16, True): np.int16,
        }[(bits_allocated, signed)]
        pixels = np.full((rows, cols), pixel_value, dtype=dtype)

    ds.PixelData = pixels.tobytes()
    ds.save_as(str(path))


class FakeReader(AttributeReader):
    """In-memory attribute reader keyed by path.

    Each entry holds an attribute dict and an ImageGeometry; paths listed in
    ``broken`` raise AttributeReadError.
    """

    def __init__(self):
        self.attributes: dict[Path, dict] = {}
        self.images: dict[Path, ImageGeometry] = {}
        self.broken: set[Path] = set()

    def add(
        self,
        name: str,
        attributes: dict,
        rows: int = 2,
        columns: int = 3,
        pixel_format: PixelFormat | None = None,
        raw: bytes | None = None,
    ) -> Path:
        path = Path("/fake") / name
        pixel_format = pixel_format or PixelFormat(16, 16, False)
        if raw is None:
            raw = np.zeros(rows * columns, dtype="<u2").tobytes()
        self.attributes[path] = dict(attributes)
        self.images[path] = ImageGeometry(rows, columns, pixel_format, raw)
        return path

    def can_open(self, path: Path) -> bool:
        return path in self.attributes or path in self.broken

    def read_tags(self, path, keywords):
        if path in self.broken:
            raise AttributeReadError(path, "broken file")
        stored = self.attributes[path]
        return {k: stored[k] for k in keywords if k in stored}

    def read_image_geometry(self, path):
        if path in self.broken:
            raise AttributeReadError(path, "broken file")
        return self.images[path]


@pytest.fixture
def fake_reader() -> FakeReader:
    return FakeReader()


def make_record(
    name: str = "slice.dcm",
    position=(0.0, 0.0, 0.0),
    orientation=(1.0, 0.0, 0.0, 0.0, 1.0, 0.0),
    rows: int = 2,
    columns: int = 3,
    bits_allocated: int = 16,
    bits_stored: int = 16,
    signed: bool = False,
    pixel_spacing=(1.0, 1.0),
    rescale=None,
) -> SliceRecord:
    """Build a SliceRecord directly, bypassing file reading."""
    return SliceRecord(
        path=Path(name),
        rows=rows,
        columns=columns,
        bits_allocated=bits_allocated,
        bits_stored=bits_stored,
        signed=signed,
        position=tuple(position),
        orientation=tuple(orientation),
        pixel_spacing=tuple(pixel_spacing),
        rescale=rescale,
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def write_dicom():
    return write_synthetic_dicom


def corrupt_pixel_spacing(path: Path) -> None:
    """Replace the default PixelSpacing bytes with a same-length non-numeric DS."""
    data = path.read_bytes()
    assert b"0.5\\0.75" in data
    path.write_bytes(data.replace(b"0.5\\0.75", b"a.5\\0.75", 1))


@pytest.fixture
def corrupt_spacing():
    return corrupt_pixel_spacing
