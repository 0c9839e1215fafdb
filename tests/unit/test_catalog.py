"""Unit tests for directory scanning and series grouping."""

from __future__ import annotations

import pytest
from pydicom.uid import generate_uid

from med2vol.core.types import SeriesDescriptor
from med2vol.errors import ScanError
from med2vol.io.catalog import scan_directory


def test_scan_single_series(dicom_directory):
    series = scan_directory(dicom_directory)
    assert len(series) == 1
    s = series[0]
    assert isinstance(s, SeriesDescriptor)
    assert s.is_valid()
    assert s.slice_count == 10
    assert len(s.file_paths) == 10
    assert s.modality == "CT"
    assert s.description == "Synthetic"
    assert s.patient_id == "PAT-001"
    assert s.study_date == "20240131"
    assert s.pixel_spacing == pytest.approx((0.5, 0.75))
    assert s.slice_thickness == pytest.approx(2.5)
    assert (s.rows, s.columns) == (8, 12)


def test_scan_multi_series_recursive_and_sorted(dicom_multi_series_directory):
    series = scan_directory(dicom_multi_series_directory)
    assert [s.description for s in series] == ["Abdomen", "Axial"]
    abdomen, axial = series
    assert abdomen.slice_count == 4
    assert abdomen.modality == "MR"
    assert (abdomen.rows, abdomen.columns) == (16, 24)
    assert axial.slice_count == 6
    assert all(p.suffix == ".dcm" for s in series for p in s.file_paths)


def test_scan_sorts_by_uid_when_descriptions_match(tmp_path, write_dicom):
    for uid in ["1.2.9", "1.2.10", "1.2.3"]:
        write_dicom(tmp_path / f"{uid}.dcm", series_uid=uid, description="Same")
    series = scan_directory(tmp_path)
    # ordinal string comparison, not numeric
    assert [s.series_uid for s in series] == ["1.2.10", "1.2.3", "1.2.9"]


def test_first_file_metadata_wins(tmp_path, write_dicom):
    uid = generate_uid()
    write_dicom(tmp_path / "a.dcm", series_uid=uid, description="First")
    write_dicom(tmp_path / "b.dcm", series_uid=uid, description="Second", rows=16)
    series = scan_directory(tmp_path, workers=1)
    assert len(series) == 1
    assert series[0].description == "First"
    assert series[0].rows == 8
    assert series[0].slice_count == 2


def test_scan_empty_directory_returns_empty(tmp_path):
    assert scan_directory(tmp_path) == []


def test_scan_ignores_non_dicom_files(tmp_path):
    (tmp_path / "readme.txt").write_text("hello")
    (tmp_path / "data.bin").write_bytes(b"\x00" * 512)
    assert scan_directory(tmp_path) == []


def test_scan_missing_directory_raises(tmp_path):
    with pytest.raises(ScanError):
        scan_directory(tmp_path / "does-not-exist")


def test_scan_file_instead_of_directory_raises(tmp_path):
    f = tmp_path / "file.dcm"
    f.write_bytes(b"x")
    with pytest.raises(ScanError):
        scan_directory(f)


def test_scan_error_is_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        scan_directory(tmp_path / "nope")


def test_unreadable_dicom_is_skipped_with_warning(tmp_path, fake_reader, caplog):
    good = tmp_path / "good.dcm"
    bad = tmp_path / "bad.dcm"
    good.write_bytes(b"")
    bad.write_bytes(b"")
    fake_reader.attributes[good] = {
        "SeriesInstanceUID": "1.2.3",
        "Rows": 2,
        "Columns": 3,
    }
    fake_reader.broken.add(bad)

    with caplog.at_level("WARNING", logger="med2vol"):
        series = scan_directory(tmp_path, reader=fake_reader)

    assert len(series) == 1
    assert series[0].file_paths == (good,)
    assert "bad.dcm" in caplog.text


def test_file_without_series_uid_is_skipped(tmp_path, fake_reader):
    path = tmp_path / "anon.dcm"
    path.write_bytes(b"")
    fake_reader.attributes[path] = {"Rows": 2, "Columns": 3}
    assert scan_directory(tmp_path, reader=fake_reader) == []


def test_defaults_for_missing_spacing_and_thickness(tmp_path, fake_reader):
    path = tmp_path / "x.dcm"
    path.write_bytes(b"")
    fake_reader.attributes[path] = {"SeriesInstanceUID": "9.9", "Rows": 4, "Columns": 4}
    (s,) = scan_directory(tmp_path, reader=fake_reader)
    assert s.pixel_spacing == (1.0, 1.0)
    assert s.slice_thickness == 1.0
    assert s.modality == ""


@pytest.mark.parametrize("workers", [1, 3])
def test_scan_result_independent_of_workers(dicom_multi_series_directory, workers):
    series = scan_directory(dicom_multi_series_directory, workers=workers)
    assert [(s.description, s.slice_count) for s in series] == [("Abdomen", 4), ("Axial", 6)]
    for s in series:
        assert list(s.file_paths) == sorted(s.file_paths)


def test_descriptor_validity():
    assert not SeriesDescriptor(series_uid="").is_valid()
    assert not SeriesDescriptor(series_uid="1", rows=2, columns=2).is_valid()
    assert SeriesDescriptor(series_uid="1", rows=2, columns=2, slice_count=1).is_valid()
    assert isinstance(SeriesDescriptor(series_uid="1").file_paths, tuple)


def test_malformed_pixel_spacing_does_not_abort_scan(tmp_path, write_dicom, corrupt_spacing):
    uid = generate_uid()
    paths = [tmp_path / f"s{i}.dcm" for i in range(3)]
    for i, path in enumerate(paths):
        write_dicom(path, series_uid=uid, position=(0, 0, float(i)))
    corrupt_spacing(paths[2])

    (s,) = scan_directory(tmp_path)

    assert s.series_uid == uid
    assert set(paths[:2]) <= set(s.file_paths)
    assert s.pixel_spacing == pytest.approx((0.5, 0.75))


@pytest.mark.parametrize("spacing", [["a.5", "0.75"], [0.0, 0.0], [-1.0, 0.5], ["1.0"]])
def test_unusable_pixel_spacing_falls_back(tmp_path, fake_reader, spacing):
    path = tmp_path / "x.dcm"
    path.write_bytes(b"")
    fake_reader.attributes[path] = {
        "SeriesInstanceUID": "9.9",
        "Rows": 4,
        "Columns": 4,
        "PixelSpacing": spacing,
    }
    (s,) = scan_directory(tmp_path, reader=fake_reader)
    assert s.pixel_spacing == (1.0, 1.0)
