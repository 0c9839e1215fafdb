"""Cross-slice consistency checks for one series."""

from __future__ import annotations

from collections.abc import Sequence

from med2vol.core.geometry import ORIENTATION_TOLERANCE, SPACING_TOLERANCE
from med2vol.core.types import SliceRecord
from med2vol.errors import ConsistencyError, SequencingError


def validate_consistency(records: Sequence[SliceRecord]) -> None:
    """Check that every slice matches the first one.

    Dimensions and pixel format must match exactly; orientation and pixel
    spacing must agree within 1e-6. Mixed geometry cannot form one regular
    grid, so the first mismatch rejects the whole series.
    """
    if not records:
        raise SequencingError("No slices to validate")

    first = records[0]
    for i, record in enumerate(records[1:], start=1):
        where = f"slice {i} ({record.path.name})"

        if record.rows != first.rows or record.columns != first.columns:
            raise ConsistencyError(
                f"Slice dimension mismatch at {where}: "
                f"{record.columns}x{record.rows} != {first.columns}x{first.rows}"
            )

        if (
            record.bits_allocated != first.bits_allocated
            or record.bits_stored != first.bits_stored
            or record.signed != first.signed
            or record.samples_per_pixel != first.samples_per_pixel
        ):
            raise ConsistencyError(f"Pixel format mismatch at {where}")

        if any(
            abs(a - b) > ORIENTATION_TOLERANCE
            for a, b in zip(record.orientation, first.orientation)
        ):
            raise ConsistencyError(
                f"Image orientation mismatch at {where}: "
                f"{list(record.orientation)} != {list(first.orientation)}"
            )

        if any(
            abs(a - b) > SPACING_TOLERANCE
            for a, b in zip(record.pixel_spacing, first.pixel_spacing)
        ):
            raise ConsistencyError(
                f"Pixel spacing mismatch at {where}: "
                f"{record.pixel_spacing} != {first.pixel_spacing}"
            )
