"""med2vol: assemble single-slice DICOM series into 3D volumes."""

__version__ = "0.1.0"

from med2vol.core.types import SeriesDescriptor, SliceRecord  # noqa: E402
from med2vol.core.volume import Volume  # noqa: E402
from med2vol.io.catalog import scan_directory  # noqa: E402
from med2vol.io.series_loader import load_directory, load_series  # noqa: E402

__all__ = [
    "SeriesDescriptor",
    "SliceRecord",
    "Volume",
    "load_directory",
    "load_series",
    "scan_directory",
]
