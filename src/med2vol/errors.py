"""Exception hierarchy for the series loading pipeline."""

from __future__ import annotations


class Med2VolError(Exception):
    """Base class for all med2vol errors."""


class ScanError(Med2VolError, FileNotFoundError):
    """The scan root is missing, not a directory, or holds no usable series."""


class AttributeReadError(Med2VolError, ValueError):
    """A single file could not be opened or its attributes decoded.

    Recoverable: the file is skipped and the scan or load continues.
    """

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ConsistencyError(Med2VolError, ValueError):
    """Slices of one series disagree on dimensions, format or geometry."""


class SequencingError(Med2VolError, ValueError):
    """The series is empty or too degenerate to order."""


class FormatError(Med2VolError, ValueError):
    """Pixel data uses an unsupported bit depth or layout."""


class BufferOverflowError(Med2VolError, ValueError):
    """A slice copy would fall outside the volume buffer."""
