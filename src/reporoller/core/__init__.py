"""Scanning, rendering and estimation for project bundles."""

from reporoller.core.scan import ScanError, scan_files
from reporoller.core.types import FileRecord, ScanResult

__all__ = [
    "FileRecord",
    "ScanError",
    "ScanResult",
    "scan_files",
]
