"""Scanning engines for addin-compat.

Provides a unified interface over the binary compatibility scanner:
- External scanner executable (CommandScanEngine)
- In-process Python callable (CallableScanEngine)
"""

from .base import FileSet, ScanEngine, ScannerConfig
from .command import CommandScanEngine
from .inprocess import CallableScanEngine
from .adapter import CompatScanAdapter, ScanResult

__all__ = [
    'FileSet',
    'ScanEngine',
    'ScannerConfig',
    'CommandScanEngine',
    'CallableScanEngine',
    'CompatScanAdapter',
    'ScanResult',
]
