"""In-process scanning engine backed by a Python callable."""

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .base import FileSet, ScanEngine, ScannerConfig
from .discovery import find_assemblies

# (root, files, start_files, config) -> report lines, or (lines, success)
ScanFunction = Callable[
    [Path, List[Path], List[Path], ScannerConfig],
    Union[Iterable[str], Tuple[Iterable[str], bool]],
]


class CallableScanEngine(ScanEngine):
    """Engine that calls a scan function in the current process.

    Useful when the scanner is importable as a library, and for tests.
    The function returns the report lines, optionally paired with a success
    flag; the engine writes them to the report file.
    """

    def __init__(self, scan: ScanFunction,
                 discover: Optional[Callable[[Path, Optional[Path]], List[Path]]] = None):
        self.scan = scan
        self.discover = discover or find_assemblies

    def get_files(self, root: Path, config_file: Optional[Path] = None) -> FileSet:
        files = self.discover(root, config_file)
        return FileSet(root=root, files=list(files), start_files=list(files))

    def check(self, root: Path, files: List[Path], start_files: List[Path],
              report_file: Path, config: ScannerConfig) -> bool:
        result = self.scan(root, files, start_files, config)
        success = True
        if isinstance(result, tuple):
            lines, success = result
        else:
            lines = result
        report_file.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return bool(success)
