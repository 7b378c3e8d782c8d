"""scan2webdav: watch a scanner folder, OCR new files and upload them.

Exports:
- app, main: Typer CLI entrypoints (from scan2webdav.cli)
- Config, resolve_server_url: settings (from scan2webdav.config)
- ScanEventHandler, make_observer, scan_directory: watchdog handler, observer and startup scan
- FileJob, JobState, process_file: per-file pipeline (from scan2webdav.job)
- OcrResult, build_command, run_ocr: OCR executable runner
- UploadClient: multipart PUT client (from scan2webdav.upload)
"""

from .cli import app, main  # noqa: F401
from .config import Config, resolve_server_url  # noqa: F401
from .handlers import ScanEventHandler, make_observer, scan_directory  # noqa: F401
from .job import FileJob, JobState, process_file  # noqa: F401
from .ocr import OcrResult, build_command, run_ocr  # noqa: F401
from .upload import UploadClient  # noqa: F401

__all__ = [
    "app",
    "main",
    "Config",
    "resolve_server_url",
    "ScanEventHandler",
    "scan_directory",
    "make_observer",
    "FileJob",
    "JobState",
    "process_file",
    "OcrResult",
    "build_command",
    "run_ocr",
    "UploadClient",
]
