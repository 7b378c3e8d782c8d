from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_OCR_EXEC_NAME = "ocrmypdf"
DEFAULT_OCR_ARGS = (
    "--pdf-renderer sandwich --tesseract-timeout 1800 --rotate-pages "
    "-l eng+deu --deskew --clean --skip-text"
)
DEFAULT_SETTLE_DELAY = 5.0
DEFAULT_UPLOAD_TIMEOUT = 300.0


@dataclass(frozen=True)
class Config:
    """Settings shared by every file job. Built once by the CLI."""

    server_url: str
    server_user: str
    server_pass: str
    watcher_path: Path
    ocr_exec: str
    ocr_args: str = DEFAULT_OCR_ARGS
    settle_delay: float = DEFAULT_SETTLE_DELAY
    temp_root: Optional[Path] = None
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT


def resolve_server_url(template: str, user: str, password: str) -> str:
    """Fill ``{user}`` / ``{pass}`` placeholders in the server URL.

    Raises ValueError when the template is malformed or names an unknown field.
    """
    try:
        return template.format_map({"user": user, "pass": password})
    except KeyError as e:
        raise ValueError(f"unknown placeholder {e} in server URL") from e
    except (AttributeError, IndexError, ValueError) as e:
        raise ValueError(f"malformed server URL template: {e}") from e
