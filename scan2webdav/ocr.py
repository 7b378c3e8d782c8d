import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .config import Config


@dataclass(frozen=True)
class OcrResult:
    returncode: Optional[int]
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def build_command(ocr_exec: str, ocr_args: str, source: Path, dest: Path) -> List[str]:
    """Return the argument vector ``[exec, *shlex.split(args), source, dest]``.

    Quoting and escaping follow shell rules, but nothing is expanded.
    Raises ValueError on unbalanced quotes.
    """
    return [ocr_exec, *shlex.split(ocr_args), str(source), str(dest)]


def describe_exit(ocr_exec: str, returncode: Optional[int]) -> str:
    if returncode is None:
        return "not started"
    if Path(ocr_exec).name == "ocrmypdf":
        # only pull in the ocrmypdf stack when it is the configured tool
        from ocrmypdf.exceptions import ExitCode

        try:
            return f"exit status {returncode} ({ExitCode(returncode).name})"
        except ValueError:
            pass
    return f"exit status {returncode}"


def run_ocr(config: Config, source: Path, dest: Path) -> OcrResult:
    """Run the OCR executable on ``source``, writing to ``dest``.

    - stdout and stderr are captured together and logged
    - a non-zero exit, a spawn error or bad arguments give a failed OcrResult
    - the output file is not checked; an executable exiting 0 counts as success
    """
    try:
        cmd = build_command(config.ocr_exec, config.ocr_args, source, dest)
    except ValueError as e:
        logging.error(f"Error parsing OCR arguments {config.ocr_args!r}: {e}")
        return OcrResult(None, str(e))

    logging.info(f"Executing {cmd[0]} {cmd[1:]}")
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logging.error(f"Unable to start {config.ocr_exec}: {e}")
        return OcrResult(None, str(e))

    if proc.stdout:
        logging.info(proc.stdout.rstrip())
    return OcrResult(proc.returncode, proc.stdout or "")
