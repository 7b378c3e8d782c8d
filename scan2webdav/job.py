import logging
import tempfile
import time
from enum import Enum
from pathlib import Path
from typing import Optional

import httpx

from .config import Config
from .ocr import describe_exit, run_ocr
from .upload import UploadClient


class JobState(str, Enum):
    DETECTED = "detected"
    SETTLING = "settling"
    STAGING = "staging"
    TRANSFORMING = "transforming"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FileJob:
    """OCR one file, upload the result and delete the source on success.

    Steps run strictly in order and stop at the first failure:
    settle (only when ``wait``), stage a private temp directory, OCR into it,
    upload, remove the source. The temp directory is removed on every path,
    and the source file is only removed after a 2xx upload response.
    Nothing is remembered between jobs.
    """

    def __init__(
        self, config: Config, in_file: Path, wait: bool, uploader: UploadClient
    ) -> None:
        self.config = config
        self.in_file = in_file
        self.wait = wait
        self.uploader = uploader
        self.temp_dir: Optional[Path] = None
        self.state = JobState.DETECTED

    def _advance(self, state: JobState) -> None:
        logging.debug(f"{self.in_file}: {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> JobState:
        logging.info(f"New file detected: {self.in_file}")
        if self.wait:
            self._advance(JobState.SETTLING)
            time.sleep(max(0.0, self.config.settle_delay))

        logging.info(f"Processing file: {self.in_file}")
        self._advance(JobState.STAGING)
        with tempfile.TemporaryDirectory(
            prefix="ocrmypdf-", dir=self.config.temp_root
        ) as temp_dir:
            self.temp_dir = Path(temp_dir)
            logging.info(f"Temp directory created: {temp_dir}")
            try:
                self._advance(self._transform_and_upload(self.temp_dir))
            finally:
                logging.info(f"Removing temp directory: {temp_dir}")
        return self.state

    def _transform_and_upload(self, temp_dir: Path) -> JobState:
        temp_file = temp_dir / self.in_file.name

        self._advance(JobState.TRANSFORMING)
        result = run_ocr(self.config, self.in_file, temp_file)
        if not result.ok:
            logging.error(
                f"Job failed for {self.in_file}: "
                f"{describe_exit(self.config.ocr_exec, result.returncode)}"
            )
            return JobState.FAILED
        logging.info(f"Job finished successfully for {self.in_file}")

        self._advance(JobState.UPLOADING)
        try:
            response = self.uploader.upload(temp_file)
        except httpx.HTTPError as e:
            logging.error(
                f"Error uploading {temp_file} to {self.uploader.url_for(temp_file)}: {e}"
            )
            return JobState.FAILED
        except OSError as e:
            logging.error(f"Unable to read OCR output {temp_file}: {e}")
            return JobState.FAILED

        if not response.is_success:
            logging.error(f"Upload rejected for {self.in_file}, keeping input")
            return JobState.FAILED

        logging.info(f"Removing input: {self.in_file}")
        try:
            self.in_file.unlink()
        except OSError as e:
            # The document reached the store, so the job still counts as done
            logging.warning(f"Uploaded {self.in_file} but could not remove it: {e}")
        return JobState.SUCCEEDED


def process_file(
    config: Config, in_file: Path, wait: bool, uploader: UploadClient
) -> JobState:
    return FileJob(config, in_file, wait, uploader).run()
