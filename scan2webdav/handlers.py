import os
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Type

from watchdog.events import (
    FileClosedEvent,
    FileCreatedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers.api import BaseObserver
from watchdog.observers.inotify import InotifyObserver
from watchdog.observers.polling import PollingObserver

from .config import Config
from .job import process_file
from .upload import UploadClient
from .utils import is_within


def make_observer(use_polling: bool) -> BaseObserver:
    """Observer for the watched directory.

    inotify runs with full move events, so a file moved in from another
    directory is reported as a move with an empty source path instead of a
    plain creation.
    """
    if use_polling:
        return PollingObserver()
    return InotifyObserver(generate_full_events=True)


def scan_directory(config: Config, uploader: UploadClient) -> int:
    """Process every file already present in the watched directory.

    Runs in the foreground, one file after the other, without the settle
    wait. Sub-directories are skipped; an entry that cannot be inspected is
    logged and the sweep moves on. Returns the number of jobs run.
    """
    count = 0
    with os.scandir(config.watcher_path) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        try:
            if entry.is_dir():
                continue
        except OSError as e:
            logging.error(f"Unable to inspect {entry.path}: {e}")
            continue
        process_file(config, Path(entry.path), False, uploader)
        count += 1
    return count


class ScanEventHandler(FileSystemEventHandler):
    """Launch a file job for every file written or moved into the watched dir.

    Jobs are fire-and-forget. With an executor they share its bounded pool,
    otherwise each job gets its own thread.
    """

    def __init__(
        self,
        config: Config,
        uploader: UploadClient,
        executor: Optional[ThreadPoolExecutor] = None,
        use_polling: bool = False,
    ) -> None:
        super().__init__()
        self.config = config
        self.uploader = uploader
        self.executor = executor
        self.use_polling = use_polling
        self._lock = threading.Lock()
        self._threads = set()
        self._counter = 0

    def submit_path(self, path: Path) -> None:
        if not is_within(path, self.config.watcher_path):
            logging.debug(f"Ignoring event outside watched directory: {path}")
            return

        def _task():
            try:
                process_file(self.config, path, True, self.uploader)
            except Exception:
                logging.exception(f"Unexpected error while processing {path}")
            finally:
                with self._lock:
                    self._threads.discard(threading.current_thread())

        if self.executor is not None:
            self.executor.submit(_task)
            return

        with self._lock:
            self._counter += 1
            thread = threading.Thread(target=_task, name=f"job-{self._counter}")
            self._threads.add(thread)
        thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for jobs started on their own thread."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)

    def on_closed(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self.submit_path(Path(os.fsdecode(event.src_path)))

    def event_filter(self) -> List[Type[FileSystemEvent]]:
        """Event types to subscribe to: close-after-write and moved-into.

        Under inotify this is the IN_CLOSE_WRITE | IN_MOVE mask; creation is
        only added for the polling observer.
        """
        events: List[Type[FileSystemEvent]] = [FileClosedEvent, FileMovedEvent]
        if self.use_polling:
            events.append(FileCreatedEvent)
        return events

    def on_moved(self, event: FileSystemEvent) -> None:
        # An empty destination means the file was moved out of the directory
        if event.is_directory or not event.dest_path:
            return
        # Only the destination matters: the file was renamed or moved in
        self.submit_path(Path(os.fsdecode(event.dest_path)))

    def on_created(self, event: FileSystemEvent) -> None:
        # The polling observer never reports close events
        if not self.use_polling or event.is_directory:
            return
        self.submit_path(Path(os.fsdecode(event.src_path)))
