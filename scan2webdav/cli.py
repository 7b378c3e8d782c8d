import time
import shutil
import signal
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import typer

from .config import (
    DEFAULT_OCR_ARGS,
    DEFAULT_OCR_EXEC_NAME,
    DEFAULT_SETTLE_DELAY,
    DEFAULT_UPLOAD_TIMEOUT,
    Config,
    resolve_server_url,
)
from .handlers import ScanEventHandler, make_observer, scan_directory
from .upload import UploadClient


app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.command()
def main(
    server_url: str = typer.Option(
        ...,
        "--server-url",
        help="Upload base URL; {user} and {pass} are replaced by the credentials",
        envvar="SERVER_URL",
    ),
    server_user: str = typer.Option(
        "", "--server-user", help="HTTP Basic auth user", envvar="SERVER_USER"
    ),
    server_pass: str = typer.Option(
        "", "--server-pass", help="HTTP Basic auth password", envvar="SERVER_PASS"
    ),
    watcher_path: Path = typer.Option(
        ...,
        "--watcher-path",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
        help="Folder to watch for incoming scans",
        envvar="WATCHER_PATH",
    ),
    ocr_exec: Optional[str] = typer.Option(
        None,
        "--ocr-exec",
        help=f"OCR executable; defaults to '{DEFAULT_OCR_EXEC_NAME}' from PATH",
        envvar="OCR_EXEC",
    ),
    ocr_args: str = typer.Option(
        DEFAULT_OCR_ARGS,
        "--ocr-args",
        help="Arguments passed before <input> <output>, split with shell quoting rules",
        envvar="OCR_ARGS",
    ),
    settle_delay: float = typer.Option(
        DEFAULT_SETTLE_DELAY,
        "--settle-delay",
        min=0.0,
        help="Seconds to wait after a watch event before processing the file",
        envvar="SETTLE_DELAY",
    ),
    workers: int = typer.Option(
        0,
        "--workers",
        min=0,
        help="Max number of files to process concurrently (0 = no limit)",
        envvar="OCR_WORKERS",
    ),
    temp_dir: Optional[Path] = typer.Option(
        None,
        "--temp-dir",
        exists=True,
        file_okay=False,
        dir_okay=True,
        writable=True,
        help="Parent directory for per-file temp directories",
        envvar="TEMP_DIR",
    ),
    upload_timeout: float = typer.Option(
        DEFAULT_UPLOAD_TIMEOUT,
        "--upload-timeout",
        min=0.0,
        help="HTTP timeout in seconds for one upload",
        envvar="UPLOAD_TIMEOUT",
    ),
    initial_scan: bool = typer.Option(
        True,
        "--initial-scan/--no-initial-scan",
        help="Process files already present at startup",
        envvar="INITIAL_SCAN",
    ),
    use_polling: Optional[bool] = typer.Option(
        None,
        "--poll/--no-poll",
        help="Force polling observer (auto if under /mnt)",
        envvar="WATCHER_POLL",
    ),
    loglevel: str = typer.Option(
        "INFO",
        "--loglevel",
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
        envvar="LOGLEVEL",
    ),
):
    """Watch a folder, OCR every new scan and PUT the result to a WebDAV server.

    - Files present at startup are processed first, without waiting.
    - New files (closed after write or moved in) are processed after --settle-delay.
    - The input file is deleted once the server answered with a 2xx status.
    """
    # Logging
    logging.basicConfig(
        level=getattr(logging, loglevel.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(message)s",
    )

    try:
        upload_url = resolve_server_url(server_url, server_user, server_pass)
    except ValueError as e:
        logging.error(f"Unable to parse url: {e}")
        raise typer.Exit(code=1)

    if not ocr_exec:
        ocr_exec = shutil.which(DEFAULT_OCR_EXEC_NAME)
        if ocr_exec is None:
            logging.error(
                f"No OCR executable configured and '{DEFAULT_OCR_EXEC_NAME}' is not on PATH"
            )
            raise typer.Exit(code=1)

    watcher_path = watcher_path.expanduser().resolve()
    config = Config(
        server_url=upload_url,
        server_user=server_user,
        server_pass=server_pass,
        watcher_path=watcher_path,
        ocr_exec=ocr_exec,
        ocr_args=ocr_args,
        settle_delay=settle_delay,
        temp_root=temp_dir.expanduser().resolve() if temp_dir else None,
        upload_timeout=upload_timeout,
    )

    # Auto-poll under /mnt to avoid inotify issues
    if use_polling is None:
        use_polling = str(watcher_path).startswith("/mnt/")

    logging.info(f"Upload-URL: {config.server_url}")
    logging.info(f"OCR: {config.ocr_exec} {config.ocr_args}")
    logging.info(f"Observer: {'Polling' if use_polling else 'Inotify'}")
    if workers:
        logging.info(f"Concurrency -> workers: {workers}")
    else:
        logging.warning(
            "Concurrency -> no limit; a burst of new files starts one OCR process each"
        )

    executor = (
        ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ocr-worker")
        if workers
        else None
    )
    uploader = UploadClient(
        config.server_url,
        config.server_user,
        config.server_pass,
        timeout=config.upload_timeout,
    )
    handler = ScanEventHandler(config, uploader, executor, use_polling)

    # docker stop sends SIGTERM; shut down like on Ctrl-C
    previous_sigterm = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        _serve(config, handler, initial_scan)
    except KeyboardInterrupt:
        logging.info("Stopping watcher...")
    finally:
        signal.signal(signal.SIGTERM, previous_sigterm or signal.SIG_DFL)
        if executor is not None:
            executor.shutdown(wait=True)
        handler.join()
        uploader.close()


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def _serve(config: Config, handler: ScanEventHandler, initial_scan: bool) -> None:
    # Process existing files first
    if initial_scan:
        logging.info("Processing old files first")
        scan_directory(config, handler.uploader)

    observer = make_observer(handler.use_polling)
    try:
        observer.schedule(
            handler,
            str(config.watcher_path),
            recursive=False,
            event_filter=handler.event_filter(),
        )
        observer.start()
    except OSError as e:
        logging.error(f"Unable to watch {config.watcher_path}: {e}")
        raise typer.Exit(code=1)
    logging.info(f"Watching: {config.watcher_path}")

    try:
        while True:
            time.sleep(1.0)
    finally:
        observer.stop()
        observer.join()


if __name__ == "__main__":
    app()
