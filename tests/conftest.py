import sys
import textwrap
from pathlib import Path

import httpx
import pytest

from scan2webdav.config import Config
from scan2webdav.upload import UploadClient


FAKE_OCR = textwrap.dedent(
    """
    import argparse
    import shutil
    import sys
    import uuid
    from pathlib import Path

    parser = argparse.ArgumentParser()
    parser.add_argument("--exit", type=int, default=0)
    parser.add_argument("--record")
    parser.add_argument("src")
    parser.add_argument("dst")
    args = parser.parse_args()

    if args.exit:
        print("simulated OCR failure")
        sys.exit(args.exit)

    shutil.copyfile(args.src, args.dst)
    if args.record:
        Path(args.record, uuid.uuid4().hex).write_text(args.dst)
    print("copied", args.src)
    """
)


@pytest.fixture
def watched(tmp_path: Path) -> Path:
    path = tmp_path / "inbox"
    path.mkdir()
    return path


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def fake_ocr(tmp_path: Path) -> Path:
    script = tmp_path / "fake_ocr.py"
    script.write_text(FAKE_OCR)
    return script


@pytest.fixture
def make_config(watched: Path, temp_root: Path, fake_ocr: Path):
    def _make(ocr_args: str = "", **kwargs) -> Config:
        values = dict(
            server_url="https://dav.example/remote.php/dav/files/alice",
            server_user="alice",
            server_pass="secret",
            watcher_path=watched,
            ocr_exec=sys.executable,
            ocr_args=f"{fake_ocr} {ocr_args}".strip(),
            settle_delay=0.0,
            temp_root=temp_root,
        )
        values.update(kwargs)
        return Config(**values)

    return _make


class Recorder:
    """MockTransport handler that answers with a fixed status."""

    def __init__(self, status_code: int = 200, body: str = "", temp_root: Path = None):
        self.status_code = status_code
        self.body = body
        self.temp_root = temp_root
        self.requests = []
        self.temp_dirs_seen = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self.temp_root is not None:
            self.temp_dirs_seen.append(sorted(p.name for p in self.temp_root.iterdir()))
        return httpx.Response(self.status_code, text=self.body)


@pytest.fixture
def make_uploader():
    clients = []

    def _make(handler, config: Config) -> UploadClient:
        client = UploadClient(
            config.server_url,
            config.server_user,
            config.server_pass,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def make_recorder():
    return Recorder
