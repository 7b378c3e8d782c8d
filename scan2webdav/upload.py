import logging
from pathlib import Path
from typing import Optional

import httpx

from .utils import short_body


class UploadClient:
    """PUT finished files to the document store.

    One client is shared by all jobs; httpx.Client is safe to use from
    several threads.
    """

    def __init__(
        self,
        base_url: str,
        user: str,
        password: str,
        timeout: float = 300.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.Client(
            auth=httpx.BasicAuth(user, password),
            timeout=timeout,
            transport=transport,
        )

    def url_for(self, path: Path) -> str:
        return self.base_url + "/" + path.name

    def upload(self, path: Path) -> httpx.Response:
        """Send ``path`` as the multipart field "file" and return the response.

        No retry and no validation of the response body. Transport errors
        (httpx.HTTPError) and read errors (OSError) propagate to the caller.
        """
        url = self.url_for(path)
        with path.open("rb") as fh:
            response = self._client.put(url, files={"file": (path.name, fh)})

        logging.info(
            f"Upload result for {path}: {response.status_code} {response.reason_phrase}"
        )
        if not response.is_success:
            logging.warning(short_body(response.text))
        return response

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "UploadClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
