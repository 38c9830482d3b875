import tempfile
from pathlib import Path
from typing import Protocol

import requests
from loguru import logger

from modcatalog.utils.constants import TEMP_DOWNLOAD_NAME
from modcatalog.utils.exception import DownloadError
from modcatalog.utils.retry import RetryConfig, retry_call

DOWNLOAD_CHUNK_SIZE = 64 * 1024
USER_AGENT = "Mozilla/5.0 (compatible; ModCatalog updater)"


class Downloader(Protocol):
    """
    Fetches one page at a time into a fixed temporary file.

    ``fetch`` returns False on any failure that survived the downloader's own
    retries; callers treat that as permanent for the item at hand.
    """

    @property
    def temp_path(self) -> Path: ...

    def fetch(self, url: str) -> bool: ...

    def delete_temp(self) -> None: ...


class RequestsDownloader:
    """
    Downloader built on a ``requests`` session with retries and backoff.

    :param temp_path: Where downloads are written, defaults to a file in the system temp folder
    :param timeout: Seconds before a request times out
    :param retry_config: Retry behaviour for transient HTTP failures
    """

    def __init__(
        self,
        temp_path: Path | None = None,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._temp_path = temp_path or Path(tempfile.gettempdir()) / TEMP_DOWNLOAD_NAME
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    @property
    def temp_path(self) -> Path:
        return self._temp_path

    def fetch(self, url: str) -> bool:
        try:
            self._download(url)
        except DownloadError as e:
            logger.warning(f"Permanent download failure for {url}: {e}")
            self.delete_temp()
            return False
        return True

    def _download(self, url: str) -> None:
        """
        Download ``url`` into the temp file.

        Raises:
            DownloadError: If the download failed after all retries
        """

        @retry_call(config=self.retry_config)
        def _get() -> requests.Response:
            response = self.session.get(url, timeout=self.timeout, stream=True)
            response.raise_for_status()
            return response

        try:
            with _get() as response:
                self._temp_path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._temp_path, "wb") as file:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            file.write(chunk)
        except requests.RequestException as e:
            raise DownloadError(str(e)) from e
        except OSError as e:
            raise DownloadError(f"Could not write {self._temp_path}: {e}") from e

    def delete_temp(self) -> None:
        try:
            self._temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not delete temporary download {self._temp_path}: {e}")
