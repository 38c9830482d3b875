from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from modcatalog.utils.downloader import RequestsDownloader
from modcatalog.utils.retry import RetryConfig


def fake_response(chunks: list[bytes]) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.__enter__.return_value = response
    response.iter_content.return_value = chunks
    response.raise_for_status.return_value = None
    return response


def test_fetch_writes_temp_file(tmp_path: Path) -> None:
    downloader = RequestsDownloader(temp_path=tmp_path / "page.tmp")

    with patch.object(
        downloader.session, "get", return_value=fake_response([b"<html>", b"", b"</html>"])
    ) as mock_get:
        assert downloader.fetch("https://steamcommunity.com/page")

    assert downloader.temp_path.read_bytes() == b"<html></html>"
    assert mock_get.call_args.kwargs["timeout"] == 30.0


@patch("modcatalog.utils.retry.time.sleep")
def test_fetch_returns_false_after_retries(mock_sleep: MagicMock, tmp_path: Path) -> None:
    downloader = RequestsDownloader(
        temp_path=tmp_path / "page.tmp", retry_config=RetryConfig(max_retries=1)
    )
    downloader.temp_path.write_text("stale")

    with patch.object(
        downloader.session, "get", side_effect=requests.ConnectionError("down")
    ) as mock_get:
        assert not downloader.fetch("https://steamcommunity.com/page")

    assert mock_get.call_count == 2
    assert not downloader.temp_path.exists()


def test_delete_temp_without_file(tmp_path: Path) -> None:
    downloader = RequestsDownloader(temp_path=tmp_path / "missing.tmp")
    downloader.delete_temp()
    assert not downloader.temp_path.exists()
