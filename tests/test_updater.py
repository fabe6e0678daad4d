import asyncio
import json

import pytest

from remote_csv_display_v1.errors import FetchError
from remote_csv_display_v1.security import FetchResponse
from remote_csv_display_v1.updater import check_for_update, compare_versions

MANIFEST_URL = "https://updates.example.com/update.json"


class FakeManifest:
    def __init__(self, body, status_code: int = 200, error=None) -> None:  # type: ignore[no-untyped-def]
        self.text = body if isinstance(body, str) else json.dumps(body)
        self.status_code = status_code
        self.error = error
        self.calls = []

    async def __call__(self, url: str) -> FetchResponse:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return FetchResponse(status_code=self.status_code, text=self.text)


def _manifest(**overrides):  # type: ignore[no-untyped-def]
    manifest = {
        "version": "1.2.0",
        "download_url": "https://updates.example.com/remote-csv-display-1.2.0.zip",
        "sections": {"description": "Adds grouped timeline tabs."},
    }
    manifest.update(overrides)
    return manifest


def test_newer_release_is_reported(public_dns) -> None:
    fetcher = FakeManifest(_manifest())

    info = asyncio.run(check_for_update("1.1.0", MANIFEST_URL, fetch_manifest=fetcher))

    assert info is not None
    assert info.version == "1.2.0"
    assert info.download_url.endswith("1.2.0.zip")
    assert info.description == "Adds grouped timeline tabs."
    assert fetcher.calls == [MANIFEST_URL]


def test_same_or_older_release_is_ignored(public_dns) -> None:
    assert asyncio.run(check_for_update("1.2.0", MANIFEST_URL, fetch_manifest=FakeManifest(_manifest()))) is None
    assert asyncio.run(check_for_update("2.0.0", MANIFEST_URL, fetch_manifest=FakeManifest(_manifest()))) is None


@pytest.mark.parametrize(
    "fetcher",
    [
        FakeManifest(_manifest(download_url="http://updates.example.com/plugin.zip")),
        FakeManifest(_manifest(download_url="https://127.0.0.1/plugin.zip")),
        FakeManifest("{not json"),
        FakeManifest(["1.2.0"]),
        FakeManifest({"version": "1.2.0"}),
        FakeManifest(_manifest(), status_code=404),
        FakeManifest(_manifest(), error=FetchError("boom")),
    ],
)
def test_bad_manifests_mean_no_update(public_dns, fetcher: FakeManifest) -> None:
    assert asyncio.run(check_for_update("1.1.0", MANIFEST_URL, fetch_manifest=fetcher)) is None


def test_plain_http_manifest_is_never_fetched() -> None:
    fetcher = FakeManifest(_manifest())

    assert asyncio.run(check_for_update("1.1.0", "http://updates.example.com/update.json", fetch_manifest=fetcher)) is None
    assert fetcher.calls == []


def test_compare_versions() -> None:
    assert compare_versions("1.1.0", "1.2.0") == -1
    assert compare_versions("1.10.0", "1.9.9") == 1
    assert compare_versions("1.2", "1.2.0") == 0
    assert compare_versions("v1.2.0", "1.2.0") == 0
    assert compare_versions("1.2.0-rc1", "1.2.0") == -1
