from __future__ import annotations

import json
import logging
import re
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx

from .errors import FetchError
from .models import UpdateInfo
from .security import FetchResponse, is_safe_https_url

MANIFEST_TIMEOUT_SECONDS = 10.0

ManifestFetcher = Callable[[str], Awaitable[FetchResponse]]

logger = logging.getLogger("remote_csv_display_v1.updater")

_VERSION_PART = re.compile(r"^(\d+)(.*)$")


async def check_for_update(
    current_version: str,
    manifest_url: str,
    fetch_manifest: Optional[ManifestFetcher] = None,
) -> Optional[UpdateInfo]:
    """Return the advertised release when it is newer than ``current_version``.

    Both the manifest and its download link must be public HTTPS URLs.
    Every failure is logged and reported as "no update".
    """
    if not is_safe_https_url(manifest_url):
        logger.warning("update manifest url rejected: %s", manifest_url)
        return None

    fetcher = fetch_manifest or _fetch_manifest
    try:
        response = await fetcher(manifest_url)
    except (FetchError, httpx.HTTPError) as exc:
        logger.warning("update manifest fetch failed: %s", exc)
        return None

    if response.status_code != 200:
        logger.warning("update manifest fetch failed: status=%s", response.status_code)
        return None

    try:
        manifest = json.loads(response.text)
    except ValueError:
        logger.warning("update manifest is not valid json")
        return None

    if not isinstance(manifest, dict):
        return None

    version = manifest.get("version")
    download_url = manifest.get("download_url")
    if not isinstance(version, str) or not isinstance(download_url, str):
        logger.warning("update manifest is missing version or download_url")
        return None

    if not is_safe_https_url(download_url):
        logger.warning("update download url rejected: %s", download_url)
        return None

    if compare_versions(current_version, version) >= 0:
        return None

    sections = manifest.get("sections")
    description = sections.get("description", "") if isinstance(sections, dict) else ""
    return UpdateInfo(version=version, download_url=download_url, description=str(description))


def compare_versions(left: str, right: str) -> int:
    left_key = _version_key(left)
    right_key = _version_key(right)
    width = max(len(left_key), len(right_key))
    left_key += [(0, 1, "")] * (width - len(left_key))
    right_key += [(0, 1, "")] * (width - len(right_key))
    return (left_key > right_key) - (left_key < right_key)


def _version_key(version: str) -> List[Tuple[int, int, str]]:
    # A suffix such as "-rc1" ranks below the bare number.
    key: List[Tuple[int, int, str]] = []
    for part in version.strip().lstrip("vV").split("."):
        match = _VERSION_PART.match(part)
        if match is None:
            key.append((0, 0, part))
            continue
        number, suffix = match.groups()
        key.append((int(number), 0 if suffix else 1, suffix))
    return key


async def _fetch_manifest(url: str) -> FetchResponse:
    timeout = httpx.Timeout(MANIFEST_TIMEOUT_SECONDS)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as client:
        response = await client.get(url, headers={"Accept": "application/json"})
    return FetchResponse(status_code=response.status_code, text=response.text)
