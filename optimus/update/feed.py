"""Release feed client for `optimus update`.

Queries the latest-release JSON, decides whether it is newer than the
installed version, picks the asset for the host platform and downloads it.
"""

import logging
import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from optimus.core.errors import ArchiveIOError, NetworkError, ProtocolError, ServerRejected
from optimus.core.http import client_scope, is_success, USER_AGENT
from optimus.update.types import ReleaseAsset, ReleaseInfo

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "optimus-submit"

# Asset-name hints per sys.platform value
_PLATFORM_HINTS: dict[str, tuple[str, ...]] = {
    "linux": ("linux",),
    "darwin": ("darwin", "macos", "apple"),
    "win32": ("windows", "win64", "win32"),
}

# Preferred installer extensions per platform, best first
_PLATFORM_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "linux": (".sh", ".tar.gz", ".zip"),
    "darwin": (".pkg", ".sh", ".tar.gz", ".zip"),
    "win32": (".msi", ".exe", ".zip"),
}


def current_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def parse_version(raw: str) -> tuple[int, ...]:
    """Turn "v1.2.10" into (1, 2, 10). Non-numeric suffixes are ignored."""
    parts: list[int] = []
    for chunk in raw.strip().lstrip("vV").split("."):
        match = re.match(r"\d+", chunk)
        if not match:
            break
        parts.append(int(match.group()))
    return tuple(parts)


def is_newer(candidate: str, installed: str) -> bool:
    return parse_version(candidate) > parse_version(installed)


def check_for_update(
    installed_version: str,
    feed_url: str,
    client: Optional[httpx.Client] = None,
) -> Optional[ReleaseInfo]:
    """Return the latest release if it is newer than installed_version, else None."""
    with client_scope(client) as http:
        try:
            response = http.get(
                feed_url,
                headers={
                    "Accept": "application/vnd.github+json",
                    "User-Agent": USER_AGENT,
                },
            )
        except httpx.HTTPError as exc:
            raise NetworkError(feed_url, str(exc) or type(exc).__name__, exc) from exc

    if not is_success(response.status_code):
        raise ServerRejected(response.status_code, response.text, feed_url)

    try:
        release = ReleaseInfo.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise ProtocolError(f"Unexpected release feed response: {exc}") from exc

    if not is_newer(release.version, installed_version):
        logger.info("Up to date: installed %s, latest %s", installed_version, release.version)
        return None

    logger.info("Update available: %s -> %s", installed_version, release.version)
    return release


def select_asset(release: ReleaseInfo, platform: str) -> Optional[ReleaseAsset]:
    """Pick the installer asset for platform (a sys.platform value).

    Assets naming the platform win over generic ones; within each group the
    platform's preferred extension order decides.
    """
    key = "linux" if platform.startswith("linux") else platform
    extensions = _PLATFORM_EXTENSIONS.get(key)
    if not extensions:
        return None

    hints = _PLATFORM_HINTS.get(key, ())
    other_hints = tuple(
        hint for name, values in _PLATFORM_HINTS.items() if name != key for hint in values
    )

    def _named_for(asset: ReleaseAsset, wanted: tuple[str, ...]) -> bool:
        lowered = asset.name.lower()
        return any(hint in lowered for hint in wanted)

    specific = [a for a in release.assets if _named_for(a, hints)]
    generic = [a for a in release.assets if not _named_for(a, hints + other_hints)]

    for group in (specific, generic):
        for ext in extensions:
            for asset in group:
                if asset.name.lower().endswith(ext):
                    return asset
    return None


def download_asset(
    asset: ReleaseAsset,
    dest_dir: Path,
    client: Optional[httpx.Client] = None,
) -> Path:
    """Stream asset into dest_dir and return the written path."""
    dest_dir = Path(dest_dir)
    destination = dest_dir / Path(asset.name).name
    url = asset.browser_download_url

    logger.info("Downloading %s -> %s", url, destination)
    with client_scope(client) as http:
        try:
            with http.stream("GET", url, headers={"User-Agent": USER_AGENT}) as response:
                if not is_success(response.status_code):
                    response.read()
                    raise ServerRejected(response.status_code, response.text, url)
                with destination.open("wb") as handle:
                    for chunk in response.iter_bytes():
                        handle.write(chunk)
        except httpx.HTTPError as exc:
            raise NetworkError(url, str(exc) or type(exc).__name__, exc) from exc
        except OSError as exc:
            raise ArchiveIOError(f"Cannot write {destination}: {exc}", str(destination)) from exc

    return destination
