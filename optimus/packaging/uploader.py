"""Archive uploader — sends the built archive to POST {server}/submit.

The upload flow:
1. Read the archive fully into memory (failure: ArchiveIOError, archive kept)
2. POST multipart: "file" (application/zip) + optional "competition" text
3. Once the server has answered, delete the local archive whatever the
   status was; a transport failure leaves it in place
4. Non-2xx raises ServerRejected with status and body

No timeout is applied to the upload.
"""

import logging
from pathlib import Path
from typing import Optional

import httpx

from optimus.core.errors import ArchiveIOError, NetworkError, ServerRejected
from optimus.core.http import bearer_headers, client_scope, is_success
from optimus.packaging.types import ARCHIVE_CONTENT_TYPE, ArchiveArtifact, UploadResult

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/submit"


def upload_archive(
    artifact: ArchiveArtifact,
    api_key: str,
    server_url: str,
    competition_id: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> UploadResult:
    """Upload artifact and return the server's confirmation.

    Raises:
        ArchiveIOError: The archive could not be read. Nothing was sent.
        NetworkError: The request could not be completed.
        ServerRejected: The server answered with a non-success status.
    """
    try:
        content = artifact.path.read_bytes()
    except OSError as exc:
        raise ArchiveIOError(
            f"Cannot read archive {artifact.path}: {exc}", str(artifact.path)
        ) from exc

    url = f"{server_url.rstrip('/')}{SUBMIT_PATH}"
    files = {"file": (artifact.filename, content, ARCHIVE_CONTENT_TYPE)}
    data = {"competition": competition_id} if competition_id else None

    logger.info("Uploading %s (%d bytes) to %s", artifact.filename, len(content), url)

    with client_scope(client, timeout=None) as http:
        try:
            response = http.post(
                url,
                headers=bearer_headers(api_key),
                files=files,
                data=data,
            )
        except httpx.HTTPError as exc:
            raise NetworkError(url, str(exc) or type(exc).__name__, exc) from exc

    # The server answered: remove the archive regardless of status.
    _discard(artifact.path)

    if not is_success(response.status_code):
        logger.error("Upload rejected: %s %s", response.status_code, response.text)
        raise ServerRejected(response.status_code, response.text, url)

    result = UploadResult(
        status_code=response.status_code,
        body=response.text,
        data=_json_or_empty(response),
    )
    logger.info("Upload accepted (%d)", response.status_code)
    return result


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete archive %s: %s", path, exc)


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
