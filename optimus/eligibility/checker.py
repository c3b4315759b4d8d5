"""Eligibility checker — asks the server whether a submission may proceed.

GET {server}/check?competition={id}
    -> {submission_approved, required_format, remaining_attempts,
        last_submission_by_user, competition_name}

Error mapping:
  transport failure / timeout  -> NetworkError
  non-2xx status               -> ServerRejected (status + body)
  body not matching the shape  -> ProtocolError

A "not approved" answer is returned as a normal EligibilityDecision.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

from optimus.core.errors import NetworkError, ProtocolError, ServerRejected
from optimus.core.http import bearer_headers, client_scope, is_success
from optimus.eligibility.types import (
    CheckResponse,
    Competition,
    CompetitionsResponse,
    EligibilityDecision,
)

logger = logging.getLogger(__name__)

CHECK_PATH = "/check"
COMPETITIONS_PATH = "/competitions"

# Seconds; exceeding it is reported as a NetworkError like any transport failure
CHECK_TIMEOUT = 10.0


def check_eligibility(
    server_url: str,
    api_key: str,
    competition_id: Optional[str] = None,
    client: Optional[httpx.Client] = None,
    timeout: float = CHECK_TIMEOUT,
) -> EligibilityDecision:
    """Query /check and interpret the answer.

    Args:
        server_url: Base URL, e.g. "http://localhost:3000".
        api_key: Sent as a Bearer token.
        competition_id: Passed as the "competition" query parameter when set.
        client: Optional pre-built client (tests inject a MockTransport).
        timeout: Request timeout in seconds.

    Returns:
        EligibilityDecision. approved is True only if the server approves
        and reports at least one remaining attempt.
    """
    params = {"competition": competition_id} if competition_id else None
    body = _get_json(server_url, CHECK_PATH, api_key, params, client, timeout)
    parsed = _parse(CheckResponse, body, CHECK_PATH)

    server_approved = (
        parsed.submission_approved
        if parsed.submission_approved is not None
        else True
    )
    decision = EligibilityDecision(
        approved=server_approved and parsed.remaining_attempts > 0,
        required_format=parsed.required_format,
        remaining_attempts=parsed.remaining_attempts,
        last_submission_at=parsed.last_submission_by_user,
        competition_name=parsed.competition_name,
    )

    logger.info(
        "Eligibility: approved=%s format=%s remaining=%d last=%s",
        decision.approved,
        decision.required_format,
        decision.remaining_attempts,
        decision.describe_last_submission(),
    )
    return decision


def list_competitions(
    server_url: str,
    api_key: str,
    client: Optional[httpx.Client] = None,
    timeout: float = CHECK_TIMEOUT,
) -> list[Competition]:
    """Return the competitions the server knows about (GET /competitions)."""
    body = _get_json(server_url, COMPETITIONS_PATH, api_key, None, client, timeout)
    parsed = _parse(CompetitionsResponse, body, COMPETITIONS_PATH)
    logger.info("Server lists %d competitions", len(parsed.competitions))
    return parsed.competitions


def _get_json(
    server_url: str,
    path: str,
    api_key: str,
    params: Optional[dict],
    client: Optional[httpx.Client],
    timeout: float,
) -> object:
    url = f"{server_url.rstrip('/')}{path}"

    with client_scope(client, timeout=timeout) as http:
        try:
            response = http.get(
                url,
                params=params,
                headers=bearer_headers(api_key),
                timeout=timeout,
            )
        except httpx.HTTPError as exc:
            raise NetworkError(url, str(exc) or type(exc).__name__, exc) from exc

    if not is_success(response.status_code):
        raise ServerRejected(response.status_code, response.text, url)

    try:
        return response.json()
    except ValueError as exc:
        raise ProtocolError(
            f"{path} returned a non-JSON body: {response.text[:200]!r}"
        ) from exc


def _parse(model: type[BaseModel], body: object, path: str):
    if not isinstance(body, dict):
        raise ProtocolError(f"{path} returned {type(body).__name__}, expected an object")
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise ProtocolError(f"Unexpected {path} response shape: {exc}") from exc
