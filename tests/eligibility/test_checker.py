"""Tests for the /check and /competitions client.

Requests are served by httpx.MockTransport so no network is touched.
"""

import httpx
import pytest

from optimus.core.errors import NetworkError, ProtocolError, ServerRejected
from optimus.eligibility.checker import CHECK_TIMEOUT, check_eligibility, list_competitions


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _check_body(**overrides) -> dict:
    body = {
        "submission_approved": True,
        "required_format": "py",
        "remaining_attempts": 3,
        "last_submission_by_user": None,
        "competition_name": "Demo Competition",
    }
    body.update(overrides)
    return body


class TestCheckEligibility:
    def test_sends_auth_and_competition_query(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=_check_body())

        check_eligibility("http://server:3000", "key-1", "competition-456", client=_client(handler))

        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/check"
        assert request.url.params["competition"] == "competition-456"
        assert request.headers["Authorization"] == "Bearer key-1"

    def test_no_query_without_competition(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json=_check_body())

        check_eligibility("http://server", "k", client=_client(handler))
        assert "competition" not in seen["url"].params

    def test_approved_decision(self):
        decision = check_eligibility(
            "http://server", "k",
            client=_client(lambda r: httpx.Response(200, json=_check_body())),
        )

        assert decision.approved is True
        assert decision.required_format == "py"
        assert decision.remaining_attempts == 3
        assert decision.competition_name == "Demo Competition"
        assert decision.last_submission_at is None

    def test_server_disapproval(self):
        body = _check_body(submission_approved=False)
        decision = check_eligibility(
            "http://server", "k", client=_client(lambda r: httpx.Response(200, json=body)),
        )
        assert decision.approved is False

    def test_zero_attempts_not_approved(self):
        body = _check_body(remaining_attempts=0)
        decision = check_eligibility(
            "http://server", "k", client=_client(lambda r: httpx.Response(200, json=body)),
        )
        assert decision.approved is False

    def test_missing_approval_flag_follows_attempts(self):
        body = _check_body()
        del body["submission_approved"]
        decision = check_eligibility(
            "http://server", "k", client=_client(lambda r: httpx.Response(200, json=body)),
        )
        assert decision.approved is True

    def test_last_submission_parsed(self):
        body = _check_body(last_submission_by_user=1_700_000_000)
        decision = check_eligibility(
            "http://server", "k", client=_client(lambda r: httpx.Response(200, json=body)),
        )
        assert decision.last_submission_at == 1_700_000_000
        assert decision.seconds_since_last_submission(now=1_700_000_090) == 90

    def test_unknown_format_passed_through_raw(self):
        """Format validation belongs to the orchestrator, not the checker."""
        body = _check_body(required_format="tarball")
        decision = check_eligibility(
            "http://server", "k", client=_client(lambda r: httpx.Response(200, json=body)),
        )
        assert decision.required_format == "tarball"

    def test_server_error_raises_rejected(self):
        with pytest.raises(ServerRejected) as exc_info:
            check_eligibility(
                "http://server", "k",
                client=_client(lambda r: httpx.Response(500, text="boom")),
            )
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    def test_auth_failure_raises_rejected(self):
        with pytest.raises(ServerRejected) as exc_info:
            check_eligibility(
                "http://server", "bad",
                client=_client(lambda r: httpx.Response(403, json={"error": "Invalid API key"})),
            )
        assert exc_info.value.status_code == 403

    def test_non_json_body_raises_protocol_error(self):
        with pytest.raises(ProtocolError):
            check_eligibility(
                "http://server", "k",
                client=_client(lambda r: httpx.Response(200, text="<html>hi</html>")),
            )

    def test_missing_field_raises_protocol_error(self):
        body = _check_body()
        del body["required_format"]
        with pytest.raises(ProtocolError):
            check_eligibility(
                "http://server", "k", client=_client(lambda r: httpx.Response(200, json=body)),
            )

    def test_list_body_raises_protocol_error(self):
        with pytest.raises(ProtocolError):
            check_eligibility(
                "http://server", "k", client=_client(lambda r: httpx.Response(200, json=[1, 2])),
            )

    def test_connect_error_raises_network_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(NetworkError):
            check_eligibility("http://server", "k", client=_client(handler))

    def test_timeout_surfaces_as_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkError):
            check_eligibility("http://server", "k", client=_client(handler))

    def test_request_carries_ten_second_timeout(self):
        seen = {}

        def handler(request):
            seen["timeout"] = request.extensions.get("timeout")
            return httpx.Response(200, json=_check_body())

        check_eligibility("http://server", "k", client=_client(handler))

        assert CHECK_TIMEOUT == 10.0
        assert seen["timeout"]["read"] == 10.0


class TestListCompetitions:
    def test_parses_competitions(self):
        body = {
            "competitions": [
                {"id": "competition-123", "name": "Demo Competition", "max_attempts": 3},
                {"id": "competition-456", "name": "Advanced Competition", "max_attempts": 5},
            ]
        }
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(200, json=body)

        competitions = list_competitions("http://server", "k", client=_client(handler))

        assert seen["path"] == "/competitions"
        assert [c.id for c in competitions] == ["competition-123", "competition-456"]
        assert competitions[1].max_attempts == 5

    def test_rejected(self):
        with pytest.raises(ServerRejected):
            list_competitions(
                "http://server", "k", client=_client(lambda r: httpx.Response(401, text="no")),
            )
