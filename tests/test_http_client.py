"""Tests for the requests-backed HTTP helpers and transport."""
from unittest.mock import patch

import pytest
import requests

from common import http_client
from common.http_client import RequestsTransport, safe_get, safe_head
from constants import Constants, ExitCodes

from conftest import make_response


@patch("common.http_client.requests.request")
def test_safe_get_passes_timeout_and_headers(mock_request):
    mock_request.return_value = make_response(200, "ok")
    res = safe_get("https://repo.example.com/x", context="maven", headers={"A": "b"})
    assert res.text == "ok"
    mock_request.assert_called_once_with(
        "GET", "https://repo.example.com/x", headers={"A": "b"}, timeout=Constants.REQUEST_TIMEOUT
    )


@patch("common.http_client.requests.request")
def test_safe_head_follows_redirects(mock_request):
    mock_request.return_value = make_response(200)
    safe_head("https://repo.example.com/x", context="maven")
    assert mock_request.call_args.kwargs["allow_redirects"] is True
    assert mock_request.call_args.args[0] == "HEAD"


@patch("common.http_client.requests.request", side_effect=requests.Timeout("slow"))
def test_fatal_timeout_exits(_mock_request):
    with pytest.raises(SystemExit) as exc_info:
        safe_get("https://repo.example.com/x", context="maven")
    assert exc_info.value.code == ExitCodes.CONNECTION_ERROR.value


@patch("common.http_client.requests.request", side_effect=requests.ConnectionError("refused"))
def test_non_fatal_reraises(_mock_request):
    with pytest.raises(requests.ConnectionError):
        safe_get("https://repo.example.com/x", context="maven", fatal=False)


class TestRequestsTransport:
    """Retry behavior."""

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_retries_transient_errors(self, mock_request, mock_sleep):
        mock_request.side_effect = [requests.ConnectionError("reset"), make_response(200, "body")]
        res = RequestsTransport(retries=3, backoff=0.1).get("https://repo.example.com/x")
        assert res.text == "body"
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once_with(0.1)

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request", side_effect=requests.Timeout("slow"))
    def test_raises_after_exhausting_retries(self, mock_request, mock_sleep):
        with pytest.raises(requests.Timeout):
            RequestsTransport(retries=3, backoff=0.1).head("https://repo.example.com/x")
        assert mock_request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.1, 0.2]

    @patch("common.http_client.requests.request")
    def test_http_errors_are_not_retried(self, mock_request):
        mock_request.return_value = make_response(503)
        res = RequestsTransport(retries=3).get("https://repo.example.com/x", headers={"Authorization": "t"})
        assert res.status_code == 503
        assert mock_request.call_count == 1
        assert mock_request.call_args.kwargs["headers"] == {"Authorization": "t"}

    def test_defaults_from_constants(self):
        transport = RequestsTransport()
        assert transport.retries == Constants.HTTP_RETRY_MAX
        assert transport.backoff == Constants.HTTP_RETRY_BASE_DELAY_SEC
        assert http_client.RequestsTransport is RequestsTransport

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request", side_effect=requests.ConnectionError("refused"))
    def test_zero_retries_still_makes_one_attempt(self, mock_request, mock_sleep):
        transport = RequestsTransport(retries=0)
        assert transport.retries == 1
        with pytest.raises(requests.ConnectionError):
            transport.get("https://repo.example.com/x")
        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()
