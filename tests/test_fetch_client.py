from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from meteo.errors import ErrorCode, ProviderError
from meteo.http.client import FetchClient, RequestConfig, classify_status


URL = "https://api.test/data"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.mark.parametrize(
    "status,code",
    [
        (200, None),
        (401, ErrorCode.INVALID_API_KEY),
        (403, ErrorCode.INVALID_API_KEY),
        (404, ErrorCode.NOT_FOUND),
        (429, ErrorCode.RATE_LIMITED),
        (503, ErrorCode.PROVIDER_ERROR),
        (418, ErrorCode.UNKNOWN),
    ],
)
def test_classify_status(status, code):
    assert classify_status(status) is code


def test_returns_json_and_cache_flag(requests_mock):
    requests_mock.get(URL, json={"ok": True}, headers={"X-Cache": "hit"})

    result = FetchClient().fetch(URL)

    assert result.data == {"ok": True}
    assert result.cached is True


def test_retries_with_exponential_backoff(requests_mock):
    requests_mock.get(
        URL,
        [
            {"status_code": 500},
            {"status_code": 429},
            {"json": [1, 2, 3]},
        ],
    )
    sleep = SleepRecorder()
    client = FetchClient(config=RequestConfig(retries=2, retry_delay=1.0), sleep=sleep)

    result = client.fetch(URL, provider="xema-transparencia")

    assert result.data == [1, 2, 3]
    assert sleep.delays == [1.0, 2.0]
    assert requests_mock.call_count == 3


def test_gives_up_after_last_attempt(requests_mock):
    requests_mock.get(URL, status_code=502)
    sleep = SleepRecorder()
    client = FetchClient(config=RequestConfig(retries=1, retry_delay=0.5), sleep=sleep)

    with pytest.raises(ProviderError) as excinfo:
        client.fetch(URL, provider="meteocat")

    assert excinfo.value.code is ErrorCode.PROVIDER_ERROR
    assert excinfo.value.provider == "meteocat"
    assert excinfo.value.details["status"] == 502
    assert requests_mock.call_count == 2
    assert sleep.delays == [0.5]


@pytest.mark.parametrize("status", [401, 404])
def test_client_errors_are_not_retried(requests_mock, status):
    requests_mock.get(URL, status_code=status)
    sleep = SleepRecorder()

    with pytest.raises(ProviderError):
        FetchClient(sleep=sleep).fetch(URL)

    assert requests_mock.call_count == 1
    assert sleep.delays == []


def test_timeout_is_classified(requests_mock, fetch_client):
    requests_mock.get(URL, exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ProviderError) as excinfo:
        fetch_client.fetch(URL)

    assert excinfo.value.code is ErrorCode.TIMEOUT
    assert requests_mock.call_count == 3


def test_connection_error_is_network_error(requests_mock, fetch_client):
    requests_mock.get(URL, exc=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(ProviderError) as excinfo:
        fetch_client.fetch(URL)

    assert excinfo.value.code is ErrorCode.NETWORK_ERROR


def test_invalid_json_is_provider_error(requests_mock, fetch_client):
    requests_mock.get(URL, text="<html>maintenance</html>")

    with pytest.raises(ProviderError) as excinfo:
        fetch_client.fetch(URL)

    assert excinfo.value.code is ErrorCode.PROVIDER_ERROR


def test_sends_params_and_headers(requests_mock):
    requests_mock.get(URL, json=[])

    FetchClient().fetch(URL, params={"estat": "ope"}, headers={"X-Api-Key": "secret"})

    request = requests_mock.last_request
    assert request.qs == {"estat": ["ope"]}
    assert request.headers["X-Api-Key"] == "secret"


class TrickleHandler(BaseHTTPRequestHandler):
    """Answers with a small JSON body, one byte every 0.4 s."""

    body = b"[1]       "

    def do_GET(self):  # noqa: N802
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        try:
            for byte in self.body:
                self.wfile.write(bytes([byte]))
                self.wfile.flush()
                time.sleep(0.4)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):  # noqa: A002
        pass


@pytest.fixture
def trickle_url():
    server = ThreadingHTTPServer(("127.0.0.1", 0), TrickleHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}/slow"
    finally:
        server.shutdown()
        server.server_close()


def test_timeout_bounds_the_whole_download(trickle_url):
    client = FetchClient(config=RequestConfig(timeout=1.0, retries=0))

    started = time.monotonic()
    with pytest.raises(ProviderError) as excinfo:
        client.fetch(trickle_url, provider="xema-transparencia")
    elapsed = time.monotonic() - started

    assert excinfo.value.code is ErrorCode.TIMEOUT
    assert excinfo.value.provider == "xema-transparencia"
    assert elapsed < 2.0


def test_slow_body_counts_as_one_attempt_per_retry(trickle_url):
    sleep = SleepRecorder()
    client = FetchClient(config=RequestConfig(timeout=0.5, retries=1, retry_delay=0.25), sleep=sleep)

    with pytest.raises(ProviderError) as excinfo:
        client.fetch(trickle_url)

    assert excinfo.value.code is ErrorCode.TIMEOUT
    assert sleep.delays == [0.25]
