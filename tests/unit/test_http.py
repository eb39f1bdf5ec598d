"""
Unit tests for the Tekton HTTP client.

Tests URL building, auth header wiring and error mapping without a
running cluster.
"""

import logging

import httpx
import pytest

from tekton_watch.config import WatchConfig
from tekton_watch.errors import DecodeError, HTTPError, TransportError
from tekton_watch.http import TektonClient


def client_for(handler, **config_kwargs) -> TektonClient:
    config = WatchConfig(api="http://tekton-a:9097", namespace="ci", **config_kwargs)
    return TektonClient(config, transport=httpx.MockTransport(handler))


class TestURLs:
    """Test request URLs."""

    def setup_method(self):
        self.client = TektonClient(WatchConfig(namespace="ci"))

    def teardown_method(self):
        self.client.close()

    def test_pipeline_runs_url(self):
        url = self.client.pipeline_runs_url("http://tekton-a:9097/", "abc-123")
        assert url == (
            "http://tekton-a:9097/apis/tekton.dev/v1beta1/namespaces/ci/pipelineruns/"
            "?labelSelector=triggers.tekton.dev%2Ftriggers-eventid%3Dabc-123"
        )

    def test_task_runs_url(self):
        url = self.client.task_runs_url("http://tekton-a:9097", "build-x7k2p")
        assert url == (
            "http://tekton-a:9097/apis/tekton.dev/v1beta1/namespaces/ci/taskruns/"
            "?labelSelector=tekton.dev%2FpipelineRun%3Dbuild-x7k2p"
        )

    def test_pod_log_url(self):
        url = self.client.pod_log_url("http://tekton-a:9097", "build-pod", "step-compile")
        assert url == "http://tekton-a:9097/api/v1/namespaces/ci/pods/build-pod/log?container=step-compile"


class TestAuthHeaders:
    """Test authentication header generation."""

    def test_auth_headers(self):
        client = TektonClient(WatchConfig(jwt="test-token"))
        headers = client._get_headers()
        assert headers["Authorization"] == "Bearer test-token"
        assert headers["x-mesh-sso"] == "test-token"

    def test_no_auth_headers(self):
        client = TektonClient(WatchConfig())
        assert client._get_headers() == {}

    def test_token_redacted_in_debug_log(self, caplog):
        caplog.set_level(logging.DEBUG, logger="tekton_watch.http")

        TektonClient(WatchConfig(jwt="abcdefghijklmnop")).close()

        assert "abcd...mnop" in caplog.text
        assert "abcdefghijklmnop" not in caplog.text

    def test_headers_sent_with_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"items": []})

        client = client_for(handler, jwt="test-token")
        client.list_pipeline_runs("http://tekton-a:9097", "abc")

        assert seen[0].headers["authorization"] == "Bearer test-token"
        assert seen[0].headers["x-mesh-sso"] == "test-token"
        assert seen[0].url.params["labelSelector"] == "triggers.tekton.dev/triggers-eventid=abc"


class TestErrorMapping:
    """Test mapping of failures onto the error taxonomy."""

    def test_accepted_status_is_success(self):
        client = client_for(lambda request: httpx.Response(202, json={"items": None}))
        runs = client.list_pipeline_runs("http://tekton-a:9097", "abc")
        assert runs.items == []

    @pytest.mark.parametrize("status", [203, 401, 404, 500])
    def test_status_above_threshold(self, status):
        client = client_for(lambda request: httpx.Response(status, text="nope"))

        with pytest.raises(HTTPError) as exc_info:
            client.list_pipeline_runs("http://tekton-a:9097", "abc")

        assert exc_info.value.status_code == status

    def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = client_for(handler)
        with pytest.raises(TransportError, match="connection refused"):
            client.pod_log("http://tekton-a:9097", "pod", "step-a")

    def test_timeout_is_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = client_for(handler)
        with pytest.raises(TransportError):
            client.list_task_runs("http://tekton-a:9097", "run-1")

    def test_malformed_body(self):
        client = client_for(lambda request: httpx.Response(200, text="<html>login</html>"))
        with pytest.raises(DecodeError):
            client.list_pipeline_runs("http://tekton-a:9097", "abc")

    def test_wrong_shape(self):
        client = client_for(lambda request: httpx.Response(200, json={"items": "nope"}))
        with pytest.raises(DecodeError):
            client.list_task_runs("http://tekton-a:9097", "run-1")


class TestPodLog:
    """Test raw log retrieval."""

    def test_returns_full_text(self):
        client = client_for(lambda request: httpx.Response(200, text="line 1\nline 2\n"))
        assert client.pod_log("http://tekton-a:9097", "pod", "step-a") == "line 1\nline 2\n"
