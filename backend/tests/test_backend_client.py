"""Tests for the execution backend HTTP client."""
import requests

from nodeflow.engine import backend_client
from nodeflow.engine.backend_client import BackendClient


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class TestClearNodeCache:
    def test_sends_delete_with_node_ids(self, monkeypatch):
        calls = []

        def fake_delete(url, **kwargs):
            calls.append((url, kwargs))
            return FakeResponse(200)

        monkeypatch.setattr(backend_client.requests, "delete", fake_delete)
        client = BackendClient("127.0.0.1:8088")

        assert client.clear_node_cache(["a", "b"]) is True
        url, kwargs = calls[0]
        assert url == "http://127.0.0.1:8088/clearNodeCache"
        assert kwargs["json"] == {"nodeId": ["a", "b"]}
        assert kwargs["timeout"] is None

    def test_error_status(self, monkeypatch):
        monkeypatch.setattr(backend_client.requests, "delete", lambda url, **kw: FakeResponse(500))
        assert BackendClient("host:1").clear_node_cache("a") is False

    def test_connection_error_is_swallowed(self, monkeypatch):
        def refuse(url, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(backend_client.requests, "delete", refuse)
        assert BackendClient("host:1", timeout=0.5).clear_node_cache("a") is False
