import pytest
import requests
from requests.structures import CaseInsensitiveDict

from restream.app import create_app
from restream.config import ProxyConfig


def make_response(url, body=b"", status=200, headers=None, reason="OK"):
    """Build a requests.Response as if it had been read off the wire."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    response = requests.Response()
    response.url = url
    response.status_code = status
    response.reason = reason
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    response._content = body
    response._content_consumed = True
    return response


class Upstream:
    """Stands in for the network behind the gateway's requests.Session."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, body=b"", status=200, headers=None, reason="OK", exc=None):
        self.routes[url] = (body, status, headers, reason, exc)

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if url not in self.routes:
            raise requests.ConnectionError(f"no route to {url}")
        body, status, headers, reason, exc = self.routes[url]
        if exc is not None:
            raise exc
        return make_response(url, body, status, headers, reason)


@pytest.fixture
def config():
    return ProxyConfig(origin="https://player.example", referer="https://player.example/")


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def upstream(app, monkeypatch):
    fake = Upstream()
    monkeypatch.setattr(app.extensions["restream"].session, "request", fake)
    return fake


@pytest.fixture
def client(app, upstream):
    return app.test_client()
