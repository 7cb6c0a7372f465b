import httpx
import pytest


class FakeBackend:
    """httpx.MockTransport handler answering from a (method, path) route table."""

    def __init__(self, routes=None):
        # (method, path) -> (status, httpx.Response kwargs)
        self.routes = dict(routes or {})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, kwargs = self.routes.get(
            (request.method, request.url.path), (404, {"json": {"detail": "Not Found"}})
        )
        return httpx.Response(status, **kwargs)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def paths(self):
        return [r.url.path for r in self.requests]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ("BCM_API_BASE", "BCM_ADMIN_KEY", "BCM_TIMEOUT_MS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BCM_CONFIG", str(tmp_path / "missing.toml"))
