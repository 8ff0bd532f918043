import httpx
import pytest

from portfolio_core.domain.exceptions import Unreachable
from portfolio_core.infrastructure.http.remote_client import POLL_DEADLINE, BoundedRemoteClient


class SettingsStub:
    api_base_url = "http://backend.test/api"
    http_timeout = 30.0


def _fake_client(captured, resp=None, error=None):
    class Client:
        def __init__(self, *a, **kw):
            captured["timeout"] = kw.get("timeout")

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def request(self, method, url, **kw):
            captured["method"] = method
            captured["url"] = url
            captured["json"] = kw.get("json")
            if error is not None:
                raise error
            return resp

    return Client


class Resp:
    def __init__(self, status_code, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self):
        if self._text is not None:
            raise ValueError("not json")
        return self._payload


def test_request_returns_parsed_body(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _fake_client(captured, Resp(200, {"count": 7})))
    client = BoundedRemoteClient(SettingsStub())
    data = client.request("/visitors", timeout=POLL_DEADLINE)
    assert data == {"count": 7}
    assert captured["url"] == "http://backend.test/api/visitors"
    assert captured["method"] == "GET"
    assert captured["timeout"] == POLL_DEADLINE


def test_request_without_deadline_uses_transport_timeout(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _fake_client(captured, Resp(200, {"success": True})))
    client = BoundedRemoteClient(SettingsStub())
    client.request("/contact", method="POST", body={"name": "a"})
    assert captured["timeout"] == 30.0
    assert captured["json"] == {"name": "a"}


def test_non_2xx_is_unreachable(monkeypatch):
    captured = {}
    monkeypatch.setattr(
        "httpx.Client",
        _fake_client(captured, Resp(404, {"success": False, "message": "Project not found"})),
    )
    client = BoundedRemoteClient(SettingsStub())
    with pytest.raises(Unreachable) as exc:
        client.request("/projects/9", method="PUT", body={})
    assert exc.value.http_status == 404
    assert exc.value.body == {"success": False, "message": "Project not found"}


def test_network_error_is_unreachable(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _fake_client(captured, error=httpx.ConnectError("refused")))
    client = BoundedRemoteClient(SettingsStub())
    with pytest.raises(Unreachable) as exc:
        client.request("/projects")
    assert exc.value.code == "UNREACHABLE"


def test_timeout_is_unreachable(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _fake_client(captured, error=httpx.ReadTimeout("slow")))
    client = BoundedRemoteClient(SettingsStub())
    with pytest.raises(Unreachable):
        client.request("/visitors", timeout=POLL_DEADLINE)


def test_non_json_body_is_unreachable(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _fake_client(captured, Resp(200, text="<html>")))
    client = BoundedRemoteClient(SettingsStub())
    with pytest.raises(Unreachable) as exc:
        client.request("/projects")
    assert exc.value.code == "BAD_BODY"


def test_explicit_base_url_overrides_settings(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", _fake_client(captured, Resp(200, [])))
    client = BoundedRemoteClient(SettingsStub(), base_url="https://deployed.test/api/")
    client.request("/projects")
    assert captured["url"] == "https://deployed.test/api/projects"
