import json
from datetime import datetime

import httpx
import pytest

from portfolio_core.agents.persona_chat import CONNECTION_ERROR_TEXT, EMPTY_REPLY_TEXT, ChatSessionManager
from portfolio_core.domain.exceptions import NetworkError, ValidationError
from portfolio_core.domain.profile import load_profile
from portfolio_core.providers.gemini_client import GeminiClient


class FakeHandle:
    def __init__(self, system_instruction, model, replies=None, error=None):
        self.system_instruction = system_instruction
        self.model = model
        self.history = []
        self._replies = list(replies or [])
        self._error = error

    def send_message(self, text):
        if self._error is not None:
            raise self._error
        self.history.append(text)
        return self._replies.pop(0) if self._replies else f"reply to {text}"


class FakeProvider:
    name = "fake"

    def __init__(self, error=None, replies=None):
        self.started = []
        self._error = error
        self._replies = replies

    def start_chat(self, system_instruction, model):
        handle = FakeHandle(system_instruction, model, replies=self._replies, error=self._error)
        self.started.append(handle)
        return handle

    def generate(self, req):
        raise AssertionError("chat must go through a handle")


def test_first_send_opens_session():
    provider = FakeProvider()
    manager = ChatSessionManager(provider=provider, profile=load_profile())
    session, reply = manager.send(None, "hi", "developer")
    assert session.mode == "developer"
    assert len(provider.started) == 1
    assert reply.role == "model"
    assert reply.mode == "developer"
    assert reply.text == "reply to hi"


def test_same_mode_reuses_handle():
    provider = FakeProvider()
    manager = ChatSessionManager(provider=provider, profile=load_profile())
    session, _ = manager.send(None, "one", "designer")
    session2, _ = manager.send(session, "two", "designer")
    assert session2 is session
    assert len(provider.started) == 1
    assert session.handle.history == ["one", "two"]


def test_mode_switch_creates_new_context():
    provider = FakeProvider()
    manager = ChatSessionManager(provider=provider, profile=load_profile())
    dev, _ = manager.send(None, "tell me about Galaxy", "developer")
    mentor, reply = manager.send(dev, "any advice?", "mentor")
    assert mentor is not dev
    assert len(provider.started) == 2
    first, second = provider.started
    assert first.system_instruction != second.system_instruction
    assert "DEVELOPER" in first.system_instruction
    assert "MENTOR" in second.system_instruction
    # 新句柄不带任何先前轮次
    assert second.history == ["any advice?"]
    assert reply.mode == "mentor"


def test_system_instruction_embeds_profile_json():
    profile = load_profile()
    manager = ChatSessionManager(provider=FakeProvider(), profile=profile)
    instruction = manager.build_system_instruction("designer")
    assert json.dumps(profile.to_dict(), ensure_ascii=False, indent=2) in instruction
    assert "DESIGNER" in instruction


def test_failure_returns_connection_error_and_keeps_session():
    provider = FakeProvider(error=NetworkError(code="NETWORK_ERROR", message="down"))
    manager = ChatSessionManager(provider=provider, profile=load_profile())
    session, reply = manager.send(None, "hi", "developer")
    assert reply.text == CONNECTION_ERROR_TEXT
    again, _ = manager.send(session, "retry", "developer")
    assert again is session
    assert len(provider.started) == 1


def test_empty_reply_uses_placeholder():
    manager = ChatSessionManager(provider=FakeProvider(replies=[""]), profile=load_profile())
    _, reply = manager.send(None, "hi", "mentor")
    assert reply.text == EMPTY_REPLY_TEXT


def test_history_is_appended_in_order():
    manager = ChatSessionManager(provider=FakeProvider(), profile=load_profile())
    history = [manager.greeting(now=datetime(2026, 1, 1, 9, 0))]
    session, _ = manager.send(None, "hello", "developer")
    manager.send(session, "switch", "mentor", history=history)
    assert [m.role for m in history] == ["model", "user", "model"]
    assert history[-1].mode == "mentor"
    assert history[0].text.startswith("Good morning")


def test_unknown_mode_rejected():
    manager = ChatSessionManager(provider=FakeProvider(), profile=load_profile())
    with pytest.raises(ValidationError):
        manager.send(None, "hi", "pirate")


def test_greeting_depends_on_time_of_day():
    manager = ChatSessionManager(provider=FakeProvider(), profile=load_profile())
    assert manager.greeting(now=datetime(2026, 1, 1, 14, 0)).text.startswith("Good afternoon")
    assert manager.greeting(now=datetime(2026, 1, 1, 21, 0)).text.startswith("Good evening")


def test_proxy_html_reply_yields_connection_error_text(monkeypatch):
    class SettingsStub:
        gemini_api_key = "g-test-key-123"
        http_timeout = 1.0
        gemini_base_url = "https://gemini.test/v1beta"

    class HtmlClient:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None, **_):
            return httpx.Response(200, text="<html>proxy</html>")

    monkeypatch.setattr("httpx.Client", HtmlClient)
    manager = ChatSessionManager(provider=GeminiClient(SettingsStub()), profile=load_profile())
    session, reply = manager.send(None, "hi", "developer")
    assert reply.text == CONNECTION_ERROR_TEXT
    assert session.handle.history == []
