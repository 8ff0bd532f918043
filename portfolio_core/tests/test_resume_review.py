import base64

import pytest

from portfolio_core.agents.resume_review import (
    EMPTY_REVIEW_TEXT,
    REVIEW_FAILED_TEXT,
    ResumeReviewInvoker,
    file_input_from_upload,
)
from portfolio_core.config.settings import settings
from portfolio_core.domain.exceptions import ApiError, ValidationError
from portfolio_core.domain.models import CompletionResult, FileInput
from portfolio_core.domain.profile import load_profile
from portfolio_core.prompts import build_base_persona, load_prompt


class FakeProvider:
    name = "fake"

    def __init__(self, text="Looks great", error=None):
        self.requests = []
        self._text = text
        self._error = error

    def start_chat(self, system_instruction, model):
        raise AssertionError("resume review is stateless")

    def generate(self, req):
        self.requests.append(req)
        if self._error is not None:
            raise self._error
        return CompletionResult(provider="fake", model=req.model, text=self._text)


def test_text_input_is_truncated_before_sending():
    provider = FakeProvider()
    invoker = ResumeReviewInvoker(provider=provider, profile=load_profile(), max_chars=10)
    assert invoker.review("x" * 50) == "Looks great"
    parts = provider.requests[0].contents[0].parts
    assert parts[0].text == "x" * 10
    assert parts[1].text == load_prompt("resume_review_task")


def test_binary_input_is_sent_unmodified():
    provider = FakeProvider()
    invoker = ResumeReviewInvoker(provider=provider, profile=load_profile(), max_chars=10)
    payload = base64.b64encode(b"%PDF-1.7 " * 100).decode("ascii")
    invoker.review(FileInput(mime_type="application/pdf", data=payload))
    part = provider.requests[0].contents[0].parts[0]
    assert part.mime_type == "application/pdf"
    assert part.data == payload


def test_wire_mapping_input_is_accepted():
    provider = FakeProvider()
    invoker = ResumeReviewInvoker(provider=provider, profile=load_profile())
    invoker.review({"mimeType": "image/png", "data": "aGVsbG8="})
    part = provider.requests[0].contents[0].parts[0]
    assert (part.mime_type, part.data) == ("image/png", "aGVsbG8=")


def test_system_instruction_is_persona_plus_reviewer_preamble():
    profile = load_profile()
    provider = FakeProvider()
    ResumeReviewInvoker(provider=provider, profile=profile).review("resume")
    instruction = provider.requests[0].system_instruction
    assert instruction.startswith(build_base_persona(profile))
    assert instruction.endswith(load_prompt("resume_reviewer"))


def test_failure_returns_apology():
    provider = FakeProvider(error=ApiError(code="API_ERROR", message="boom", http_status=500))
    invoker = ResumeReviewInvoker(provider=provider, profile=load_profile())
    assert invoker.review("resume") == REVIEW_FAILED_TEXT
    assert len(provider.requests) == 1


def test_empty_review_uses_placeholder():
    invoker = ResumeReviewInvoker(provider=FakeProvider(text=""), profile=load_profile())
    assert invoker.review("resume") == EMPTY_REVIEW_TEXT


def test_invalid_input_rejected():
    invoker = ResumeReviewInvoker(provider=FakeProvider(), profile=load_profile())
    with pytest.raises(ValidationError):
        invoker.review({"data": "only data"})
    with pytest.raises(ValidationError):
        invoker.review(12345)


def test_file_input_from_upload():
    pdf = file_input_from_upload("application/pdf", b"%PDF")
    assert pdf == FileInput(mime_type="application/pdf", data=base64.b64encode(b"%PDF").decode("ascii"))
    assert isinstance(file_input_from_upload("image/jpeg", b"\xff\xd8"), FileInput)
    assert file_input_from_upload("text/plain", "Jane Doe".encode("utf-8")) == "Jane Doe"


def test_explicit_zero_limit_is_honoured():
    provider = FakeProvider()
    ResumeReviewInvoker(provider=provider, profile=load_profile(), max_chars=0).review("resume text")
    assert provider.requests[0].contents[0].parts[0].text == ""


def test_limit_defaults_to_settings():
    provider = FakeProvider()
    ResumeReviewInvoker(provider=provider, profile=load_profile()).review("y" * (settings.resume_max_chars + 5))
    assert len(provider.requests[0].contents[0].parts[0].text) == settings.resume_max_chars
