"""
Test: OpenAI client wrapper error mapping (no network, client is faked).
"""
from types import SimpleNamespace

import httpx
import openai
import pytest

from assignai.errors import MediationError, MediationTimeout
from assignai.services.llm_client import LLMClient


def reply(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletions:
    def __init__(self, result):
        self.result = result
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def make_client(result):
    completions = FakeCompletions(result)
    llm = LLMClient(api_key="test-key", model="test-model")
    llm._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return llm, completions


MESSAGES = [{"role": "user", "content": "hello"}]


class TestLLMClient:
    def test_returns_stripped_text(self):
        llm, completions = make_client(reply("  Hi there.  "))
        assert llm.complete(MESSAGES, max_tokens=50, timeout=5) == "Hi there."
        assert completions.kwargs["model"] == "test-model"
        assert completions.kwargs["timeout"] == 5
        assert completions.kwargs["max_tokens"] == 50

    def test_extra_options_forwarded(self):
        llm, completions = make_client(reply("ok"))
        llm.complete(MESSAGES, max_tokens=50, timeout=5, presence_penalty=0.6)
        assert completions.kwargs["presence_penalty"] == 0.6

    def test_timeout_mapped(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        llm, _ = make_client(openai.APITimeoutError(request=request))
        with pytest.raises(MediationTimeout):
            llm.complete(MESSAGES, max_tokens=50, timeout=5)

    def test_api_error_mapped(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        llm, _ = make_client(openai.APIConnectionError(request=request))
        with pytest.raises(MediationError) as excinfo:
            llm.complete(MESSAGES, max_tokens=50, timeout=5)
        assert not isinstance(excinfo.value, MediationTimeout)

    def test_empty_reply(self):
        llm, _ = make_client(reply("   "))
        with pytest.raises(MediationError):
            llm.complete(MESSAGES, max_tokens=50, timeout=5)

    def test_no_choices(self):
        llm, _ = make_client(SimpleNamespace(choices=[]))
        with pytest.raises(MediationError):
            llm.complete(MESSAGES, max_tokens=50, timeout=5)

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr("assignai.services.llm_client.OPENAI_API_KEY", "")
        llm = LLMClient(api_key="")
        with pytest.raises(MediationError):
            llm.complete(MESSAGES, max_tokens=50, timeout=5)
