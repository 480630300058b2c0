# dietplanner/tests/test_openrouter_client.py
# Purpose: CompletionService error mapping and breaker, against a minimal
# object graph shaped like client.chat.completions.create(...).

import types

import httpx
import openai
import pytest

from dietplanner.errors import UpstreamUnavailableError
from dietplanner.services.openrouter_client import CompletionService, build_openrouter_client

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]
REQUEST = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


def _mock_client(result=None, error=None):
    """client.chat.completions.create returns `result` or raises `error`; calls are recorded."""
    calls = []

    def _create(*args, **kwargs):
        calls.append(kwargs)
        if error is not None:
            raise error
        return result

    completions = types.SimpleNamespace(create=_create)
    client = types.SimpleNamespace(chat=types.SimpleNamespace(completions=completions))
    return client, calls


def _response(content):
    message = types.SimpleNamespace(content=content)
    return types.SimpleNamespace(
        choices=[types.SimpleNamespace(message=message)],
        usage=types.SimpleNamespace(prompt_tokens=12, completion_tokens=34, total_tokens=46),
    )


def test_complete_returns_stripped_text_and_passes_timeout():
    client, calls = _mock_client(result=_response("  {\"meal_plan\": {}}  \n"))
    svc = CompletionService(client, timeout=12.5)

    assert svc.complete("openai/gpt-4.1-nano", MESSAGES) == '{"meal_plan": {}}'
    (kwargs,) = calls
    assert kwargs["model"] == "openai/gpt-4.1-nano"
    assert kwargs["messages"] == MESSAGES
    assert kwargs["timeout"] == 12.5


@pytest.mark.parametrize(
    "error, status",
    [
        (openai.APITimeoutError(request=REQUEST), 504),
        (openai.APIConnectionError(request=REQUEST), 503),
        (openai.APIStatusError("rate limited", response=httpx.Response(429, request=REQUEST), body=None), 429),
        (openai.APIStatusError("boom", response=httpx.Response(500, request=REQUEST), body=None), 500),
    ],
)
def test_sdk_errors_map_to_upstream_unavailable(error, status):
    client, _ = _mock_client(error=error)
    svc = CompletionService(client)

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        svc.complete("m", MESSAGES)
    assert exc_info.value.upstream_status == status
    assert exc_info.value.status_code == 502
    assert exc_info.value.public_message == "AI service unavailable"


@pytest.mark.parametrize("content", [None, "", "   "])
def test_empty_content_is_an_upstream_failure(content):
    client, _ = _mock_client(result=_response(content))
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        CompletionService(client).complete("m", MESSAGES)
    assert exc_info.value.upstream_status == 502


def test_no_choices_is_an_upstream_failure():
    client, _ = _mock_client(result=types.SimpleNamespace(choices=[], usage=None))
    with pytest.raises(UpstreamUnavailableError):
        CompletionService(client).complete("m", MESSAGES)


def test_missing_api_key_fails_without_network():
    assert build_openrouter_client(None, "https://openrouter.ai/api/v1", 30) is None
    svc = CompletionService(None)
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        svc.complete("m", MESSAGES)
    assert exc_info.value.upstream_status == 500


def test_breaker_opens_after_consecutive_failures():
    client, calls = _mock_client(error=openai.APIConnectionError(request=REQUEST))
    svc = CompletionService(client, breaker_threshold=2, breaker_cooldown=60.0)

    for _ in range(2):
        with pytest.raises(UpstreamUnavailableError):
            svc.complete("m", MESSAGES)
    assert svc.breaker_open

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        svc.complete("m", MESSAGES)
    assert exc_info.value.upstream_status == 503
    assert len(calls) == 2  # open breaker short-circuits the call


def test_success_resets_failure_count():
    state = {"fail": True}

    def _create(**kwargs):
        if state["fail"]:
            raise openai.APIConnectionError(request=REQUEST)
        return _response("ok")

    client = types.SimpleNamespace(
        chat=types.SimpleNamespace(completions=types.SimpleNamespace(create=_create))
    )
    svc = CompletionService(client, breaker_threshold=2)

    with pytest.raises(UpstreamUnavailableError):
        svc.complete("m", MESSAGES)
    state["fail"] = False
    assert svc.complete("m", MESSAGES) == "ok"
    state["fail"] = True
    with pytest.raises(UpstreamUnavailableError):
        svc.complete("m", MESSAGES)
    assert not svc.breaker_open
