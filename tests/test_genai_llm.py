import json

import httpx
import pytest

from conftest import json_response
from core.llm_config import LLMConfig
from services.ai_service import AIService
from utils.exceptions import AIServiceError, ConfigurationError
from utils.genai_llm import call_genai_async


def _candidate(text, finish="STOP"):
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": finish}]}


@pytest.mark.asyncio
async def test_call_returns_candidate_text():
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(200, _candidate("[]"))

    text = await call_genai_async(
        "prompt", "secret", task_name="test_plan_generation", transport=httpx.MockTransport(handler),
    )

    assert text == "[]"
    request = seen[0]
    assert request.headers["x-goog-api-key"] == "secret"
    assert request.url.path.endswith(":generateContent")
    body = json.loads(request.content)
    assert body["contents"][0]["parts"][0]["text"] == "prompt"
    assert body["generationConfig"]["temperature"] == 0.3
    assert body["generationConfig"]["maxOutputTokens"] == 4096


@pytest.mark.asyncio
async def test_missing_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        await call_genai_async("prompt", None)


@pytest.mark.asyncio
async def test_error_status_raises():
    transport = httpx.MockTransport(lambda request: json_response(429, {"error": "quota"}))
    with pytest.raises(AIServiceError) as excinfo:
        await call_genai_async("prompt", "secret", transport=transport)
    assert "429" in excinfo.value.message


@pytest.mark.asyncio
async def test_unknown_response_shape_raises():
    transport = httpx.MockTransport(lambda request: json_response(200, {"unexpected": True}))
    with pytest.raises(AIServiceError):
        await call_genai_async("prompt", "secret", transport=transport)


@pytest.mark.asyncio
async def test_continuation_appends_truncated_output():
    responses = [_candidate("part one, ", "MAX_TOKENS"), _candidate("part two")]
    transport = httpx.MockTransport(lambda request: json_response(200, responses.pop(0)))

    text = await call_genai_async("prompt", "secret", enable_continuation=True, transport=transport)

    assert text == "part one, part two"


@pytest.mark.asyncio
async def test_ai_service_passes_task_through():
    transport = httpx.MockTransport(lambda request: json_response(200, _candidate("code()")))
    service = AIService(transport=transport)
    assert await service.call_genai("prompt", "secret", task_name="test_code_generation") == "code()"


def test_llm_config_task_overrides_defaults(tmp_path):
    path = tmp_path / "llm.yml"
    path.write_text("defaults:\n  model: m-default\n  temperature: 0.1\nplans:\n  max_tokens: 100\n")
    config = LLMConfig(str(path))

    task = config.get("plans")
    assert (task.model, task.temperature, task.max_tokens) == ("m-default", 0.1, 100)
    assert config.get("other").max_tokens == 8192
    assert config.list_tasks() == ["plans"]


@pytest.mark.asyncio
async def test_ai_service_applies_task_settings(tmp_path):
    path = tmp_path / "llm.yml"
    path.write_text("defaults:\n  model: m-test\ncodegen:\n  temperature: 0.7\n  max_tokens: 321\n")
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(200, _candidate("ok"))

    service = AIService(llm_config=LLMConfig(str(path)), transport=httpx.MockTransport(handler))
    await service.call_genai("prompt", "secret", task_name="codegen")

    assert seen[0].url.path.endswith("/models/m-test:generateContent")
    config = json.loads(seen[0].content)["generationConfig"]
    assert (config["temperature"], config["maxOutputTokens"]) == (0.7, 321)


@pytest.mark.asyncio
async def test_ai_service_wraps_unexpected_errors():
    def handler(request):
        raise RuntimeError("boom")

    service = AIService(transport=httpx.MockTransport(handler))
    with pytest.raises(AIServiceError):
        await service.call_genai("prompt", "secret")
