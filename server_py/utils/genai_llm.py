"""Centralized utility for GenAI completion calls.

This module provides the single entry point the pipeline uses to reach the
hosted language model. The API key is supplied per call (it belongs to the
user session, not the process environment).

Model selection is driven by llm_config.yml via the `task_name` parameter.
Pass a task name (e.g. "test_plan_generation") to automatically use the
model, temperature and max_tokens defined in the YAML config.

Usage:
    response = await call_genai_async(prompt, api_key, task_name="test_code_generation")

    # Manual override still works
    response = await call_genai_async(prompt, api_key, model="gemini-1.5-pro", temperature=0.1)
"""

from typing import Dict, Any, Optional

import httpx

from core.config import get_settings
from core.logging import log_debug
from utils.exceptions import AIServiceError, ConfigurationError


def _resolve_task_config(task_name: Optional[str] = None):
    """Resolve model/temperature/max_tokens from llm_config.yml for a task."""
    if not task_name:
        return None
    from core.llm_config import get_llm_config
    return get_llm_config().get(task_name)


def _build_request_body(prompt: str, temperature: float, max_tokens: int) -> Dict[str, Any]:
    """Build the generateContent request body."""
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
            "topP": 1,
        },
    }


def _build_headers(api_key: str) -> Dict[str, str]:
    """Build headers for the GenAI request."""
    return {
        "accept": "application/json",
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }


def _extract_text_from_response(result: Dict[str, Any]) -> str:
    """Extract text content from API response."""
    candidates = result.get("candidates") or []
    if candidates:
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [part["text"] for part in parts if "text" in part]
        if texts:
            return "".join(texts)
    if "choices" in result and len(result["choices"]) > 0:
        choice = result["choices"][0]
        if "message" in choice and "content" in choice["message"]:
            return choice["message"]["content"]
        if "text" in choice:
            return choice["text"]
    if "text" in result:
        return result["text"]

    raise AIServiceError("Unexpected response format from GenAI API", details=result)


def _get_finish_reason(result: Dict[str, Any]) -> Optional[str]:
    """Get finish reason from API response."""
    candidates = result.get("candidates") or []
    if candidates:
        return candidates[0].get("finishReason", "STOP")
    if "choices" in result and len(result["choices"]) > 0:
        return result["choices"][0].get("finish_reason", "stop")
    return "STOP"


async def call_genai_async(
    prompt: str,
    api_key: Optional[str],
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
    enable_continuation: bool = False,
    max_continuations: int = 2,
    task_name: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Make an async call to the GenAI generateContent endpoint.

    Args:
        prompt: The full assembled prompt
        api_key: Session API key for the model provider
        temperature: Sampling temperature (0.0-1.0). None = use config/defaults
        max_tokens: Maximum tokens in response. None = use config/defaults
        model: Model to use. None = resolved from llm_config.yml
        timeout: Request timeout in seconds. None = no timeout
        enable_continuation: Whether to ask for the rest of a truncated response
        max_continuations: Maximum number of continuations to attempt
        task_name: Key in llm_config.yml to auto-resolve model/temp/tokens
        transport: Optional httpx transport (used by tests)

    Returns:
        str: The LLM response text

    Raises:
        ConfigurationError: If no API key is supplied
        AIServiceError: If the API rejects the call or returns an unknown shape
    """
    if not api_key:
        raise ConfigurationError("GenAI API key not configured for this session")

    settings = get_settings()
    task_cfg = _resolve_task_config(task_name)
    if task_cfg:
        model = model or task_cfg.model
        temperature = temperature if temperature is not None else task_cfg.temperature
        max_tokens = max_tokens if max_tokens is not None else task_cfg.max_tokens
        timeout = timeout if timeout is not None else task_cfg.timeout

    temperature = temperature if temperature is not None else 0.2
    max_tokens = max_tokens if max_tokens is not None else 8192
    resolved_model = model or settings.genai_model
    timeout_value = timeout if timeout is not None else settings.genai_timeout
    log_debug(
        f"[async] task={task_name or 'adhoc'} model={resolved_model} "
        f"temp={temperature} max_tokens={max_tokens}",
        "genai",
    )

    url = f"{settings.genai_endpoint_url.rstrip('/')}/models/{resolved_model}:generateContent"
    request_body = _build_request_body(prompt, temperature, max_tokens)
    headers = _build_headers(api_key)

    accumulated_text = ""
    attempts = max_continuations + 1 if enable_continuation else 1

    for attempt in range(attempts):
        if attempt > 0:
            continuation_prompt = (
                f"{prompt}\n\n"
                f"[CONTINUATION] The previous response was cut off. Here is what was generated so far:\n"
                f"---\n{accumulated_text[-2000:]}\n---\n"
                f"Please continue from where you left off. Do not repeat what was already generated."
            )
            request_body = _build_request_body(continuation_prompt, temperature, max_tokens)

        try:
            async with httpx.AsyncClient(timeout=timeout_value, transport=transport) as client:
                response = await client.post(url, json=request_body, headers=headers)
        except httpx.HTTPError as e:
            raise AIServiceError(f"GenAI API request failed: {e}") from e

        if response.status_code != 200:
            raise AIServiceError(
                f"GenAI API Error: {response.status_code}",
                details=response.text[:500],
            )

        result = response.json()
        accumulated_text += _extract_text_from_response(result)

        if not enable_continuation or _get_finish_reason(result) not in ("MAX_TOKENS", "length"):
            break

    return accumulated_text
