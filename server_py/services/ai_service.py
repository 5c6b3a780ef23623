"""AI service for GenAI interactions."""
import time
from typing import Optional

import httpx

from core.logging import log_info, log_error, log_debug
from core.llm_config import LLMConfig, get_llm_config
from utils.exceptions import AIServiceError, RepoTestGenException
from utils.genai_llm import call_genai_async


class AIService:
    """Model calls for the generation pipeline.

    Holds the task settings and an optional httpx transport; the API key is
    passed per call because it belongs to the user's session.
    """

    def __init__(self, llm_config: Optional[LLMConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._llm_config = llm_config or get_llm_config()
        self._transport = transport

    async def call_genai(
        self,
        prompt: str,
        api_key: Optional[str],
        task_name: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Call the GenAI API and return the response text.

        Settings come from the ``task_name`` section of llm_config.yml;
        explicit ``temperature``/``max_tokens`` still win. Domain errors
        propagate unchanged, anything else is raised as AIServiceError.
        """
        cfg = self._llm_config.get(task_name or "")
        log_info(f"Calling GenAI [task={task_name or 'adhoc'}] (prompt length: {len(prompt)} chars)", "ai")
        log_debug(f"AI parameters: model={cfg.model} temp={temperature or cfg.temperature}", "ai")

        started = time.perf_counter()
        try:
            response = await call_genai_async(
                prompt=prompt,
                api_key=api_key,
                model=cfg.model,
                temperature=temperature if temperature is not None else cfg.temperature,
                max_tokens=max_tokens if max_tokens is not None else cfg.max_tokens,
                timeout=cfg.timeout,
                transport=self._transport,
            )
        except RepoTestGenException as e:
            log_error(f"GenAI call failed [task={task_name or 'adhoc'}]: {e.message}", "ai")
            raise
        except Exception as e:
            log_error(f"GenAI call failed [task={task_name or 'adhoc'}]", "ai", e)
            raise AIServiceError(f"GenAI call failed: {e}") from e

        log_info(f"GenAI response received ({len(response)} chars in {time.perf_counter() - started:.1f}s)", "ai")
        return response


# Global AI service instance
ai_service = AIService()
