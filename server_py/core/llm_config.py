"""Per-task model settings read from llm_config.yml.

The file has a ``defaults`` section and one section per generation task;
a task section only needs the keys it overrides. The model name and timeout
fall back to the GenAI settings when neither section sets them.
"""
from typing import Dict, Any, List, Optional
from pathlib import Path
from functools import lru_cache

import yaml
from pydantic import BaseModel, Field

from core.config import get_settings
from core.logging import log_info, log_warning

_CONFIG_PATH = Path(__file__).parent / "llm_config.yml"

PLAN_TASK = "test_plan_generation"
CODE_TASK = "test_code_generation"
KNOWN_TASKS = (PLAN_TASK, CODE_TASK)


class LLMTaskConfig(BaseModel):
    """Settings for a single generation task."""
    model: str
    temperature: float = Field(0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(8192, gt=0)
    timeout: Optional[float] = None


class LLMConfig:
    """Task settings loaded once from YAML."""

    def __init__(self, config_path: str = None):
        self._path = Path(config_path) if config_path else _CONFIG_PATH
        settings = get_settings()
        self._defaults: Dict[str, Any] = {"model": settings.genai_model, "timeout": settings.genai_timeout}
        self._tasks: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self):
        if not self._path.exists():
            log_warning(f"LLM config not found at {self._path}, using defaults", "llm_config")
            return

        with open(self._path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        self._defaults.update(raw.pop("defaults", None) or {})
        self._tasks = {name: section or {} for name, section in raw.items()}

        missing = [task for task in KNOWN_TASKS if task not in self._tasks]
        if missing and self._path == _CONFIG_PATH:
            log_warning(f"No LLM settings for {', '.join(missing)}; defaults apply", "llm_config")
        log_info(f"Loaded LLM config from {self._path} ({len(self._tasks)} task entries)", "llm_config")

    def get(self, task_name: str) -> LLMTaskConfig:
        """Settings for ``task_name``; unknown tasks get the defaults."""
        return LLMTaskConfig(**{**self._defaults, **self._tasks.get(task_name, {})})

    def list_tasks(self) -> List[str]:
        return list(self._tasks)


@lru_cache()
def get_llm_config() -> LLMConfig:
    return LLMConfig()
