"""Prompt templates for the generation pipeline, loaded from YAML files in this package."""
import yaml
from typing import Dict, Any, Iterable
from pathlib import Path

from core.logging import log_debug


class PromptLoader:
    """Load, check and render str.format templates kept in YAML files."""

    def __init__(self, prompts_dir: Path = None):
        self.prompts_dir = prompts_dir or Path(__file__).parent
        self._cache: Dict[str, Dict[str, str]] = {}

    def load_prompts(self, filename: str, required: Iterable[str] = ()) -> Dict[str, str]:
        """All templates in ``filename``; raises KeyError if a required key is missing."""
        if filename not in self._cache:
            file_path = self.prompts_dir / filename
            if not file_path.exists():
                raise FileNotFoundError(f"Prompt file not found: {file_path}")
            with open(file_path, "r", encoding="utf-8") as f:
                self._cache[filename] = yaml.safe_load(f) or {}
            log_debug(f"Loaded {len(self._cache[filename])} prompt templates from {filename}", "prompts")

        prompts = self._cache[filename]
        missing = [key for key in required if key not in prompts]
        if missing:
            raise KeyError(f"Prompt keys {missing} not found in {filename}")
        return prompts

    def get_prompt(self, filename: str, key: str) -> str:
        return self.load_prompts(filename, required=(key,))[key]

    def render(self, filename: str, key: str, **values: Any) -> str:
        """Fill a template. Values are inserted as-is, so braces in file content are safe."""
        return self.get_prompt(filename, key).format(**values)


prompt_loader = PromptLoader()
