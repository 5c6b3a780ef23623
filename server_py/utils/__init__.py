"""Utilities module."""

from .genai_llm import call_genai_async

__all__ = [
    'call_genai_async',
]
