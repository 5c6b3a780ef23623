"""Services module."""
from services.ai_service import ai_service, AIService

__all__ = [
    "ai_service",
    "AIService",
]
