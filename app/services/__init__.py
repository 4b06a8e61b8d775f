from .ai_completion_service import ai_completion_service

__all__ = [
    "ai_completion_service"
]
