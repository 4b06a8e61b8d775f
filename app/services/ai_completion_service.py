import openai
from dataclasses import dataclass
from typing import Optional
import logging

from app.core.config import settings
from app.core.exceptions import ProviderUnavailable
from app.core.monitoring import track_ai_service, ai_service_tokens

logger = logging.getLogger(__name__)

# Provider-neutral completion statuses
COMPLETION_OK = "ok"
COMPLETION_TRUNCATED = "truncated"
COMPLETION_BLOCKED = "blocked"
COMPLETION_OTHER = "other"

_FINISH_REASONS = {
    "stop": COMPLETION_OK,
    "length": COMPLETION_TRUNCATED,
    "content_filter": COMPLETION_BLOCKED,
}


@dataclass
class AICompletion:
    text: str
    completion_status: str = COMPLETION_OK


class AICompletionService:
    """Thin wrapper over the OpenAI chat API returning raw text plus a completion status"""

    def __init__(self, client: Optional[openai.OpenAI] = None):
        self._client = client

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise ProviderUnavailable("OpenAI API key not configured", kind="auth")
            # Fail fast rather than retry; callers decide what to do with the error
            self._client = openai.OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.AI_REQUEST_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    @track_ai_service("openai", "complete_routine")
    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> AICompletion:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=settings.OPENAI_ROUTINE_MODEL,
                messages=messages,
                temperature=settings.AI_TEMPERATURE,
                max_tokens=settings.AI_MAX_TOKENS,
            )
        except openai.AuthenticationError as e:
            logger.error(f"OpenAI rejected credentials: {e}")
            raise ProviderUnavailable("Invalid OpenAI API key", kind="auth", status_code=e.status_code) from e
        except openai.PermissionDeniedError as e:
            logger.error(f"OpenAI access forbidden: {e}")
            raise ProviderUnavailable(
                "OpenAI API access forbidden. Check your API key permissions.",
                kind="auth",
                status_code=e.status_code,
            ) from e
        except openai.RateLimitError as e:
            logger.warning(f"OpenAI rate limit hit: {e}")
            raise ProviderUnavailable(
                "Rate limit exceeded. Please try again later.", kind="rate_limit", status_code=e.status_code
            ) from e
        except openai.APIConnectionError as e:
            # Also covers APITimeoutError
            logger.error(f"OpenAI transport error: {e}")
            raise ProviderUnavailable(f"AI provider unreachable: {e}", kind="transport") from e
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API error {e.status_code}: {e}")
            raise ProviderUnavailable(
                f"AI provider error ({e.status_code})", kind="api", status_code=e.status_code
            ) from e

        usage = getattr(response, "usage", None)
        if usage is not None:
            ai_service_tokens.labels(service="openai", type="prompt").inc(usage.prompt_tokens or 0)
            ai_service_tokens.labels(service="openai", type="completion").inc(usage.completion_tokens or 0)

        if not response.choices:
            raise ProviderUnavailable("Unexpected response format from OpenAI API", kind="api")

        choice = response.choices[0]
        status = _FINISH_REASONS.get(choice.finish_reason, COMPLETION_OTHER)
        if status == COMPLETION_OTHER:
            logger.warning(f"Unexpected finish reason: {choice.finish_reason}")

        return AICompletion(text=choice.message.content or "", completion_status=status)


# Global instance
ai_completion_service = AICompletionService()
