"""Base completion provider implementing the Template Method pattern.

All providers share the same contract:
    complete(prompt) → _call_api(system_prompt, prompt)   ← only this differs per provider
                     → text | RateLimitedError | CompletionServiceError

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

No retries: the AI analyzer makes exactly one call per file, and a rate
limit is reported upward so the analyzer stops calling the service for the
rest of the batch.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from reviewbot_core.errors import CompletionServiceError, RateLimitedError

logger = logging.getLogger(__name__)

_MAX_TOKENS = 1500

SYSTEM_PROMPT = (
    "You are an expert, strict, and highly technical code reviewer. "
    "You answer with a single raw JSON object and nothing else."
)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Recognise rate limiting from either SDK without importing them.

    Both the anthropic and openai SDKs attach the HTTP status to their API
    errors; providers reached through other gateways only say so in the message.
    """
    if getattr(exc, "status_code", None) == 429:
        return True
    text = str(exc).lower()
    return "rate_limit" in text or "rate limit" in text


class CompletionProvider(ABC):
    MODEL: str = ""
    TEMPERATURE: float = 0.2
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw completion text.

        Raises RateLimitedError when the service throttles the call and
        CompletionServiceError for any other failure, including an empty
        completion.
        """
        try:
            text = self._call_api(SYSTEM_PROMPT, prompt)
        except Exception as e:
            if is_rate_limit_error(e):
                logger.warning("%s rate limited: %s", self.__class__.__name__, e)
                raise RateLimitedError(str(e)) from e
            raise CompletionServiceError(f"{self.__class__.__name__} API error: {e}") from e

        if not text:
            raise CompletionServiceError(f"{self.__class__.__name__} returned an empty completion")
        return text

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; complete() classifies the error.
        """
