from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from reviewbot_core.providers.base import CompletionProvider


class OpenAIProvider(CompletionProvider):
    """Chat-completions provider for OpenAI and OpenAI-compatible gateways.

    Pass ``base_url`` to target a compatible service such as Groq
    (``https://api.groq.com/openai/v1``) together with one of its models.
    """

    MODEL = "gpt-4o"
    # Low temperature keeps the JSON structure stable across runs.
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, base_url: str | None = None, model: str | None = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install 'reviewbot[openai]'"
            )
        self.client = _OpenAI(api_key=api_key, base_url=base_url) if base_url else _OpenAI(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""
