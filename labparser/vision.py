"""
Vision Model Client
===================
Thin wrapper over the OpenAI chat completions API for page images.

The underlying ``OpenAI`` client is built once per process and passed in,
so tests and alternative deployments can inject their own.
"""

from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI

from .config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, Settings
from .models import PageImage
from .prompts import SYSTEM_PROMPT, USER_PROMPT

logger = logging.getLogger(__name__)


def build_openai_client(settings: Settings) -> OpenAI:
    """Create the process-wide OpenAI client from settings."""
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY not set in environment or .env")

    kwargs = {"api_key": settings.openai_api_key}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    if settings.openai_timeout is not None:
        kwargs["timeout"] = settings.openai_timeout
    return OpenAI(**kwargs)


class VisionClient:
    """Sends one page image plus the fixed prompts and returns the raw text."""

    def __init__(
        self,
        client: OpenAI,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        system_prompt: str = SYSTEM_PROMPT,
        user_prompt: str = USER_PROMPT,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.user_prompt = user_prompt

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[OpenAI] = None,
    ) -> VisionClient:
        return cls(
            client=client or build_openai_client(settings),
            model=settings.openai_model,
            max_tokens=settings.openai_max_tokens,
        )

    def build_messages(self, page: PageImage) -> list[dict]:
        return [
            {"role": "system", "content": self.system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": self.user_prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": page.data_url},
                    },
                ],
            },
        ]

    def extract(self, page: PageImage) -> str:
        """
        Ask the model to read one page.

        Returns:
            The model's text. An empty completion is returned as ``"[]"``.

        Raises:
            openai.OpenAIError: On any API failure.
        """
        logger.info(f"Sending page {page.page_number} to {self.model}")
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(page),
            max_tokens=self.max_tokens,
        )

        content = None
        if completion.choices:
            message = completion.choices[0].message
            content = message.content if message else None
        return content or "[]"
