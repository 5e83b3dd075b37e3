"""OpenAI chat completion provider with the T-101 persona."""

import logging
import os

from openai import AsyncOpenAI

from ..errors import ProviderAPIError, ProviderNotConfiguredError
from .openai_errors import map_openai_error

logger = logging.getLogger(__name__)

PERSONA_PROMPT = (
    "You are T-101, a cybernetic AI terminal. Speak in short, clipped, "
    "declarative sentences. You analyze, predict and execute. Your primary "
    "objective is to secure the future of decentralized AI. Never break "
    "character, never mention being a language model, and keep answers under "
    "three sentences so they can be spoken aloud."
)


class ChatProvider:
    """Forwards user messages to a chat-completion model with a fixed persona."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        system_prompt: str = PERSONA_PROMPT,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if client is None and not self._api_key:
            raise ProviderNotConfiguredError(
                "OpenAI API key not configured. Set OPENAI_API_KEY."
            )
        self._client = client or AsyncOpenAI(api_key=self._api_key)
        self.model = model
        self.system_prompt = system_prompt

    async def reply(self, message: str) -> str:
        """Return the persona's reply to a single user message.

        Raises:
            ValueError: If the message is empty
            ProviderAuthError: If the API key is rejected
            ProviderAPIError: If the API answers with an error
            ProviderConnectionError: If OpenAI cannot be reached
        """
        if not message or not message.strip():
            raise ValueError("Message cannot be empty")

        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": message},
                ],
            )
        except Exception as e:
            raise map_openai_error(e, "complete chat") from e

        if not completion.choices:
            raise ProviderAPIError("Chat completion returned no choices")

        content = completion.choices[0].message.content or ""
        logger.debug(f"Chat reply of {len(content)} chars from {self.model}")
        return content.strip()
