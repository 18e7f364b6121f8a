"""
OpenAI-backed text generation provider.
"""

import logging
import time
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from ...config import Settings
from ...domain.exceptions import TransportError
from ...logging import debug, LogRecord, LogEvent
from ..http.http_client_factory import HttpClientFactory


class OpenAIProvider:
    """
    Chat-completion provider used by the question, project and mentor generators.

    Retries are delegated to the OpenAI SDK (``provider_max_retries``); any
    failure left after that is surfaced as :class:`TransportError`.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        """
        Initialize the provider.

        Args:
            settings: Application settings
            client: Preconfigured SDK client, built from settings when omitted
        """
        self.settings = settings
        self._http_client = None
        self._openai_client: Optional[AsyncOpenAI] = client
        if self._openai_client is None:
            self._initialize_client()

    def _initialize_client(self) -> None:
        try:
            self._http_client = HttpClientFactory.create_openai_client(self.settings)
            self._openai_client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.base_url,
                default_headers=HttpClientFactory.get_default_headers(self.settings),
                timeout=self.settings.http_read_timeout,
                http_client=self._http_client,
                max_retries=self.settings.provider_max_retries,
            )
        except Exception:
            self._http_client = None
            raise

    async def complete(self, system: str, prompt: str, **params: Any) -> str:
        """
        Run one chat completion and return the assistant text.

        Args:
            system: System prompt
            prompt: User prompt
            **params: Extra parameters for the chat completion API

        Returns:
            The message content, ``""`` when the model returned none

        Raises:
            TransportError: If the API call fails
        """
        if not self._openai_client:
            raise ValueError("OpenAI client not properly initialized")

        started = time.monotonic()
        try:
            completion = await self._openai_client.chat.completions.create(
                model=self.settings.generation_model_name,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                **params,
            )
        except openai.APIStatusError as e:
            raise TransportError(
                f"Generation request failed: {e.message}",
                status_code=e.status_code,
                details={"provider": "openai"},
            ) from e
        except openai.APIError as e:
            raise TransportError(
                f"Generation request failed: {e}", details={"provider": "openai"}
            ) from e

        debug(
            LogRecord(
                event=LogEvent.GENERATION_REQUEST.value,
                message="Generation completed",
                data={
                    "model": self.settings.generation_model_name,
                    "duration_ms": (time.monotonic() - started) * 1000,
                },
            )
        )
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def close(self) -> None:
        """Clean up resources when shutting down."""
        # Closing the SDK client also closes the httpx client it was given
        if self._openai_client is not None:
            try:
                await self._openai_client.close()
            except (openai.OpenAIError, RuntimeError) as e:
                logging.error(f"Error closing OpenAI client: {e}")
        self._http_client = None
        self._openai_client = None

    async def __aenter__(self) -> "OpenAIProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
