# gptcli/backends/openai_chat.py
"""OpenAI chat completions backend for gptcli."""

from __future__ import annotations

import logging

from openai import NOT_GIVEN, APIConnectionError, APIStatusError, AsyncOpenAI, AuthenticationError

from gptcli.backends import Completion, CompletionParams, Message, Usage
from gptcli.config import OPENAI_BASE_URL
from gptcli.errors import CompletionError

logger = logging.getLogger(__name__)


class OpenAIBackend:
    """Backend that wraps the OpenAI async client.

    Translates the SDK's response objects into ``Completion`` and its
    exceptions into ``CompletionError``.
    """

    def __init__(self, api_key: str, base_url: str | None = None, max_retries: int = 2):
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or OPENAI_BASE_URL,
            max_retries=max_retries,
        )

    async def complete(self, messages: list[Message], params: CompletionParams) -> Completion:
        """Send the conversation and return the first choice.

        Args:
            messages: Ordered conversation, oldest first.
            params: Request parameters.

        Returns:
            The assistant reply and usage counters.

        Raises:
            CompletionError: If the request fails or the response has no choices.

        """
        logger.debug("Requesting completion: model=%s, %d messages", params.model, len(messages))
        try:
            response = await self._client.chat.completions.create(
                model=params.model,
                messages=[m.to_dict() for m in messages],
                max_tokens=params.max_tokens,
                temperature=params.temperature,
                top_p=params.top_p,
                frequency_penalty=params.frequency_penalty,
                presence_penalty=params.presence_penalty,
                stop=params.stop or NOT_GIVEN,
            )
        except APIStatusError as e:
            raise CompletionError(f"API returned {e.status_code}: {e.message}", status_code=e.status_code) from e
        except APIConnectionError as e:
            raise CompletionError(f"Could not reach the API: {e}") from e

        if not response.choices:
            raise CompletionError("API returned no choices")

        choice = response.choices[0].message
        usage = Usage()
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        logger.debug("Completion received: %d total tokens", usage.total_tokens)
        return Completion(
            message=Message(role=choice.role, content=choice.content or ""),
            usage=usage,
        )

    async def verify_key(self) -> bool:
        """Check the API key by listing models.

        Returns:
            True if the key was accepted, False on an authentication failure.

        Raises:
            CompletionError: If the API cannot be reached or fails otherwise.

        """
        try:
            await self._client.models.list()
        except AuthenticationError:
            return False
        except APIStatusError as e:
            raise CompletionError(f"API returned {e.status_code}: {e.message}", status_code=e.status_code) from e
        except APIConnectionError as e:
            raise CompletionError(f"Could not reach the API: {e}") from e
        return True
