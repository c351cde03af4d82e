# gptcli/backends/__init__.py
"""Completion backend abstraction for gptcli.

Defines the message and completion types exchanged with a chat API, the
Backend protocol the session talks to, and a factory. The session never
sees the wire format; a backend turns a message list plus a few scalar
parameters into one reply.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Protocol


@dataclass
class Message:
    """One conversation turn."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class Usage:
    """Token accounting reported with a completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Completion:
    """A single reply plus its usage counters."""

    message: Message
    usage: Usage = field(default_factory=Usage)


@dataclass
class CompletionParams:
    """Scalar request parameters.

    Attributes:
        model: Chat model identifier.
        max_tokens: Upper bound on generated tokens.
        temperature: Sampling temperature.
        top_p: Nucleus sampling mass.
        frequency_penalty: Penalty for frequent tokens.
        presence_penalty: Penalty for tokens already present.
        stop: Stop sequences; empty means none.

    """

    model: str
    max_tokens: int
    temperature: float = 1.0
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    stop: list[str] = field(default_factory=list)


class Backend(Protocol):
    """Protocol for completion backends.

    ``complete`` performs one request/response round trip and raises
    ``CompletionError`` for anything other than a usable reply.
    """

    async def complete(self, messages: list[Message], params: CompletionParams) -> Completion: ...

    async def verify_key(self) -> bool: ...


def create_backend(name: str, api_key: str, base_url: str | None = None) -> Backend:
    """Create a backend by name.

    Args:
        name: Backend name. Only "openai" is available.
        api_key: Secret used to authenticate.
        base_url: Optional API root override for compatible servers.

    Returns:
        A Backend instance.

    Raises:
        ValueError: If the backend name is unknown.

    """
    if name == "openai":
        from gptcli.backends.openai_chat import OpenAIBackend
        return OpenAIBackend(api_key=api_key, base_url=base_url)
    raise ValueError(f"Unknown backend: {name!r}. Expected 'openai'.")


# Re-export OpenAIBackend at package level for convenience
from gptcli.backends.openai_chat import OpenAIBackend  # noqa: E402

__all__ = [
    "Backend",
    "Completion",
    "CompletionParams",
    "Message",
    "OpenAIBackend",
    "Usage",
    "create_backend",
]
