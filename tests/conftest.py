# tests/conftest.py
"""Shared fixtures for gptcli tests."""

import io

import anyio
import pytest
from rich.console import Console

from gptcli.backends import Completion, Message, Usage
from gptcli.config import Settings
from gptcli.spinners import SpinnerSpec
from gptcli.ui import NEON_THEME


class FakeBackend:
    """Backend that answers every turn with a canned reply after a short wait.

    Set ``error`` to make every turn fail with it instead.
    """

    def __init__(self):
        self.reply = "Hello!"
        self.delay = 0.03
        self.error = None
        self.calls = []

    async def complete(self, messages, params):
        self.calls.append((list(messages), params))
        await anyio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return Completion(
            message=Message(role="assistant", content=self.reply),
            usage=Usage(prompt_tokens=3, completion_tokens=2, total_tokens=5),
        )

    async def verify_key(self):
        return True


@pytest.fixture
def console():
    """Truecolor console writing into a StringIO."""
    return Console(
        file=io.StringIO(),
        force_terminal=True,
        color_system="truecolor",
        width=120,
        theme=NEON_THEME,
        highlight=False,
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def spinners():
    return {
        "dots": SpinnerSpec(interval_ms=5, frames=("⠋", "⠙", "⠹")),
        "line": SpinnerSpec(interval_ms=7, frames=("-", "\\", "|", "/")),
    }
