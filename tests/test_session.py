# tests/test_session.py
"""Tests for ConversationSession turns."""

import random
import re

import pytest

from gptcli.backends import Message
from gptcli.errors import CompletionError, ConfigError, SpinnerCatalogError
from gptcli.session import ConversationSession

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


def strip_ansi(text):
    return ANSI_ESCAPE.sub("", text)


@pytest.fixture
def session(backend, settings, spinners, console):
    return ConversationSession(backend, settings, spinners, console, rng=random.Random(1))


@pytest.fixture
def restore_calls(monkeypatch):
    """Count calls to restore_terminal made by the session."""
    from gptcli import session as session_module

    calls = []
    original = session_module.restore_terminal

    def counting_restore(console):
        calls.append(console)
        original(console)

    monkeypatch.setattr(session_module, "restore_terminal", counting_restore)
    return calls


def test_empty_spinner_catalog_fails_fast(backend, settings, console):
    """An empty spinner catalog should fail at session setup."""
    with pytest.raises(SpinnerCatalogError):
        ConversationSession(backend, settings, {}, console)


def test_unknown_code_theme_fails_fast(backend, settings, spinners, console):
    """An unknown code theme should fail at session setup."""
    settings.app.code_theme = "no-such-theme"
    with pytest.raises(ConfigError):
        ConversationSession(backend, settings, spinners, console)


@pytest.mark.parametrize(("key", "value"), [("rainbow_speed", 0), ("rainbow_delay", -5)])
def test_unusable_animation_settings_fail_fast(backend, settings, spinners, console, key, value):
    """Animation settings the spinner cannot run with should fail at session setup."""
    setattr(settings.app, key, value)
    with pytest.raises(ConfigError, match=key):
        ConversationSession(backend, settings, spinners, console)


def test_params_follow_settings(session, settings):
    """Request params should reflect the current settings."""
    settings.openai.model = "gpt-4o"
    settings.openai.stop = ["END"]

    params = session.params

    assert params.model == "gpt-4o"
    assert params.max_tokens == settings.openai.max_tokens
    assert params.temperature == settings.openai.temperature
    assert params.stop == ["END"]


@pytest.mark.asyncio
async def test_successful_turn(session, backend, console, restore_calls):
    """A turn should record both messages and print the highlighted reply."""
    backend.reply = "Here:\n```python\nprint('hi')\n```\nDone."

    completion = await session.send("show me")

    assert completion.message.content == backend.reply
    assert session.history.messages[1:] == [
        Message(role="user", content="show me"),
        Message(role="assistant", content=backend.reply),
    ]
    sent_messages, _ = backend.calls[0]
    assert sent_messages[-1] == Message(role="user", content="show me")
    assert len(restore_calls) == 1

    output = console.file.getvalue()
    plain = strip_ansi(output)
    assert "finished in" in plain
    assert "GPT: Here:" in plain
    assert "```" not in plain
    assert "38;2;" in output
    # Cursor is visible again once the turn is over
    assert output.rfind("\x1b[?25h") > output.rfind("\x1b[?25l")


@pytest.mark.asyncio
async def test_animation_paints_while_waiting(session, backend, console):
    """The status line should be painted while the request is pending."""
    backend.delay = 0.1

    await session.send("hi")

    assert "\x1b[1G" in console.file.getvalue()


@pytest.mark.asyncio
async def test_failed_turn_leaves_transcript_unchanged(session, backend, console, restore_calls):
    """A failed turn should leave the transcript as it was."""
    backend.error = CompletionError("API returned 500: boom", status_code=500)
    before = session.history.messages

    with pytest.raises(CompletionError, match="boom"):
        await session.send("hi")

    assert session.history.messages == before
    assert len(restore_calls) == 1
    assert "GPT:" not in strip_ansi(console.file.getvalue())


@pytest.mark.asyncio
async def test_turns_accumulate(session, backend):
    """Each turn should send the whole conversation so far."""
    await session.send("one")
    await session.send("two")

    roles = [m.role for m in session.history.messages]
    assert roles == ["user", "user", "assistant", "user", "assistant"]
    assert len(backend.calls[1][0]) == 4


@pytest.mark.asyncio
async def test_inline_code_mode(backend, settings, spinners, console):
    """inline_code should restyle backtick spans in replies."""
    session = ConversationSession(backend, settings, spinners, console, inline_code=True)
    backend.reply = "Run `make` first."

    await session.send("how?")

    assert "GPT: Run make first." in strip_ansi(console.file.getvalue())
