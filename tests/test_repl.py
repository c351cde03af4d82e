# tests/test_repl.py
"""Tests for the interactive loop and slash commands."""

import json
import random

import pytest

from gptcli.config import CONFIG_FILE
from gptcli.errors import CompletionError
from gptcli.repl import PROMPT, Repl
from gptcli.session import ConversationSession


def scripted(*lines, end=EOFError):
    """Line reader returning ``lines`` in order, then raising ``end``."""
    remaining = list(lines)
    prompts = []

    async def read_line(prompt):
        prompts.append(prompt)
        if not remaining:
            raise end
        return remaining.pop(0)

    read_line.prompts = prompts
    return read_line


@pytest.fixture
def session(backend, settings, spinners, console):
    return ConversationSession(backend, settings, spinners, console, rng=random.Random(3))


def make_repl(session, console, tmp_path, reader):
    return Repl(session, console, tmp_path, read_line=reader)


@pytest.mark.asyncio
async def test_sends_lines_and_skips_blanks(session, backend, console, tmp_path):
    """Non-blank lines should be sent as turns."""
    reader = scripted("hello", "   ", "again")

    await make_repl(session, console, tmp_path, reader).run()

    assert [calls[0][-1].content for calls in backend.calls] == ["hello", "again"]
    assert reader.prompts[0] == PROMPT
    assert "CTRL-D" in console.file.getvalue()


@pytest.mark.asyncio
async def test_initial_message_sent_first(session, backend, console, tmp_path):
    """The command line message should be sent before prompting."""
    reader = scripted()

    await make_repl(session, console, tmp_path, reader).run("from argv")

    assert backend.calls[0][0][-1].content == "from argv"


@pytest.mark.asyncio
async def test_ctrl_c_says_goodbye(session, console, tmp_path):
    """Ctrl-C at the prompt should say goodbye and stop."""
    await make_repl(session, console, tmp_path, scripted(end=KeyboardInterrupt)).run()
    assert "Buh-bye!" in console.file.getvalue()


@pytest.mark.asyncio
async def test_exit_stops_reading(session, backend, console, tmp_path):
    """/exit should stop the loop."""
    reader = scripted("/exit", "never sent")

    await make_repl(session, console, tmp_path, reader).run()

    assert backend.calls == []
    assert len(reader.prompts) == 1


@pytest.mark.asyncio
async def test_failed_turn_keeps_looping(session, backend, console, tmp_path):
    """A failed request should be reported and the loop continue."""
    backend.error = CompletionError("API returned 503: overloaded", status_code=503)
    reader = scripted("one", "two")

    await make_repl(session, console, tmp_path, reader).run()

    assert len(backend.calls) == 2
    assert "overloaded" in console.file.getvalue()
    assert len(session.history) == 1


class TestCommands:
    """Tests for slash command dispatch."""

    @pytest.mark.asyncio
    async def test_clear(self, session, console, tmp_path):
        """/clear should reset the conversation."""
        await make_repl(session, console, tmp_path, scripted("hi", "/clear")).run()

        assert len(session.history) == 1
        assert "Conversation history has been cleared" in console.file.getvalue()

    def test_prompt_reseeds(self, session, settings, console, tmp_path, monkeypatch):
        """/prompt should replace the seed and reset the conversation."""
        monkeypatch.setattr("gptcli.repl.ask_text", lambda console, message: "Answer in haiku.")
        session.history.add("user", "hi")

        keep_going = make_repl(session, console, tmp_path, scripted()).handle_command("/prompt")

        assert keep_going is True
        assert settings.app.prompt == "Answer in haiku."
        assert [m.content for m in session.history.messages] == ["Answer in haiku."]

    def test_save_confirmed(self, session, settings, console, tmp_path, monkeypatch):
        """/save should write config.json when confirmed."""
        monkeypatch.setattr("gptcli.repl.confirm", lambda console, message: True)
        settings.openai.model = "gpt-4o"

        make_repl(session, console, tmp_path, scripted()).handle_command("/save")

        saved = json.loads((tmp_path / CONFIG_FILE).read_text(encoding="utf-8"))
        assert saved["openai"]["model"] == "gpt-4o"

    def test_save_declined(self, session, console, tmp_path, monkeypatch):
        """/save should write nothing when declined."""
        monkeypatch.setattr("gptcli.repl.confirm", lambda console, message: False)

        make_repl(session, console, tmp_path, scripted()).handle_command("/save")

        assert not (tmp_path / CONFIG_FILE).exists()

    def test_help_lists_commands(self, session, console, tmp_path):
        """/help should list every command."""
        make_repl(session, console, tmp_path, scripted()).handle_command("/help")

        output = console.file.getvalue()
        for name in ("/clear", "/prompt", "/save", "/help", "/exit"):
            assert name in output

    def test_unknown_command(self, session, console, tmp_path):
        """Unknown commands should be reported and the loop continue."""
        keep_going = make_repl(session, console, tmp_path, scripted()).handle_command("/frobnicate")

        assert keep_going is True
        assert "Unknown command: " in console.file.getvalue()
        assert "frobnicate" in console.file.getvalue()

    def test_exit(self, session, console, tmp_path):
        """handle_command should return False for /exit."""
        assert make_repl(session, console, tmp_path, scripted()).handle_command("/exit") is False
