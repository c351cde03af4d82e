"""Interactive read-send-print loop with slash commands."""

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console

from gptcli.config import save_settings
from gptcli.errors import CompletionError
from gptcli.session import ConversationSession
from gptcli.ui import (
    ask_text,
    confirm,
    print_commands,
    print_dim,
    print_error,
    print_success,
    print_unknown_command,
)

logger = logging.getLogger(__name__)

PROMPT = ">> "

COMMANDS: list[tuple[str, str]] = [
    ("/clear", "Clear the conversation history"),
    ("/prompt", "Set a new seed prompt and clear the conversation"),
    ("/save", "Save the current configuration"),
    ("/help", "Show this help"),
    ("/exit", "Leave gptcli"),
]


def _default_reader() -> Callable[[str], Awaitable[str]]:
    prompt_session: PromptSession[str] = PromptSession(history=InMemoryHistory())
    return prompt_session.prompt_async


class Repl:
    """Read lines, dispatch commands and send everything else as a turn.

    Args:
        session: Conversation session turns are sent through.
        console: Console for command output.
        config_dir: Where ``/save`` writes settings.
        read_line: Async line reader; defaults to a prompt_toolkit session
            with in-memory history.

    """

    def __init__(
        self,
        session: ConversationSession,
        console: Console,
        config_dir: Path,
        read_line: Callable[[str], Awaitable[str]] | None = None,
    ) -> None:
        self.session = session
        self.console = console
        self.config_dir = config_dir
        self._read_line = read_line or _default_reader()

    async def submit(self, line: str) -> bool:
        """Send one turn. Returns False if the request failed."""
        try:
            await self.session.send(line)
        except CompletionError as e:
            print_error(self.console, "Request Failed", str(e))
            return False
        return True

    def handle_command(self, line: str) -> bool:
        """Run a slash command. Returns False when the loop should stop."""
        settings = self.session.settings
        if line == "/clear":
            self.session.history.reset()
            print_dim(self.console, "Conversation history has been cleared")
        elif line == "/prompt":
            prompt = ask_text(self.console, "Enter new prompt")
            settings.app.prompt = prompt
            self.session.history.reset(prompt)
        elif line == "/save":
            if confirm(self.console, "Save config?"):
                path = save_settings(self.config_dir, settings)
                print_success(self.console, f"Configuration saved to {path}")
        elif line == "/help":
            print_commands(self.console, COMMANDS)
        elif line == "/exit":
            return False
        else:
            print_unknown_command(self.console, line.removeprefix("/"))
        return True

    async def run(self, initial: str | None = None) -> None:
        """Loop until ``/exit``, Ctrl-C or Ctrl-D.

        Args:
            initial: Optional first turn sent before the first prompt.

        """
        if initial:
            await self.submit(initial)

        print_dim(self.console, "To clear the conversation history, type /clear")

        while True:
            try:
                line = await self._read_line(PROMPT)
            except KeyboardInterrupt:
                self.console.print()
                self.console.print("Buh-bye!")
                break
            except EOFError:
                self.console.print("CTRL-D")
                break

            line = line.strip()
            if not line:
                continue

            if line.startswith("/"):
                if not self.handle_command(line):
                    break
                continue

            await self.submit(line)
