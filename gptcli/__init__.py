"""gptcli - Chat with OpenAI models from the terminal.

Send conversation turns to a chat-completions API and print the replies with
fenced code blocks syntax-highlighted in 24-bit color. While a request is in
flight a rainbow spinner shows how long it has been waiting.

Exports:
    __version__: str - The current version of the gptcli package.

Submodules:
    animation: Waiting animation driven by two concurrent activities.
    backends: Completion backend protocol and the OpenAI implementation.
    cli: Command-line interface with entry point and signal handling.
    config: Configuration constants and persisted settings.
    credentials: API key lookup, entry and storage.
    highlight: Fenced code block highlighting for replies.
    history: Conversation transcript and its on-disk logs.
    repl: Interactive loop and slash commands.
    runner: Startup and shutdown orchestration.
    session: One turn at a time against a backend.
    spinners: Spinner catalog loading and selection.
    ui: User interface utilities for terminal output.
"""

__version__ = "0.3.0"
