"""Conversation transcript and its on-disk logs."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from gptcli.backends import Message

# Display names used in the plain-text log
ROLE_LABELS = {
    "user": "User",
    "assistant": "GPT",
}


@dataclass
class ConversationHistory:
    """Ordered messages exchanged in one session.

    The first message is always the seed prompt. ``reset`` drops everything
    else and re-seeds, optionally with a new prompt.
    """

    seed_prompt: str
    _messages: list[Message] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self._messages:
            self.reset()

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def add(self, role: str, content: str) -> Message:
        message = Message(role=role, content=content)
        self._messages.append(message)
        return message

    def pop(self) -> Message:
        """Remove and return the newest message."""
        return self._messages.pop()

    def reset(self, seed_prompt: str | None = None) -> None:
        """Clear the conversation back to the seed prompt."""
        if seed_prompt is not None:
            self.seed_prompt = seed_prompt
        self._messages.clear()
        self._messages.append(Message(role="user", content=self.seed_prompt))

    def to_json(self) -> str:
        return json.dumps([m.to_dict() for m in self._messages])

    def to_log(self) -> str:
        """Format as ``[Speaker]`` headed blocks separated by blank lines."""
        parts = []
        for message in self._messages:
            label = ROLE_LABELS.get(message.role, message.role)
            parts.append(f"[{label}]\n{message.content}\n\n")
        return "".join(parts)

    def save(self, logs_dir: Path, now: datetime | None = None) -> tuple[Path, Path]:
        """Write ``<timestamp>.json`` and ``<timestamp>.log`` into ``logs_dir``.

        Returns:
            Paths of the JSON and plain-text logs.

        """
        logs_dir.mkdir(parents=True, exist_ok=True)
        stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
        json_path = logs_dir / f"{stamp}.json"
        log_path = logs_dir / f"{stamp}.log"
        json_path.write_text(self.to_json(), encoding="utf-8")
        log_path.write_text(self.to_log(), encoding="utf-8")
        return json_path, log_path
