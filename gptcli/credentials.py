"""API key lookup, interactive entry and storage."""

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from rich.console import Console

from gptcli.backends import Backend
from gptcli.config import API_KEY_ENV, API_KEY_FILE, CONFIG_FILE, Settings
from gptcli.ui import ask_secret, confirm, print_error, print_info

logger = logging.getLogger(__name__)


def read_stored_key(config_dir: Path, env: Mapping[str, str] = os.environ) -> str | None:
    """Return the API key from the environment or the key file, if any."""
    key = env.get(API_KEY_ENV, "").strip()
    if key:
        logger.debug("Using API key from %s", API_KEY_ENV)
        return key
    path = config_dir / API_KEY_FILE
    if path.exists():
        key = path.read_text(encoding="utf-8").strip()
        if key:
            return key
        logger.warning("%s is empty, ignoring it", path)
    return None


def store_key(config_dir: Path, key: str) -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / API_KEY_FILE
    path.write_text(key, encoding="utf-8")
    path.chmod(0o600)
    return path


async def obtain_api_key(
    console: Console,
    settings: Settings,
    config_dir: Path,
    backend_factory: Callable[[str], Backend],
    env: Mapping[str, str] = os.environ,
) -> str:
    """Find an API key, asking the user for one when none is stored.

    A typed key is checked against the API before it is accepted. When
    ``notify_save`` is on the user is offered to store it; declining and
    then declining "ask again" turns ``notify_save`` off.

    Args:
        console: Console used for prompts.
        settings: Settings whose ``app.notify_save`` may be updated.
        config_dir: Directory holding the key file.
        backend_factory: Builds a backend for a candidate key.
        env: Environment to read ``OPENAI_API_KEY`` from.

    Returns:
        A usable API key.

    Raises:
        CompletionError: If the API cannot be reached to verify a key.

    """
    stored = read_stored_key(config_dir, env)
    if stored:
        return stored

    while True:
        key = ask_secret(console, "Enter your OpenAI API key").strip()
        if not key:
            continue

        if not await backend_factory(key).verify_key():
            print_error(console, "Invalid Key", "Invalid OpenAI API key")
            continue

        if not settings.app.notify_save:
            return key

        if confirm(console, "Save OpenAI API key?"):
            path = store_key(config_dir, key)
            print_info(console, f"OpenAI key has been stored in {path}. Delete it if you wish.")
            return key

        if not confirm(console, f"Ask again next time? (you can change this in {config_dir / CONFIG_FILE})"):
            settings.app.notify_save = False
        return key
