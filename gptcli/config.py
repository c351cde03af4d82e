"""Configuration constants and persisted settings for gptcli.

Provide centralized configuration values used throughout the gptcli package,
plus the settings file that survives between runs. The settings file is a
JSON document with an ``openai`` section (request parameters) and an ``app``
section (presentation and persistence switches).

Exports:
    APP_NAME: str - Name used for platform config/data directories.
    CONFIG_FILE: str - Settings filename inside the config directory.
    SPINNERS_FILE: str - Cached spinner catalog filename.
    API_KEY_FILE: str - Stored API key filename.
    SPINNERS_URL: str - Source of the spinner catalog.
    DEFAULT_PROMPT: str - Seed turn sent at the start of every conversation.
    Settings: Top-level settings dataclass.
    load_settings: Read settings from a config directory, creating defaults.
    save_settings: Write settings to a config directory.
"""

import json
import logging
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir

from gptcli.errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "gptcli"

CONFIG_FILE = "config.json"
SPINNERS_FILE = "spinners.json"
API_KEY_FILE = "openai.key"
PANIC_LOG_FILE = "panic.log"
LOGS_DIR = "logs"

# Environment variable that overrides the stored API key
API_KEY_ENV = "OPENAI_API_KEY"

OPENAI_BASE_URL = "https://api.openai.com/v1"
SPINNERS_URL = "https://raw.githubusercontent.com/sindresorhus/cli-spinners/master/spinners.json"

DEFAULT_PROMPT = "Please wrap any generated code in a Markdown code block."

# Pygments style used for fenced code blocks
DEFAULT_CODE_THEME = "monokai"


@dataclass
class OpenAISettings:
    """Request parameters sent with every completion.

    Attributes:
        model: Chat model identifier.
        max_tokens: Upper bound on generated tokens per reply.
        temperature: Sampling temperature.
        top_p: Nucleus sampling mass.
        frequency_penalty: Penalty for frequent tokens.
        presence_penalty: Penalty for tokens already present.
        stop: Optional stop sequences; empty means none.

    """

    model: str = "gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 0.9
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    stop: list[str] = field(default_factory=list)


@dataclass
class AppSettings:
    """Presentation and persistence switches.

    Attributes:
        prompt: Seed user turn placed at the head of every conversation.
        rainbow_speed: Divisor for the color phase; larger cycles slower.
        rainbow_delay: Minimum paint period in milliseconds.
        notify_save: Ask before saving the API key.
        save_conversation: Write the transcript to the logs directory on exit.
        response_prefix: Label printed before each reply.
        code_theme: Pygments style name for highlighted code.

    """

    prompt: str = DEFAULT_PROMPT
    rainbow_speed: float = 15.0
    rainbow_delay: int = 10
    notify_save: bool = True
    save_conversation: bool = True
    response_prefix: str = "GPT"
    code_theme: str = DEFAULT_CODE_THEME

    def validate(self) -> None:
        """Check the values the waiting animation divides and sleeps by.

        Raises:
            ConfigError: If ``rainbow_speed`` is not a positive number or
                ``rainbow_delay`` is not a non-negative integer.

        """
        speed = self.rainbow_speed
        if isinstance(speed, bool) or not isinstance(speed, (int, float)) or not math.isfinite(speed) or speed <= 0:
            raise ConfigError(f"rainbow_speed must be a positive number, got {speed!r}")
        delay = self.rainbow_delay
        if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
            raise ConfigError(f"rainbow_delay must be a non-negative integer, got {delay!r}")


@dataclass
class Settings:
    """All persisted settings."""

    openai: OpenAISettings = field(default_factory=OpenAISettings)
    app: AppSettings = field(default_factory=AppSettings)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from a parsed JSON document.

        Unknown keys are ignored and missing keys fall back to defaults, so
        files written by older versions keep loading.

        Raises:
            ConfigError: If a section is not an object or holds unusable values.

        """
        settings = cls(
            openai=_load_section(OpenAISettings, data.get("openai", {}), "openai"),
            app=_load_section(AppSettings, data.get("app", {}), "app"),
        )
        settings.app.validate()
        return settings


def _load_section(section_cls: type, raw: Any, name: str) -> Any:
    if not isinstance(raw, dict):
        raise ConfigError(f"Section '{name}' must be an object, got {type(raw).__name__}")
    known = {f.name for f in fields(section_cls)}
    unknown = set(raw) - known
    if unknown:
        logger.warning("Ignoring unknown keys in '%s': %s", name, ", ".join(sorted(unknown)))
    try:
        return section_cls(**{k: v for k, v in raw.items() if k in known})
    except TypeError as e:
        raise ConfigError(f"Invalid '{name}' section: {e}") from e


def default_config_dir() -> Path:
    return Path(user_config_dir(APP_NAME))


def default_data_dir() -> Path:
    return Path(user_data_dir(APP_NAME))


def save_settings(config_dir: Path, settings: Settings) -> Path:
    """Write settings to ``config_dir``.

    Args:
        config_dir: Directory holding the settings file.
        settings: Settings to persist.

    Returns:
        Path of the written file.

    """
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / CONFIG_FILE
    path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
    logger.debug("Saved settings to %s", path)
    return path


def load_settings(config_dir: Path) -> Settings:
    """Load settings from ``config_dir``, creating a default file on first run.

    Args:
        config_dir: Directory holding the settings file.

    Returns:
        The loaded settings.

    Raises:
        ConfigError: If the file exists but cannot be parsed.

    """
    path = config_dir / CONFIG_FILE
    if not path.exists():
        settings = Settings()
        save_settings(config_dir, settings)
        logger.info("Created default settings at %s", path)
        return settings

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return Settings.from_dict(data)
