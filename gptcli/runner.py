"""Startup, interactive loop and shutdown for one gptcli run."""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from gptcli import __version__
from gptcli.backends import create_backend
from gptcli.config import LOGS_DIR, default_config_dir, default_data_dir, load_settings, save_settings
from gptcli.credentials import obtain_api_key
from gptcli.errors import CompletionError, ConfigError, SpinnerCatalogError
from gptcli.repl import Repl
from gptcli.session import ConversationSession
from gptcli.spinners import load_catalog
from gptcli.ui import create_console, print_banner, print_error, print_info

logger = logging.getLogger(__name__)

console = create_console()


@dataclass
class RunConfig:
    """Configuration for a gptcli run.

    Attributes:
        message: Words given on the command line. Sent as the first turn
            unless the first word is "c" (continue straight to the prompt).
        config_dir: Settings/key/spinner directory. Platform default if None.
        data_dir: Logs directory root. Platform default if None.
        model: Model override for this run only.
        debug: Write a debug log into the data directory.
        inline_code: Restyle `single-backtick` spans in replies.
        seed: Seed for spinner selection; random if None.
        backend: Backend name.

    """

    message: list[str] = field(default_factory=list)
    config_dir: Path | None = None
    data_dir: Path | None = None
    model: str | None = None
    debug: bool = False
    inline_code: bool = False
    seed: int | None = None
    backend: str = "openai"

    @property
    def initial_message(self) -> str | None:
        if not self.message or self.message[0] == "c":
            return None
        return " ".join(self.message)

    def resolved_config_dir(self) -> Path:
        return self.config_dir or default_config_dir()

    def resolved_data_dir(self) -> Path:
        return self.data_dir or default_data_dir()


def configure_logging(data_dir: Path, debug: bool) -> Path | None:
    """Route package logs to a timestamped debug file or to stderr.

    Returns:
        Path of the debug log, or None when debug logging is off.

    """
    package_logger = logging.getLogger("gptcli")
    package_logger.handlers.clear()
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")

    if debug:
        data_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = data_dir / f"debug-{timestamp}.log"
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
        package_logger.setLevel(logging.DEBUG)
    else:
        path = None
        handler = logging.StreamHandler()
        package_logger.setLevel(logging.WARNING)

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)
    return path


async def run(config: RunConfig) -> int:
    """Run gptcli until the user leaves.

    Args:
        config: Run configuration from the command line.

    Returns:
        Process exit code: 0 on a normal exit, 1 when setup failed.

    """
    config_dir = config.resolved_config_dir()
    data_dir = config.resolved_data_dir()

    debug_log_path = configure_logging(data_dir, config.debug)
    if debug_log_path:
        print_info(console, f"Debug log: {debug_log_path}")

    try:
        settings = load_settings(config_dir)
        spinners = load_catalog(config_dir)
    except (ConfigError, SpinnerCatalogError) as e:
        print_error(console, "Setup Failed", str(e))
        return 1

    if config.model:
        settings.openai.model = config.model

    try:
        api_key = await obtain_api_key(
            console,
            settings,
            config_dir,
            lambda key: create_backend(config.backend, key),
        )
    except CompletionError as e:
        print_error(console, "Setup Failed", str(e))
        return 1

    try:
        session = ConversationSession(
            create_backend(config.backend, api_key),
            settings,
            spinners,
            console,
            rng=random.Random(config.seed),
            inline_code=config.inline_code,
        )
    except (ConfigError, SpinnerCatalogError) as e:
        print_error(console, "Setup Failed", str(e))
        return 1

    print_banner(console, "gptcli", f"v{__version__} · {settings.openai.model}")

    try:
        await Repl(session, console, config_dir).run(config.initial_message)
    finally:
        save_settings(config_dir, settings)
        if settings.app.save_conversation:
            json_path, _ = session.history.save(data_dir / LOGS_DIR)
            logger.info("Conversation saved to %s", json_path)
        if debug_log_path:
            print_info(console, f"Debug log saved: {debug_log_path}")

    return 0
