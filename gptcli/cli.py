"""CLI entry point for gptcli."""

import argparse
import signal
import sys
import traceback
from pathlib import Path

import anyio

from gptcli import __version__
from gptcli.config import PANIC_LOG_FILE
from gptcli.runner import RunConfig, console, run
from gptcli.ui import print_dim, print_error


def _signal_handler(signum: int, frame: object) -> None:
    """Turn SIGTERM into the same unwind path as Ctrl-C."""
    raise KeyboardInterrupt


def _install_signal_handlers() -> None:
    signal.signal(signal.SIGTERM, _signal_handler)


def _write_panic_log(data_dir: Path, error: BaseException) -> Path:
    """Save a full traceback for a fatal error.

    Returns:
        Path of the written log.

    """
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / PANIC_LOG_FILE
    path.write_text(
        "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        encoding="utf-8",
    )
    return path


def _parse_args(argv: list[str] | None = None) -> RunConfig:
    """Turn argv into a RunConfig.

    Args:
        argv: Arguments without the program name; ``sys.argv[1:]`` if None.

    """
    parser = argparse.ArgumentParser(
        prog="gptcli",
        description="Chat with an OpenAI model from your terminal",
    )

    parser.add_argument(
        "message",
        nargs="*",
        metavar="MESSAGE",
        help='First message to send. Use "c" to go straight to the prompt.',
    )

    parser.add_argument(
        "--model", "-m",
        default=None,
        help="Model to use for this run (default: from config.json)",
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        dest="config_dir",
        metavar="DIR",
        help="Directory for config.json, openai.key and spinners.json",
    )

    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        dest="data_dir",
        metavar="DIR",
        help="Directory for conversation logs and debug logs",
    )

    parser.add_argument(
        "--inline-code",
        action="store_true",
        default=False,
        dest="inline_code",
        help="Emphasize `inline code` spans in replies",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for spinner selection",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Save debug log",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args(argv)

    return RunConfig(
        message=args.message,
        config_dir=args.config_dir,
        data_dir=args.data_dir,
        model=args.model,
        debug=args.debug,
        inline_code=args.inline_code,
        seed=args.seed,
    )


def main() -> None:
    """Start gptcli and exit with its status.

    Exit status is whatever ``run`` returns, 130 after Ctrl-C or SIGTERM, and
    1 after an unexpected error (its traceback goes to the panic log).
    """
    _install_signal_handlers()
    config = _parse_args()
    try:
        exit_code = anyio.run(run, config)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        console.show_cursor(True)
        console.print()
        print_dim(console, "Aborted by user")
        sys.exit(130)
    except Exception as e:
        console.show_cursor(True)
        console.print()
        print_error(console, "Fatal Error", str(e))
        path = _write_panic_log(config.resolved_data_dir(), e)
        print_dim(console, f"Panic info has been saved to {path}")
        sys.exit(1)


if __name__ == "__main__":
    main()
