"""Entry point for `python -m gptcli`.

Usage:
    python -m gptcli [options] [MESSAGE ...]
"""

from gptcli.cli import main

if __name__ == "__main__":
    main()
