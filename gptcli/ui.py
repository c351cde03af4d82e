"""Terminal UI components for gptcli.

Themed output helpers built on Rich: banner, status panels, the finished
line that replaces the waiting animation, and the reply itself.
"""

import pyfiglet
from rich import box
from rich.color import Color
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.style import Style
from rich.text import Text
from rich.theme import Theme

from gptcli.animation import elapsed_unit, rainbow_color


# =============================================================================
# Palette
# =============================================================================

NEON_COLORS = {
    "foreground": "#F8F8F2",
    "red": "#FF5555",
    "green": "#50FA7B",
    "yellow": "#F1FA8C",
    "purple": "#BD93F9",
    "pink": "#FF79C6",
    "cyan": "#8BE9FD",
}

NEON_THEME = Theme({
    "neon.fg": NEON_COLORS["foreground"],
    "neon.ok": NEON_COLORS["green"],
    "neon.accent": NEON_COLORS["cyan"],
    "neon.dim": f"dim {NEON_COLORS['foreground']}",
    # Turn output
    "neon.check": f"bold {NEON_COLORS['green']}",
    "neon.time": "bold green",
    "neon.prefix": "bold green",
})

# Banner columns walk the same color wheel as the spinner line
BANNER_PHASE_OFFSET = 8
BANNER_RAINBOW_SPEED = 12.0


def create_console() -> Console:
    """Create a themed Console. Reply text is printed without auto-highlighting."""
    return Console(theme=NEON_THEME, highlight=False)


# =============================================================================
# Banner
# =============================================================================


def _banner_style(column: int) -> Style:
    r, g, b = rainbow_color(column + BANNER_PHASE_OFFSET, BANNER_RAINBOW_SPEED)
    return Style(color=Color.from_rgb(r, g, b), bold=True)


def print_banner(console: Console, text: str, tagline: str) -> None:
    """Print the startup banner: figlet art swept through the spinner's rainbow.

    Args:
        console: Rich Console instance for output.
        text: Word rendered as figlet art.
        tagline: Dim line printed under the art.

    """
    try:
        figure = pyfiglet.figlet_format(text, font="slant")
    except pyfiglet.FigletError:
        figure = pyfiglet.figlet_format(text, font="standard")

    art = Text()
    for row in figure.rstrip("\n").splitlines():
        for column, glyph in enumerate(row):
            art.append(glyph, style=None if glyph.isspace() else _banner_style(column))
        art.append("\n")
    art.append(f"  {tagline}", style=Style(color=NEON_COLORS["pink"], dim=True))

    console.print(Panel(
        art,
        box=box.HEAVY,
        border_style=Style(color=NEON_COLORS["purple"], dim=True),
        padding=(0, 2),
        expand=False,
    ))


# =============================================================================
# Status Components
# =============================================================================


def print_error(console: Console, title: str, message: str) -> None:
    """Print a failure inside a red double-edged panel.

    Args:
        console: Rich Console instance for output.
        title: Short heading, e.g. "Request Failed".
        message: What went wrong, usually ``str(error)``.

    """
    red = Style(color=NEON_COLORS["red"])
    console.print(Panel(
        Text(message, style=red),
        title=f"⚠️  {title}",
        title_align="left",
        box=box.DOUBLE_EDGE,
        border_style=red,
        padding=(0, 1),
    ))


def print_warning(console: Console, message: str) -> None:
    yellow = Style(color=NEON_COLORS["yellow"])
    console.print(Panel(Text(message, style=yellow), box=box.ROUNDED, border_style=yellow, padding=(0, 1)))


def print_success(console: Console, message: str) -> None:
    console.print(Text.assemble(("✔ ", "neon.check"), (message, "neon.ok")))


def print_info(console: Console, message: str) -> None:
    console.print(Text.assemble(("ℹ ", "neon.accent"), (message, "neon.fg")))


def print_dim(console: Console, message: str) -> None:
    console.print(Text(message, style="neon.dim"))


def print_unknown_command(console: Console, command: str) -> None:
    console.print(Text.assemble("Unknown command: ", (command, "bold red")))


def print_commands(console: Console, commands: list[tuple[str, str]]) -> None:
    """Print the slash command reference.

    Args:
        console: Rich Console instance for output.
        commands: List of (command, description) tuples.

    """
    text = Text()
    for name, description in commands:
        text.append(f"  {name:<10}", style=Style(color=NEON_COLORS["cyan"], bold=True))
        text.append(f"{description}\n", style=Style(color=NEON_COLORS["foreground"]))
    console.print(Panel(
        text,
        title="Commands",
        title_align="left",
        box=box.ROUNDED,
        border_style=Style(color=NEON_COLORS["pink"]),
        padding=(0, 1),
    ))


# =============================================================================
# Turn Components
# =============================================================================


def print_finished(console: Console, elapsed: float) -> None:
    """Print the check mark line that replaces the waiting animation."""
    console.print(Text.assemble(
        ("✓", "neon.check"),
        " (finished in ",
        (f"{elapsed:.2f}", "neon.time"),
        f"{elapsed_unit(elapsed)})",
    ))


def print_reply(console: Console, prefix: str, rendered: str) -> None:
    """Print a reply that may carry ANSI color from the highlighter.

    Args:
        console: Rich Console instance for output.
        prefix: Label shown before the reply.
        rendered: Reply text, possibly with embedded escape sequences.

    """
    console.print()
    line = Text.assemble((prefix, "neon.prefix"), ": ")
    line.append_text(Text.from_ansi(rendered))
    console.print(line)
    console.print()


# =============================================================================
# Prompt Components
# =============================================================================


def ask_secret(console: Console, message: str) -> str:
    return Prompt.ask(Text(message, style="neon.accent"), console=console, password=True)


def ask_text(console: Console, message: str) -> str:
    return Prompt.ask(Text(message, style="neon.accent"), console=console)


def confirm(console: Console, message: str) -> bool:
    return Confirm.ask(Text(message, style="neon.accent"), console=console)
