"""Waiting animation shown while a completion request is outstanding.

Two activities run side by side in an anyio task group for the lifetime of
one request:

- the frame cycler advances the spinner glyph on the spinner's own interval
  and writes it into a shared ``FrameCell``; it never touches the terminal.
- the painter redraws a single status line (glyph, dots, elapsed time) in a
  slowly rotating rainbow color; it is the only terminal writer.

Both loop forever. They stop only when ``AnimationHandle.cancel()`` cancels
their scopes, after which the caller restores the terminal with
``restore_terminal``. Any other exit is an ``AnimationFault``.
"""

import logging
import math
import threading
import time
from collections.abc import Awaitable, Callable
from enum import Enum

import anyio
import anyio.lowlevel
from anyio.abc import TaskGroup
from rich.color import Color
from rich.console import Console
from rich.control import Control, ControlType
from rich.style import Style
from rich.text import Text

from gptcli.errors import AnimationFault
from gptcli.spinners import SpinnerSpec

logger = logging.getLogger(__name__)

DOTS = (
    ".    ",
    "..   ",
    "...  ",
    ".... ",
    ".....",
    " ....",
    "  ...",
    "   ..",
    "    .",
    "     ",
)

SGR_RESET = "\x1b[0m"

DIM_STYLE = Style(color="grey50")
TIME_STYLE = Style(color="green", bold=True)


def elapsed_unit(seconds: float) -> str:
    """Pick the unit label for an elapsed duration.

    Thresholds are in seconds. Callers print the seconds figure whatever
    label comes back, so 90 seconds reads as "90.00m".
    """
    if seconds < 1.0:
        return "ms"
    if seconds < 60.0:
        return "s"
    if seconds < 3600.0:
        return "m"
    return "h"


def rainbow_color(phase: int, speed: float) -> tuple[int, int, int]:
    """Color for a paint tick: three squared sinusoids 120 degrees apart."""
    t = phase / speed
    r = math.sin(t) ** 2
    g = math.sin(t + 2.0 * math.pi / 3.0) ** 2
    b = math.sin(t + 4.0 * math.pi / 3.0) ** 2
    return int(r * 255.0), int(g * 255.0), int(b * 255.0)


class FrameCell:
    """Single-slot holder for the spinner glyph currently on display."""

    def __init__(self, initial: str) -> None:
        self._lock = threading.Lock()
        self._value = initial

    def set(self, value: str) -> None:
        with self._lock:
            self._value = value

    def get(self) -> str:
        with self._lock:
            return self._value


class ElapsedTimer:
    """Monotonic stopwatch started at construction."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._start = clock()

    @property
    def start(self) -> float:
        return self._start

    def elapsed(self) -> float:
        return self._clock() - self._start


class AnimationState(Enum):
    """Lifecycle of one animation handle."""

    IDLE = "idle"
    RUNNING = "running"
    CANCELLING = "cancelling"
    STOPPED = "stopped"


class AnimationHandle:
    """Controls the two activities started by ``AnimationScheduler.start``.

    Attributes:
        state: Current lifecycle state.

    """

    def __init__(self) -> None:
        self.state = AnimationState.IDLE
        self.frame_scope = anyio.CancelScope()
        self.paint_scope = anyio.CancelScope()
        self._alive = 0

    def cancel(self) -> None:
        """Stop both activities at their next checkpoint. Safe to call twice."""
        if self.state is not AnimationState.RUNNING:
            return
        self.state = AnimationState.CANCELLING
        self.frame_scope.cancel()
        self.paint_scope.cancel()

    def _launched(self) -> None:
        self._alive += 1
        self.state = AnimationState.RUNNING

    def _exited(self) -> None:
        self._alive -= 1
        if self._alive == 0:
            self.state = AnimationState.STOPPED


class AnimationScheduler:
    """Drive the waiting indicator for one outstanding request.

    Args:
        console: Console the status line is painted on.
        spinner: Spinner whose frames and interval are used.
        rainbow_speed: Divisor applied to the paint phase; larger is slower.
        rainbow_delay: Minimum paint period in milliseconds.
        timer: Elapsed-time source; a new one is started if omitted.

    """

    def __init__(
        self,
        console: Console,
        spinner: SpinnerSpec,
        rainbow_speed: float,
        rainbow_delay: int,
        timer: ElapsedTimer | None = None,
    ) -> None:
        self.console = console
        self.spinner = spinner
        self.rainbow_speed = rainbow_speed
        self.rainbow_delay = rainbow_delay
        self.timer = timer or ElapsedTimer()
        self.frame = FrameCell(spinner.frames[0])
        self.frame_ticks = 0
        self.paint_ticks = 0

    @property
    def frame_period(self) -> float:
        return self.spinner.interval_ms / 1000.0

    @property
    def paint_period(self) -> float:
        return max(self.spinner.interval_ms, self.rainbow_delay) / 1000.0

    def start(self, task_group: TaskGroup) -> AnimationHandle:
        """Launch both activities in ``task_group`` and return immediately."""
        handle = AnimationHandle()
        handle._launched()
        task_group.start_soon(self._supervise, self._cycle_frames, handle.frame_scope, handle)
        handle._launched()
        task_group.start_soon(self._supervise, self._paint, handle.paint_scope, handle)
        logger.debug(
            "Animation started (frame every %.3fs, paint every %.3fs)",
            self.frame_period,
            self.paint_period,
        )
        return handle

    async def _supervise(
        self,
        activity: Callable[[], Awaitable[None]],
        scope: anyio.CancelScope,
        handle: AnimationHandle,
    ) -> None:
        name = activity.__name__
        try:
            try:
                with scope:
                    await activity()
            except Exception as e:
                raise AnimationFault(f"Animation activity {name} crashed: {e}") from e
            if not scope.cancel_called:
                raise AnimationFault(f"Animation activity {name} returned without being cancelled")
        finally:
            handle._exited()

    async def _cycle_frames(self) -> None:
        frames = self.spinner.frames
        # Yield once first so a cancel issued right after start lands before any update
        await anyio.lowlevel.checkpoint()
        while True:
            for frame in frames:
                self.frame.set(frame)
                self.frame_ticks += 1
                await anyio.sleep(self.frame_period)

    async def _paint(self) -> None:
        phase = 0
        await anyio.lowlevel.checkpoint()
        while True:
            self.paint_once(phase)
            self.paint_ticks += 1
            await anyio.sleep(self.paint_period)
            phase += 1

    def paint_once(self, phase: int) -> None:
        """Redraw the status line for paint tick ``phase``."""
        r, g, b = rainbow_color(phase, self.rainbow_speed)
        elapsed = self.timer.elapsed()

        line = Text(style=Style(color=Color.from_rgb(r, g, b)))
        line.append(f" {self.frame.get()} ")
        line.append(DOTS[phase % len(DOTS)], style=DIM_STYLE)
        line.append(" (", style=DIM_STYLE)
        line.append(f"{elapsed:.2f}", style=TIME_STYLE)
        line.append(elapsed_unit(elapsed), style=DIM_STYLE)
        line.append(")", style=DIM_STYLE)

        self.console.control(Control.move_to_column(0))
        self.console.print(line, end="", soft_wrap=True, highlight=False)
        self.console.control(Control((ControlType.ERASE_IN_LINE, 0)))


def restore_terminal(console: Console) -> None:
    """Put the terminal back into a known state after the animation stops.

    Shows the cursor, resets colors and clears whatever the painter left on
    the current line. The painter may have been cancelled mid-line, so this
    runs unconditionally.
    """
    console.show_cursor(True)
    console.control(Control.move_to_column(0))
    console.file.write(SGR_RESET)
    console.control(Control((ControlType.ERASE_IN_LINE, 0)))
    console.file.flush()
