"""One chat session: transcript, completion calls and reply rendering."""

import logging
import random
import time
from collections.abc import Callable

import anyio
from rich.console import Console

from gptcli.animation import AnimationScheduler, ElapsedTimer, restore_terminal
from gptcli.backends import Backend, Completion, CompletionParams
from gptcli.config import Settings
from gptcli.errors import CompletionError, SpinnerCatalogError
from gptcli.highlight import GrammarSet, highlight, load_theme
from gptcli.history import ConversationHistory
from gptcli.spinners import SpinnerCatalog, choose_spinner
from gptcli.ui import print_finished, print_reply

logger = logging.getLogger(__name__)


class ConversationSession:
    """Run turns against a backend and print the replies.

    Everything that can be checked up front (spinner catalog, code theme) is
    checked here so a turn never fails on setup data.

    Args:
        backend: Completion backend used for every turn.
        settings: Loaded settings; read on every turn so edits apply live.
        spinners: Non-empty spinner catalog.
        console: Console for the animation and the reply.
        rng: Random source for spinner selection.
        inline_code: Restyle `single-backtick` spans in replies.
        clock: Monotonic clock used for elapsed times.

    Raises:
        SpinnerCatalogError: If ``spinners`` is empty.
        ConfigError: If the animation settings are unusable or the configured
            code theme does not exist.

    """

    def __init__(
        self,
        backend: Backend,
        settings: Settings,
        spinners: SpinnerCatalog,
        console: Console,
        rng: random.Random | None = None,
        inline_code: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not spinners:
            raise SpinnerCatalogError("Spinner catalog is empty")
        settings.app.validate()
        self.backend = backend
        self.settings = settings
        self.spinners = spinners
        self.console = console
        self.rng = rng or random.Random()
        self.inline_code = inline_code
        self.grammars = GrammarSet()
        self.theme = load_theme(settings.app.code_theme)
        self.history = ConversationHistory(seed_prompt=settings.app.prompt)
        self._clock = clock

    @property
    def params(self) -> CompletionParams:
        openai = self.settings.openai
        return CompletionParams(
            model=openai.model,
            max_tokens=openai.max_tokens,
            temperature=openai.temperature,
            top_p=openai.top_p,
            frequency_penalty=openai.frequency_penalty,
            presence_penalty=openai.presence_penalty,
            stop=list(openai.stop),
        )

    def render(self, content: str) -> str:
        return highlight(content, self.grammars, self.theme, inline_code=self.inline_code)

    async def send(self, text: str) -> Completion:
        """Send one user turn, animating while the request is outstanding.

        Args:
            text: The user's message.

        Returns:
            The completion that was printed.

        Raises:
            CompletionError: If the request failed. The user message is
                removed again so the transcript is unchanged.

        """
        app = self.settings.app
        spinner = choose_spinner(self.spinners, self.rng)
        timer = ElapsedTimer(self._clock)

        self.history.add("user", text)
        self.console.show_cursor(False)
        self.console.print()

        scheduler = AnimationScheduler(
            self.console,
            spinner,
            rainbow_speed=app.rainbow_speed,
            rainbow_delay=app.rainbow_delay,
            timer=timer,
        )
        completion: Completion | None = None
        failure: CompletionError | None = None
        try:
            async with anyio.create_task_group() as tg:
                handle = scheduler.start(tg)
                try:
                    completion = await self.backend.complete(self.history.messages, self.params)
                except CompletionError as e:
                    failure = e
                finally:
                    handle.cancel()
        finally:
            restore_terminal(self.console)
            if completion is None:
                self.history.pop()

        if failure is not None:
            logger.warning("Turn failed: %s", failure)
            raise failure
        assert completion is not None

        reply = completion.message
        self.history.add(reply.role, reply.content)
        logger.debug(
            "Turn finished in %.2fs (%d prompt / %d completion tokens)",
            timer.elapsed(),
            completion.usage.prompt_tokens,
            completion.usage.completion_tokens,
        )

        print_finished(self.console, timer.elapsed())
        print_reply(self.console, app.response_prefix, self.render(reply.content))
        return completion
