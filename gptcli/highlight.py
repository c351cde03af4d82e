"""Syntax highlighting for fenced code blocks in assistant replies.

Replies are free-form text with Markdown-style fenced blocks::

    Here is the fix:
    ```python
    print("hi")
    ```

``highlight`` finds each fenced block, resolves its language tag to a
pygments lexer, renders the body as 24-bit ANSI color line by line and puts
it back in place. Fence markers are removed from the result. Anything that
cannot be resolved is left as plain text; nothing here raises on bad input.

Exports:
    LANGUAGE_ALIASES: dict[str, str] - Natural names mapped to lookup tokens.
    CodeSpan: A located fenced block.
    GrammarSet: Lexer lookup by short language token.
    find_code_spans: Locate fenced blocks in a reply.
    highlight_lines: Tokenize a code body into styled lines.
    highlight: Render a whole reply for the terminal.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from pygments.lexer import Lexer
from pygments.lexers import find_lexer_class_for_filename
from pygments.style import StyleMeta
from pygments.styles import get_style_by_name
from pygments.token import Token, _TokenType
from pygments.util import ClassNotFound
from rich.color import Color
from rich.style import Style

from gptcli.errors import ConfigError

logger = logging.getLogger(__name__)

FENCE = "```"

CODE_BLOCK_PATTERN = re.compile(r"```(?P<language>\w+)(?:\r?\n|\r)(?P<code>[\s\S]*?)\r?\n```")
INLINE_CODE_PATTERN = re.compile(r"`(?P<code>[^`]+)`")
SGR_PATTERN = re.compile(r"\x1b\[[0-9;]*m")
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")
# Pygments hands back "\n" for every line break it saw
TOKEN_LINE_PATTERN = re.compile(r"[^\n]*\n|[^\n]+")

SGR_RESET = "\x1b[0m"

TAG_STYLE = Style(color="grey50")
INLINE_CODE_STYLE = Style(color="grey50", italic=True, bold=True)

# Language names models like to write, mapped to the file extension the
# lexer lookup understands
LANGUAGE_ALIASES: dict[str, str] = {
    "rust": "rs",
    "javascript": "js",
    "python": "py",
    "typescript": "ts",
    "kotlin": "kt",
    "ruby": "rb",
    "bash": "sh",
    "shell": "sh",
    "zsh": "sh",
    "powershell": "ps1",
    "elixir": "ex",
    "erlang": "erl",
    "haskell": "hs",
    "webassembly": "wat",
    "assembly": "asm",
    "markdown": "md",
    "golang": "go",
    "csharp": "cs",
    "cplusplus": "cpp",
}

RGB = tuple[int, int, int]
StyledLine = list[tuple[RGB | None, str]]
# Text pieces of a reply being rendered; frozen pieces are finished escapes
# or renderings and are never searched again
Segment = tuple[str, bool]


@dataclass(frozen=True)
class CodeSpan:
    """A fenced code block located in a reply.

    Attributes:
        language: Tag written after the opening fence.
        body: Code between the fences, without the final line break.
        start: Offset of the opening fence in the source text.
        end: Offset just past the closing fence.

    """

    language: str
    body: str
    start: int
    end: int


class GrammarSet:
    """Pygments lexers looked up by short language token.

    A token is treated as a file extension (``rs``, ``py``, ``ts``), the way
    editors pick a grammar. Lookups are cached per token.
    """

    def __init__(self) -> None:
        self._cache: dict[str, type[Lexer] | None] = {}

    def find(self, token: str) -> Lexer | None:
        if token not in self._cache:
            self._cache[token] = find_lexer_class_for_filename(f"snippet.{token}")
        lexer_cls = self._cache[token]
        if lexer_cls is None:
            return None
        # Keep the body byte-for-byte: no newline stripping or appending
        return lexer_cls(stripnl=False, ensurenl=False)


def load_theme(name: str) -> StyleMeta:
    """Look up a pygments style by name.

    Raises:
        ConfigError: If no style has that name.

    """
    try:
        return get_style_by_name(name)
    except ClassNotFound as e:
        raise ConfigError(f"Unknown code theme: {name!r}") from e


def find_code_spans(text: str) -> list[CodeSpan]:
    """Locate every well-formed fenced block in ``text``, in order."""
    return [
        CodeSpan(
            language=match.group("language"),
            body=match.group("code"),
            start=match.start(),
            end=match.end(),
        )
        for match in CODE_BLOCK_PATTERN.finditer(text)
    ]


def resolve_grammar(language: str, grammars: GrammarSet) -> Lexer | None:
    """Find a lexer for ``language``, trying the alias table once on a miss."""
    lexer = grammars.find(language)
    if lexer is None:
        alias = LANGUAGE_ALIASES.get(language.lower())
        if alias is not None:
            lexer = grammars.find(alias)
    return lexer


def _hex_to_rgb(value: str) -> RGB | None:
    value = value.lstrip("#")
    # Styles may also name ANSI palette colors ("ansired"); those have no RGB
    if len(value) != 6:
        return None
    try:
        return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    except ValueError:
        return None


def _token_color(theme: StyleMeta, token_type: _TokenType) -> RGB | None:
    color = theme.style_for_token(token_type)["color"]
    if not color:
        color = theme.style_for_token(Token)["color"]
    return _hex_to_rgb(color) if color else None


def highlight_lines(body: str, lexer: Lexer, theme: StyleMeta) -> list[StyledLine]:
    """Tokenize ``body`` into one styled line per source line.

    The whole body goes through a single lexer pass so constructs that span
    lines (block comments, multi-line strings) keep their state. Tokens are
    then cut at line breaks and each line gets back the ending it had in
    ``body`` (``\\r\\n``, ``\\r`` or ``\\n``).
    """
    endings = LINE_BREAK_PATTERN.findall(body)
    lines: list[StyledLine] = [[]]
    for token_type, value in lexer.get_tokens(body):
        color = _token_color(theme, token_type)
        for piece in TOKEN_LINE_PATTERN.findall(value):
            if not piece.endswith("\n"):
                lines[-1].append((color, piece))
                continue
            index = len(lines) - 1
            ending = endings[index] if index < len(endings) else "\n"
            lines[-1].append((color, piece[:-1] + ending))
            lines.append([])
    if not lines[-1]:
        lines.pop()
    return lines


def render_line(line: StyledLine) -> str:
    """Render one styled line as 24-bit ANSI text followed by a reset."""
    parts: list[str] = []
    for color, text in line:
        if color is None:
            parts.append(text)
        else:
            codes = ";".join(Color.from_rgb(*color).get_ansi_codes(foreground=True))
            parts.append(f"\x1b[{codes}m{text}")
    parts.append(SGR_RESET)
    return "".join(parts)


def _split_escapes(text: str) -> list[Segment]:
    """Cut ``text`` so SGR sequences already present become frozen segments."""
    segments: list[Segment] = []
    position = 0
    for match in SGR_PATTERN.finditer(text):
        if match.start() > position:
            segments.append((text[position:match.start()], False))
        segments.append((match.group(), True))
        position = match.end()
    if position < len(text):
        segments.append((text[position:], False))
    return segments


def _substitute(
    segments: list[Segment],
    pattern: re.Pattern[str],
    replace: Callable[[re.Match[str]], str],
) -> list[Segment]:
    """Replace every match of ``pattern`` in the unfrozen segments.

    Replacements come back frozen, so later substitutions cannot reach into
    text this module produced.
    """
    result: list[Segment] = []
    for value, frozen in segments:
        if frozen:
            result.append((value, frozen))
            continue
        position = 0
        for match in pattern.finditer(value):
            if match.start() > position:
                result.append((value[position:match.start()], False))
            result.append((replace(match), True))
            position = match.end()
        if position < len(value):
            result.append((value[position:], False))
    return result


def _emphasize_inline(match: re.Match[str]) -> str:
    return INLINE_CODE_STYLE.render(match.group("code"))


def highlight(
    text: str,
    grammars: GrammarSet,
    theme: StyleMeta,
    inline_code: bool = False,
) -> str:
    """Render a reply for direct printing to a truecolor terminal.

    Bodies are spliced back by plain substring replacement, so a body that
    also appears verbatim in the prose is replaced there too. Only the
    reply's own text is searched: escapes already in it and everything
    rendered here are left alone.

    Args:
        text: Raw reply text.
        grammars: Lexer lookup.
        theme: Pygments style supplying token colors.
        inline_code: Also restyle `single-backtick` spans and drop their
            backticks.

    Returns:
        Text with code blocks colored and every fence marker removed.

    """
    segments = _split_escapes(text)

    for span in find_code_spans(text):
        lexer = resolve_grammar(span.language, grammars)
        if lexer is None:
            logger.debug("No grammar for language %r, leaving block plain", span.language)
            continue

        # Only this exact tag: "```py" must not touch "```python"
        tag = re.compile(re.escape(FENCE + span.language) + r"(?=\r?\n|\r)")
        greyed = TAG_STYLE.render(span.language)
        segments = _substitute(segments, tag, lambda _: greyed)

        if not span.body:
            continue
        rendered = "".join(render_line(line) for line in highlight_lines(span.body, lexer, theme))
        segments = _substitute(segments, re.compile(re.escape(span.body)), lambda _: rendered)

    segments = [(value.replace(FENCE, ""), frozen) for value, frozen in segments]

    if inline_code:
        segments = _substitute(segments, INLINE_CODE_PATTERN, _emphasize_inline)

    return "".join(value for value, _ in segments)
