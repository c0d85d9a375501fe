from __future__ import annotations

import datetime as dt
import math
import sys
from pathlib import Path
from typing import Callable, Iterable, Sequence

from .clusters import CLUSTERS, DEFAULT_DAYS, ClusterState
from .errors import ScriptError
from .identity import register_aliases
from .logstats import parse_log_file
from .models import EntityGraph
from .render import DrawingTarget, GridFigure, NoTarget, RenderBackend, WholeFigure
from .tokenizer import split_tokens

COMMAND_MARKER = ":"
COMMENT_MARKER = "#"


class ScriptCursor:
    """Line and token position over an immutable list of script lines."""

    def __init__(self, lines: Iterable[str], source: str = "") -> None:
        self.lines = tuple(lines)
        self.source = source
        self.line_no = 0
        self.tokens: list[str] = []
        self.index = 0
        self._hold = False

    def fail(self, message: str = "") -> ScriptError:
        return ScriptError(self.line_no, message, self.source)

    @property
    def at_end(self) -> bool:
        return self.line_no >= len(self.lines)

    def advance(self) -> list[str]:
        if self.at_end:
            raise self.fail("EOF")
        self.line_no += 1
        self.tokens = split_tokens(self.lines[self.line_no - 1])
        self.index = 0
        return self.tokens

    def hold(self) -> None:
        # The current line is handed back: the next next_line() keeps it.
        self._hold = True

    def next_line(self) -> bool:
        if self._hold:
            self._hold = False
            self.index = 0
            return True
        if self.at_end:
            return False
        self.advance()
        return True

    @property
    def has_token(self) -> bool:
        return self.index < len(self.tokens)

    @property
    def tokens_left(self) -> int:
        return max(0, len(self.tokens) - self.index)

    @property
    def is_blank(self) -> bool:
        return not self.tokens

    @property
    def is_comment(self) -> bool:
        return bool(self.tokens) and self.tokens[0].startswith(COMMENT_MARKER)

    @property
    def is_command(self) -> bool:
        return bool(self.tokens) and self.tokens[0].startswith(COMMAND_MARKER)

    def look(self, offset: int = 0) -> str:
        pos = self.index + offset
        if pos < 0 or pos >= len(self.tokens):
            raise self.fail("unexpected end of line")
        return self.tokens[pos]

    def consume(self) -> str:
        if not self.has_token:
            raise self.fail("missing argument")
        token = self.tokens[self.index]
        self.index += 1
        return token


def parse_float(cursor: ScriptCursor, value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise cursor.fail(f"expected a number, found {value!r}") from None
    if math.isnan(number):
        raise cursor.fail(f"expected a number, found {value!r}")
    return number


def parse_int(cursor: ScriptCursor, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise cursor.fail(f"expected an integer, found {value!r}") from None


def parse_pair(cursor: ScriptCursor, value: str, sep: str, what: str) -> tuple[int, int]:
    parts = value.split(sep)
    if len(parts) != 2:
        raise cursor.fail(f"expected {what}, found {value!r}")
    a, b = (parse_int(cursor, p) for p in parts)
    if a < 1 or b < 1:
        raise cursor.fail(f"expected positive {what}, found {value!r}")
    return a, b


class ScriptInterpreter:
    def __init__(
        self,
        backend: RenderBackend,
        *,
        base_dir: Path | None = None,
        source: str = "",
        now: dt.datetime | None = None,
        days: float = DEFAULT_DAYS,
        skip: int = 0,
        quiet: bool = False,
    ) -> None:
        self.backend = backend
        self.base_dir = base_dir or Path(".")
        self.source = source
        self.now = now
        self.quiet = quiet

        self.aliases: dict[str, str] = {}
        self.include: list[str] = []
        self.exclude: list[str] = []
        self.days = days
        self.skip = skip
        self.title: str | None = None
        self.graph: EntityGraph | None = None
        self.target: DrawingTarget = NoTarget()
        self.cursor = ScriptCursor((), source)

        self._directives: dict[str, Callable[[], None]] = {
            ":alias": self._alias,
            ":load": self._load,
            ":days": self._days,
            ":skip-commit": self._skip_commit,
            ":include": self._include,
            ":include-clear": self.include.clear,
            ":exclude": self._exclude,
            ":exclude-clear": self.exclude.clear,
            ":exclude-remove": self._exclude_remove,
            ":figure": self._figure,
            ":subplot": self._subplot,
            ":plot": self._plot,
            ":save": self._save,
            ":title": self._title,
        }
        self._draw_kinds: dict[str, Callable[[object, tuple[int, int] | None], None]] = {
            "bars": self._draw_bars,
        }

    def _note(self, message: str) -> None:
        if not self.quiet:
            print(message)

    def cluster_state(self) -> ClusterState:
        return ClusterState(
            exclude=tuple(self.exclude),
            include=tuple(self.include),
            days=self.days,
            skip=self.skip,
            now=self.now,
        )

    def resolve(self, path: str) -> Path:
        p = Path(path).expanduser()
        return p if p.is_absolute() else self.base_dir / p

    def interpret(self, lines: Iterable[str]) -> None:
        cursor = self.cursor = ScriptCursor(lines, self.source)
        while cursor.next_line():
            if cursor.is_blank or cursor.is_comment or not cursor.is_command:
                continue
            directive = cursor.consume()
            handler = self._directives.get(directive)
            if handler is None:
                print(f"Skipping unknown directive {directive!r} @ line {cursor.line_no}", file=sys.stderr)
                continue
            handler()

    def read_list(self) -> list[str]:
        """
        Collect the first token of each following line until a command line.
        The command line is left for the main loop; blank and comment lines
        are skipped. Running out of script before that command line is an error.
        """
        cursor = self.cursor
        items: list[str] = []
        while True:
            cursor.advance()
            if cursor.is_blank or cursor.is_comment:
                continue
            if cursor.is_command:
                cursor.hold()
                break
            items.append(cursor.consume())
        return items

    def close(self) -> None:
        if isinstance(self.target, (WholeFigure, GridFigure)):
            self.backend.close(self.target.figure)
        self.target = NoTarget()

    # Directives

    def _alias(self) -> None:
        target = self.cursor.consume()
        register_aliases(self.aliases, target, self.read_list())

    def _load(self) -> None:
        path = self.resolve(self.cursor.consume())
        if not path.is_file():
            raise self.cursor.fail(f"File '{path}' does not exist")
        self._note(f"Loading log '{path}'")
        self.graph = parse_log_file(path, dict(self.aliases))
        self._note(
            f"Loaded {len(self.graph.commits)} commits, {len(self.graph.authors)} authors, {len(self.graph.files)} files."
        )

    def _days(self) -> None:
        self.days = parse_float(self.cursor, self.cursor.consume())

    def _skip_commit(self) -> None:
        self.skip = parse_int(self.cursor, self.cursor.consume())

    def _include(self) -> None:
        self.include.extend(self.read_list())

    def _exclude(self) -> None:
        self.exclude.extend(self.read_list())

    def _exclude_remove(self) -> None:
        drop = set(self.read_list())
        self.exclude[:] = [s for s in self.exclude if s not in drop]

    def _figure(self) -> None:
        cursor = self.cursor
        width, height = parse_pair(cursor, cursor.consume(), "x", "WxH")
        if cursor.has_token:
            rows, cols = parse_pair(cursor, cursor.consume(), "-", "rows-cols")
            figure = self.backend.new_grid(width, height, rows, cols)
            self.close()
            self.target = GridFigure(figure, rows, cols)
        else:
            figure = self.backend.new_figure(width, height)
            self.close()
            self.target = WholeFigure(figure)

    def _subplot(self) -> None:
        cursor = self.cursor
        row, col = parse_pair(cursor, cursor.consume(), "-", "row-col")
        target = self.target
        if not isinstance(target, GridFigure):
            raise cursor.fail(":subplot needs a grid declared with :figure WxH rows-cols")
        if not target.has_cell(row - 1, col - 1):
            raise cursor.fail(f"subplot {row}-{col} is outside the {target.rows}-{target.cols} grid")
        self._draw(target.figure, (row - 1, col - 1))

    def _plot(self) -> None:
        target = self.target
        if not isinstance(target, WholeFigure):
            raise self.cursor.fail(":plot needs a figure declared with :figure WxH")
        self._draw(target.figure, None)

    def _save(self) -> None:
        path = self.resolve(self.cursor.consume())
        target = self.target
        if isinstance(target, NoTarget):
            raise self.cursor.fail("nothing to save; declare a :figure first")
        self.backend.save(target.figure, path)
        self._note(f"Saved {path}")

    def _title(self) -> None:
        self.title = self.cursor.consume()

    # Draw bodies

    def _draw(self, figure: object, cell: tuple[int, int] | None) -> None:
        kind = self.cursor.consume()
        draw = self._draw_kinds.get(kind)
        if draw is None:
            raise self.cursor.fail(f"unknown plot kind {kind!r}")
        draw(figure, cell)

    def _draw_bars(self, figure: object, cell: tuple[int, int] | None) -> None:
        cursor = self.cursor
        name = cursor.consume()
        factory = CLUSTERS.get(name)
        if factory is None:
            raise cursor.fail(f"unknown cluster {name!r}")
        if self.graph is None:
            raise cursor.fail("no data loaded; use :load first")

        cluster = factory(self.graph, self.cluster_state())
        cluster.crunch()

        stats: Sequence[str] = [cursor.look(i) for i in range(cursor.tokens_left)]
        cursor.index = len(cursor.tokens)
        if not stats:
            stats = cluster.keys()
        series = []
        for stat in stats:
            if stat not in cluster:
                raise cursor.fail(f"unknown stat {stat!r} for cluster {name!r}")
            series.append(cluster[stat])
        self.backend.bars(figure, cell, cluster.x_labels, series, self.title)


def run_script(
    path: Path,
    backend: RenderBackend,
    *,
    now: dt.datetime | None = None,
    days: float = DEFAULT_DAYS,
    skip: int = 0,
    quiet: bool = False,
) -> ScriptInterpreter:
    with path.open("r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    interpreter = ScriptInterpreter(
        backend,
        base_dir=path.resolve().parent,
        source=str(path),
        now=now,
        days=days,
        skip=skip,
        quiet=quiet,
    )
    if not quiet:
        print(f"Loading config '{path}'")
    try:
        interpreter.interpret(lines)
    finally:
        interpreter.close()
    return interpreter
