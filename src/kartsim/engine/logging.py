from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, override

from rich.console import Console
from rich.highlighter import Highlighter
from rich.logging import RichHandler

if TYPE_CHECKING:
    from rich.text import Text

    from kartsim.engine.race_engine import RaceEngine

LOGGER_NAME = "kartsim"

# Captures "1:bob" style car references.
CAR_PATTERN = re.compile(r"(?P<prefix>\b\d+:)(?P<name>[\w\-]+)")

COLOR = {
    "acceleration": "bold #23d18b",  # light green
    "banana": "bold #f5f543",  # yellow
    "shell": "bold #29b8db",  # cyan
    "collision": "bold #ffaf00",  # orange
    "finish": "bold #d670d6",  # magenta
    "warning": "bold bright_red",
    "prefix": "grey50",
    "car": "bold white",
}


class ContextFilter(logging.Filter):
    """Inject per-engine runtime context into every log record."""

    def __init__(self, engine: RaceEngine, name: str = "") -> None:
        super().__init__(name)
        self.engine: RaceEngine = engine

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        logctx = self.engine.log_context
        record.turn = logctx.turn
        record.turn_log_count = logctx.turn_log_count
        record.car_repr = logctx.current_car_repr
        record.engine_id = logctx.engine_id
        logctx.inc_log_count()
        return True


class RichMarkupFormatter(logging.Formatter):
    @override
    def format(self, record: logging.LogRecord) -> str:
        turn = getattr(record, "turn", 0)
        turn_log_count = getattr(record, "turn_log_count", 0)
        car_repr = getattr(record, "car_repr", "_")
        engine_id = getattr(record, "engine_id", 0)

        prefix = f"{engine_id} {turn}.{car_repr}.{turn_log_count}"
        message = record.getMessage()

        # Grey base for the prefix; the highlighter colors on top of it.
        return f"[{COLOR['prefix']}]{prefix:<19}[/{COLOR['prefix']}]  {message}"


class RaceLogHighlighter(Highlighter):
    @override
    def highlight(self, text: Text) -> None:
        text.highlight_regex(r"\bAcceleration\b", COLOR["acceleration"])
        text.highlight_regex(r"\bBanana\b", COLOR["banana"])
        text.highlight_regex(r"\bShell\b", COLOR["shell"])
        text.highlight_regex(r"\bCollision\b", COLOR["collision"])
        text.highlight_regex(r"\bFINISH\b", COLOR["finish"])
        text.highlight_regex(r"!!!", COLOR["warning"])

        for match in CAR_PATTERN.finditer(text.plain):
            start, end = match.span("name")
            text.stylize(COLOR["car"], start=start, end=end)


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    # stdout is reserved for the JSON report.
    handler = RichHandler(
        console=Console(stderr=True),
        markup=True,
        show_path=False,
        show_time=False,
        highlighter=RaceLogHighlighter(),
    )
    handler.setFormatter(RichMarkupFormatter())
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
