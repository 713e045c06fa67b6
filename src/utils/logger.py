"""
Console logger for the animation runtime.

One line per event, followed by its key/value details drawn as a tree:

    [12:04:31.250] SCHEDULER    ✓ Group complete
                   ├─ step: 2
                   └─ loaded: 5/9

Timestamps carry milliseconds because frame rates and fades run well
below one second.
"""

import sys
from datetime import datetime
from typing import Any, Optional, TextIO

from models.enums import LogLevel, LogCategory

RESET = '\033[0m'
DIM = '\033[2m'

_PALETTE = {
    LogCategory.CONFIG: '\033[36m',
    LogCategory.SCHEDULER: '\033[94m',
    LogCategory.PRESENTATION: '\033[96m',
    LogCategory.TRANSITION: '\033[35m',
    LogCategory.RENDER: '\033[92m',
    LogCategory.ANIMATION: '\033[93m',
    LogCategory.EVENT: '\033[95m',
    LogCategory.SYSTEM: '\033[97m',
    LogCategory.TASK: '\033[34m',
}

# (symbol, color) per level
_LEVEL_STYLE = {
    LogLevel.DEBUG: ('·', DIM),
    LogLevel.INFO: ('✓', '\033[32m'),
    LogLevel.WARN: ('⚠', '\033[33m'),
    LogLevel.ERROR: ('✗', '\033[31m'),
}

_LEVEL_ORDER = {level: i for i, level in enumerate(LogLevel)}

_CATEGORY_WIDTH = max(len(c.name) for c in LogCategory) + 1


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}".rstrip('0').rstrip('.') or '0'
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, float) for v in value):
        return '[' + ', '.join(_format_value(v) for v in value) + ']'
    return str(value)


class Logger:
    """Writes structured lines to a text stream (stdout unless told otherwise)."""

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.min_level = min_level
        self.use_colors = use_colors
        self.stream = stream

    def enabled(self, level: LogLevel) -> bool:
        return _LEVEL_ORDER[level] >= _LEVEL_ORDER[self.min_level]

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.use_colors else text

    def _write(self, line: str) -> None:
        print(line, file=self.stream or sys.stdout)

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[list] = None,
        **fields
    ):
        """
        Emit one message.

        Args:
            category: Subsystem the message belongs to
            message: Headline text
            level: Severity, messages below ``min_level`` are dropped
            details: Free-form detail lines
            **fields: Rendered as ``key: value`` detail lines, in call order
        """
        if not self.enabled(level):
            return

        symbol, color = _LEVEL_STYLE[level]
        stamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
        head = (
            f"[{stamp}] "
            f"{self._paint(category.name.ljust(_CATEGORY_WIDTH), _PALETTE.get(category, ''))}"
            f"{self._paint(symbol, color)} {self._paint(message, color)}"
        )
        self._write(head)

        lines = list(details or [])
        lines.extend(f"{key}: {_format_value(value)}" for key, value in fields.items())
        indent = " " * (len(stamp) + 3)
        for i, text in enumerate(lines):
            branch = "└─" if i == len(lines) - 1 else "├─"
            self._write(f"{indent}{self._paint(branch, DIM)} {text}")

    def debug(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.DEBUG, **kw)
    def info(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.INFO, **kw)
    def warn(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.WARN, **kw)
    def error(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.ERROR, **kw)

    def for_category(self, category: LogCategory) -> 'BoundLogger':
        return BoundLogger(self, category)


class BoundLogger:
    """Category-bound view of a Logger, used as a module-level ``log``."""

    def __init__(self, base: Logger, category: LogCategory):
        self._base = base
        self._category = category

    @property
    def category(self) -> LogCategory:
        return self._category

    def log(self, message: str, level: LogLevel = LogLevel.INFO, category: Optional[LogCategory] = None, **kw):
        self._base.log(category or self._category, message, level, **kw)

    def debug(self, message: str, **kw): self.log(message, LogLevel.DEBUG, **kw)
    def info(self, message: str, **kw): self.log(message, LogLevel.INFO, **kw)
    def warn(self, message: str, **kw): self.log(message, LogLevel.WARN, **kw)
    def error(self, message: str, **kw): self.log(message, LogLevel.ERROR, **kw)


_logger = Logger()


def get_logger() -> Logger:
    return _logger


def get_category_logger(category: LogCategory) -> BoundLogger:
    return _logger.for_category(category)


def configure_logger(
    min_level: LogLevel = LogLevel.INFO,
    use_colors: bool = True,
    stream: Optional[TextIO] = None,
):
    """
    Reconfigure the shared logger in place.

    Module-level BoundLoggers hold a reference to the shared instance, so
    it is mutated rather than replaced.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors
    _logger.stream = stream
