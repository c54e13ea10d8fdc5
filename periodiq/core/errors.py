"""Error types and compiler-style error display for periodiq.

Two families live here:

- ``PeriodiqError`` and its subclasses report misuse at the call site
  (bad config, bad ``schedule()`` arguments). They render like compiler
  diagnostics, pointing at the user's line of code.
- ``SchedulingError`` and its subclasses are plain runtime conditions
  collected or raised by a run pass.
"""

from __future__ import annotations

import inspect
import linecache
import os
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Frames under this directory belong to periodiq, not to the caller.
_PERIODIQ_PKG_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ErrorCode(str, Enum):
    """Error codes for configuration and API misuse.

    - E100-E199: Scheduler configuration
    - E200-E299: Arguments to schedule() / unschedule_group()
    """

    CONFIG_INVALID_QUANTUM = 'E100'

    SCHEDULE_INVALID_PERIOD = 'E200'
    SCHEDULE_INVALID_CALLBACK = 'E201'
    SCHEDULE_INVALID_GROUP = 'E202'


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    DIM = '\033[2m'


class _NoColors:
    """Empty codes for non-TTY output."""

    RESET = ''
    BOLD = ''
    RED = ''
    BLUE = ''
    CYAN = ''
    GREEN = ''
    DIM = ''


def _palette(use_colors: bool | None) -> type[_Colors] | type[_NoColors]:
    if use_colors is None:
        use_colors = _should_use_colors()
    return _Colors if use_colors else _NoColors


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def _should_use_colors() -> bool:
    """PERIODIQ_FORCE_COLOR wins, then NO_COLOR, then whether stderr is a TTY."""
    if _env_flag('PERIODIQ_FORCE_COLOR'):
        return True

    # https://no-color.org/
    if os.environ.get('NO_COLOR') is not None:
        return False

    return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()


def _should_show_verbose() -> bool:
    return _env_flag('PERIODIQ_VERBOSE')


def _should_use_plain_errors() -> bool:
    return _env_flag('PERIODIQ_PLAIN_ERRORS')


@dataclass
class SourceLocation:
    """The file and line a PeriodiqError points at."""

    file: str
    line: int

    @classmethod
    def from_frame(cls, frame: Any) -> SourceLocation:
        return cls(file=frame.f_code.co_filename, line=frame.f_lineno)

    def get_source_line(self) -> str | None:
        line = linecache.getline(self.file, self.line)
        return line.rstrip('\n') if line else None

    def format_short(self) -> str:
        return f'{self.file}:{self.line}'


@dataclass
class PeriodiqError(Exception):
    """Base exception for periodiq configuration and usage errors.

    Rendered as::

        error[E200]: period must be finite and non-negative
          --> app.py:12
           |
         12| scheduler.after(-1, job)
           | ^^^^^^^^^^^^^^^^^^^^^^^^
           = note: period=-1
    """

    message: str
    code: ErrorCode | None = None
    location: SourceLocation | None = None
    notes: list[str] = field(default_factory=lambda: [])
    help_text: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

        if self.location is None:
            user_frame = _find_user_frame()
            if user_frame is not None:
                self.location = SourceLocation.from_frame(user_frame)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        """Render as a compiler-style diagnostic."""
        c = _palette(use_colors)
        code_part = f'[{self.code.value}]' if self.code else ''
        lines = ['', f'{c.BOLD}{c.RED}error{code_part}:{c.RESET} {self.message}']
        lines.extend(self._snippet_lines(c))
        lines.extend(self._annotation_lines(c))
        return '\n'.join(lines)

    def _snippet_lines(self, c: Any) -> list[str]:
        """Arrow to the call site, then the call's source line underlined."""
        if self.location is None:
            return []

        lines = [f'  {c.BLUE}-->{c.RESET} {c.CYAN}{self.location.format_short()}{c.RESET}']
        source = self.location.get_source_line()
        if not source:
            return lines

        gutter = ' ' * len(str(self.location.line))
        code = source.lstrip()
        underline = ' ' * (len(source) - len(code)) + '^' * len(code)
        lines.append(f'   {c.BLUE}{gutter}|{c.RESET}')
        lines.append(f'   {c.BLUE}{self.location.line}|{c.RESET} {source}')
        lines.append(f'   {c.BLUE}{gutter}|{c.RESET} {c.RED}{underline}{c.RESET}')
        return lines

    def _annotation_lines(self, c: Any) -> list[str]:
        lines: list[str] = []
        for note in self.notes:
            first, *rest = note.split('\n')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.BLUE}note{c.RESET}: {first}')
            lines.extend(f'          {extra}' for extra in rest)

        if self.help_text:
            lines.append('')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.GREEN}help{c.RESET}:')
            lines.extend(f'        {extra}' for extra in self.help_text.split('\n'))
        return lines

    def __str__(self) -> str:
        """Uncolored rendering, safe for logs."""
        return self.format_rust_style(use_colors=False)


_original_excepthook = sys.excepthook


def _periodiq_excepthook(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: Any,
) -> None:
    """Print uncaught PeriodiqErrors as diagnostics; defer everything else."""
    if _should_use_plain_errors() or not isinstance(exc_value, PeriodiqError):
        _original_excepthook(exc_type, exc_value, exc_tb)
        return

    print(exc_value.format_rust_style(), file=sys.stderr)

    if _should_show_verbose():
        c = _palette(None)
        print(file=sys.stderr)
        print(f'{c.DIM}Full traceback (PERIODIQ_VERBOSE=1):{c.RESET}', file=sys.stderr)
        traceback.print_exception(exc_type, exc_value, exc_tb, file=sys.stderr)


def install_error_handler() -> None:
    sys.excepthook = _periodiq_excepthook


def uninstall_error_handler() -> None:
    sys.excepthook = _original_excepthook


# =============================================================================
# Usage errors
# =============================================================================


@dataclass
class ConfigurationError(PeriodiqError):
    """Raised when scheduler configuration or a schedule call is invalid."""

    pass


class ValidationReport:
    """Errors collected while validating one phase ('config', 'schedule')."""

    def __init__(self, phase_name: str) -> None:
        self.phase_name: str = phase_name
        self.errors: list[PeriodiqError] = []

    def add(self, error: PeriodiqError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        """Every collected error, then an aborting summary line."""
        c = _palette(use_colors)
        rendered = [error.format_rust_style(use_colors=c is _Colors) for error in self.errors]
        rendered.append(
            f'\n{c.BOLD}{c.RED}error{c.RESET}: '
            f'aborting due to {len(self.errors)} previous errors'
        )
        return '\n'.join(rendered)

    def __str__(self) -> str:
        return self.format_rust_style(use_colors=False)


@dataclass
class MultipleValidationErrors(PeriodiqError):
    """Raised for a ValidationReport holding two or more errors.

    A single error is raised as itself, so ``except ConfigurationError``
    still catches it.
    """

    report: ValidationReport = field(default_factory=lambda: ValidationReport(''))

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f'aborting due to {len(self.report.errors)} previous errors'
        # Each collected error carries its own location.
        Exception.__init__(self, self.message)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        return self.report.format_rust_style(use_colors=use_colors)

    def __str__(self) -> str:
        return self.format_rust_style(use_colors=False)


def raise_collected(report: ValidationReport) -> None:
    """Raise nothing, the single error, or MultipleValidationErrors."""
    if not report.errors:
        return
    if len(report.errors) == 1:
        raise report.errors[0]
    raise MultipleValidationErrors(message='', report=report)


# =============================================================================
# Runtime scheduling errors
# =============================================================================


class SchedulingError(RuntimeError):
    """Base class for conditions reported by a scheduler run pass."""


class MissedScheduleError(SchedulingError):
    """A run pass started after its earliest tick was already due."""

    def __init__(self, overrun_seconds: float) -> None:
        self.overrun_seconds = overrun_seconds
        super().__init__(f'missed schedule by {overrun_seconds} seconds')


class EmptyScheduleError(SchedulingError):
    """No live events remain anywhere in the schedule."""

    def __init__(self, message: str = 'no events scheduled') -> None:
        super().__init__(message)


def _find_user_frame() -> Any | None:
    """First frame on the stack outside periodiq and installed packages."""
    frame = inspect.currentframe()
    while frame is not None:
        filename = frame.f_code.co_filename
        # '<string>' frames come from dataclass-generated __init__ methods
        is_internal = (
            filename.startswith('<')
            or filename.startswith(_PERIODIQ_PKG_DIR)
            or '/site-packages/' in filename
        )
        if not is_internal:
            return frame
        frame = frame.f_back
    return None
