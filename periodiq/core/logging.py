# periodiq/core/logging.py
import logging
import sys
from datetime import datetime

# Module-level default log level, can be changed by set_default_level()
_default_level: int = logging.INFO


class ColoredFormatter(logging.Formatter):
    """Colored, tabular formatter for periodiq logging.

    Layout: ``[time] [component] [LEVEL] [tick N] message``. The tick
    column only appears when the record was logged with
    ``extra={'tick': ...}``, which the scheduler does for anything tied
    to a position on the tick grid.
    """

    RESET = '\033[0m'
    LIGHT_BLUE = '\033[94m'
    MAGENTA = '\033[95m'
    WHITE = '\033[97m'

    LEVEL_COLORS = {
        'DEBUG': '\033[90m',
        'INFO': '\033[92m',
        'WARNING': '\033[93m',
        'ERROR': '\033[91m',
        'CRITICAL': '\033[1;91m',
    }

    # [scheduler] = 11 chars, [WARNING] = 9 chars
    COMPONENT_WIDTH = 13
    LEVEL_WIDTH = 10

    def _paint(self, color: str, text: str) -> str:
        return f'{color}{text}{self.RESET}'

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        # 'periodiq.scheduler' -> 'scheduler'
        component = record.name.rsplit('.', 1)[-1]
        level_color = self.LEVEL_COLORS.get(record.levelname, self.WHITE)

        parts = [
            self._paint(self.LIGHT_BLUE, f'[{time_str}]') + ' ',
            self._paint(self.WHITE, f'[{component}]'.ljust(self.COMPONENT_WIDTH)),
            self._paint(level_color, f'[{record.levelname}]'.ljust(self.LEVEL_WIDTH)),
        ]
        tick = getattr(record, 'tick', None)
        if tick is not None:
            parts.append(self._paint(self.MAGENTA, f'[tick {tick}]') + ' ')
        parts.append(self._paint(self.WHITE, record.getMessage()))

        formatted = ''.join(parts)
        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)
        return formatted


def set_default_level(level: int) -> None:
    """Set the level applied to loggers created from now on."""
    global _default_level
    _default_level = level


def get_logger(component_name: str) -> logging.Logger:
    """Return the ``periodiq.<component_name>`` logger, configuring it once."""
    logger = logging.getLogger(f'periodiq.{component_name}')
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter())
    handler.setLevel(_default_level)
    logger.addHandler(handler)
    logger.setLevel(_default_level)
    # Prevent duplicate logs from parent loggers
    logger.propagate = False
    return logger
