"""Console logging utilities for chipvm.

Provides a levelled console logger for the host loop and a tqdm progress bar
that can be driven from inside jitted ``jax.lax.scan`` loops via io_callback.
"""

import time
import sys
from typing import Callable, Optional

import jax
from jax.experimental import io_callback

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
}
_RESET = "\033[0m"


def _check_level(log_level: str) -> str:
    level = log_level.upper()
    if level not in LEVELS:
        raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
    return level


class ConsoleLogger:
    """Console logger with levels, colours and timestamps.

    Lines look like ``[    0.12s][    INFO][chipvm] Loaded 246 bytes``; colours
    are only used when stdout is a terminal.
    """

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = _check_level(log_level)
        self.use_colors = use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def set_level(self, log_level: str):
        self.log_level = _check_level(log_level)

    def log(self, level: str, message: str):
        """Print ``message`` if ``level`` is at or above the threshold."""
        if LEVELS.index(level) < LEVELS.index(self.log_level):
            return

        timestamp = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{_COLORS[level]}{level_str}{_RESET}"

        print(f"{timestamp}{level_str}[{self.name}] {message}", flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)


_default_logger: Optional[ConsoleLogger] = None


def get_logger() -> ConsoleLogger:
    """Return the package-wide console logger used by command-line code."""
    global _default_logger
    if _default_logger is None:
        _default_logger = ConsoleLogger()
    return _default_logger


def scan_with_progress(n: int, desc: Optional[str] = None) -> Callable:
    """Decorator to add a real-time tqdm bar to a ``jax.lax.scan`` body.

    The scanned ``xs`` must be the iteration index, e.g. ``jnp.arange(n)``.
    The bar is opened on the first iteration, advanced every ``print_rate``
    iterations and closed (topped up to ``n``) on the last one.
    """
    print_rate = max(1, min(n // 20, 50))
    bars = {}

    def _open():
        bars[0] = tqdm(total=n, desc=desc or f"Running ({n:,} steps)", unit="cycle")

    def _update(steps):
        if 0 in bars:
            bars[0].update(int(steps))

    def _close():
        if 0 in bars:
            bar = bars.pop(0)
            bar.update(n - bar.n)
            bar.close()

    def _maybe_callback(pred, callback, *args):
        jax.lax.cond(
            pred,
            lambda _: io_callback(callback, None, *args, ordered=True),
            lambda _: None,
            operand=None,
        )

    def decorator(func):
        def wrapper_with_progress(carry, iter_num):
            _maybe_callback(iter_num == 0, _open)
            _maybe_callback((iter_num % print_rate == 0) & (iter_num > 0), _update, print_rate)
            result = func(carry, iter_num)
            _maybe_callback(iter_num == n - 1, _close)
            return result

        return wrapper_with_progress

    return decorator
