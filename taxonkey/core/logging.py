"""
Structured logging for the identification engine (structlog).

Every evaluation emits one `evaluation_completed` event; request handlers
bind `request_id`, and the identification routes additionally bind the
matrix name and algorithm for the duration of a call, so all events of one
evaluation can be joined on those keys.

Output goes to the console and to one file per run under `settings.log_dir`
(JSON lines outside debug mode). Floats are rounded before rendering so
posterior vectors and latencies stay readable.
"""

import contextlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from taxonkey.core.config import settings

LOG_FILE_PREFIX = "taxonkey_"
FLOAT_DIGITS = 6


def round_floats(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Round float values (posteriors, gains, latencies) to FLOAT_DIGITS significant digits."""
    for key, value in event_dict.items():
        if isinstance(value, float):
            event_dict[key] = float(f"{value:.{FLOAT_DIGITS}g}")
    return event_dict


def _prune_run_logs(log_dir: Path, keep: int) -> None:
    """Drop all but the `keep` newest run logs."""
    runs = sorted(log_dir.glob(f"{LOG_FILE_PREFIX}*.log"), key=lambda p: p.stat().st_mtime)
    for stale in runs[: max(len(runs) - keep, 0)]:
        with contextlib.suppress(OSError):
            stale.unlink()


def _renderer_chain(debug: bool) -> List[Processor]:
    chain: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        round_floats,
    ]
    if debug:
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return chain


def configure_logging(
    log_sessions_to_keep: Optional[int] = None,
    log_dir: Optional[Path] = None,
) -> Path:
    """Configure structlog and the stdlib handlers it writes through.

    Safe to call more than once; earlier handlers are replaced.

    Args:
        log_sessions_to_keep: Run logs to retain (settings default)
        log_dir: Directory for run logs (settings default)

    Returns:
        Path of this run's log file
    """
    keep = log_sessions_to_keep or settings.log_sessions_to_keep
    log_dir = Path(log_dir or settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    _prune_run_logs(log_dir, keep=keep - 1)

    log_file = log_dir / f"{LOG_FILE_PREFIX}{datetime.now():%Y%m%d_%H%M%S_%f}.log"
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    root.setLevel(level)

    plain = logging.Formatter("%(message)s")
    for handler in (logging.StreamHandler(), logging.FileHandler(log_file, mode="w")):
        handler.setFormatter(plain)
        root.addHandler(handler)

    structlog.configure(
        processors=_renderer_chain(settings.debug),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str) -> structlog.BoundLogger:
    """Module logger: `log = get_logger(__name__)`."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind request-scoped values (e.g. request_id) to every later event."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextlib.contextmanager
def evaluation_context(matrix: str, algo: Optional[str] = None, **extra) -> Iterator[None]:
    """Bind matrix and algorithm for the events of one identification call.

    Only the keys bound here are removed on exit; request_id survives.
    """
    values = {"matrix": matrix, **extra}
    if algo is not None:
        values["algo"] = algo
    with structlog.contextvars.bound_contextvars(**values):
        yield
