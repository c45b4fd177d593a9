import logging
import re
import typing as t
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

_API_KEY_PATTERN = re.compile(pattern=r"(apikey=)[^&]+")


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure structlog and the ``bnetapi`` stdlib logger.

    Parameters
    ----------
    level : int, optional
        Level applied to the ``bnetapi`` logger.
    """
    logging.getLogger("bnetapi").setLevel(level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def logging_context(**required_context: t.Any) -> Iterator[None]:
    current = structlog.contextvars.get_contextvars()
    to_bind = {k: v for k, v in required_context.items() if k not in current}

    if to_bind:
        with structlog.contextvars.bound_contextvars(**to_bind):
            yield
    else:
        yield


def redact_url(url: str) -> str:
    """
    Mask the API key query parameter of a request URL.

    Parameters
    ----------
    url : str
        Request URL, possibly carrying an ``apikey`` parameter.

    Returns
    -------
    str
        URL safe to write to logs.
    """
    return _API_KEY_PATTERN.sub(repl=r"\1***", string=url)
