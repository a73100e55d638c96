from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Initialize Python logging and structlog with consistent formatting.

    Context bound with `pass_context` is merged into every event first, so lookup
    failures logged deep inside a fan-out still name the learner and pass they
    belong to. The renderer is JSON or console depending on `json_output`.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level)
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger that inherits the global configuration."""
    return structlog.get_logger(name)


@contextmanager
def pass_context(*, learner_id: Optional[str], generation: int) -> Iterator[None]:
    """Tag every event logged inside the block with the pass identity.

    Tasks spawned inside the block copy the context, so concurrent lookups
    are tagged as well.
    """
    with structlog.contextvars.bound_contextvars(learner_id=learner_id, generation=generation):
        yield
