import logging
import os
from typing import Any, MutableMapping, Optional


DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | req=%(request_id)s "
    "owner=%(owner)s stage=%(stage)s | %(message)s"
)

_CONTEXT_FIELDS = ("request_id", "owner", "stage")


class ContextFilter(logging.Filter):
    """Injects default context fields if missing to avoid KeyError in formatters."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for field in _CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return True


class PipelineLogAdapter(logging.LoggerAdapter):
    """Logger adapter carrying the request/owner/stage of one generation attempt.

    The stage is mutable so a single adapter can follow the attempt through
    its state transitions.
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        request_id: str = "-",
        owner: str = "-",
    ) -> None:
        super().__init__(logger, {"request_id": request_id, "owner": owner, "stage": "idle"})

    def set_stage(self, stage: str) -> None:
        self.extra["stage"] = stage  # type: ignore[index]

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Initialize root logger with a sane formatter and context filter."""
    resolved_level = getattr(logging, (level or DEFAULT_LEVEL), logging.INFO)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(resolved_level)

    # Clear existing handlers to avoid duplicate logs in reloads
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    root.addHandler(handler)
    root.addFilter(ContextFilter())


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensure root is initialized."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


def get_pipeline_logger(
    name: str, *, request_id: str = "-", owner: str = "-"
) -> PipelineLogAdapter:
    return PipelineLogAdapter(get_logger(name), request_id=request_id, owner=owner)
