from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Mapping
from uuid import uuid4

operation_id_ctx_var: ContextVar[str | None] = ContextVar("operation_id", default=None)
actor_ctx_var: ContextVar[str | None] = ContextVar("actor", default=None)


class JsonLogFormatter(logging.Formatter):
    """Render log records as JSON for easier ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        operation_id = operation_id_ctx_var.get()
        if operation_id:
            payload["operation_id"] = operation_id
        actor = actor_ctx_var.get()
        if actor:
            payload["actor"] = actor
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


@contextmanager
def operation_context(actor: str | None = None, operation_id: str | None = None) -> Iterator[str]:
    """Tag every log line emitted inside the block with an operation id and actor."""

    op_id = operation_id or str(uuid4())
    op_token = operation_id_ctx_var.set(op_id)
    actor_token = actor_ctx_var.set(actor)
    try:
        yield op_id
    finally:
        operation_id_ctx_var.reset(op_token)
        actor_ctx_var.reset(actor_token)


def configure_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logging.root.handlers = [handler]
    logging.root.setLevel(level)
