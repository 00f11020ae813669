"""Logging setup for Mermaid Studio.

One handler on the root logger, writing to stderr (stdout belongs to the MCP
stdio transport). Records are emitted as JSON lines by default or as plain
text for local debugging. The HTTP middleware stores a request id in
``request_id_var``; every record logged while it is set carries it.

The provider API key is handled by this process, so every record passes
through ``redact_secrets`` before it is written.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "LiteLLM", "httpx", "mcp.server.lowlevel.server")

# Attributes every LogRecord has; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


# --- Redaction ------------------------------------------------------------

_REDACTED = "***REDACTED***"

# When a pattern has a group, the group is kept and only the rest is masked.
_SECRET_PATTERNS = (
    re.compile(r"\bsk-[A-Za-z0-9_\-]{20,}"),                 # OpenAI / Anthropic
    re.compile(r"\bor-[A-Za-z0-9]{20,}"),                    # OpenRouter
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._\-]{20,}"),
    re.compile(r"(?i)((?:api_key|secret|password|token|authorization)[=:]\s*)[^\s,'\"]{8,}"),
)


def _mask(match: re.Match) -> str:
    return (match.group(1) + _REDACTED) if match.lastindex else _REDACTED


def redact_secrets(text: str) -> str:
    """Mask substrings shaped like API keys, bearer tokens, or ``key=value`` secrets."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(_mask, text)
    return text


def _redact_arg(value: Any) -> Any:
    return redact_secrets(value) if isinstance(value, str) else value


class RedactingFilter(logging.Filter):
    """Scrub message, %-args, and cached traceback text of a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(str(record.msg))
        if isinstance(record.args, dict):
            record.args = {k: _redact_arg(v) for k, v in record.args.items()}
        elif record.args:
            record.args = tuple(_redact_arg(a) for a in record.args)
        if record.exc_text:
            record.exc_text = redact_secrets(record.exc_text)
        return True


# --- Formatting -----------------------------------------------------------

class JsonLineFormatter(logging.Formatter):
    """One JSON object per record.

    Fixed fields are ``timestamp``, ``level``, ``logger`` and ``message``,
    plus ``request_id`` inside an HTTP request. Fields passed through
    ``extra=`` (``diagram_id``, ``version_id``, ...) are merged in at the top
    level, and a traceback lands in ``exc_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in entry
        )

        if record.exc_info:
            entry["exc_info"] = redact_secrets(self.formatException(record.exc_info))

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Install the root handler. Safe to call more than once.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO).
        log_format: ``"json"`` (default) or ``"text"``.
        stream: Where to write; defaults to ``sys.stderr``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(RedactingFilter())
    if fmt == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured", extra={"level": level, "format": fmt})
