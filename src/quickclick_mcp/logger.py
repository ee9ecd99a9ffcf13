import json
import logging
from datetime import datetime, timezone

PACKAGE_LOGGER = "quickclick_mcp"

_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """Appends ``extra={...}`` fields to the line as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {key: value for key, value in vars(record).items() if key not in _RECORD_FIELDS}
        if not context:
            return line
        return line + " " + " ".join(f"{key}={value}" for key, value in sorted(context.items()))


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return logger


def log_operation(
    logger: logging.Logger,
    tool: str,
    outcome: str,
    duration_ms: int,
    error_code: str | None = None,
) -> None:
    level = logging.INFO if outcome == "success" else logging.WARNING
    logger.log(
        level,
        json.dumps(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "level": logging.getLevelName(level),
                "tool": tool,
                "outcome": outcome,
                "duration_ms": duration_ms,
                "error_code": error_code,
            }
        ),
    )
