"""Message-trace logging for mock clients.

Every record is one JSON line. Delivery bookkeeping passes its fields as
``extra`` keywords (``sid``, ``subject``, ...), which are lifted to the top
level of the line so a test log can be grepped by subscription id.
"""

import json
import logging
from datetime import datetime, timezone

TRACE_FIELDS = ("sid", "subject", "queue", "reply_to", "received", "expected")


class TraceFormatter(logging.Formatter):
    def format(self, record):
        line = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "client": record.name.rpartition(".")[2],
            "level": record.levelname,
            "event": record.getMessage(),
        }
        for key in TRACE_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                line[key] = value
        return json.dumps(line, default=str)


def get_client_logger(
    name: str,
    log_file: str | None = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Logger ``natsmock.<name>`` writing trace lines to ``log_file`` or stderr.

    A handler is attached only the first time a given name is requested.
    """
    logger = logging.getLogger(f"natsmock.{name}")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
        handler.setFormatter(TraceFormatter())
        logger.addHandler(handler)

    return logger
