"""
=============================================================================
ACCESS LOG
=============================================================================

One record per answered connection: who asked, what for, what they got,
and how long it took.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default, Apache-like):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [10/Jun/2024:10:55:36 +0000] "GET /" 200 1234 0.52ms  │
    │ IP            Timestamp                  Request  Status Size Time  │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (one object per line, for log aggregators):
    {"connection_id": "a1b2c3d4", "client_ip": "127.0.0.1", "method": "GET",
     "path": "/", "status_code": 200, "content_length": 1234, ...}

Requests that never parsed have no method or path; they are logged as "-".

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional


# Configure separately from the rest of the server if needed:
#   logging.getLogger("staticserver.access").addHandler(file_handler)
logger = logging.getLogger("staticserver.access")


LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """
    Structured log entry for one connection.

    Attributes:
        connection_id: Short id shared with the connection's debug logs.
        client_ip: Peer address.
        method: Request method, "-" if the request never parsed.
        path: Request target, "-" if the request never parsed.
        status_code: Status of the response that was sent.
        content_length: Response body size in bytes.
        duration_ms: Time from accept to response written.
        timestamp: When the response was sent.
    """

    connection_id: str
    client_ip: str
    method: str
    path: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client_ip": self.client_ip,
            "method": self.method,
            "path": self.path,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )

    def format(self, log_format: str = "text") -> str:
        """Render the entry as 'text' or 'json'."""
        if log_format == "json":
            return json.dumps(self.to_dict())
        return self.to_text()


def make_record(
    connection_id: str,
    client_ip: str,
    method: Optional[str],
    path: Optional[str],
    status_code: int,
    content_length: int,
    started_at: float,
) -> RequestLog:
    """Build a RequestLog, timing it from started_at until now."""
    return RequestLog(
        connection_id=connection_id,
        client_ip=client_ip,
        method=method or "-",
        path=path or "-",
        status_code=int(status_code),
        content_length=content_length,
        duration_ms=(time.time() - started_at) * 1000,
        timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
    )


def log_access(record: RequestLog, log_format: str = "text", level: int = logging.INFO):
    """Emit one access log line."""
    logger.log(level, record.format(log_format))
