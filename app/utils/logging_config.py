"""
Structured Logging Configuration

- JSON lines in production (one object per record, ready for log aggregation)
- Plain text in development, prefixed with the request id
- Request/user ids travel in context variables set by the HTTP middleware
- Contract lifecycle events carry entity_type="contract" and their own fields
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

# LogRecord attributes copied verbatim into the JSON object when present
STRUCTURED_FIELDS = ("entity_type", "entity_id", "duration_ms")


class RequestContextFilter(logging.Filter):
    """Stamp every record with the current request/user ids"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if getattr(record, "request_id", "-") != "-":
            log_data["request_id"] = record.request_id
        if getattr(record, "user_id", "-") != "-":
            log_data["user_id"] = record.user_id

        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter with helpers for the events we want to query on later"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs

    def log_with_context(
        self,
        level: int,
        msg: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        duration_ms: Optional[float] = None,
        **extra_data
    ):
        extra = {}
        if entity_type:
            extra['entity_type'] = entity_type
        if entity_id:
            extra['entity_id'] = entity_id
        if duration_ms is not None:
            extra['duration_ms'] = duration_ms
        if extra_data:
            extra['extra_data'] = {k: v for k, v in extra_data.items() if v is not None}

        self.log(level, msg, extra=extra)

    def contract_created(self, contract_id: str, booking_id: int, contract_number: str, signed: bool):
        self.log_with_context(
            logging.INFO,
            f"Contract {contract_number} created{' and signed' if signed else ''}",
            entity_type="contract",
            entity_id=contract_id,
            booking_id=booking_id,
            contract_number=contract_number,
            signed=signed,
        )

    def contract_regenerated(self, contract_id: str, old_version: int, new_version: int, path: str, reason: str = None):
        """path is "unsigned" (history written) or "signed" (signature kept, no history)"""
        self.log_with_context(
            logging.INFO,
            f"Contract regenerated v{old_version} -> v{new_version} ({path})",
            entity_type="contract",
            entity_id=contract_id,
            old_version=old_version,
            new_version=new_version,
            path=path,
            reason=reason,
        )

    def contract_signed(self, contract_id: str, version: int, ip_address: str = None, channel: str = None):
        """channel is "remote" for signatures made through a public signing link"""
        self.log_with_context(
            logging.INFO,
            f"Contract signed at v{version}",
            entity_type="contract",
            entity_id=contract_id,
            version=version,
            ip_address=ip_address,
            channel=channel,
        )

    def api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self.log_with_context(
            level,
            f"{method} {path} - {status_code}",
            duration_ms=duration_ms,
            method=method,
            path=path,
            status_code=status_code,
        )


def setup_logging(level: str = "INFO", json_format: bool = True, include_uvicorn: bool = True) -> None:
    """
    Configure the root logger once at startup.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        json_format: JSON lines (production) instead of plain text
        include_uvicorn: route uvicorn's loggers through the same handler
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(RequestContextFilter())
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(request_id)s] %(name)s - %(levelname)s - %(message)s'
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    if include_uvicorn:
        for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
            uvicorn_logger = logging.getLogger(logger_name)
            uvicorn_logger.handlers = [handler]
            uvicorn_logger.propagate = False

    # Third-party chatter
    for noisy in ("httpx", "httpcore", "sqlalchemy.engine", "azure", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str, user_id: Optional[str] = None):
    request_id_var.set(request_id)
    if user_id:
        user_id_var.set(user_id)


def clear_request_context():
    request_id_var.set('')
    user_id_var.set('')
