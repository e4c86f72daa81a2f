"""
Structured logging configuration with trace IDs
"""
import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
import contextvars

from libseat.core.config import settings

# Context variable to store trace ID across async calls
trace_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar('trace_id', default=None)

# Extra attributes copied onto the JSON record when a call site passes them
EXTRA_FIELDS = ('user_id', 'seat_id', 'zone_id', 'reservation_id', 'status_code', 'duration_ms')


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with trace ID and reservation fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname

        trace_id = trace_id_var.get()
        if trace_id:
            log_record['trace_id'] = trace_id

        log_record['service'] = 'libseat'

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)


def setup_logging(json_logs: bool = None, level: str = None) -> logging.Logger:
    """Configure root logging; JSON lines by default, plain text when LOG_JSON is off"""
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    level = level or settings.LOG_LEVEL

    if json_logs:
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [console_handler]

    # Reduce noise from libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO if settings.DEBUG else logging.WARNING)

    return root_logger


def set_trace_id(trace_id: str):
    """Set trace ID for current context"""
    trace_id_var.set(trace_id)


def generate_trace_id() -> str:
    """Generate a new trace ID"""
    return str(uuid.uuid4())
