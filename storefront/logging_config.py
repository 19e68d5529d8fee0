"""Structured logging configuration."""
import logging
import sys

from pythonjsonlogger import jsonlogger
from opentelemetry import trace

from storefront.config import LOG_LEVEL, SERVICE_NAME

# Third-party loggers kept at WARNING so request logs stay readable
QUIET_LOGGERS = ("uvicorn.access", "httpx", "sqlalchemy.engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping each record with the service and active span."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_record["trace_id"] = format(span_context.trace_id, "032x")
            log_record["span_id"] = format(span_context.span_id, "016x")

        log_record["service"] = SERVICE_NAME
        log_record["msg"] = log_record.pop("message", record.getMessage())


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Send JSON log lines to stdout, replacing any handlers already installed."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"levelname": "level", "asctime": "timestamp"}
    ))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
