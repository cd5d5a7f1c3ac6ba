# logging_config.py

import logging
import structlog
import sys
from typing import Any, Dict
from flask import has_request_context, request, g


def add_request_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add Flask request context to log entries"""
    if has_request_context():
        event_dict["request_id"] = getattr(g, 'request_id', None)
        event_dict["remote_addr"] = request.remote_addr
        event_dict["method"] = request.method
        event_dict["path"] = request.path
    return event_dict


def setup_logging(app_name: str = "emergency-alerts", log_level: str = "INFO") -> None:
    """
    Configure structured logging for production use

    Args:
        app_name: Application name for log identification
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_request_context,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    logging.getLogger(app_name).setLevel(getattr(logging, log_level.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Get a structured logger instance

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog instance
    """
    return structlog.get_logger(name or __name__)


class PipelineLogger:
    """Operational logger for the emergency alert pipeline"""

    def __init__(self):
        self.logger = get_logger("alert_pipeline")

    def log_stage(self, stage: str, property_id=None, **fields):
        """Log a pipeline stage transition"""
        self.logger.info(
            "Alert pipeline stage",
            stage=stage,
            property_id=property_id,
            event_type="pipeline_stage",
            **fields
        )

    def log_outcome(self, status: str, property_id=None, alert_id=None, reason: str = None):
        """Log the terminal outcome of one call event"""
        log = self.logger.warning if status in ('PROPERTY_NOT_FOUND', 'PARTNER_PROPERTY_NOT_FOUND') else self.logger.info
        log(
            "Alert pipeline finished",
            status=status,
            property_id=property_id,
            alert_id=alert_id,
            reason=reason,
            event_type="pipeline_outcome"
        )


# Global logger instances
pipeline_logger = PipelineLogger()
