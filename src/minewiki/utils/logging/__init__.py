# ABOUTME: Logging configuration and structured logger helpers
# ABOUTME: Provides loguru sinks and structlog loggers for the batch commands

from .config import LoggingMode, configure_logging, get_logging_status, suppress_library_output
from .utils import get_logger, log_api_call, log_scrape_step, with_pipeline_context

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "get_logging_status",
    "suppress_library_output",
    # Utilities
    "get_logger",
    "log_api_call",
    "log_scrape_step",
    "with_pipeline_context",
]
