"""Logging setup and Logfire instrumentation."""

import logging

import logfire
from fastapi import FastAPI

from employee_registry import __version__
from employee_registry.config import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging for CLI and server processes."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def initialize_logfire(settings: Settings, app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire and instrument the MongoDB driver and FastAPI.

    Must be called once at process startup, before the first request.

    Args:
        settings: Application settings containing the Logfire token
        app: FastAPI application to instrument, if running the HTTP server

    Returns:
        True when Logfire was configured, False when it was skipped.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="employee-registry",
            service_version=__version__,
            environment=settings.environment,
        )

        logfire.instrument_pymongo()

        if app is not None:
            logfire.instrument_fastapi(app)

        # Bridge Python logging to Logfire
        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("Logfire tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
