# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/keycloak_connect

import logging
import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from opentelemetry import trace

__all__ = ["logger", "configure_logging"]

LOG_LEVEL_ENV = "KEYCLOAK_CONNECT_LOG_LEVEL"
LOG_JSON_ENV = "KEYCLOAK_CONNECT_LOG_JSON"
LOG_FILE = Path("logs") / "keycloak_connect.log"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """
    Redirects standard logging messages to Loguru.
    httpx and opentelemetry log through the standard library.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the log call
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename in (logging.__file__, __file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def trace_id_injector(record: dict[str, Any]) -> None:
    """
    Injects OpenTelemetry trace_id and span_id into the log record.
    Used as a patcher for Loguru.
    """
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        record["extra"]["trace_id"] = format(ctx.trace_id, "032x")
        record["extra"]["span_id"] = format(ctx.span_id, "016x")


def _resolve_level() -> str:
    log_level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    try:
        logger.level(log_level)
    except ValueError:
        log_level = "INFO"
    return log_level


def configure_logging() -> None:
    """
    Configures the logger based on environment variables.

    KEYCLOAK_CONNECT_LOG_LEVEL sets the level (invalid values fall back to INFO).
    KEYCLOAK_CONNECT_LOG_JSON=true switches the console sink to JSON on stdout.
    Call this again to reload configuration if env vars change.
    """
    log_level = _resolve_level()
    log_json = os.getenv(LOG_JSON_ENV, "false").lower() == "true"

    # Drop every handler (including Loguru's default) and set the patcher in one go
    logger.configure(handlers=[], patcher=trace_id_injector)  # type: ignore[arg-type]

    if log_json:
        logger.add(sys.stdout, level=log_level, serialize=True)
    else:
        logger.add(sys.stderr, level=log_level, format=CONSOLE_FORMAT)

    # File sink is always JSON. Read-only filesystems skip it.
    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(LOG_FILE),
            rotation="500 MB",
            retention="10 days",
            serialize=True,
            enqueue=True,
            level=log_level,
        )
    except (PermissionError, OSError):
        pass

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # Loguru-only levels (TRACE, SUCCESS) have no standard logging counterpart
    numeric_level = logging.getLevelName(log_level)
    logging.getLogger().setLevel(numeric_level if isinstance(numeric_level, int) else logging.INFO)


# Initialize on import
configure_logging()
