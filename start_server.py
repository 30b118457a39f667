#!/usr/bin/env python3
"""
Startup script for the Issue Tracker backend.
Serves main:app with uvicorn using the HOST/PORT/RELOAD/LOG_LEVEL settings.
"""

import logging

import uvicorn

from issuetracker.config.logging_config import setup_logging
from issuetracker.config.settings import settings

logger = logging.getLogger("issuetracker.server")


def uvicorn_options() -> dict:
    return {
        "host": settings.HOST,
        "port": settings.PORT,
        "reload": settings.RELOAD and not settings.is_production(),
        "log_level": settings.LOG_LEVEL.lower(),
    }


def main():
    setup_logging()
    options = uvicorn_options()
    logger.info("Starting Issue Tracker API on %s:%s (reload=%s, env=%s)",
                options["host"], options["port"], options["reload"], settings.ENVIRONMENT)
    uvicorn.run("main:app", **options)


if __name__ == "__main__":
    main()
