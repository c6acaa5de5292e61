#!/usr/bin/env python3
"""
Startup script for the Department Task Manager API
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv

logger = logging.getLogger("start_server")


def main():
    load_dotenv()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "true").lower() == "true"
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    logging.basicConfig(level=log_level.upper())
    logger.info(f"Starting Task Manager API on {host}:{port} (reload={reload})")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
