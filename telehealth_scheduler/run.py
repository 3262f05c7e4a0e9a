#!/usr/bin/env python3
"""
Quick start script for the telehealth scheduling service
"""

import logging

import uvicorn

from telehealth_scheduler import config

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    logger.info("Starting Telehealth Scheduling Service...")
    logger.info("Server will be available at http://%s:%s", config.BACKEND_HOST, config.BACKEND_PORT)
    logger.info("API docs at http://%s:%s/docs", config.BACKEND_HOST, config.BACKEND_PORT)

    uvicorn.run(
        "telehealth_scheduler.main:app",
        host=config.BACKEND_HOST,
        port=config.BACKEND_PORT,
        reload=config.DEBUG,
        log_level="info"
    )


if __name__ == "__main__":
    main()
