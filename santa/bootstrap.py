from __future__ import annotations

from typing import Optional

from loguru import logger

from santa.core.config import Settings, load_settings
from santa.core.logging import setup_logging
from santa.db import init_engine


def bootstrap(settings: Optional[Settings] = None) -> Settings:
    settings = settings or load_settings()
    setup_logging(settings.log_level, settings.log_path)
    init_engine(settings.database_url, create_schema=True)
    logger.bind(max_attempts=settings.max_attempts).info("santa engine initialised")
    return settings
