import logging
from typing import Optional

from attendance_rollup.core.config import settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for processes embedding the engine."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=[logging.StreamHandler()]
    )
