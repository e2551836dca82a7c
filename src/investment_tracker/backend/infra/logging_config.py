import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Root logger setup for scripts and the dashboard.
    Level comes from the argument, then LOG_LEVEL, then INFO.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )
