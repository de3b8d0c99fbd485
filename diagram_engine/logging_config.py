"""
Logging setup for hosts embedding the diagram engine.

The library itself only creates module loggers; nothing is configured on
import.
"""

import logging
from typing import Optional

from .config import get_settings


def setup_logging(level: Optional[str] = None) -> None:
    """Route all logging to stderr at the given (or configured) level."""
    level_str = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_str, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True,
    )
