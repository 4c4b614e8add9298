"""
Shared logging configuration for the batch tools.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger("mkvfonts")


def set_verbose(verbose: bool) -> None:
    """Switch the package logger between INFO and DEBUG."""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
