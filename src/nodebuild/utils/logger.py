"""Simple module which define logging module style and returns it."""

import logging
import os
import sys

# Configure the formatting of the logger
logging.basicConfig(format="%(message)s", stream=sys.stdout)
# logging.basicConfig(format='[%(levelname)s][%(name)s] %(message)s')

# Capture warning messages and redirect them through the logger
logging.captureWarnings(True)

# Initialize logger
logger = logging.getLogger("nodebuild")

# Allow the default verbosity to be set from the environment
if os.environ.get("NODEBUILD_LOG_LEVEL"):
    logger.setLevel(os.environ["NODEBUILD_LOG_LEVEL"].upper())


def set_log_level(level):
    """Sets the verbosity of the package logger.

    Parameters
    ----------
    level : Union[str, int]
        Logging level name (e.g. 'debug') or value
    """
    if isinstance(level, str):
        level = level.upper()

    logger.setLevel(level)
