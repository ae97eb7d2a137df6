"""
solarmath: image math for solar spectroheliograph images.

This module provides the public API for solarmath. Importing it does not
register any operation; the catalog is populated when
solarmath.processing is imported.
"""

import logging

__version__ = "0.1.0"


# Set up basic logging configuration if none exists
# This ensures INFO level logging works when used outside a host application
def _ensure_basic_logging():
    """Ensure basic logging is configured if no configuration exists."""
    root_logger = logging.getLogger()

    # Only configure if no handlers exist and level is too high
    if not root_logger.handlers and root_logger.level > logging.INFO:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )


# Configure basic logging on import
_ensure_basic_logging()

__all__ = [
    "__version__",
]
