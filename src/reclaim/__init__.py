"""reclaim - tiered, privilege-aware disk space reclamation."""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
