"""
Logging setup for the API process.

Call `setup_logging()` once at startup; modules log through
`logging.getLogger(__name__)`.

    2026-10-16 10:15:30 [INFO    ] sandwich_api.bootstrap - payment mode: demo
"""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: int | str = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(log_level)

    # Remove any existing handlers (allows re-configuration)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    # Stripe's own client logs every request at INFO
    logging.getLogger("stripe").setLevel(logging.WARNING)
