"""Console logging for the command-line tools.

Usage:
    from arb_fee_hook import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """Install a compact console handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S")
    )
    root.addHandler(console)


def setup_debug():
    """Per-round solver and refinement detail."""
    setup(level=logging.DEBUG)
