"""
Logging setup shared by the Streamlit app and scripts.
"""
import logging
import sys

from resource_os.config import config


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            format=LOG_FORMAT,
            stream=sys.stdout,
            level=log_level,
        )
    root.setLevel(log_level)

    # Streamlit's file watcher is chatty at DEBUG
    logging.getLogger("watchdog").setLevel(logging.WARNING)

