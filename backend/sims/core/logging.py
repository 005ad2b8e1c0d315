"""
Logging setup shared by the API process and command-line entry points.
"""
import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level.upper(),
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler()]
        )
    root.setLevel(level.upper())
