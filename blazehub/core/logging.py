import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Config de base : tout sur stdout, un logger par module (logging.getLogger(__name__))."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
