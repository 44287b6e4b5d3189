# logging_config.py
import logging

from config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> None:
     """Configure root logging once for the gateway process."""
     logging.basicConfig(
          level=getattr(logging, level, logging.INFO),
          format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
          datefmt="%Y-%m-%d %H:%M:%S",
     )
     # web3 and urllib3 are chatty at INFO
     logging.getLogger("web3").setLevel(logging.WARNING)
     logging.getLogger("urllib3").setLevel(logging.WARNING)
