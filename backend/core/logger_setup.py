"""
Shared logging setup for the API process.
"""
import logging


def setup_logging(level_name: str = "INFO") -> None:
    """
    Configure the root logger with a single console handler.

    Parameters
    ----------
    level_name : str
        Logging level name, e.g. "DEBUG" or "INFO". Unknown names fall back to INFO.
    """
    level = getattr(logging, str(level_name).upper(), logging.INFO)

    # Clear existing handlers
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
