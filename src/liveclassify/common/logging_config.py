import logging, os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

def setup_logging(default_level: str = "INFO"):
    level = os.environ.get("APP_LOG_LEVEL", default_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
    )
    # PyQt5.uic logs every widget at DEBUG
    logging.getLogger("PyQt5").setLevel(logging.WARNING)
