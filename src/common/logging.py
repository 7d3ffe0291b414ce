import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    global _configured
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        # kafka client is chatty at INFO
        logging.getLogger("aiokafka").setLevel(logging.WARNING)
        _configured = True
    root.setLevel(level)
