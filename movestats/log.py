import logging
import os

_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}

_old_factory = logging.getLogRecordFactory()


def record_factory(*args, **kwargs):
    record = _old_factory(*args, **kwargs)
    color = _COLORS.get(record.levelname)
    record.levelname_colored = f"{color}{record.levelname}\033[0m" if color else record.levelname

    return record


logging.setLogRecordFactory(record_factory)
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
    format="%(levelname_colored)s: %(message)s",
)
log = logging.getLogger()
