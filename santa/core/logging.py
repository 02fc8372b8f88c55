import sys
from loguru import logger

LOG_FORMAT = "{time} | {level} | {module}:{function}:{line} | {message}"


def _format(record) -> str:
    # Values bound with logger.bind(...) are rendered as key=value pairs.
    bound = {key: value for key, value in record["extra"].items() if key != "context"}
    if not bound:
        return LOG_FORMAT + "\n{exception}"
    record["extra"]["context"] = " ".join(f"{key}={bound[key]}" for key in sorted(bound))
    return LOG_FORMAT + " | {extra[context]}\n{exception}"


def setup_logging(level: str, log_path: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level, format=_format)
    logger.add(
        log_path,
        level="DEBUG",
        format=_format,
        rotation="100 KB",
        compression="zip",
    )
