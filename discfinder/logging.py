"""
Logging configuration.
Aligns uvicorn and application logger levels; workflow failures use logger.exception.
"""
import logging
import sys


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout,
        force=True,
    )
    # Uvicorn loggers: keep access and error at the same level
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log = logging.getLogger(name)
        if level is not None:
            log.setLevel(level)
    logging.getLogger("discfinder").setLevel(level)
