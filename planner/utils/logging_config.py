import logging
import sys
from planner.config.settings import get_settings

settings = get_settings()

CONSOLE_HANDLER_NAME = "planner-console"


def setup_logging():
    """
    Configure application-wide logging.

    Safe to call more than once: the console handler installed by an earlier
    call is replaced, never duplicated.
    """
    log_level = logging.DEBUG if settings.debug else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)

    # Quiet down noisy libraries
    for name in ("uvicorn.access", "sqlalchemy.engine", "redis"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
