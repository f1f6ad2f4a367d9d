import logging

from planner.utils.logging_config import CONSOLE_HANDLER_NAME, setup_logging


def console_handlers():
    return [h for h in logging.getLogger().handlers if h.get_name() == CONSOLE_HANDLER_NAME]


def test_repeated_setup_keeps_one_console_handler():
    setup_logging()
    setup_logging()
    assert len(console_handlers()) == 1


def test_noisy_libraries_quieted():
    setup_logging()
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
