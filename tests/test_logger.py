import logging

from odia_roll.logger import ROOT_LOGGER, LevelColorFormatter, configure_logging, get_logger


def test_component_loggers_share_the_package_handlers():
    component = get_logger("BlockDetector")
    module = get_logger("odia_roll.utils.translator")

    assert component.name == "odia_roll.BlockDetector"
    assert module.name == "odia_roll.utils.translator"
    assert not component.handlers
    assert component.parent is logging.getLogger(ROOT_LOGGER)


def test_configure_logging_adds_handlers_once():
    root = configure_logging()
    count = len(root.handlers)

    assert configure_logging() is root
    assert len(root.handlers) == count
    # LOG_TO_FILE=0 in the test environment
    assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)


def test_color_formatter_leaves_record_untouched():
    record = logging.LogRecord("odia_roll", logging.WARNING, __file__, 1, "careful", None, None)

    text = LevelColorFormatter("%(levelname)s | %(message)s").format(record)

    assert text == "\033[33mWARNING\033[0m | careful"
    assert record.levelname == "WARNING"
