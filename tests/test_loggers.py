import logging

from jewelcore.loggers import ROOT_LOGGER, get_logger


def test_module_loggers_share_one_handler():
    a = get_logger("jewelcore.services.bulk")
    b = get_logger("jewelcore.services.fetch")
    get_logger("jewelcore.services.bulk")

    root = logging.getLogger(ROOT_LOGGER)
    assert len(root.handlers) == 1
    assert a.handlers == [] and b.handlers == []
    assert a.getEffectiveLevel() == root.level


def test_foreign_names_are_placed_under_the_package():
    assert get_logger("pages.billing").name == "jewelcore.pages.billing"
    assert get_logger().name == ROOT_LOGGER
