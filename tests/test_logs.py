import logging

from lrpbridge.logs import configure_logging, log_event, logger


def test_context_is_rendered_sorted(caplog):
    with caplog.at_level(logging.INFO, logger="lrpbridge"):
        log_event("INFO", "created-workload", name="app0", kind="Deployment", skipped=None)
    assert caplog.records[-1].getMessage() == "created-workload kind=Deployment name=app0"


def test_configure_logging_is_idempotent():
    before = len(logger.handlers)
    configure_logging("debug")
    configure_logging("debug")
    assert len(logger.handlers) == max(before, 1)
    assert logger.level == logging.DEBUG
    configure_logging("INFO")
