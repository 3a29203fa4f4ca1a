"""
Unit Tests for the structured logger helpers
"""
import logging

from complyva.core.logging_config import ComplyvaLogger


class CollectingHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def make_logger():
    logger = ComplyvaLogger("complyva.test")
    handler = CollectingHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger, handler.records


class TestComplyvaLogger:

    def test_log_mutation(self):
        logger, records = make_logger()

        logger.log_mutation("CREATED", "RISK", "r-1", target_id="c-1")

        record = records[0]
        assert record.getMessage() == "CREATED RISK r-1"
        assert record.event_type == "register_mutation"
        assert record.target_id == "c-1"

    def test_log_error_with_context(self):
        logger, records = make_logger()

        logger.log_error_with_context(ValueError("bad"), context="derive")

        assert records[0].levelno == logging.ERROR
        assert records[0].error_type == "ValueError"

    def test_only_used_helpers_are_defined(self):
        helpers = {name for name in vars(ComplyvaLogger) if name.startswith("log_")}

        assert helpers == {"log_request", "log_mutation", "log_error_with_context"}
