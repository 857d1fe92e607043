import json
import logging

from betterbet.core.logger import JsonFormatter, PlainFormatter, get_logger, setup_logger


def make_record(**extra):
    record = logging.makeLogRecord({"name": "betterbet.ledger", "levelno": logging.INFO,
                                    "levelname": "INFO", "msg": "Settled x2"})
    record.__dict__.update(extra)
    return record


def test_plain_formatter_appends_round_tag():
    line = PlainFormatter().format(make_record(game="dice", round_id="abc123"))
    assert line.endswith("Settled x2 [game=dice round_id=abc123]")
    assert "| INFO     | betterbet.ledger |" in line


def test_plain_formatter_without_context():
    assert PlainFormatter().format(make_record()).endswith("| Settled x2")


def test_json_formatter_includes_extra_fields():
    data = json.loads(JsonFormatter().format(make_record(round_id="abc123")))
    assert data["message"] == "Settled x2"
    assert data["round_id"] == "abc123"
    assert data["level"] == "INFO"


def test_reconfiguring_replaces_handlers():
    logger = setup_logger(name="betterbet-test")
    setup_logger(name="betterbet-test", formatter="json")
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)


def test_file_logging(tmp_path):
    log_file = tmp_path / "logs" / "engine.log"
    logger = setup_logger(name="betterbet-file-test", log_to_file=True, log_file_path=log_file)
    logger.warning("clamped", extra={"game": "mines"})
    for handler in logger.handlers:
        handler.flush()
    assert "clamped [game=mines]" in log_file.read_text()


def test_child_loggers():
    assert get_logger("ledger").name == "betterbet.ledger"
    assert get_logger().name == "betterbet"
