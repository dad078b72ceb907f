import json
import logging
from pathlib import Path

import pytest

from fieldsync.utils.logging import configure_json_logger, flush_handlers, log_event


@pytest.fixture
def restore_logger():
    logger = logging.getLogger("fieldsync")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_structured_logger_emits_jsonl(tmp_path: Path, restore_logger) -> None:
    log_file = tmp_path / "events.jsonl"
    logger = configure_json_logger(log_file)

    trace_id = log_event(logger, "sync.started", documents=2)
    log_event(logger, "sync.completed", trace_id=trace_id, statuses={"written": 1})
    flush_handlers(logger)

    lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]

    assert len(lines) == 2
    assert all(line["trace_id"] == trace_id for line in lines)
    assert {line["event"] for line in lines} == {"sync.started", "sync.completed"}
    assert lines[0]["documents"] == 2
    assert lines[1]["statuses"] == {"written": 1}


def test_extra_payloads_of_module_loggers_are_serialized(tmp_path: Path, restore_logger) -> None:
    log_file = tmp_path / "events.jsonl"
    logger = configure_json_logger(log_file, level=logging.DEBUG)

    logging.getLogger("fieldsync.fields.decision").debug(
        "decision.computed", extra={"upserts": ["title"], "snapshot": frozenset({"b", "a"})}
    )
    flush_handlers(logger)

    record = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert record["logger"] == "fieldsync.fields.decision"
    assert record["event"] == "decision.computed"
    assert record["upserts"] == ["title"]
    assert record["snapshot"] == ["a", "b"]
