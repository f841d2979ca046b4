"""JSON log lines and upload context."""

import json
import logging
import sys

from app.core.logging import JSONFormatter, get_logger


def _record(**extra):
    record = logging.LogRecord("adpulse.test", logging.INFO, __file__, 1, "Batch 1 committed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_copies_upload_context():
    line = json.loads(JSONFormatter().format(_record(upload_id="up-1", batch=1, schema_key="meta_ads", noise="x")))
    assert line["message"] == "Batch 1 committed"
    assert line["level"] == "INFO"
    assert line["upload_id"] == "up-1"
    assert line["batch"] == 1
    assert line["schema_key"] == "meta_ads"
    assert "noise" not in line


def test_formatter_names_the_exception():
    try:
        raise OverflowError("int too large")
    except OverflowError:
        record = _record()
        record.exc_info = sys.exc_info()
    line = json.loads(JSONFormatter().format(record))
    assert line["error_type"] == "OverflowError"
    assert "int too large" in line["exception"]


def test_module_loggers_share_one_handler():
    a = get_logger("ingest.pipeline")
    b = get_logger("analyzer.ads")
    root = logging.getLogger("adpulse")
    assert a.name == "adpulse.ingest.pipeline"
    assert not a.handlers and not b.handlers
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JSONFormatter)
