"""Tests for logging setup and request logging."""

import json
import logging

import pytest

from logging_config import HumanFormatter, JSONFormatter, setup_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg="hello", **extra):
    record = logging.LogRecord("flowpro.job_pdf", logging.INFO, __file__, 10, msg, (), None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


class TestFormatters:
    def test_json_line(self):
        line = JSONFormatter().format(_record(job_number=1042, doc_type="quote",
                                              artifact="QUOTE_1042_Acme.pdf"))
        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["logger"] == "flowpro.job_pdf"
        assert entry["msg"] == "hello"
        assert entry["job_number"] == 1042
        assert entry["doc_type"] == "quote"
        assert entry["artifact"] == "QUOTE_1042_Acme.pdf"

    def test_json_skips_absent_extras(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert "route" not in entry
        assert "job_number" not in entry

    def test_human_line(self):
        line = HumanFormatter().format(_record("generated"))
        assert "[I] flowpro.job_pdf: generated" in line


class TestSetup:
    def test_file_handler_in_log_dir(self, tmp_path, restore_root_logging):
        setup_logging(level="DEBUG", json_logs=True, log_dir=str(tmp_path / "logs"))
        logging.getLogger("flowpro.test").info("written to file")
        for h in logging.getLogger().handlers:
            h.flush()
        with open(tmp_path / "logs" / "flowpro.log") as f:
            lines = [json.loads(ln) for ln in f if ln.strip()]
        assert any(e["msg"] == "written to file" for e in lines)
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_production_env_uses_json(self, tmp_path, monkeypatch, restore_root_logging):
        monkeypatch.setenv("FLOWPRO_ENV", "production")
        setup_logging(log_dir=str(tmp_path))
        console = logging.getLogger().handlers[0]
        assert isinstance(console.formatter, JSONFormatter)


def test_requests_are_logged(client, sample_job, caplog):
    with caplog.at_level(logging.INFO, logger="flowpro"):
        client.post("/api/jobs/pdf", json={"job": sample_job, "type": "quote"})
    request_logs = [r for r in caplog.records if getattr(r, "route", None) == "/api/jobs/pdf"]
    assert request_logs
    assert request_logs[0].status == 200
    assert request_logs[0].method == "POST"
