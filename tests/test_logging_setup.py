import json
import logging

from api import logging_setup


def _read_json_log(capfd):
    output = capfd.readouterr().err
    line = next(line for line in output.splitlines() if line.strip())
    return json.loads(line)


def test_configure_logging_emits_json(capfd, monkeypatch):
    logging_setup.reset_logging()
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("UPSTREAM_API_URL", "http://backend.test:8080")
    monkeypatch.setenv("PROXY_REPAIR_ENABLED", "0")
    logging_setup.configure_logging("proxy-tests")
    try:
        logging.getLogger("payload").info("hello", extra={"strategy": "null_patch"})
        record = _read_json_log(capfd)
    finally:
        logging_setup.reset_logging()
    assert record["message"] == "hello"
    assert record["service"] == "proxy-tests"
    assert record["strategy"] == "null_patch"
    assert record["upstream"] == "http://backend.test:8080"
    assert record["repair_enabled"] is False


def test_service_name_falls_back_to_environment(capfd, monkeypatch):
    logging_setup.reset_logging()
    monkeypatch.setenv("SERVICE_NAME", "dashboard-proxy")
    logging_setup.configure_logging()
    try:
        logging.getLogger("payload").warning("env service")
        record = _read_json_log(capfd)
    finally:
        logging_setup.reset_logging()
    assert record["service"] == "dashboard-proxy"


def test_configure_logging_is_idempotent():
    logging_setup.reset_logging()
    logging_setup.configure_logging("proxy-tests")
    logging_setup.configure_logging("proxy-tests")
    try:
        assert len(logging.getLogger().handlers) == 1
    finally:
        logging_setup.reset_logging()


def test_log_outcome_uses_warning_for_empty(caplog):
    logger = logging.getLogger("api.outcome")
    caplog.set_level(logging.INFO, logger="api.outcome")

    logging_setup.log_outcome(logger, "done", has_data=False)

    assert any(
        record.levelno == logging.WARNING and record.message == "done" for record in caplog.records
    )

    caplog.clear()
    logging_setup.log_outcome(logger, "done", has_data=True)

    assert any(
        record.levelno == logging.INFO and record.message == "done" for record in caplog.records
    )
