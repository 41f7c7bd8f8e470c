import json
import logging

from levelup.core.logging import LOG_FORMAT, CustomJsonFormatter, format_actor, log_context, request_id_var


def render(message="hello", **extra):
    record = logging.LogRecord("levelup.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(CustomJsonFormatter(LOG_FORMAT).format(record))


def test_plain_record_has_no_context_fields():
    line = render()
    assert line["message"] == "hello"
    assert line["level"] == "INFO"
    assert "timestamp" in line
    assert "actor" not in line
    assert "job_id" not in line


def test_context_fields_are_attached():
    token = request_id_var.set("trace-9")
    try:
        with log_context(actor=format_actor("HR", "900"), job_id=42):
            line = render()
    finally:
        request_id_var.reset(token)
    assert line["request_id"] == "trace-9"
    assert line["actor"] == "hr:900"
    assert line["job_id"] == 42

    # Reset on exit
    assert "job_id" not in render()


def test_explicit_extra_wins_over_context():
    with log_context(job_id=1):
        assert render(job_id=7)["job_id"] == 7


def test_actor_needs_role_and_id():
    assert format_actor(None, "900") == ""
    assert format_actor("ceo", "") == ""
