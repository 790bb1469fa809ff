"""Unit tests for log formatters."""

import json
import logging

from survey_insights.logging_config import DevelopmentFormatter, JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="survey_insights.services.importer",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Skipping %s row %d",
        args=("csv", 3),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_includes_extra_context(self):
        output = json.loads(JSONFormatter().format(_record(survey_id="s1", row_index=3)))

        assert output["level"] == "WARNING"
        assert output["message"] == "Skipping csv row 3"
        assert output["survey_id"] == "s1"
        assert output["row_index"] == 3
        assert "msg" not in output


class TestDevelopmentFormatter:
    """Tests for DevelopmentFormatter."""

    def test_appends_context_fields(self):
        output = DevelopmentFormatter().format(_record(source="csv", row_index=3))

        assert "Skipping csv row 3" in output
        assert "[source=csv row_index=3]" in output

    def test_no_context(self):
        output = DevelopmentFormatter().format(_record())
        assert "[source=" not in output
