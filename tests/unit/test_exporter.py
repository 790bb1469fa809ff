"""Unit tests for CSV and JSON exports."""

import json
from datetime import datetime, timezone

from survey_insights.schemas.response import ResponseStatus
from survey_insights.services.csv_parser import parse_line, split_records
from survey_insights.services.exporter import (
    METADATA_HEADERS,
    build_json_export,
    export_csv,
    export_filename,
    export_json,
    format_answer,
)
from survey_insights.services.importer import parse_json_responses


class TestFormatAnswer:
    """Tests for format_answer()."""

    def test_scalars(self):
        assert format_answer(None) == ""
        assert format_answer("Yes") == "Yes"
        assert format_answer(4) == "4"
        assert format_answer(False) == "false"

    def test_multi_select(self):
        assert format_answer(["A", "C"]) == "A; C"

    def test_ranking_sorted_by_rank(self):
        assert format_answer({"y": 2, "x": 1, "z": 3}) == "x=1; y=2; z=3"


class TestExportCsv:
    """Tests for export_csv()."""

    def test_header_and_rows(self, sample_survey, make_response):
        responses = [
            make_response(
                {"q_yesno": "Yes", "q_checkbox": ["A", "B"], "q_text": 'Said "hi", left'},
                time_spent=42,
            ),
            make_response({"q_rank": {"x": 2, "y": 1}}, status=ResponseStatus.PARTIAL),
        ]

        records = list(split_records(export_csv(responses, sample_survey)))
        header = parse_line(records[0])
        first = dict(zip(header, parse_line(records[1])))
        second = dict(zip(header, parse_line(records[2])))

        assert header[:len(METADATA_HEADERS)] == METADATA_HEADERS
        assert header[len(METADATA_HEADERS)] == "Q: Recommend us?"
        assert len(header) == len(METADATA_HEADERS) + len(sample_survey.questions)
        assert first["Response ID"] == "r1"
        assert first["Time Spent (seconds)"] == "42"
        assert first["Q: Tools used?"] == "A; B"
        assert first["Q: Comments?"] == 'Said "hi", left'
        assert second["Status"] == "partial"
        assert second["Q: Rank these"] == "y=1; x=2"
        assert second["Q: Recommend us?"] == ""

    def test_no_responses(self, sample_survey):
        assert len(list(split_records(export_csv([], sample_survey)))) == 1


class TestExportJson:
    """Tests for the JSON export document."""

    def test_document_shape(self, sample_survey, make_response):
        exported_at = datetime(2024, 6, 2, 9, 0, tzinfo=timezone.utc)

        document = build_json_export([make_response({"q_yesno": "Yes"})], sample_survey, exported_at)

        assert document["survey"] == {
            "id": "s1",
            "title": "Team Feedback",
            "description": "Quarterly feedback",
        }
        assert document["exportedAt"] == "2024-06-02T09:00:00Z"
        assert document["totalResponses"] == 1
        assert document["responses"][0]["surveyId"] == "s1"
        assert document["responses"][0]["answers"] == {"q_yesno": "Yes"}

    def test_export_can_be_imported(self, sample_survey, make_response):
        responses = [make_response({"q_yesno": "Yes"}), make_response({"q_rating": 4})]

        text = export_json(responses, sample_survey)
        reimported = parse_json_responses(text)

        assert json.loads(text)["totalResponses"] == 2
        assert reimported.responses == responses


class TestExportFilename:
    """Tests for export_filename()."""

    def test_filename(self, sample_survey):
        today = datetime(2024, 6, 2, tzinfo=timezone.utc)
        assert export_filename(sample_survey, "csv", today) == "Team Feedback_responses_2024-06-02.csv"

    def test_unsafe_characters_removed(self, sample_survey):
        survey = sample_survey.model_copy(update={"title": '../"Q3"/report'})
        today = datetime(2024, 6, 2, tzinfo=timezone.utc)
        assert export_filename(survey, "json", today) == "Q3report_responses_2024-06-02.json"
