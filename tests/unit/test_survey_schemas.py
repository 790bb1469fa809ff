"""Unit tests for survey definition and response schemas."""

import pytest
from pydantic import ValidationError

from survey_insights.schemas.platform import GameDataDTO, GameDataQuery
from survey_insights.schemas.response import (
    QuestionStatistics,
    ResponseQuery,
    ResponseStatus,
    SurveyResponse,
)
from survey_insights.schemas.survey import Question, QuestionType, Survey


class TestQuestion:
    """Tests for Question schema."""

    def test_question_alias(self):
        """The authoring tool stores question text under 'question'."""
        question = Question.model_validate({"id": "q1", "type": "radio", "question": "Pick one"})
        assert question.text == "Pick one"
        assert question.options == []
        assert question.required is False

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Question.model_validate({"id": "q1", "type": "slider", "text": "?"})

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Question(id="", type=QuestionType.TEXT, text="?")


class TestSurvey:
    """Tests for Survey schema."""

    def test_questions_in_section_order(self, sample_survey):
        assert sample_survey.questions[0].id == "q_yesno"
        assert sample_survey.questions[-1].id == "q_text"

    def test_duplicate_question_ids(self):
        with pytest.raises(ValidationError, match="Duplicate question IDs"):
            Survey.model_validate({
                "id": "s",
                "sections": [
                    {"id": "a", "questions": [{"id": "q", "type": "text", "text": "1"}]},
                    {"id": "b", "questions": [{"id": "q", "type": "text", "text": "2"}]},
                ],
            })


class TestSurveyResponse:
    """Tests for SurveyResponse schema."""

    def test_wire_format(self):
        response = SurveyResponse(
            id="r1",
            survey_id="s1",
            answers={"q1": "Yes"},
            timestamp="2024-06-01T10:00:00Z",
            time_spent=30,
        )

        assert response.to_wire() == {
            "id": "r1",
            "surveyId": "s1",
            "surveyTitle": "",
            "answers": {"q1": "Yes"},
            "timestamp": "2024-06-01T10:00:00Z",
            "timeSpent": 30,
            "status": "completed",
        }

    def test_accepts_camel_case(self):
        response = SurveyResponse.model_validate({
            "id": "r1",
            "surveyId": "s1",
            "timestamp": "2024-06-01",
            "status": "abandoned",
        })
        assert response.survey_id == "s1"
        assert response.status == ResponseStatus.ABANDONED

    def test_frozen(self):
        response = SurveyResponse(id="r1", timestamp="2024-06-01")
        with pytest.raises(ValidationError):
            response.survey_id = "other"

    def test_negative_time_spent_rejected(self):
        with pytest.raises(ValidationError):
            SurveyResponse(id="r1", timestamp="2024-06-01", time_spent=-5)


class TestOtherSchemas:
    """Tests for statistics, query and platform schemas."""

    def test_response_rate_bounds(self):
        with pytest.raises(ValidationError):
            QuestionStatistics(
                question_id="q1",
                question_text="?",
                question_type=QuestionType.TEXT,
                total_responses=1,
                response_rate=101,
            )

    def test_response_query_limits(self):
        assert ResponseQuery().limit == 1000
        with pytest.raises(ValidationError):
            ResponseQuery(limit=0)
        with pytest.raises(ValidationError):
            ResponseQuery(offset=-1)

    def test_game_data_keeps_unknown_fields(self):
        dto = GameDataDTO.model_validate({"id": 12, "data": {"answers": {}}, "extraField": "x"})
        assert dto.id == "12"
        assert dto.model_dump(exclude_none=True)["extraField"] == "x"

    def test_search_params_exclude_survey_id(self):
        query = GameDataQuery(survey_id="s1", organization_id="org1")
        assert query.search_params() == {"organizationId": "org1"}
