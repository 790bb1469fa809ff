"""Unit tests for survey loader service.

Tests YAML/JSON loading, survey libraries, caching, and validation.
"""

import json
import tempfile
from pathlib import Path

import pytest

from survey_insights.schemas.survey import QuestionType, Survey
from survey_insights.services.survey_loader import (
    SurveyLoader,
    SurveyNotFoundError,
    SurveyValidationError,
    get_survey_loader,
)


class TestSurveyLoader:
    """Tests for SurveyLoader class."""

    @pytest.fixture
    def temp_surveys_dir(self):
        """Create temporary directory for test surveys."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def valid_survey_yaml(self):
        """Return valid survey YAML content."""
        return """
id: test_survey
title: Test Survey
description: A test survey
createdAt: "2024-05-01T09:00:00Z"
sections:
  - id: s1
    title: First
    questions:
      - id: q1
        type: yesno
        question: Do you agree?
        options: ["Yes", "No"]
      - id: q2
        type: likert
        question: Rate the statement
        options: [Disagree, Neutral, Agree]
  - id: s2
    title: Second
    order: 1
    questions:
      - id: q3
        type: text
        question: Comments?
"""

    @pytest.fixture
    def invalid_yaml(self):
        """Return invalid YAML content."""
        return """
id: bad_survey
sections: [unclosed
"""

    @pytest.fixture
    def invalid_survey_yaml(self):
        """Return YAML with schema validation errors."""
        return """
id: bad_survey
title: Bad Survey
sections:
  - id: s1
    questions:
      - id: q1
        type: dropdown
        question: Unknown type
"""

    def _write(self, directory: str, name: str, content: str) -> Path:
        path = Path(directory) / name
        with open(path, 'w') as f:
            f.write(content)
        return path

    def test_load_valid_survey(self, temp_surveys_dir, valid_survey_yaml):
        """Test loading a valid survey."""
        self._write(temp_surveys_dir, "test_survey.yaml", valid_survey_yaml)

        loader = SurveyLoader(temp_surveys_dir)
        survey = loader.load_survey("test_survey")

        assert isinstance(survey, Survey)
        assert survey.id == "test_survey"
        assert survey.title == "Test Survey"
        assert survey.created_at == "2024-05-01T09:00:00Z"
        assert [q.id for q in survey.questions] == ["q1", "q2", "q3"]
        assert survey.questions[1].type == QuestionType.LIKERT
        assert survey.questions[1].text == "Rate the statement"

    def test_load_json_survey(self, temp_surveys_dir):
        """Test loading a survey stored as JSON."""
        document = {
            "id": "json_survey",
            "title": "JSON Survey",
            "sections": [{"id": "s1", "questions": [{"id": "q1", "type": "text", "text": "Hi?"}]}],
        }
        self._write(temp_surveys_dir, "json_survey.json", json.dumps(document))

        survey = SurveyLoader(temp_surveys_dir).load_survey("json_survey")

        assert survey.questions[0].text == "Hi?"

    def test_load_from_library(self, temp_surveys_dir):
        """Surveys inside a library file are found by id."""
        library = {
            "surveys": [
                {"id": "alpha", "title": "Alpha"},
                {"id": "beta", "title": "Beta"},
            ]
        }
        self._write(temp_surveys_dir, "library.json", json.dumps(library))

        survey = SurveyLoader(temp_surveys_dir).load_survey("beta")

        assert survey.title == "Beta"

    def test_load_nonexistent_survey(self, temp_surveys_dir):
        """Test loading a survey that doesn't exist."""
        loader = SurveyLoader(temp_surveys_dir)

        with pytest.raises(SurveyNotFoundError, match="not found"):
            loader.load_survey("nonexistent")

    def test_load_invalid_yaml(self, temp_surveys_dir, invalid_yaml):
        """Test loading a file with invalid YAML syntax."""
        self._write(temp_surveys_dir, "bad_survey.yaml", invalid_yaml)

        loader = SurveyLoader(temp_surveys_dir)

        with pytest.raises(SurveyValidationError, match="Invalid survey file"):
            loader.load_survey("bad_survey")

    def test_load_invalid_survey_schema(self, temp_surveys_dir, invalid_survey_yaml):
        """Test loading YAML that fails Pydantic validation."""
        self._write(temp_surveys_dir, "bad_survey.yaml", invalid_survey_yaml)

        loader = SurveyLoader(temp_surveys_dir)

        with pytest.raises(SurveyValidationError, match="Validation failed"):
            loader.load_survey("bad_survey")

    def test_duplicate_question_ids_rejected(self, temp_surveys_dir):
        document = {
            "id": "dup",
            "sections": [
                {"id": "s1", "questions": [{"id": "q1", "type": "text", "text": "A"}]},
                {"id": "s2", "questions": [{"id": "q1", "type": "text", "text": "B"}]},
            ],
        }
        self._write(temp_surveys_dir, "dup.json", json.dumps(document))

        with pytest.raises(SurveyValidationError, match="Validation failed"):
            SurveyLoader(temp_surveys_dir).load_survey("dup")

    def test_cache_clear(self, temp_surveys_dir, valid_survey_yaml):
        """Updated files are picked up after the cache is cleared."""
        path = self._write(temp_surveys_dir, "test_survey.yaml", valid_survey_yaml)

        loader = SurveyLoader(temp_surveys_dir)
        survey1 = loader.load_survey("test_survey")

        path.write_text(valid_survey_yaml.replace("Test Survey", "Renamed Survey"))
        assert loader.load_survey("test_survey").title == survey1.title

        loader.clear_cache()
        assert loader.load_survey("test_survey").title == "Renamed Survey"

    def test_list_surveys(self, temp_surveys_dir, valid_survey_yaml):
        """Test listing all available surveys."""
        self._write(temp_surveys_dir, "test_survey.yaml", valid_survey_yaml)
        self._write(
            temp_surveys_dir,
            "library.json",
            json.dumps({"surveys": [{"id": "beta"}, {"id": "alpha"}]}),
        )
        self._write(temp_surveys_dir, "notes.txt", "not a survey")

        surveys = SurveyLoader(temp_surveys_dir).list_surveys()

        assert surveys == ["alpha", "beta", "test_survey"]

    def test_list_surveys_skips_invalid_files(self, temp_surveys_dir, invalid_yaml):
        self._write(temp_surveys_dir, "bad_survey.yaml", invalid_yaml)

        assert SurveyLoader(temp_surveys_dir).list_surveys() == []

    def test_list_surveys_nonexistent_dir(self):
        """Test listing surveys when directory doesn't exist."""
        loader = SurveyLoader("/nonexistent/path")
        surveys = loader.list_surveys()

        assert surveys == []

    def test_default_surveys_directory(self):
        """Test that loader defaults to project surveys/ directory."""
        loader = SurveyLoader()
        assert loader.surveys_dir.name == "surveys"


class TestGetSurveyLoader:
    """Tests for get_survey_loader singleton function."""

    def test_returns_singleton(self):
        """Test that get_survey_loader returns singleton instance."""
        loader1 = get_survey_loader()
        loader2 = get_survey_loader()

        assert loader1 is loader2
        assert isinstance(loader1, SurveyLoader)
