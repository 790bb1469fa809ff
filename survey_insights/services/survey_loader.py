"""Survey definition loader with caching and validation.

This module loads survey definitions exported by the authoring tool from
YAML or JSON files, validates them against Pydantic schemas, and caches
the results. A file may hold a single survey or a survey library
(``{"surveys": [...]}``).
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from survey_insights.config import get_settings
from survey_insights.logging_config import get_logger
from survey_insights.schemas.survey import Survey

logger = get_logger(__name__)

SURVEY_FILE_SUFFIXES = (".yaml", ".yml", ".json")


class SurveyNotFoundError(Exception):
    """Raised when a survey definition is not found."""
    pass


class SurveyValidationError(Exception):
    """Raised when a survey definition fails validation."""
    pass


def _read_document(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


class SurveyLoader:
    """Service for loading and caching survey definitions.

    Surveys are looked up as ``<surveys_dir>/<survey_id>.(yaml|yml|json)``
    first, then inside library files of the same directory.
    """

    def __init__(self, surveys_dir: Optional[str] = None):
        """Initialize survey loader.

        Args:
            surveys_dir: Path to surveys directory (defaults to settings)
        """
        if surveys_dir is None:
            surveys_dir = get_settings().surveys_dir

        self.surveys_dir = Path(surveys_dir)

        if not self.surveys_dir.exists():
            logger.warning(f"Surveys directory not found: {self.surveys_dir}")

    def _survey_files(self) -> list[Path]:
        if not self.surveys_dir.exists():
            return []
        return sorted(
            path for path in self.surveys_dir.iterdir()
            if path.is_file() and path.suffix in SURVEY_FILE_SUFFIXES
        )

    def _load_path(self, path: Path) -> list[Survey]:
        try:
            raw_data = _read_document(path)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Parsing error for survey file {path}: {e}")
            raise SurveyValidationError(f"Invalid survey file '{path.name}': {e}")
        except OSError as e:
            logger.error(f"Error reading survey file {path}: {e}")
            raise SurveyValidationError(f"Error reading survey file '{path.name}': {e}")

        # Library files hold several surveys, plain files hold one
        if isinstance(raw_data, dict) and "surveys" in raw_data:
            documents = raw_data["surveys"]
        else:
            documents = [raw_data]
        if not isinstance(documents, list):
            raise SurveyValidationError(f"Survey library '{path.name}' must contain a list")

        try:
            return [Survey.model_validate(document) for document in documents]
        except ValidationError as e:
            logger.error(f"Validation error for survey file {path}: {e}")
            raise SurveyValidationError(f"Validation failed for survey file '{path.name}': {e}")

    @lru_cache(maxsize=128)
    def load_survey(self, survey_id: str) -> Survey:
        """Load and validate a survey definition.

        Results are cached. Clear cache with clear_cache() if needed.

        Args:
            survey_id: Survey identifier

        Returns:
            Validated Survey object

        Raises:
            SurveyNotFoundError: If no file defines the survey
            SurveyValidationError: If a matching file fails validation
        """
        for suffix in SURVEY_FILE_SUFFIXES:
            path = self.surveys_dir / f"{survey_id}{suffix}"
            if path.exists():
                for survey in self._load_path(path):
                    if survey.id == survey_id:
                        logger.info(f"Successfully loaded survey: {survey_id}")
                        return survey

        for path in self._survey_files():
            try:
                surveys = self._load_path(path)
            except SurveyValidationError:
                continue
            for survey in surveys:
                if survey.id == survey_id:
                    logger.info(f"Loaded survey {survey_id} from library {path.name}")
                    return survey

        logger.error(f"Survey not found: {survey_id}")
        raise SurveyNotFoundError(f"Survey '{survey_id}' not found in {self.surveys_dir}")

    def list_surveys(self) -> list[str]:
        """List all available survey IDs.

        Invalid files are skipped.

        Returns:
            Sorted list of survey IDs
        """
        survey_ids = set()
        for path in self._survey_files():
            try:
                survey_ids.update(survey.id for survey in self._load_path(path))
            except SurveyValidationError:
                continue

        logger.debug(f"Found {len(survey_ids)} surveys: {sorted(survey_ids)}")
        return sorted(survey_ids)

    def clear_cache(self):
        """Clear the survey cache.

        Useful during development or when surveys are updated at runtime.
        """
        self.load_survey.cache_clear()
        logger.info("Survey cache cleared")


# Global singleton instance
_loader_instance: Optional[SurveyLoader] = None


def get_survey_loader() -> SurveyLoader:
    """Get global SurveyLoader instance.

    Creates singleton instance on first call.

    Returns:
        Global SurveyLoader instance
    """
    global _loader_instance
    if _loader_instance is None:
        _loader_instance = SurveyLoader()
    return _loader_instance
