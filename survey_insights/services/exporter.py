"""CSV and JSON exports of a survey's responses."""

import json
import re
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from survey_insights.schemas.response import SurveyResponse
from survey_insights.schemas.survey import Survey
from survey_insights.services.csv_parser import format_line

METADATA_HEADERS = [
    "Response ID",
    "Survey ID",
    "Survey Title",
    "Timestamp",
    "Completed At",
    "Status",
    "Time Spent (seconds)",
]

MULTI_VALUE_SEPARATOR = "; "

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\- ]+")


def _rank_sort_key(item: tuple[Any, Any]) -> tuple[int, float, str]:
    option, rank = item
    try:
        return (0, float(rank), str(option))
    except (TypeError, ValueError):
        return (1, 0.0, str(option))


def format_answer(answer: Any) -> str:
    """Flatten an answer value into one CSV cell."""
    if answer is None:
        return ""
    if isinstance(answer, (list, tuple, set)):
        return MULTI_VALUE_SEPARATOR.join(str(item) for item in answer)
    if isinstance(answer, dict):
        # Ranking answers: option=rank, best rank first
        ordered = sorted(answer.items(), key=_rank_sort_key)
        return MULTI_VALUE_SEPARATOR.join(f"{option}={rank}" for option, rank in ordered)
    if isinstance(answer, bool):
        return "true" if answer else "false"
    return str(answer)


def export_csv(responses: Sequence[SurveyResponse], survey: Survey) -> str:
    """Render responses as CSV, one column per question in survey order.

    Args:
        responses: Responses to export
        survey: Survey definition providing question order and texts

    Returns:
        CSV text (RFC4180 quoting, ``\\n`` line breaks)
    """
    questions = survey.questions
    lines = [format_line(METADATA_HEADERS + [f"Q: {question.text}" for question in questions])]

    for response in responses:
        row = [
            response.id,
            response.survey_id,
            response.survey_title,
            response.timestamp,
            response.completed_at or "",
            response.status.value,
            "" if response.time_spent is None else str(response.time_spent),
        ]
        row.extend(format_answer(response.answers.get(question.id)) for question in questions)
        lines.append(format_line(row))

    return "\n".join(lines)


def build_json_export(
    responses: Sequence[SurveyResponse],
    survey: Survey,
    exported_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Build the JSON export document (re-importable by the JSON importer)."""
    exported_at = exported_at or datetime.now(timezone.utc)
    return {
        "survey": {
            "id": survey.id,
            "title": survey.title,
            "description": survey.description,
        },
        "exportedAt": exported_at.isoformat().replace("+00:00", "Z"),
        "totalResponses": len(responses),
        "responses": [response.to_wire() for response in responses],
    }


def export_json(
    responses: Sequence[SurveyResponse],
    survey: Survey,
    exported_at: Optional[datetime] = None,
) -> str:
    """Render the JSON export document as indented text."""
    return json.dumps(build_json_export(responses, survey, exported_at), indent=2)


def export_filename(survey: Survey, extension: str, today: Optional[datetime] = None) -> str:
    """Download name: ``<title>_responses_<YYYY-MM-DD>.<extension>``."""
    today = today or datetime.now(timezone.utc)
    title = _UNSAFE_FILENAME_CHARS.sub("", survey.title).strip() or "survey"
    return f"{title}_responses_{today.date().isoformat()}.{extension}"
