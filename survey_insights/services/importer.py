"""Import of response files into the local store.

Two kinds of failure are distinguished:

- per-row faults (malformed payload, not a survey response): the row is
  logged and skipped, the import continues
- fatal faults (unsupported file type, missing DATA column, unreadable
  file, no valid rows): ``ImportRejectedError`` is raised and nothing is
  written
"""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Any, Optional

from survey_insights.logging_config import get_logger
from survey_insights.schemas.response import SurveyResponse
from survey_insights.services import csv_parser
from survey_insights.services.local_store import LocalResponseStore
from survey_insights.services.response_mapper import MappingHints, RecordSource, map_rows

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = {".csv", ".json"}


class ImportRejection(str, Enum):
    """Reasons a whole import file is rejected."""
    UNSUPPORTED_FORMAT = "unsupported_format"
    UNREADABLE = "unreadable"
    MISSING_COLUMN = "missing_column"
    NO_VALID_ROWS = "no_valid_rows"


class ImportRejectedError(Exception):
    """Raised when an import file is rejected as a whole.

    Attributes:
        kind: Rejection reason
        message: User-facing explanation
    """

    def __init__(self, kind: ImportRejection, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class ImportResult:
    """Responses read from one file and the number of skipped rows."""
    responses: list[SurveyResponse]
    skipped: int = 0


def parse_csv_responses(
    content: str,
    survey_id: Optional[str] = None,
    survey_title: Optional[str] = None,
) -> ImportResult:
    """Read responses from a platform CSV export.

    Args:
        content: File text; the header row must include a DATA column
        survey_id: Survey the file is imported into (default survey id)
        survey_title: Default survey title

    Returns:
        ImportResult with responses whose payload had answers or a survey id

    Raises:
        ImportRejectedError: Missing DATA column or no valid rows
    """
    records = csv_parser.split_records(content)
    header_line = next(records, None)
    if header_line is None:
        raise ImportRejectedError(ImportRejection.NO_VALID_ROWS, "The CSV file is empty.")

    header = csv_parser.normalize_header(csv_parser.parse_line(header_line))
    data_column = csv_parser.find_data_column(header)
    if data_column is None:
        raise ImportRejectedError(
            ImportRejection.MISSING_COLUMN,
            "Could not find data column in CSV. Expected a DATA column.",
        )

    rows = []
    for record in records:
        values = csv_parser.parse_line(record)
        # Short rows keep their row slot so synthesized ids follow file order
        rows.append(dict(zip(header, values)) if len(values) > header.index(data_column) else None)

    responses, skipped = map_rows(
        rows,
        MappingHints(
            row_index=1,
            source=RecordSource.CSV,
            default_survey_id=survey_id,
            default_survey_title=survey_title,
            require_survey_fields=True,
        ),
    )
    return _require_rows(ImportResult(responses=responses, skipped=skipped), "CSV")


def _json_records(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("responses"), list):
            return data["responses"]
        if "data" in data:
            return [data]
    raise ImportRejectedError(
        ImportRejection.UNREADABLE,
        "Invalid file format. Expected a list of responses, "
        "an object with a 'responses' list, or a platform record with 'data'.",
    )


def parse_json_responses(
    content: str,
    survey_id: Optional[str] = None,
    survey_title: Optional[str] = None,
) -> ImportResult:
    """Read responses from a JSON file.

    Accepted shapes: a bare array of responses, ``{"responses": [...]}``
    (the JSON export format), or a single platform record with ``data``.

    Raises:
        ImportRejectedError: Invalid JSON, unknown shape, or no valid rows
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ImportRejectedError(
            ImportRejection.UNREADABLE,
            "Invalid file format. Please upload a valid JSON file.",
        ) from e

    responses, skipped = map_rows(
        _json_records(data),
        MappingHints(
            source=RecordSource.JSON,
            default_survey_id=survey_id,
            default_survey_title=survey_title,
            require_survey_fields=True,
        ),
    )
    return _require_rows(ImportResult(responses=responses, skipped=skipped), "JSON")


def _require_rows(result: ImportResult, kind: str) -> ImportResult:
    if not result.responses:
        raise ImportRejectedError(
            ImportRejection.NO_VALID_ROWS,
            f"No valid survey responses found in {kind} file "
            f"({result.skipped} rows skipped).",
        )
    return result


def decode_upload(raw: bytes) -> str:
    """Decode uploaded bytes as UTF-8 (a leading BOM is dropped)."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ImportRejectedError(
            ImportRejection.UNREADABLE,
            "Failed to read file: it is not UTF-8 text.",
        ) from e


class ResponseImporter:
    """Imports response files into the local store.

    Args:
        store: Local response store receiving imported batches
    """

    def __init__(self, store: LocalResponseStore):
        self.store = store

    def import_file(
        self,
        filename: str,
        content: str,
        survey_id: Optional[str] = None,
        survey_title: Optional[str] = None,
    ) -> ImportResult:
        """Parse a CSV or JSON file and append its responses to the store.

        Args:
            filename: Original file name (its extension selects the parser)
            content: File text
            survey_id: Survey context used when rows carry no survey id
            survey_title: Survey title used when rows carry none

        Returns:
            ImportResult

        Raises:
            ImportRejectedError: The file was rejected; nothing was stored
        """
        extension = PurePath(filename or "").suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise ImportRejectedError(
                ImportRejection.UNSUPPORTED_FORMAT,
                f"Unsupported file type '{extension or filename}'. Please upload a .csv or .json file.",
            )

        if extension == ".csv":
            result = parse_csv_responses(content, survey_id, survey_title)
        else:
            result = parse_json_responses(content, survey_id, survey_title)

        self.store.append(result.responses)
        logger.info(
            f"Imported {len(result.responses)} responses from {filename} "
            f"({result.skipped} rows skipped)",
            extra={"survey_id": survey_id},
        )
        return result
