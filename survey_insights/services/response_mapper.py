"""Mapping of raw records from any source into canonical survey responses.

A raw record is a warehouse row, a CSV row keyed by header, a JSON import
object or a platform game-data record. Mapping is fault-isolated: a record
that cannot be mapped is logged and skipped, never raised, so one bad row
does not abort a batch.
"""

import re
import time
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from survey_insights.logging_config import get_logger
from survey_insights.schemas.response import ResponseStatus, SurveyResponse
from survey_insights.services.field_resolver import FieldAlias, resolve, resolve_first
from survey_insights.services.payload import MalformedPayloadError, unwrap_envelope

logger = get_logger(__name__)

_NUMERIC_PATTERN = re.compile(r"^\s*[+-]?\d+(\.\d+)?\s*$")

# Epoch values above this are milliseconds (year 2286 in seconds)
_EPOCH_MILLIS_THRESHOLD = 10_000_000_000


class RecordSource(str, Enum):
    """Origin of a raw record, used in log context."""
    QUERY = "query"
    CSV = "csv"
    JSON = "json"
    API = "api"


@dataclass(frozen=True)
class MappingHints:
    """Caller-supplied context for mapping one record.

    Attributes:
        row_index: Position of the record in its batch (embedded in
            synthesized ids so they stay unique within the batch)
        source: Where the record came from
        survey_id_filter: Only keep records of this survey
        default_survey_id: Survey id used when the payload has none
        default_survey_title: Survey title used when the payload has none
        require_survey_fields: Drop payloads that have neither answers nor
            a survey id (they are other kinds of platform data)
    """
    row_index: int = 0
    source: RecordSource = RecordSource.QUERY
    survey_id_filter: Optional[str] = None
    default_survey_id: Optional[str] = None
    default_survey_title: Optional[str] = None
    require_survey_fields: bool = False


def _now_millis() -> int:
    return int(time.time() * 1000)


def _epoch_to_iso(value: float) -> str:
    seconds = value / 1000 if abs(value) >= _EPOCH_MILLIS_THRESHOLD else value
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_timestamp(value: Any) -> Optional[str]:
    """Convert a timestamp-like value to an ISO-8601 string.

    Epoch numbers (seconds or milliseconds, also as digit strings) and
    datetimes are converted to UTC ISO-8601. Other strings are kept as
    given; statistics skip the ones that do not parse.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        try:
            return _epoch_to_iso(value)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        try:
            return _epoch_to_iso(int(text))
        except (OverflowError, OSError, ValueError):
            return text
    return text


def coerce_time_spent(value: Any) -> Optional[int]:
    """Coerce seconds spent to a non-negative int; anything else is dropped."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value
    elif isinstance(value, str) and _NUMERIC_PATTERN.match(value):
        seconds = float(value)
    else:
        return None
    if seconds != seconds or seconds < 0:  # NaN or negative
        return None
    try:
        return int(seconds)
    except (OverflowError, ValueError):
        return None


def coerce_status(value: Any) -> ResponseStatus:
    """Map a raw status to ``ResponseStatus``; unknown values mean completed."""
    if isinstance(value, str):
        try:
            return ResponseStatus(value.strip().lower())
        except ValueError:
            logger.debug(f"Unknown response status {value!r}, treating as completed")
    return ResponseStatus.COMPLETED


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _log_context(hints: MappingHints) -> dict:
    return {"source": hints.source.value, "row_index": hints.row_index}


def map_to_response(raw_record: Any, hints: Optional[MappingHints] = None) -> Optional[SurveyResponse]:
    """Map one raw record to a canonical ``SurveyResponse``.

    Args:
        raw_record: Raw record from any source
        hints: Mapping context (defaults to an unfiltered query row)

    Returns:
        SurveyResponse, or None when the record is skipped (malformed
        payload, not a survey response, or filtered out)

    Note:
        Never raises; every failure is logged with the record's source
        and row index.
    """
    hints = hints or MappingHints()
    try:
        return _map(raw_record, hints)
    except Exception as e:
        logger.warning(
            f"Skipping {hints.source.value} row {hints.row_index}: unexpected mapping error: {e}",
            extra=_log_context(hints),
            exc_info=True,
        )
        return None


def _map(record: Any, hints: MappingHints) -> Optional[SurveyResponse]:
    if not isinstance(record, Mapping):
        logger.warning(
            f"Skipping {hints.source.value} row {hints.row_index}: "
            f"expected an object, got {type(record).__name__}",
            extra=_log_context(hints),
        )
        return None

    raw_data = resolve(record, FieldAlias.DATA)
    if raw_data is None:
        # Already-unwrapped record, e.g. a previously exported response
        envelope, inner = record, record
    else:
        try:
            envelope, inner = unwrap_envelope(raw_data)
        except MalformedPayloadError as e:
            logger.warning(
                f"Skipping {hints.source.value} row {hints.row_index}: {e} "
                f"(row keys: {sorted(str(key) for key in record.keys())})",
                extra=_log_context(hints),
            )
            return None

    layers = (inner, envelope, record)

    answers = resolve(inner, FieldAlias.ANSWERS)
    if answers is None and inner is not envelope:
        answers = resolve(envelope, FieldAlias.ANSWERS)
    if answers is not None and not isinstance(answers, Mapping):
        logger.warning(
            f"Ignoring non-object answers of type {type(answers).__name__} "
            f"in {hints.source.value} row {hints.row_index}",
            extra=_log_context(hints),
        )
        answers = None

    payload_survey_id = resolve_first(layers, FieldAlias.SURVEY_ID)
    if hints.require_survey_fields and answers is None and payload_survey_id is None:
        logger.debug(
            f"Skipping {hints.source.value} row {hints.row_index}: not a survey response",
            extra=_log_context(hints),
        )
        return None

    survey_id = _optional_str(payload_survey_id) or hints.default_survey_id or ""
    if hints.survey_id_filter is not None and survey_id != hints.survey_id_filter:
        return None

    survey_title = (
        _optional_str(resolve_first(layers, FieldAlias.SURVEY_TITLE))
        or hints.default_survey_title
        or ""
    )

    response_id = _optional_str(resolve_first((record, envelope), FieldAlias.RESPONSE_ID))
    if response_id is None:
        response_id = f"response_{_now_millis()}_{hints.row_index}"

    timestamp = normalize_timestamp(resolve_first(layers, FieldAlias.TIMESTAMP))
    if timestamp is None:
        timestamp = normalize_timestamp(resolve_first(layers, FieldAlias.CREATION_TIMESTAMP))
    if timestamp is None:
        timestamp = normalize_timestamp(datetime.now(timezone.utc))

    try:
        return SurveyResponse(
            id=response_id,
            survey_id=survey_id,
            survey_title=survey_title,
            answers=dict(answers or {}),
            timestamp=timestamp,
            completed_at=normalize_timestamp(resolve_first(layers, FieldAlias.COMPLETED_AT)),
            session_id=_optional_str(resolve_first(layers, FieldAlias.SESSION_ID)),
            time_spent=coerce_time_spent(resolve_first(layers, FieldAlias.TIME_SPENT)),
            status=coerce_status(resolve_first(layers, FieldAlias.STATUS)),
            user_id=_optional_str(resolve_first(layers, FieldAlias.USER_ID)),
            organization_id=_optional_str(resolve_first(layers, FieldAlias.ORGANIZATION_ID)),
            exercise_id=_optional_str(resolve_first(layers, FieldAlias.EXERCISE_ID)),
        )
    except ValidationError as e:
        logger.warning(
            f"Skipping {hints.source.value} row {hints.row_index}: invalid response: {e}",
            extra=_log_context(hints),
        )
        return None


def map_rows(
    rows: Iterable[Any],
    hints: Optional[MappingHints] = None
) -> tuple[list[SurveyResponse], int]:
    """Map a batch of raw records in order.

    Args:
        rows: Raw records
        hints: Shared mapping context; ``row_index`` is set per record,
            counting from the given value

    Returns:
        (mapped responses, number of skipped records)
    """
    hints = hints or MappingHints()
    responses: list[SurveyResponse] = []
    skipped = 0

    for offset, row in enumerate(rows):
        response = map_to_response(row, replace(hints, row_index=hints.row_index + offset))
        if response is None:
            skipped += 1
        else:
            responses.append(response)

    return responses, skipped
