"""Alias-aware field lookup for raw response records.

Raw rows come from sources without a shared schema: warehouse columns are
upper-cased, CSV headers follow the platform export, JSON payloads use
camelCase. Each logical field is declared once here as an ordered list of
candidate keys and every lookup goes through ``resolve``.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Union


class FieldAlias(Enum):
    """Candidate keys per logical field, most specific first."""

    DATA = ("data", "DATA", "survey_data", "SURVEY_DATA", "game_data", "GAME_DATA")
    ANSWERS = ("answers",)
    SURVEY_ID = ("surveyId", "survey_id")
    SURVEY_TITLE = ("surveyTitle", "survey_title")
    RESPONSE_ID = ("id", "ID", "response_id", "RESPONSE_ID", "game_data_id", "GAME_DATA_ID")
    TIMESTAMP = ("timestamp", "TIMESTAMP", "created_at", "CREATED_AT", "CREATED_TIMESTAMP")
    CREATION_TIMESTAMP = ("creationTimestamp", "creation_timestamp", "creation_ts", "CREATION_TS")
    COMPLETED_AT = (
        "completedAt",
        "completed_at",
        "COMPLETED_AT",
        "completed_timestamp",
        "COMPLETED_TIMESTAMP",
    )
    SESSION_ID = ("sessionId", "session_id", "SESSION_ID")
    TIME_SPENT = ("timeSpent", "time_spent", "TIME_SPENT")
    STATUS = ("status", "STATUS")
    USER_ID = ("userId", "user_id", "USER_ID")
    ORGANIZATION_ID = (
        "organizationId",
        "organization_id",
        "ORGANIZATION_ID",
        "org_id",
        "ORG_ID",
    )
    EXERCISE_ID = ("exerciseId", "exercise_id", "EXERCISE_ID")


def _keys(candidate_keys: Union[FieldAlias, Iterable[str]]) -> tuple[str, ...]:
    if isinstance(candidate_keys, FieldAlias):
        return candidate_keys.value
    return tuple(candidate_keys)


def resolve(record: Any, candidate_keys: Union[FieldAlias, Iterable[str]]) -> Optional[Any]:
    """Look up the first non-null value among candidate keys.

    Each candidate is tried as given, then upper-cased, then lower-cased.

    Args:
        record: Raw record (anything that is not a mapping resolves to None)
        candidate_keys: Ordered candidate keys, or a ``FieldAlias`` member

    Returns:
        The first present, non-None value, or None

    Example:
        >>> resolve({"SURVEY_DATA": "{}"}, FieldAlias.DATA)
        '{}'
    """
    if not isinstance(record, Mapping):
        return None

    for key in _keys(candidate_keys):
        for variant in (key, key.upper(), key.lower()):
            value = record.get(variant)
            if value is not None:
                return value
    return None


def resolve_first(
    records: Sequence[Any],
    candidate_keys: Union[FieldAlias, Iterable[str]]
) -> Optional[Any]:
    """Resolve a field across several records, in priority order.

    Used to prefer the inner survey payload over its platform envelope
    and the envelope over the raw row.
    """
    keys = _keys(candidate_keys)
    for record in records:
        value = resolve(record, keys)
        if value is not None:
            return value
    return None
