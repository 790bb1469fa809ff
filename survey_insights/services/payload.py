"""Decoding of survey payloads stored inside raw response records.

The survey payload reaches us in several shapes:

- an object: ``{"surveyId": ..., "answers": {...}}``
- a JSON string of that object
- a JSON string of a JSON string (double encoding, seen in warehouse exports)
- a platform envelope ``{"data": "<json>", "exerciseId": ...}`` wrapping any
  of the above

Only one level of ``data`` nesting is unwrapped.
"""

import json
from typing import Any

from survey_insights.logging_config import get_logger

logger = get_logger(__name__)

# Key of the platform envelope holding the survey payload
ENVELOPE_DATA_KEY = "data"


class MalformedPayloadError(Exception):
    """Raised when a record's payload cannot be decoded into an object."""
    pass


def decode_json_object(raw: Any) -> dict:
    """Decode a payload into a plain dict.

    Strings are JSON-decoded; a decoded string is decoded once more
    (double encoding). Text that is not valid JSON on its own is retried
    as the body of a JSON string literal, i.e. escaped JSON that lost its
    surrounding quotes.

    Args:
        raw: dict, JSON string, or double-encoded JSON string

    Returns:
        Decoded object

    Raises:
        MalformedPayloadError: If no object can be obtained
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise MalformedPayloadError(f"Unsupported payload type: {type(raw).__name__}")

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        try:
            decoded = json.loads(json.loads(f'"{raw}"'))
        except (json.JSONDecodeError, TypeError):
            raise MalformedPayloadError(f"Payload is not valid JSON: {e}") from e

    if isinstance(decoded, str):
        try:
            decoded = json.loads(decoded)
        except json.JSONDecodeError as e:
            raise MalformedPayloadError(f"Double-encoded payload is not valid JSON: {e}") from e

    if not isinstance(decoded, dict):
        raise MalformedPayloadError(
            f"Payload decoded to {type(decoded).__name__}, expected an object"
        )
    return decoded


def unwrap_envelope(raw: Any) -> tuple[dict, dict]:
    """Decode a payload and unwrap one level of ``data`` nesting.

    Args:
        raw: Raw value of the record's data field

    Returns:
        (envelope, inner payload). Both are the same object when there is
        no ``data`` property. A ``data`` property that does not hold an
        object yields an empty inner payload.

    Raises:
        MalformedPayloadError: If the outer payload cannot be decoded, or
            ``data`` is a string that is not valid JSON
    """
    envelope = decode_json_object(raw)

    if ENVELOPE_DATA_KEY not in envelope:
        return envelope, envelope

    nested = envelope[ENVELOPE_DATA_KEY]
    if isinstance(nested, dict):
        return envelope, nested
    if isinstance(nested, str):
        try:
            inner = json.loads(nested)
        except json.JSONDecodeError as e:
            raise MalformedPayloadError(f"Envelope data is not valid JSON: {e}") from e
        if isinstance(inner, dict):
            return envelope, inner

    logger.debug(f"Unresolved envelope data of type {type(nested).__name__}")
    return envelope, {}


def unwrap(raw: Any) -> dict:
    """Return the inner survey payload of a raw data field.

    Idempotent on objects without a ``data`` property.
    """
    _, inner = unwrap_envelope(raw)
    return inner
