"""RFC4180-style CSV tokenizing for platform exports.

Platform exports put a JSON document in the DATA column, so fields
routinely contain commas, quotes and line breaks. Records are split on
line breaks outside quotes, then each record is tokenized by
``parse_line``.
"""

from typing import Iterable, Iterator, Optional

QUOTE = '"'
DELIMITER = ","

# Columns of the platform export, matched case-insensitively
EXPECTED_COLUMNS = (
    "DATA",
    "ID",
    "EXERCISE_ID",
    "ORGANIZATION_ID",
    "USER_ID",
    "CREATION_TS",
    "GAME_CONFIG_ID",
    "GROUP_NAME",
    "SURVEY_DATA",
    "GAME_DATA",
)

# Columns accepted as the payload column, in priority order
DATA_COLUMNS = ("DATA", "SURVEY_DATA", "GAME_DATA")


def parse_line(line: str) -> list[str]:
    """Split one CSV record into its fields.

    A quote toggles quoting, except that two quotes inside a quoted field
    produce one literal quote. Commas only separate fields outside quotes.

    Args:
        line: One CSV record (may span physical lines inside quotes)

    Returns:
        Field values in column order

    Example:
        >>> parse_line('a,"b,c","d""e"')
        ['a', 'b,c', 'd"e']
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == QUOTE:
            if in_quotes and i + 1 < length and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def split_records(text: str) -> Iterator[str]:
    """Yield CSV records, keeping line breaks that sit inside quotes.

    Carriage returns before a record break are dropped; blank records are
    skipped.
    """
    current: list[str] = []
    in_quotes = False

    for char in text:
        if char == QUOTE:
            # Escaped quotes toggle twice, leaving the state unchanged
            in_quotes = not in_quotes
        if char == "\n" and not in_quotes:
            record = "".join(current).rstrip("\r")
            if record.strip():
                yield record
            current = []
            continue
        current.append(char)

    record = "".join(current).rstrip("\r")
    if record.strip():
        yield record


def format_field(value: Optional[object]) -> str:
    """Quote a field if it contains a delimiter, quote or line break."""
    if value is None:
        return ""
    text = str(value)
    if any(char in text for char in (DELIMITER, QUOTE, "\n", "\r")):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def format_line(fields: Iterable[Optional[object]]) -> str:
    """Serialize fields into one RFC4180 record (no trailing line break)."""
    return DELIMITER.join(format_field(field) for field in fields)


def normalize_header(header: list[str]) -> list[str]:
    """Canonicalize header names: known columns upper-cased, others trimmed."""
    normalized = []
    for name in header:
        cleaned = name.strip().lstrip("\ufeff")
        if cleaned.upper() in EXPECTED_COLUMNS:
            cleaned = cleaned.upper()
        normalized.append(cleaned)
    return normalized


def find_data_column(header: list[str]) -> Optional[str]:
    """Name of the payload column in a normalized header, if present."""
    for column in DATA_COLUMNS:
        if column in header:
            return column
    return None
