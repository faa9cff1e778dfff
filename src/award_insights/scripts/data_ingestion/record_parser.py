"""
Parse delimited award-record text into a validated records frame.

The header row names the fields; only ``message``, ``award_title``,
``recipient_title`` and ``nominator_title`` are kept. Every value is trimmed
and blank values become ``None``.
"""

import csv
import io
import logging
from typing import List

import pandas as pd

from ...exceptions import EmptyInputError, MalformedRecordError, SchemaError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["message", "award_title", "recipient_title", "nominator_title"]


def _has_unterminated_quote(text: str) -> bool:
    """True when a quoted field is still open at end of input."""
    # A quote opens a field only at its start; elsewhere it is a literal character
    in_quotes = False
    at_field_start = True
    i = 0
    while i < len(text):
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if text[i + 1:i + 2] == '"':
                    i += 1
                else:
                    in_quotes = False
        elif ch == '"' and at_field_start:
            in_quotes = True
        at_field_start = not in_quotes and ch in ",\n"
        i += 1
    return in_quotes


def _read_cells(text: str) -> pd.DataFrame:
    """Tokenize the text into a frame of trimmed strings, header row included."""
    width: List[int] = []

    def _truncate(fields: List[str]) -> List[str]:
        return fields[:width[0]] if width else fields

    try:
        # Peek the header width so over-long rows can be cut back to it
        first = next((row for row in csv.reader(io.StringIO(text)) if row), [])
        width.append(max(len(first), 1))
        cells = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_truncate,
        )
    except pd.errors.EmptyDataError as e:
        raise EmptyInputError() from e
    except (pd.errors.ParserError, csv.Error) as e:
        raise MalformedRecordError("Could not tokenize delimited input", original_error=e) from e

    return cells.fillna("").apply(lambda col: col.str.strip())


def parse_records(text: str) -> pd.DataFrame:
    """
    Parse raw delimited text with a header row into award records.

    Quoted fields may hold the delimiter, line breaks and doubled quotes.
    ``\\r\\n`` and ``\\n`` terminate lines alike. Rows whose fields are all
    blank are discarded.

    Args:
        text: Raw CSV text

    Returns:
        DataFrame with exactly the four record columns, blanks as None

    Raises:
        MalformedRecordError: If a quoted field is never closed
        EmptyInputError: If there is no header plus at least one data row
        SchemaError: If a required field is missing from the header
    """
    text = text.lstrip("\ufeff").replace("\r\n", "\n")

    if _has_unterminated_quote(text):
        raise MalformedRecordError("Unterminated quoted field at end of input")

    if not text.strip():
        raise EmptyInputError()

    cells = _read_cells(text)
    cells = cells[~(cells == "").all(axis=1)]

    if len(cells) < 2:
        raise EmptyInputError()

    header = list(cells.iloc[0])
    body = cells.iloc[1:]

    missing = [name for name in REQUIRED_COLUMNS if name not in header]
    if missing:
        raise SchemaError(missing, [h for h in header if h])

    # First occurrence wins when a header name repeats
    data = {
        name: [value or None for value in body.iloc[:, header.index(name)]]
        for name in REQUIRED_COLUMNS
    }
    records = pd.DataFrame(data, columns=REQUIRED_COLUMNS, dtype=object)

    # Rows with content only in ignored columns carry no record data
    records = records[records.notna().any(axis=1)].reset_index(drop=True)

    if records.empty:
        raise EmptyInputError()

    logger.info(f"Parsed {len(records)} award records ({len(header)} columns in header)")
    return records


def records_to_csv(records: pd.DataFrame) -> str:
    """
    Serialize a records frame back to CSV text.

    Args:
        records: Frame produced by ``parse_records``

    Returns:
        CSV text that ``parse_records`` reads back to the same records
    """
    return records[REQUIRED_COLUMNS].to_csv(index=False, lineterminator="\n")
