"""
Tests for the award record parser.

Covers quoting rules, header handling, blank-value normalization and the
structural errors raised for unusable input.
"""

import pytest
import pandas as pd
from pathlib import Path

from award_insights.exceptions import (
    AwardInsightsError, EmptyInputError, MalformedRecordError, SchemaError,
)
from award_insights.schemas import AwardRecordsSchema
from award_insights.scripts.data_ingestion.record_parser import (
    REQUIRED_COLUMNS, parse_records, records_to_csv,
)

DATA_DIR = Path(__file__).parent / "data"
HEADER = "message,award_title,recipient_title,nominator_title"


class TestParseRecords:
    """Test parsing of well-formed input."""

    def test_parse_simple_rows(self):
        """Test that plain rows map onto the four record fields."""
        text = f"{HEADER}\nGreat job,Star,Engineer,Manager\nThanks,Hero,Designer,Director\n"

        records = parse_records(text)

        assert list(records.columns) == REQUIRED_COLUMNS
        assert len(records) == 2
        assert records.iloc[0].to_dict() == {
            "message": "Great job",
            "award_title": "Star",
            "recipient_title": "Engineer",
            "nominator_title": "Manager",
        }

    def test_extra_columns_ignored_and_reordered(self):
        """Test that extra columns are dropped and fields come back in canonical order."""
        text = (
            "date,nominator_title,message,recipient_title,award_title,extra\n"
            "2024-01-01,Manager,Well done,Engineer,Star,x\n"
        )

        records = parse_records(text)

        assert list(records.columns) == REQUIRED_COLUMNS
        assert records.loc[0, "message"] == "Well done"
        assert records.loc[0, "nominator_title"] == "Manager"
        assert records.loc[0, "award_title"] == "Star"

    def test_quoted_field_with_delimiter_newline_and_quotes(self):
        """Test that quoted fields keep commas, line breaks and doubled quotes."""
        text = f'{HEADER}\n"Thanks, team\nfor ""everything""",Star,Engineer,Manager\n'

        records = parse_records(text)

        assert len(records) == 1
        assert records.loc[0, "message"] == 'Thanks, team\nfor "everything"'

    def test_crlf_line_endings(self):
        """Test that CRLF input parses the same as LF input."""
        lf = f"{HEADER}\nGreat job,Star,Engineer,Manager\nThanks,Hero,Designer,Director\n"
        crlf = lf.replace("\n", "\r\n")

        pd.testing.assert_frame_equal(parse_records(crlf), parse_records(lf))

    def test_values_trimmed_and_blanks_become_none(self):
        """Test that whitespace is trimmed and blank fields are None."""
        text = f"{HEADER}\n   ,  Star  ,, Manager \n"

        records = parse_records(text)

        row = records.iloc[0]
        assert row["message"] is None
        assert row["award_title"] == "Star"
        assert row["recipient_title"] is None
        assert row["nominator_title"] == "Manager"

    def test_short_rows_padded_with_none(self):
        """Test that missing trailing fields are treated as blank."""
        records = parse_records(f"{HEADER}\nHello,Star\n")

        assert records.loc[0, "message"] == "Hello"
        assert records.loc[0, "recipient_title"] is None
        assert records.loc[0, "nominator_title"] is None

    def test_blank_rows_skipped(self):
        """Test that empty lines and rows of blank fields are discarded."""
        text = f"{HEADER}\n\nGreat job,Star,Engineer,Manager\n,,,\n  ,  , ,\nThanks,Hero,Designer,Director\n"

        records = parse_records(text)

        assert len(records) == 2
        assert list(records["message"]) == ["Great job", "Thanks"]

    def test_duplicate_header_first_occurrence_wins(self):
        """Test that the first of two same-named columns is used."""
        records = parse_records(f"{HEADER},message\nFirst,Star,Engineer,Manager,Second\n")

        assert records.loc[0, "message"] == "First"

    def test_byte_order_mark_stripped(self):
        """Test that a leading UTF-8 BOM does not corrupt the first header name."""
        records = parse_records(f"\ufeff{HEADER}\nGreat job,Star,Engineer,Manager\n")

        assert records.loc[0, "message"] == "Great job"

    def test_sample_file_validates(self):
        """Test the sample records file against the records schema."""
        records = parse_records((DATA_DIR / "awards.csv").read_text(encoding="utf-8"))

        AwardRecordsSchema.validate(records)
        assert len(records) == 11
        assert records.loc[2, "message"] == 'Your "can-do" attitude\nkept the event on track.'
        assert records.loc[4, "message"] is None
        assert records.loc[9, "award_title"] is None


class TestParseErrors:
    """Test the structural errors raised for unusable input."""

    def test_missing_column_reports_missing_and_found(self):
        """Test that SchemaError names both the missing and the present fields."""
        text = "message,award_title,recipient_title\nGreat job,Star,Engineer\n"

        with pytest.raises(SchemaError) as exc_info:
            parse_records(text)

        assert exc_info.value.missing == ["nominator_title"]
        assert exc_info.value.found == ["message", "award_title", "recipient_title"]
        assert "Missing required columns: nominator_title" in str(exc_info.value)

    def test_header_names_are_case_sensitive(self):
        """Test that a differently cased header does not satisfy a required field."""
        text = "Message,award_title,recipient_title,nominator_title\nGreat job,Star,Engineer,Manager\n"

        with pytest.raises(SchemaError) as exc_info:
            parse_records(text)

        assert exc_info.value.missing == ["message"]

    @pytest.mark.parametrize("text", ["", "   \n\n", f"{HEADER}\n", f"{HEADER}\n,,,\n\n"])
    def test_empty_input(self, text):
        """Test that input without a usable data row raises EmptyInputError."""
        with pytest.raises(EmptyInputError, match="CSV appears empty or could not be parsed"):
            parse_records(text)

    def test_unterminated_quote(self):
        """Test that a quoted field left open at end of input is rejected."""
        text = f'{HEADER}\n"Great job,Star,Engineer,Manager\n'

        with pytest.raises(MalformedRecordError):
            parse_records(text)

    def test_unterminated_quote_in_later_field(self):
        text = f'{HEADER}\nGreat job,"Star,Engineer,Manager\n'

        with pytest.raises(MalformedRecordError):
            parse_records(text)

    def test_literal_quote_inside_unquoted_field(self):
        """Test that a quote in the middle of an unquoted field is kept as text."""
        text = f'{HEADER}\nGot a 27" monitor,Star,Eng I,Eng II\n'

        records = parse_records(text)

        assert records.loc[0, "message"] == 'Got a 27" monitor'
        assert records.loc[0, "nominator_title"] == "Eng II"

    def test_errors_share_a_value_error_base(self):
        """Test that structural errors can be caught together."""
        for error in (SchemaError(["a"], ["b"]), EmptyInputError(), MalformedRecordError("x")):
            assert isinstance(error, AwardInsightsError)
            assert isinstance(error, ValueError)


class TestRecordsToCsv:
    """Test serialization back to CSV text."""

    def test_round_trip_preserves_records(self):
        """Test that parse -> serialize -> parse reproduces the same records."""
        records = parse_records((DATA_DIR / "awards.csv").read_text(encoding="utf-8"))

        reparsed = parse_records(records_to_csv(records))

        pd.testing.assert_frame_equal(reparsed, records)

    def test_serialized_header(self):
        """Test that the serialized text starts with the canonical header."""
        records = parse_records(f"{HEADER}\nGreat job,Star,Engineer,Manager\n")

        assert records_to_csv(records).splitlines()[0] == HEADER
