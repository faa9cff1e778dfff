"""Custom exceptions for the Award Insights engine."""

from typing import Iterable, Optional


class AwardInsightsError(ValueError):
    """Base class for all structural errors raised by the engine."""

    pass


class SchemaError(AwardInsightsError):
    """
    Exception raised when required input fields are missing from a header row.

    Attributes:
        missing: Required field names that were not found
        found: Field names actually present in the header
    """

    def __init__(self, missing: Iterable[str], found: Iterable[str]):
        self.missing = list(missing)
        self.found = list(found)
        super().__init__(
            f"Missing required columns: {', '.join(self.missing)}. "
            f"Found: {', '.join(self.found)}"
        )


class EmptyInputError(AwardInsightsError):
    """Exception raised when the input holds no usable data rows."""

    def __init__(self, message: str = "CSV appears empty or could not be parsed"):
        super().__init__(message)


class MalformedRecordError(AwardInsightsError):
    """
    Exception raised when delimited text cannot be tokenized.

    Attributes:
        original_error: The tokenizer error reported by the CSV reader
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        parts = [message]
        if original_error:
            parts.append(f"Original error: {str(original_error)}")
        super().__init__("\n".join(parts))


class TaxonomyMismatchError(AwardInsightsError):
    """
    Exception raised when a pipeline run has no valid categories to check against.

    The classification analyzer catches this and falls back to the default
    category identifier set.
    """

    pass
