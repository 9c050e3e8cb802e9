"""
Trade Tracker Error Taxonomy.

Every failure of the ingestion pipeline is fatal to the current upload: the
errors below abort the parse and no partial dataset is produced. The CLI layer
catches them and reports the message to the user.
"""
from .config import EXPECTED_DATETIME_FORMAT


class TradeTrackerError(Exception):
    """Base class for all application errors."""


class TradeParseError(TradeTrackerError):
    """Base class for errors raised while turning a spreadsheet into a dataset."""


class EmptyInputError(TradeParseError):
    """The decoded worksheet has no data rows."""

    def __init__(self) -> None:
        super().__init__('No data found in Excel file')


class MissingColumnError(TradeParseError):
    """A required column is absent from the first row."""

    def __init__(self, column_name: str) -> None:
        self.column_name = column_name
        super().__init__(f"Required column '{column_name}' not found in Excel file")


class NoValidTradesError(TradeParseError):
    """Every row was dropped by the blank-symbol filter."""

    def __init__(self) -> None:
        super().__init__('No valid trades found after filtering empty symbols')


class InvalidDateFormatError(TradeParseError):
    """The date/time cell of a row is missing, malformed or not a real date."""

    def __init__(self, row_number: int) -> None:
        self.row_number = row_number
        super().__init__(
            f'Invalid date format in row {row_number}. Expected format: {EXPECTED_DATETIME_FORMAT}'
        )


class InvalidHourError(TradeParseError):
    """The hour part of a time token is not numeric."""

    def __init__(self, row_number: int) -> None:
        self.row_number = row_number
        super().__init__(f'Invalid hour format in row {row_number}')


class InvalidValueError(TradeParseError):
    """The value cell of a row is missing or not numeric."""

    def __init__(self, row_number: int) -> None:
        self.row_number = row_number
        super().__init__(f'Invalid trade value in row {row_number}')


class UnsupportedFileError(TradeParseError):
    """The input file is not an Excel workbook."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Unsupported file '{path}'. Please upload an Excel file (.xlsx or .xls)")


class FileReadError(TradeParseError):
    """The workbook could not be read or decoded."""

    def __init__(self, path: str, reason: str = '') -> None:
        self.path = path
        message = f"Error reading file '{path}'"
        if reason:
            message = f'{message}: {reason}'
        super().__init__(message)


class StorageError(TradeTrackerError):
    """The persisted dataset could not be read or written."""
