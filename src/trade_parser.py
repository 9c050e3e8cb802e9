"""
Trade Row Validator & Normalizer.

Turns the decoded rows of a trade spreadsheet into unaccumulated Trade records:

1. Schema check: the required columns must be present in the first row.
2. Filtering: rows without a symbol are dropped silently.
3. Id assignment: 1-based position in the filtered sequence (input order).
4. Date/time parsing: 'M/D/YY H:MM AM/PM' grammar, any failure aborts the upload.
5. Value coercion: numeric strings are cleaned and converted to floats.

This module performs no I/O and keeps no state between calls.
"""
import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .config import (
    CENTURY_PREFIX,
    DATETIME_COLUMN,
    SPLIT_DATE_COLUMN,
    SPLIT_TIME_COLUMN,
    SYMBOL_COLUMN,
    VALUE_COLUMN,
)
from .errors import (
    EmptyInputError,
    InvalidDateFormatError,
    InvalidHourError,
    InvalidValueError,
    MissingColumnError,
    NoValidTradesError,
)
from .models import Trade

_DATE_TOKEN = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{2})$')
_HOUR_TOKEN = re.compile(r'^\d+$')
_MINUTE_TOKEN = re.compile(r'^\d{2}$')


# ==========================================
# SECTION 1: COLUMN MAPPING
# ==========================================
@dataclass(frozen=True)
class ColumnMapping:
    """
    Names of the spreadsheet columns feeding each Trade field.

    Two export layouts exist: a single combined date/time column, and separate
    'M/D/YY' and 'H:MM AM/PM' columns. When 'time_column' is set, the two cells
    are joined with a space before parsing.
    """
    symbol_column: str = SYMBOL_COLUMN
    date_column: str = DATETIME_COLUMN
    time_column: Optional[str] = None
    value_column: str = VALUE_COLUMN

    @property
    def required_columns(self) -> List[str]:
        columns = [self.symbol_column, self.date_column]
        if self.time_column is not None:
            columns.append(self.time_column)
        columns.append(self.value_column)
        return columns


DEFAULT_COLUMNS = ColumnMapping()
SPLIT_COLUMNS = ColumnMapping(date_column=SPLIT_DATE_COLUMN, time_column=SPLIT_TIME_COLUMN)


# ==========================================
# SECTION 2: CELL UTILITIES
# ==========================================
def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_blank_symbol(value: Any) -> bool:
    """Returns True for absent, empty or whitespace-only symbol cells."""
    return _is_missing(value) or str(value).strip() == ''


def _cell_text(value: Any) -> str:
    if _is_missing(value):
        return ''
    return str(value).strip()


def _clean_values(values: List[Any]) -> pd.Series:
    """
    Converts raw value cells to floats.

    Thousands separators are removed from strings before conversion; anything
    that is still not numeric (including missing cells) becomes NaN.

    Args:
        values (List[Any]): Raw value cells in row order.

    Returns:
        pd.Series: Float series aligned with 'values'.
    """
    cleaned = pd.Series(values, dtype=object).map(
        lambda v: v.replace(',', '').strip() if isinstance(v, str) else v
    )
    # Native date cells are not trade values
    cleaned = cleaned.map(lambda v: None if isinstance(v, (datetime, time)) else v)
    return pd.to_numeric(cleaned, errors='coerce').astype(float)


# ==========================================
# SECTION 3: DATE/TIME GRAMMAR
# ==========================================
def _parse_clock(time_token: str, period: str, row_number: int) -> Tuple[int, int]:
    """
    Reads 'H:MM' plus an optional AM/PM marker into (hour, minute).

    The hour range is not checked here; an out-of-range hour fails later as an
    invalid date.
    """
    hour_token, _, minute_token = time_token.partition(':')
    if not _HOUR_TOKEN.match(hour_token):
        raise InvalidHourError(row_number)

    # Any marker other than AM/PM leaves the hour as written
    hour = int(hour_token)
    if period == 'PM' and hour != 12:
        hour += 12
    elif period == 'AM' and hour == 12:
        hour = 0

    if not _MINUTE_TOKEN.match(minute_token):
        raise InvalidDateFormatError(row_number)

    return hour, int(minute_token)


def _build_timestamp(year: int, month: int, day: int, hour: int, minute: int, row_number: int) -> pd.Timestamp:
    try:
        return pd.Timestamp(year=year, month=month, day=day, hour=hour, minute=minute)
    except (ValueError, OverflowError) as e:
        raise InvalidDateFormatError(row_number) from e


def parse_trade_datetime(raw: Any, row_number: int) -> pd.Timestamp:
    """
    Parses a trade date/time cell in 'M/D/YY H:MM AM/PM' format.

    The cell holds a date token and a time token separated by a space, optionally
    followed by an AM/PM marker (case-insensitive). The year is read as 20YY.
    'PM' adds 12 hours unless the hour is 12, '12 AM' is midnight, and every other
    combination keeps the hour as written. This includes a missing marker and an
    unrecognised one ('3:00 XM' is 03:00).

    A cell that already holds a date (native Excel date cell) is used directly.

    Args:
        raw (Any): The raw cell value.
        row_number (int): 1-based row position, used in error messages.

    Returns:
        pd.Timestamp: The naive timestamp of the trade.

    Raises:
        InvalidDateFormatError: If a token is missing or malformed, or the result
            is not a valid calendar date and time.
        InvalidHourError: If the hour is not numeric.
    """
    if isinstance(raw, datetime) and not _is_missing(raw):
        return pd.Timestamp(raw)

    tokens = _cell_text(raw).split()
    if len(tokens) < 2 or len(tokens) > 3:
        raise InvalidDateFormatError(row_number)

    date_token, time_token = tokens[0], tokens[1]
    period = tokens[2].upper() if len(tokens) == 3 else ''

    hour, minute = _parse_clock(time_token, period, row_number)

    date_match = _DATE_TOKEN.match(date_token)
    if date_match is None:
        raise InvalidDateFormatError(row_number)

    month, day, short_year = date_match.groups()
    return _build_timestamp(int(CENTURY_PREFIX + short_year), int(month), int(day), hour, minute, row_number)


def _time_text(time_value: Any) -> str:
    # Time-formatted cells may arrive as datetimes on the 1899-12-30 epoch
    if isinstance(time_value, datetime) and not _is_missing(time_value):
        time_value = time_value.time()
    if isinstance(time_value, time):
        return time_value.strftime('%H:%M')
    return _cell_text(time_value)


def _row_timestamp(row: Mapping[str, Any], columns: ColumnMapping, row_number: int) -> pd.Timestamp:
    """Parses the timestamp of a row, joining date and time cells for split layouts."""
    date_value = row.get(columns.date_column)
    if columns.time_column is None:
        return parse_trade_datetime(date_value, row_number)

    time_text = _time_text(row.get(columns.time_column))

    # A native date cell keeps its own year; only the clock is read from text
    if isinstance(date_value, datetime) and not _is_missing(date_value):
        tokens = time_text.split()
        if len(tokens) < 1 or len(tokens) > 2:
            raise InvalidDateFormatError(row_number)
        period = tokens[1].upper() if len(tokens) == 2 else ''
        hour, minute = _parse_clock(tokens[0], period, row_number)
        return _build_timestamp(date_value.year, date_value.month, date_value.day, hour, minute, row_number)

    return parse_trade_datetime(f'{_cell_text(date_value)} {time_text}', row_number)

# ==========================================
# SECTION 4: NORMALIZATION
# ==========================================
def check_required_columns(first_row: Mapping[str, Any], columns: ColumnMapping) -> None:
    """
    Verifies the schema using the first row as a proxy for the whole sheet.

    Raises:
        MissingColumnError: For the first required column not found.
    """
    for column in columns.required_columns:
        if column not in first_row:
            raise MissingColumnError(column)


def normalize_rows(
    raw_rows: Sequence[Mapping[str, Any]],
    columns: ColumnMapping = DEFAULT_COLUMNS,
    strict_values: bool = True
) -> List[Trade]:
    """
    Validates decoded rows and builds unaccumulated Trade records.

    Rows without a symbol are dropped and do not consume an id. Remaining rows
    keep their input order and receive 'id = position + 1'. The first invalid row
    aborts the whole upload; there is no partial result.

    Args:
        raw_rows (Sequence[Mapping[str, Any]]): Rows as produced by the decoder.
        columns (ColumnMapping): Column names of the sheet layout.
        strict_values (bool): If True, a missing or non-numeric value cell raises
            InvalidValueError. If False, the value is kept as NaN.

    Returns:
        List[Trade]: Trades in filtered input order, 'accumulated_value' set to 0.0.

    Raises:
        EmptyInputError: If there are no rows.
        MissingColumnError: If the first row lacks a required column.
        NoValidTradesError: If no row has a symbol.
        InvalidDateFormatError, InvalidHourError: On a malformed date/time cell.
        InvalidValueError: On a non-numeric value cell (strict mode only).
    """
    if len(raw_rows) == 0:
        raise EmptyInputError()

    check_required_columns(raw_rows[0], columns)

    kept_rows = [
        row for row in raw_rows
        if not _is_blank_symbol(row.get(columns.symbol_column))
    ]

    if not kept_rows:
        raise NoValidTradesError()

    values = _clean_values([row.get(columns.value_column) for row in kept_rows])

    trades = []
    for index, row in enumerate(kept_rows):
        row_number = index + 1
        timestamp = _row_timestamp(row, columns, row_number)

        value = float(values.iloc[index])
        if strict_values and pd.isna(value):
            raise InvalidValueError(row_number)

        trades.append(Trade(
            id=row_number,
            symbol=str(row[columns.symbol_column]).strip(),
            timestamp=timestamp,
            value=value,
            accumulated_value=0.0
        ))

    return trades
