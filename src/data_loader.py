"""
Trade Workbook Reader.

This module handles the decoding of trade exports saved as Excel workbooks
(.xlsx via openpyxl, .xls via xlrd). Only the first worksheet is read; its
header row provides the column names.

The output is a list of row mappings (column name -> raw cell value) in sheet
order. Empty cells are left out of the mapping, so a blank cell looks the same
as a missing column to the validation stage. No validation happens here.
"""
import io
import os
from typing import Any, BinaryIO, Dict, List, Union

import pandas as pd

from .config import ACCEPTED_EXTENSIONS, EXCEL_ENGINES, SHEET_INDEX
from .errors import FileReadError, UnsupportedFileError

# ==========================================
# SECTION 1: GENERIC UTILITIES
# ==========================================
def _get_extension(filename: str) -> str:
    """Returns the lower-cased extension of a file name, including the dot."""
    return os.path.splitext(str(filename))[1].lower()


def _check_extension(filename: str, extension: str) -> None:
    if extension not in ACCEPTED_EXTENSIONS:
        raise UnsupportedFileError(filename)


def _frame_to_rows(df_sheet: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Converts a worksheet DataFrame into row mappings.

    Fully empty rows are dropped. Within a row, empty cells (NaN/None/NaT) are
    omitted from the mapping.

    Args:
        df_sheet (pd.DataFrame): The worksheet as loaded by pandas (dtype=object).

    Returns:
        List[Dict[str, Any]]: One dictionary per non-empty row, in sheet order.
    """
    # dropna(how='all') removes the blank rows often left at the bottom of exports
    df_sheet = df_sheet.dropna(axis=0, how='all')
    df_sheet.columns = [str(column) for column in df_sheet.columns]

    rows = []
    # DataFrame Iteration: to_dict('records') keeps the native Python cell types.
    for record in df_sheet.to_dict('records'):
        rows.append({
            column: value for column, value in record.items()
            if not pd.isna(value)
        })
    return rows


def _read_sheet(source: Union[str, BinaryIO], name: str, extension: str) -> List[Dict[str, Any]]:
    try:
        df_sheet = pd.read_excel(
            source,
            sheet_name=SHEET_INDEX,
            engine=EXCEL_ENGINES[extension],
            dtype=object    # Keep raw cell values; conversion is done by the validator
        )
    except Exception as e:
        raise FileReadError(name, str(e)) from e

    return _frame_to_rows(df_sheet)

# ==========================================
# SECTION 2: MAIN PART
# ==========================================
def read_trade_rows(filepath: str) -> List[Dict[str, Any]]:
    """
    Reads the first worksheet of a trade workbook into row mappings.

    Args:
        filepath (str): Path to an .xlsx or .xls file.

    Returns:
        List[Dict[str, Any]]: Rows in sheet order (may be empty).

    Raises:
        UnsupportedFileError: If the extension is not .xlsx or .xls.
        FileReadError: If the file is missing or cannot be decoded.
    """
    extension = _get_extension(filepath)
    _check_extension(filepath, extension)

    print(f"\n [>] Reading trade workbook: {filepath}...")

    if not os.path.isfile(filepath):
        raise FileReadError(filepath, 'file not found')

    return _read_sheet(filepath, filepath, extension)


def read_trade_rows_from_bytes(payload: bytes, filename: str) -> List[Dict[str, Any]]:
    """
    Reads an uploaded workbook held in memory.

    Args:
        payload (bytes): Raw file content.
        filename (str): Original file name, used for the extension and in errors.

    Returns:
        List[Dict[str, Any]]: Rows in sheet order (may be empty).

    Raises:
        UnsupportedFileError: If the extension is not .xlsx or .xls.
        FileReadError: If the content cannot be decoded.
    """
    extension = _get_extension(filename)
    _check_extension(filename, extension)
    return _read_sheet(io.BytesIO(payload), filename, extension)
