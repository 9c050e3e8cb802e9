"""
Trade Ingestion Pipeline.

Entry points chaining the pipeline stages:

    rows -> normalize_rows -> accumulate_trades -> project_chart -> ParsedDataset

'parse' is the pure core (decoded rows in, dataset out). 'load_trade_report'
adds the spreadsheet decoding step and console progress output.
"""
from typing import Any, Mapping, Sequence

from . import data_loader as dl
from .chart_projection import project_chart
from .models import ParsedDataset
from .portfolio_processor import accumulate_trades
from .trade_parser import DEFAULT_COLUMNS, ColumnMapping, normalize_rows


def parse(
    raw_rows: Sequence[Mapping[str, Any]],
    initial_investment: float,
    columns: ColumnMapping = DEFAULT_COLUMNS,
    strict_values: bool = True
) -> ParsedDataset:
    """
    Turns decoded spreadsheet rows into a chronological ledger and chart series.

    Args:
        raw_rows (Sequence[Mapping[str, Any]]): Rows of the first worksheet.
        initial_investment (float): Starting capital of the running total.
        columns (ColumnMapping): Column names of the sheet layout.
        strict_values (bool): Reject non-numeric trade values (see normalize_rows).

    Returns:
        ParsedDataset: The complete dataset; nothing is retained afterwards.

    Raises:
        TradeParseError: Any validation failure. No partial dataset is produced.
    """
    initial_investment = float(initial_investment)

    trades = normalize_rows(raw_rows, columns=columns, strict_values=strict_values)
    ledger = accumulate_trades(trades, initial_investment)
    chart_data = project_chart(ledger, initial_investment)

    return ParsedDataset(trades=ledger, chart_data=chart_data, initial_investment=initial_investment)


def load_trade_report(
    filepath: str,
    initial_investment: float,
    columns: ColumnMapping = DEFAULT_COLUMNS,
    strict_values: bool = True
) -> ParsedDataset:
    """
    Reads a trade workbook and runs the full pipeline on its first worksheet.

    Args:
        filepath (str): Path to an .xlsx or .xls file.
        initial_investment (float): Starting capital of the running total.
        columns (ColumnMapping): Column names of the sheet layout.
        strict_values (bool): Reject non-numeric trade values.

    Returns:
        ParsedDataset: The parsed dataset.

    Raises:
        TradeParseError: If the file cannot be read or its content is invalid.
    """
    raw_rows = dl.read_trade_rows(filepath)
    dataset = parse(raw_rows, initial_investment, columns=columns, strict_values=strict_values)

    skipped = len(raw_rows) - len(dataset.trades)
    print(f"     - Rows read: {len(raw_rows)}")
    if skipped:
        print(f"     - Skipped {skipped} rows without symbol.")
    print(f"     - Trades: {len(dataset.trades)} "
          f"({dataset.trades[0].timestamp:%Y-%m-%d} to {dataset.trades[-1].timestamp:%Y-%m-%d})")
    print(f" [+] Trade report loaded successfully.")

    return dataset
