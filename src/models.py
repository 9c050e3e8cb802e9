"""
Trade Tracker Data Model.

Defines the durable records produced by the ingestion pipeline:

1. Trade: one normalized spreadsheet row with its running portfolio value.
2. ChartPoint: read-only projection of the ledger for plotting. The initial
   investment is its own variant (InitialInvestmentPoint) rather than a fake trade.
3. ParsedDataset: the ledger, the chart series and the initial investment.

Also provides the conversion to and from the persisted JSON layout.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

import pandas as pd

from .config import INITIAL_ID, INITIAL_SYMBOL


@dataclass(frozen=True)
class Trade:
    """
    A single trade of the ledger.

    Attributes:
        id (int): 1-based position in the filtered input (not in time order).
        symbol (str): Instrument identifier.
        timestamp (pd.Timestamp): Point in time of the trade.
        value (float): Standalone profit/loss of the trade.
        accumulated_value (float): Running portfolio value after this trade.
    """
    id: int
    symbol: str
    timestamp: pd.Timestamp
    value: float
    accumulated_value: float = 0.0


@dataclass(frozen=True)
class InitialInvestmentPoint:
    """Synthetic first point of the chart holding the starting capital."""
    timestamp: pd.Timestamp
    amount: float

    @property
    def id(self) -> int:
        return INITIAL_ID

    @property
    def symbol(self) -> str:
        return INITIAL_SYMBOL

    @property
    def value(self) -> float:
        return self.amount

    @property
    def accumulated_value(self) -> float:
        return self.amount

    @property
    def is_initial_investment(self) -> bool:
        return True


@dataclass(frozen=True)
class TradePoint:
    """Chart point mirroring one accumulated trade."""
    trade: Trade

    @property
    def id(self) -> int:
        return self.trade.id

    @property
    def symbol(self) -> str:
        return self.trade.symbol

    @property
    def timestamp(self) -> pd.Timestamp:
        return self.trade.timestamp

    @property
    def value(self) -> float:
        return self.trade.value

    @property
    def accumulated_value(self) -> float:
        return self.trade.accumulated_value

    @property
    def is_initial_investment(self) -> bool:
        return False


ChartPoint = Union[InitialInvestmentPoint, TradePoint]


@dataclass(frozen=True)
class ParsedDataset:
    """
    Final output of the ingestion pipeline.

    Attributes:
        trades (Tuple[Trade, ...]): Ledger in chronological order.
        chart_data (Tuple[ChartPoint, ...]): Initial investment point followed by
            one point per trade, in the same order as 'trades'.
        initial_investment (float): Starting capital of the running total.
    """
    trades: Tuple[Trade, ...]
    chart_data: Tuple[ChartPoint, ...]
    initial_investment: float

    @property
    def final_value(self) -> float:
        """Accumulated value after the last trade (initial investment if empty)."""
        if not self.trades:
            return self.initial_investment
        return self.trades[-1].accumulated_value


# ==========================================
# SERIALIZATION
# ==========================================
def _format_timestamp(timestamp: pd.Timestamp) -> str:
    return pd.Timestamp(timestamp).isoformat()


def _json_number(value: float) -> Any:
    # NaN is not valid JSON; stored as null and read back as NaN
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _read_number(value: Any) -> float:
    if value is None:
        return float('nan')
    return float(value)


def dataset_to_dict(dataset: ParsedDataset) -> Dict[str, Any]:
    """
    Converts a dataset into the persisted JSON layout.

    Keys follow the stored blob exactly ('accumulatedValue', 'isInitialInvestment',
    'chartData', 'initialInvestment'); timestamps are ISO-8601 strings.

    Args:
        dataset (ParsedDataset): The dataset to serialize.

    Returns:
        Dict[str, Any]: A JSON-serializable dictionary.
    """
    trades = [
        {
            'id': trade.id,
            'symbol': trade.symbol,
            'date': _format_timestamp(trade.timestamp),
            'value': _json_number(trade.value),
            'accumulatedValue': _json_number(trade.accumulated_value)
        }
        for trade in dataset.trades
    ]

    chart_data = [
        {
            'date': _format_timestamp(point.timestamp),
            'value': _json_number(point.value),
            'accumulatedValue': _json_number(point.accumulated_value),
            'symbol': point.symbol,
            'id': point.id,
            'isInitialInvestment': point.is_initial_investment
        }
        for point in dataset.chart_data
    ]

    return {
        'trades': trades,
        'chartData': chart_data,
        'initialInvestment': dataset.initial_investment
    }


def dataset_from_dict(payload: Dict[str, Any]) -> ParsedDataset:
    """
    Rebuilds a dataset from the persisted JSON layout.

    Chart points are rebuilt from the trade list so both sequences reference the
    same Trade objects; only the anchor timestamp is read from 'chartData'.

    Raises:
        KeyError, ValueError, TypeError: If the payload does not match the layout.
    """
    initial_investment = float(payload['initialInvestment'])

    trades = tuple(
        Trade(
            id=int(item['id']),
            symbol=str(item['symbol']),
            timestamp=pd.Timestamp(item['date']),
            value=_read_number(item['value']),
            accumulated_value=_read_number(item['accumulatedValue'])
        )
        for item in payload['trades']
    )

    anchors = [item for item in payload['chartData'] if item.get('isInitialInvestment')]
    if anchors:
        anchor_timestamp = pd.Timestamp(anchors[0]['date'])
    elif trades:
        anchor_timestamp = trades[0].timestamp
    else:
        raise ValueError('Stored dataset has neither trades nor an initial investment point')

    chart_data = (InitialInvestmentPoint(anchor_timestamp, initial_investment),) + tuple(
        TradePoint(trade) for trade in trades
    )

    return ParsedDataset(trades=trades, chart_data=chart_data, initial_investment=initial_investment)
