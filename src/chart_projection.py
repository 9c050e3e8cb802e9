"""
Chart Projection.

Derives the plotting series from an accumulated ledger: one synthetic point for
the initial investment, then one point per trade in chronological order.
"""
from typing import Optional, Sequence, Tuple

import pandas as pd

from .models import ChartPoint, InitialInvestmentPoint, Trade, TradePoint


def project_chart(
    trades: Sequence[Trade],
    initial_investment: float,
    now: Optional[pd.Timestamp] = None
) -> Tuple[ChartPoint, ...]:
    """
    Builds the chart series for an accumulated ledger.

    The initial investment point is dated at the first trade. Without trades it
    falls back to 'now' (or the current time), which does not happen for datasets
    produced by the pipeline.

    Args:
        trades (Sequence[Trade]): Accumulated trades in chronological order.
        initial_investment (float): Starting capital.
        now (Optional[pd.Timestamp]): Fallback timestamp for an empty ledger.

    Returns:
        Tuple[ChartPoint, ...]: Initial investment point followed by the trade points.
    """
    if trades:
        anchor_timestamp = trades[0].timestamp
    else:
        anchor_timestamp = now if now is not None else pd.Timestamp.now()

    anchor = InitialInvestmentPoint(timestamp=anchor_timestamp, amount=float(initial_investment))
    return (anchor,) + tuple(TradePoint(trade) for trade in trades)


def chart_frame(chart_data: Sequence[ChartPoint]) -> pd.DataFrame:
    """Flattens chart points into a DataFrame (one row per point, same order)."""
    columns = ['timestamp', 'value', 'accumulated_value', 'symbol', 'id', 'is_initial_investment']
    return pd.DataFrame(
        [
            {
                'timestamp': point.timestamp,
                'value': point.value,
                'accumulated_value': point.accumulated_value,
                'symbol': point.symbol,
                'id': point.id,
                'is_initial_investment': point.is_initial_investment
            }
            for point in chart_data
        ],
        columns=columns
    )
