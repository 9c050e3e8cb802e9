from dataclasses import replace
from typing import Sequence, Tuple

import pandas as pd

from .models import Trade


def accumulate_trades(trades: Sequence[Trade], initial_investment: float) -> Tuple[Trade, ...]:
    """
    Orders trades chronologically and computes the running portfolio value.

    Trades sharing a timestamp keep their input order (stable merge sort). The
    running total starts at 'initial_investment' and adds each trade's value in
    time order, so the accumulated value of trade i equals the initial investment
    plus the values of trades 0..i.

    A NaN trade value propagates to every later accumulated value.

    Args:
        trades (Sequence[Trade]): Normalized trades in filtered input order.
        initial_investment (float): Starting capital.

    Returns:
        Tuple[Trade, ...]: New Trade objects in chronological order with
        'accumulated_value' filled in.
    """
    if not trades:
        return ()

    # --- 1. Chronological Order ---
    df_trades = pd.DataFrame({
        'position': range(len(trades)),
        'timestamp': [trade.timestamp for trade in trades],
        'value': [trade.value for trade in trades]
    })

    # Sorting is Critical
    # 'stable' keeps equal timestamps in input order, making the output deterministic.
    df_trades = df_trades.sort_values(by='timestamp', kind='stable').reset_index(drop=True)

    # --- 2. Running Total ---
    # The initial investment acts as the first element of the sum, so the additions
    # happen in exactly the same order as a left-to-right loop.
    # skipna=False: a NaN value must poison everything after it.
    running = pd.concat(
        [pd.Series([float(initial_investment)]), df_trades['value'].astype(float)],
        ignore_index=True
    ).cumsum(skipna=False)

    df_trades['accumulated_value'] = running.iloc[1:].to_numpy()

    return tuple(
        replace(trades[int(row.position)], accumulated_value=float(row.accumulated_value))
        for row in df_trades.itertuples(index=False)
    )
