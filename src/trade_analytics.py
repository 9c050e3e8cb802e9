"""
Trade Analytics Module.

Provides the TradeAnalyser class used by the presentation layer: the sortable
trade ledger, the performance summary shown after an upload, and the matplotlib
figures (accumulated value over time, distribution of trade results, drawdown).
"""
import math
from typing import Any, Dict, List, Optional

import matplotlib.pyplot as plt
import matplotlib.ticker as mtick
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.axes import Axes

from .chart_projection import chart_frame
from .config import LEDGER_SORT_DIRECTIONS, LEDGER_SORT_FIELDS, PLOT_DPI, PLOT_STYLE
from .models import ParsedDataset, Trade

# Global plot configuration
plt.rcParams.update(PLOT_STYLE)


def format_currency(value: float) -> str:
    """Formats an amount as '$1,234.56' / '-$1,234.56'."""
    if value is None or math.isnan(value):
        return 'NaN'
    sign = '-' if value < 0 else ''
    return f"{sign}${abs(value):,.2f}"


class TradeAnalyser:
    """
    Ledger views, summary statistics and plots for one parsed dataset.

    The analyser only reads the dataset; sorting for display never changes the
    chronological order stored in the dataset.
    """

    def __init__(self, dataset: ParsedDataset) -> None:
        """
        Args:
            dataset (ParsedDataset): Output of the ingestion pipeline.
        """
        self.dataset = dataset
        self.trades = list(dataset.trades)
        self.initial = dataset.initial_investment

        # Chart series including the initial investment point
        self.chart = chart_frame(dataset.chart_data)

    # ==========================================
    # LEDGER
    # ==========================================
    def sort_ledger(self, field: str = 'id', direction: str = 'asc') -> List[Trade]:
        """
        Returns the trades sorted for display.

        Args:
            field (str): One of 'id', 'symbol', 'date', 'value', 'accumulatedValue'.
            direction (str): 'asc' or 'desc'.

        Returns:
            List[Trade]: A new list; ties keep chronological order.

        Raises:
            ValueError: On an unknown field or direction.
        """
        if field not in LEDGER_SORT_FIELDS:
            raise ValueError(f"Unknown sort field '{field}'. Choose from: {', '.join(LEDGER_SORT_FIELDS)}")
        if direction not in LEDGER_SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction '{direction}'. Use 'asc' or 'desc'.")

        attribute = LEDGER_SORT_FIELDS[field]

        def _key(trade: Trade) -> Any:
            key = getattr(trade, attribute)
            if attribute == 'symbol':
                return key.casefold()
            return key

        return sorted(self.trades, key=_key, reverse=(direction == 'desc'))

    def ledger_frame(self, field: str = 'id', direction: str = 'asc') -> pd.DataFrame:
        """Ledger as a DataFrame with the display column names."""
        trades = self.sort_ledger(field, direction)
        return pd.DataFrame(
            [
                {
                    'id': trade.id,
                    'symbol': trade.symbol,
                    'date': trade.timestamp,
                    'value': trade.value,
                    'accumulatedValue': trade.accumulated_value
                }
                for trade in trades
            ],
            columns=['id', 'symbol', 'date', 'value', 'accumulatedValue']
        )

    # ==========================================
    # INTERNAL CALCULATIONS
    # ==========================================
    def _drawdown(self) -> pd.Series:
        """
        Distance of the accumulated value below its running peak (<= 0).

        Expressed in currency rather than percent: the running value can be zero
        or negative, where a relative drawdown is undefined.
        """
        series = self.chart.set_index('timestamp')['accumulated_value']
        return series - series.cummax()

    def get_summary(self) -> Dict[str, float]:
        """
        Calculates the performance figures of the dataset.

        Returns:
            Dict[str, float]: Total trades, initial investment, total performance
            (final accumulated value), net P/L, win/loss counts, win rate, best
            and worst trade, and maximum drawdown.
        """
        values = pd.Series([trade.value for trade in self.trades], dtype=float)
        total = len(self.trades)
        wins = int((values > 0).sum())
        losses = int((values < 0).sum())
        final_value = self.dataset.final_value

        return {
            'Total_Trades': total,
            'Initial_Investment': self.initial,
            'Total_Performance': final_value,
            'Net_PnL': final_value - self.initial,
            'Winning_Trades': wins,
            'Losing_Trades': losses,
            'Win_Rate': wins / total if total else 0.0,
            'Best_Trade': values.max() if total else float('nan'),
            'Worst_Trade': values.min() if total else float('nan'),
            'Max_Drawdown': self._drawdown().min()
        }

    def get_summary_table(self) -> pd.DataFrame:
        """Summary figures formatted for console output (one 'Value' column)."""
        summary = self.get_summary()

        format_map: Dict[str, Any] = {
            'Total_Trades': '{:d}',
            'Initial_Investment': format_currency,
            'Total_Performance': format_currency,
            'Net_PnL': format_currency,
            'Winning_Trades': '{:d}',
            'Losing_Trades': '{:d}',
            'Win_Rate': '{:.2%}',
            'Best_Trade': format_currency,
            'Worst_Trade': format_currency,
            'Max_Drawdown': format_currency
        }

        rows = {}
        for key, value in summary.items():
            formatter = format_map[key]
            rows[key.replace('_', ' ')] = formatter(value) if callable(formatter) else formatter.format(value)

        return pd.DataFrame.from_dict(rows, orient='index', columns=['Value'])

    # ==========================================
    # VISUALISATION METHODS
    # ==========================================
    def plot_performance(self, save_path: Optional[str] = None) -> None:
        """
        Plots the accumulated portfolio value over time.

        Displays:
        - Accumulated value (area chart)
        - Standalone value of each trade
        - Initial investment point (highlighted)
        """
        plt.figure(figsize=(12, 6))

        anchor = self.chart[self.chart['is_initial_investment']]
        points = self.chart[~self.chart['is_initial_investment']]

        plt.fill_between(self.chart['timestamp'], self.chart['accumulated_value'],
                         color='#10B981', alpha=0.25, step='post')
        plt.step(self.chart['timestamp'], self.chart['accumulated_value'],
                 where='post', color='#10B981', linewidth=2, label='Accumulated Value')
        plt.plot(points['timestamp'], points['value'], color='#1E40AF', linestyle='', marker='o',
                 markersize=4, alpha=0.8, label='Trade Value')
        plt.scatter(anchor['timestamp'], anchor['accumulated_value'], color='#EA580C', s=80,
                    zorder=3, label='Initial Investment')

        # Add Dynamic N label
        plt.gca().text(0.98, 0.02, f'N = {len(self.trades)}',
                       transform=plt.gca().transAxes,
                       horizontalalignment='right',
                       verticalalignment='bottom',
                       fontsize=12,
                       fontweight='normal',
                       bbox=dict(facecolor='white', alpha=0.8, edgecolor='none'))

        plt.ylabel('Value [$]')
        plt.gca().yaxis.set_major_formatter(mtick.StrMethodFormatter('{x:,.0f}'))
        plt.legend(loc='upper left', framealpha=1.0, facecolor='white')
        plt.grid(True, alpha=0.3)
        plt.tight_layout()

        if save_path:
            print(f" [>] Saving plot to {save_path}")
            plt.savefig(save_path, dpi=PLOT_DPI, bbox_inches='tight')

        plt.show()

    def plot_value_distribution(self, save_path: Optional[str] = None) -> None:
        """Generates a histogram of the standalone trade values."""
        values = pd.Series([trade.value for trade in self.trades], dtype=float).dropna()
        if values.empty:
            print(" [!] No numeric trade values to plot.")
            return

        fig, ax = plt.subplots(figsize=(10, 6))

        bins, stride = self._histogram_bins(values)
        sns.histplot(x=values, bins=bins, kde=values.nunique() > 1, ax=ax, color='skyblue')
        self._add_lines(ax, values.mean())

        ax.set_xlabel("Trade Value [$]")
        ax.set_ylabel("Count")
        ax.set_xticks(bins[::stride])
        ax.xaxis.set_major_formatter(mtick.StrMethodFormatter('{x:,.0f}'))

        plt.tight_layout()
        if save_path:
            print(f" [>] Saving distribution plot to {save_path}")
            plt.savefig(save_path, dpi=PLOT_DPI, bbox_inches='tight')
        plt.show()

    def plot_drawdown_profile(self, save_path: Optional[str] = None) -> None:
        """Plots how far the accumulated value sits below its previous peak."""
        plt.figure(figsize=(12, 4))

        drawdown = self._drawdown()

        plt.step(drawdown.index, drawdown, where='post', color='red', linewidth=2, label='Drawdown')
        plt.fill_between(drawdown.index, drawdown, 0, color='red', alpha=0.1, step='post')

        plt.ylabel('Drawdown [$]')
        plt.gca().yaxis.set_major_formatter(mtick.StrMethodFormatter('{x:,.0f}'))
        plt.legend()
        plt.grid(True, alpha=0.3)
        plt.tight_layout()

        if save_path:
            print(f" [>] Saving plot to {save_path}")
            plt.savefig(save_path, dpi=PLOT_DPI, bbox_inches='tight')

        plt.show()

    def _add_lines(self, ax: Axes, mean_val: float) -> None:
        """Adds vertical reference lines to histograms."""
        ax.axvline(0.0, color='black', linestyle='-', linewidth=1.5, label='Break-even')
        ax.axvline(mean_val, color='red', linestyle=':', linewidth=2, label='Mean Trade')
        ax.legend(loc='upper right', framealpha=1.0, facecolor='white')

    def _histogram_bins(self, values: pd.Series, bins_per_tick: int = 5, ticks: int = 6) -> tuple[np.ndarray, int]:
        """
        Bin edges aligned to a round tick step (1, 2 or 5 times a power of ten).

        Returns:
            tuple[np.ndarray, int]: The bin edges and the number of bins per tick.
        """
        low, high = float(values.min()), float(values.max())
        span = high - low
        if span <= 0:
            # Single distinct value: centre one tick around it
            span = max(abs(low) * 0.1, 1.0)
            low, high = low - span / 2, high + span / 2

        raw_step = span / ticks
        magnitude = 10 ** math.floor(math.log10(raw_step))
        tick_step = next(m * magnitude for m in (1, 2, 5, 10) if m * magnitude >= raw_step)

        start = math.floor(low / tick_step) * tick_step
        stop = math.ceil(high / tick_step) * tick_step
        bin_width = tick_step / bins_per_tick

        edges = np.arange(start, stop + bin_width / 2, bin_width)
        if len(edges) < 2:
            edges = np.array([start, start + tick_step])
        return edges, bins_per_tick
