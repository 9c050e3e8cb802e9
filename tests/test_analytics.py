import os
import tempfile
import unittest
from unittest import mock

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from src.trade_analytics import TradeAnalyser, format_currency
from src.trade_pipeline import parse


class TestTradeAnalyser(unittest.TestCase):

    def setUp(self):
        rows = [
            {'SYMBOL': 'aapl', 'DateTime': '1/2/24 3:00 PM', 'value': 100},
            {'SYMBOL': 'MSFT', 'DateTime': '1/1/24 9:00 AM', 'value': -50},
        ]
        self.analyser = TradeAnalyser(parse(rows, 1000))

    def tearDown(self):
        plt.close('all')

    def test_summary(self):
        summary = self.analyser.get_summary()

        self.assertEqual(summary['Total_Trades'], 2)
        self.assertEqual(summary['Initial_Investment'], 1000.0)
        self.assertEqual(summary['Total_Performance'], 1050.0)
        self.assertEqual(summary['Net_PnL'], 50.0)
        self.assertEqual(summary['Winning_Trades'], 1)
        self.assertEqual(summary['Losing_Trades'], 1)
        self.assertEqual(summary['Win_Rate'], 0.5)
        self.assertEqual(summary['Best_Trade'], 100.0)
        self.assertEqual(summary['Worst_Trade'], -50.0)
        self.assertEqual(summary['Max_Drawdown'], -50.0)

    def test_summary_table(self):
        table = self.analyser.get_summary_table()

        self.assertEqual(list(table.columns), ['Value'])
        self.assertEqual(table.loc['Total Performance', 'Value'], '$1,050.00')
        self.assertEqual(table.loc['Win Rate', 'Value'], '50.00%')
        self.assertEqual(table.loc['Max Drawdown', 'Value'], '-$50.00')

    def test_sort_ledger(self):
        by_id = self.analyser.sort_ledger('id', 'asc')
        by_symbol = self.analyser.sort_ledger('symbol', 'desc')
        by_value = self.analyser.sort_ledger('value')

        self.assertEqual([t.id for t in by_id], [1, 2])
        self.assertEqual([t.symbol for t in by_symbol], ['MSFT', 'aapl'])
        self.assertEqual([t.value for t in by_value], [-50.0, 100.0])

    def test_sort_does_not_change_dataset_order(self):
        self.analyser.sort_ledger('accumulatedValue', 'desc')
        self.assertEqual([t.id for t in self.analyser.dataset.trades], [2, 1])

    def test_invalid_sort_arguments(self):
        with self.assertRaises(ValueError):
            self.analyser.sort_ledger('price')
        with self.assertRaises(ValueError):
            self.analyser.sort_ledger('id', 'up')

    def test_ledger_frame(self):
        df_ledger = self.analyser.ledger_frame('date', 'asc')

        self.assertEqual(list(df_ledger.columns), ['id', 'symbol', 'date', 'value', 'accumulatedValue'])
        self.assertEqual(list(df_ledger['accumulatedValue']), [950.0, 1050.0])

    @mock.patch('matplotlib.pyplot.show')
    def test_plots_are_saved(self, mock_show):
        with tempfile.TemporaryDirectory() as tmp:
            paths = [os.path.join(tmp, name) for name in ('perf.png', 'dist.png', 'dd.png')]

            self.analyser.plot_performance(save_path=paths[0])
            self.analyser.plot_value_distribution(save_path=paths[1])
            self.analyser.plot_drawdown_profile(save_path=paths[2])

            for path in paths:
                self.assertTrue(os.path.exists(path))
        self.assertEqual(mock_show.call_count, 3)

    @mock.patch('matplotlib.pyplot.show')
    def test_distribution_with_identical_values(self, mock_show):
        rows = [{'SYMBOL': s, 'DateTime': '1/1/24 9:00 AM', 'value': 10} for s in ('A', 'B', 'C')]
        TradeAnalyser(parse(rows, 0)).plot_value_distribution()
        mock_show.assert_called_once()


class TestFormatCurrency(unittest.TestCase):

    def test_format(self):
        self.assertEqual(format_currency(1234.5), '$1,234.50')
        self.assertEqual(format_currency(-50), '-$50.00')
        self.assertEqual(format_currency(0.0), '$0.00')
        self.assertEqual(format_currency(float('nan')), 'NaN')


if __name__ == '__main__':
    unittest.main()
