import math
import unittest

import pandas as pd

from src.chart_projection import chart_frame, project_chart
from src.errors import InvalidDateFormatError, MissingColumnError, NoValidTradesError
from src.models import InitialInvestmentPoint, Trade, TradePoint
from src.portfolio_processor import accumulate_trades
from src.trade_pipeline import parse


def _row(symbol, when, value):
    return {'SYMBOL': symbol, 'DateTime': when, 'value': value}


class TestScenarios(unittest.TestCase):

    def setUp(self):
        self.rows = [
            _row('AAPL', '1/2/24 3:00 PM', 100),
            _row('MSFT', '1/1/24 9:00 AM', -50),
        ]

    def test_chronological_order_and_accumulation(self):
        """
        CASE: AAPL (+100) is listed first but happens a day after MSFT (-50).
        Math:
          - MSFT: 1000 - 50 = 950
          - AAPL: 950 + 100 = 1050
        """
        dataset = parse(self.rows, 1000)

        self.assertEqual([t.symbol for t in dataset.trades], ['MSFT', 'AAPL'])
        self.assertEqual((dataset.trades[0].id, dataset.trades[0].value, dataset.trades[0].accumulated_value),
                         (2, -50.0, 950.0))
        self.assertEqual((dataset.trades[1].id, dataset.trades[1].value, dataset.trades[1].accumulated_value),
                         (1, 100.0, 1050.0))
        self.assertEqual(dataset.chart_data[0].value, 1000.0)
        self.assertEqual(dataset.initial_investment, 1000.0)
        self.assertEqual(dataset.final_value, 1050.0)

    def test_missing_symbol_column(self):
        rows = [{'DateTime': '1/1/24 9:00 AM', 'value': 1}, _row('AAPL', '1/1/24 9:00 AM', 1)]
        with self.assertRaises(MissingColumnError) as ctx:
            parse(rows, 1000)
        self.assertEqual(ctx.exception.column_name, 'SYMBOL')

    def test_blank_symbol_row_is_dropped(self):
        rows = self.rows + [_row('', '1/3/24 9:00 AM', 999)]
        dataset = parse(rows, 1000)
        self.assertEqual(len(dataset.trades), 2)
        self.assertNotIn(999.0, [t.value for t in dataset.trades])

    def test_invalid_month(self):
        rows = [self.rows[0], _row('TSLA', '13/1/24 3:00 PM', 5)]
        with self.assertRaises(InvalidDateFormatError) as ctx:
            parse(rows, 1000)
        self.assertEqual(ctx.exception.row_number, 2)

    def test_midnight_sorts_before_noon(self):
        rows = [_row('NOON', '1/1/24 12:00 PM', 1), _row('MIDNIGHT', '1/1/24 12:00 AM', 2)]
        dataset = parse(rows, 0)

        self.assertEqual([t.symbol for t in dataset.trades], ['MIDNIGHT', 'NOON'])
        self.assertEqual(dataset.trades[0].timestamp.hour, 0)
        self.assertEqual(dataset.trades[1].timestamp.hour, 12)

    def test_no_valid_trades(self):
        rows = [_row('', '1/1/24 9:00 AM', 1), _row(None, '1/2/24 9:00 AM', 2)]
        with self.assertRaises(NoValidTradesError):
            parse(rows, 1000)


class TestPipelineProperties(unittest.TestCase):

    def setUp(self):
        self.rows = [
            _row('A', '3/1/24 10:00 AM', 12.5),
            _row('B', '1/15/24 4:30 PM', -3.25),
            _row('C', '2/1/24 9:00 AM', 40),
            _row('D', '1/15/24 4:30 PM', 7.75),
            _row('E', '1/2/24 11:59 PM', -20),
            _row('F', '2/1/24 9:00 AM', 0.1),
        ]
        self.initial = 500.0

    def test_determinism(self):
        self.assertEqual(parse(self.rows, self.initial), parse(self.rows, self.initial))

    def test_accumulation_invariant(self):
        dataset = parse(self.rows, self.initial)

        running = self.initial
        for trade in dataset.trades:
            running += trade.value
            self.assertAlmostEqual(trade.accumulated_value, running, places=9)

    def test_trades_are_chronological(self):
        timestamps = [t.timestamp for t in parse(self.rows, self.initial).trades]
        self.assertEqual(timestamps, sorted(timestamps))

    def test_stable_order_under_ties(self):
        """B and D share a timestamp, as do C and F: input order must be kept."""
        ids = [t.id for t in parse(self.rows, self.initial).trades]
        self.assertEqual(ids, [5, 2, 4, 3, 6, 1])

    def test_chart_anchor(self):
        dataset = parse(self.rows, self.initial)
        anchor = dataset.chart_data[0]

        self.assertTrue(anchor.is_initial_investment)
        self.assertEqual(anchor.value, self.initial)
        self.assertEqual(anchor.accumulated_value, self.initial)
        self.assertEqual(anchor.id, 0)
        self.assertEqual(anchor.symbol, 'INITIAL')
        self.assertEqual(anchor.timestamp, dataset.trades[0].timestamp)
        self.assertEqual(len(dataset.chart_data), len(dataset.trades) + 1)

    def test_chart_mirrors_ledger(self):
        dataset = parse(self.rows, self.initial)

        for point, trade in zip(dataset.chart_data[1:], dataset.trades):
            self.assertFalse(point.is_initial_investment)
            self.assertEqual((point.id, point.symbol, point.timestamp, point.value, point.accumulated_value),
                             (trade.id, trade.symbol, trade.timestamp, trade.value, trade.accumulated_value))

    def test_initial_investment_is_float(self):
        dataset = parse(self.rows, 100)
        self.assertIsInstance(dataset.initial_investment, float)


class TestAccumulator(unittest.TestCase):

    def _trade(self, trade_id, when, value):
        return Trade(id=trade_id, symbol=f'S{trade_id}', timestamp=pd.Timestamp(when), value=value)

    def test_empty_ledger(self):
        self.assertEqual(accumulate_trades([], 100.0), ())

    def test_input_trades_are_not_modified(self):
        trades = [self._trade(1, '2024-01-02', 5.0), self._trade(2, '2024-01-01', 3.0)]
        result = accumulate_trades(trades, 10.0)

        self.assertEqual([t.accumulated_value for t in trades], [0.0, 0.0])
        self.assertEqual([(t.id, t.accumulated_value) for t in result], [(2, 13.0), (1, 18.0)])

    def test_nan_value_poisons_later_totals(self):
        trades = [
            self._trade(1, '2024-01-01', 5.0),
            self._trade(2, '2024-01-02', float('nan')),
            self._trade(3, '2024-01-03', 1.0),
        ]
        result = accumulate_trades(trades, 10.0)

        self.assertEqual(result[0].accumulated_value, 15.0)
        self.assertTrue(math.isnan(result[1].accumulated_value))
        self.assertTrue(math.isnan(result[2].accumulated_value))

    def test_lenient_parse_propagates_nan(self):
        rows = [
            _row('A', '1/1/24 9:00 AM', 10),
            _row('B', '1/2/24 9:00 AM', 'oops'),
            _row('C', '1/3/24 9:00 AM', 5),
        ]
        dataset = parse(rows, 100, strict_values=False)

        self.assertEqual(dataset.trades[0].accumulated_value, 110.0)
        self.assertTrue(math.isnan(dataset.trades[1].value))
        self.assertTrue(math.isnan(dataset.trades[2].accumulated_value))


class TestChartProjection(unittest.TestCase):

    def test_empty_ledger_falls_back_to_now(self):
        now = pd.Timestamp('2024-06-01 12:00')
        chart = project_chart([], 250.0, now=now)

        self.assertEqual(chart, (InitialInvestmentPoint(timestamp=now, amount=250.0),))

    def test_points_are_tagged_variants(self):
        trade = Trade(id=1, symbol='X', timestamp=pd.Timestamp('2024-01-01'), value=1.0, accumulated_value=2.0)
        chart = project_chart([trade], 1.0)

        self.assertIsInstance(chart[0], InitialInvestmentPoint)
        self.assertIsInstance(chart[1], TradePoint)
        self.assertIs(chart[1].trade, trade)

    def test_chart_frame(self):
        dataset = parse([_row('A', '1/1/24 9:00 AM', 10), _row('B', '1/2/24 9:00 AM', -4)], 100)
        df_chart = chart_frame(dataset.chart_data)

        self.assertEqual(list(df_chart['id']), [0, 1, 2])
        self.assertEqual(list(df_chart['accumulated_value']), [100.0, 110.0, 106.0])
        self.assertEqual(list(df_chart['is_initial_investment']), [True, False, False])


if __name__ == '__main__':
    unittest.main()
